"""
``{name}`` substitution for display strings.
"""

from __future__ import annotations

import json
import re
from typing import Any, List, Mapping

TOKEN_PATTERN = re.compile(r"\{(\w+(?:\.\w+)*)\}")


def format_value(value: Any) -> str:
    """String form used for interpolation and input prefill."""
    if value is None:
        return ""
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, (list, tuple)):
        return ",".join(format_value(item) for item in value)
    if isinstance(value, dict):
        return json.dumps(value, default=str)
    return str(value)


def resolve_template(text: str, variables: Mapping[str, Any]) -> str:
    """
    Replace every ``{token}`` whose full text is a key of ``variables``.

    Dotted tokens such as ``{user.name}`` are looked up as a single flat key;
    unknown tokens are left untouched.
    """

    if not text or "{" not in text:
        return text or ""

    def _sub(match: re.Match) -> str:
        token = match.group(1)
        if token in variables:
            return format_value(variables[token])
        return match.group(0)

    return TOKEN_PATTERN.sub(_sub, text)


def template_variables(text: str) -> List[str]:
    if not text:
        return []
    seen: List[str] = []
    for token in TOKEN_PATTERN.findall(text):
        if token not in seen:
            seen.append(token)
    return seen
