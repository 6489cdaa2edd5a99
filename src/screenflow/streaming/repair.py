"""
Candidate extraction and best-effort repair of truncated JSON documents.
"""

from __future__ import annotations

import re
from typing import List, Optional, Tuple

STOP_MARKER = re.compile(r"\n__STOP:(\w+)__$")
_FENCE_OPEN = re.compile(r"^```(?:json)?\s*\n?")
_FENCE_CLOSE = re.compile(r"\n?```\s*$")

_DANGLING_STRING_VALUE = re.compile(r',\s*"[^"]*"\s*:\s*"[^"]*$')
_DANGLING_KEY = re.compile(r',\s*"[^"]*"\s*:\s*$')
_TRAILING_COMMA = re.compile(r",\s*$")

_CLOSERS = {"{": "}", "[": "]"}


def split_stop_marker(text: str) -> Tuple[str, Optional[str]]:
    """Return the text without its trailing ``__STOP:<reason>__`` marker, and the reason."""
    match = STOP_MARKER.search(text)
    if match is None:
        return text, None
    return text[: match.start()], match.group(1)


def extract_json_candidate(text: str) -> str:
    body, _ = split_stop_marker(text)
    body = body.strip()
    if body.startswith("```"):
        body = _FENCE_OPEN.sub("", body, count=1)
        body = _FENCE_CLOSE.sub("", body, count=1)
    first = body.find("{")
    last = body.rfind("}")
    if first != -1 and last > first:
        return body[first : last + 1]
    return body


def _scan(text: str) -> Tuple[List[str], bool, bool]:
    stack: List[str] = []
    in_string = False
    escaped = False
    for ch in text:
        if escaped:
            escaped = False
            continue
        if ch == "\\":
            escaped = True
            continue
        if ch == '"':
            in_string = not in_string
            continue
        if in_string:
            continue
        if ch in _CLOSERS:
            stack.append(ch)
        elif ch in ("}", "]") and stack and _CLOSERS[stack[-1]] == ch:
            stack.pop()
    return stack, in_string, escaped


def open_containers(text: str) -> Tuple[List[str], bool]:
    """Unclosed ``{``/``[`` outside string literals, innermost last, and whether a string is open."""
    stack, in_string, _ = _scan(text)
    return stack, in_string


def repair_truncated_json(text: str) -> str:
    """
    Close a JSON document cut off mid-stream.

    A dangling ``"key": "partial``, ``"key":`` or trailing comma is dropped,
    an open string literal is closed, then every unclosed bracket and brace is
    closed innermost first. The result is balanced but may still fail to parse.
    """

    repaired = text.strip()
    repaired = _DANGLING_STRING_VALUE.sub("", repaired)
    repaired = _DANGLING_KEY.sub("", repaired)
    repaired = _TRAILING_COMMA.sub("", repaired)
    stack, in_string, escaped = _scan(repaired)
    if in_string:
        if escaped:
            repaired = repaired[:-1]
        repaired += '"'
    return repaired + "".join(_CLOSERS[opener] for opener in reversed(stack))
