"""
Scrub user-authored text and personal data out of structures before they
reach a log line.
"""

from __future__ import annotations

from typing import Any, Dict, Mapping

from ..config import log_redaction_enabled

REDACTED = "[REDACTED]"

# analytics properties and flow variables that commonly carry personal data
_SENSITIVE_KEYS = frozenset({"email", "phone", "name", "password", "token", "authorization", "api_key", "user_input"})
# prompts, chat turns and element copy written by the end user
_USER_TEXT_KEYS = frozenset({"prompt", "content", "message", "text", "placeholder", "value", "values", "images"})


def _hides(key: Any) -> bool:
    if not isinstance(key, str):
        return False
    lowered = key.lower()
    return lowered in _SENSITIVE_KEYS or lowered in _USER_TEXT_KEYS


def _scrub(value: Any, hidden: bool) -> Any:
    if isinstance(value, Mapping):
        return {key: _scrub(item, hidden or _hides(key)) for key, item in value.items()}
    if isinstance(value, (list, tuple)):
        return [_scrub(item, hidden) for item in value]
    if hidden and value is not None and value != "":
        return REDACTED
    return value


def redact_text(text: str) -> str:
    if not text or not log_redaction_enabled():
        return text
    return REDACTED


def redact_payload(data: Mapping[str, Any]) -> Dict[str, Any]:
    """
    Return a copy of ``data`` with every scalar under a sensitive or
    user-text key replaced by ``[REDACTED]``, at any depth. Element trees,
    chat history and variable lists are walked, so nested ``props.text`` or
    ``conversationHistory[].content`` never reach the log. The input is not
    mutated; with ``SCREENFLOW_LOG_REDACT`` off a shallow copy comes back.
    """

    if not log_redaction_enabled():
        return dict(data)
    return _scrub(data, False)
