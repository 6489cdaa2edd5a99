"""
Custom error types for the screenflow runtime.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any


@dataclass
class ScreenflowError(Exception):
    """Base error carrying a stable code and structured diagnostics."""

    message: str
    code: str = "SF-0000"
    diagnostics: list[dict[str, Any]] | None = None

    def __post_init__(self) -> None:  # pragma: no cover - trivial
        if self.diagnostics is None:
            self.diagnostics = [{"code": self.code, "message": self.message, "severity": "error"}]

    def __str__(self) -> str:  # pragma: no cover - trivial
        return f"{self.code}: {self.message}"


@dataclass
class TreeError(ScreenflowError):
    """Element tree failed structural validation."""

    code: str = "SF-1001"
    element_id: str | None = None


@dataclass
class ResponseParseError(ScreenflowError):
    """Assistant document could not be parsed and was not marked truncated."""

    code: str = "SF-2001"
    raw_text: str = ""

    def excerpt(self, limit: int = 200) -> str:
        text = self.raw_text
        if len(text) > limit:
            return f"{text[:limit]}..."
        return text


@dataclass
class TruncatedResponseError(ScreenflowError):
    """Truncated assistant document that the repair pass could not rescue."""

    code: str = "SF-2002"


@dataclass
class ConfigFetchError(ScreenflowError):
    """Screen source fetch failed and no usable cached copy exists."""

    code: str = "SF-3001"
    status: int | None = None


@dataclass
class SinkError(ScreenflowError):
    """Analytics sink or assignment endpoint rejected a request."""

    code: str = "SF-3002"
    status: int | None = None


@dataclass
class FlowStateError(ScreenflowError):
    """Flow session was driven in a way its current state does not allow."""

    code: str = "SF-4001"


@dataclass
class AssistantRequestError(ScreenflowError):
    """Generation endpoint refused the request or the stream broke off."""

    code: str = "SF-3003"
    status: int | None = None
