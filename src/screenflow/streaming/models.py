"""
Assistant response documents.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, List, Optional, Union

from ..errors import ResponseParseError
from ..patching.models import Change, parse_changes
from ..tree.models import ElementNode, parse_elements

DEFAULT_EDIT_MESSAGE = "Screen updated."


class ResponseType(str, Enum):
    MESSAGE = "message"
    EDIT = "edit"
    GENERATION = "generation"


class StopReason(str, Enum):
    END_TURN = "end_turn"
    MAX_TOKENS = "max_tokens"
    STOP_SEQUENCE = "stop_sequence"


@dataclass
class MessageResponse:
    content: str
    type: ResponseType = ResponseType.MESSAGE
    truncated: bool = False


@dataclass
class EditResponse:
    changes: List[Change] = field(default_factory=list)
    message: str = DEFAULT_EDIT_MESSAGE
    type: ResponseType = ResponseType.EDIT
    truncated: bool = False


@dataclass
class GenerationResponse:
    elements: List[ElementNode] = field(default_factory=list)
    message: str = DEFAULT_EDIT_MESSAGE
    type: ResponseType = ResponseType.GENERATION
    truncated: bool = False


AssistantResponse = Union[MessageResponse, EditResponse, GenerationResponse]


def response_from_dict(data: Any, *, truncated: bool = False, raw_text: str = "") -> AssistantResponse:
    if not isinstance(data, dict):
        raise ResponseParseError("Assistant response is not a JSON object", raw_text=raw_text)
    raw_type = data.get("type")
    try:
        response_type = ResponseType(raw_type)
    except ValueError as exc:
        raise ResponseParseError(f"Unknown assistant response type '{raw_type}'", raw_text=raw_text) from exc
    message: Optional[str] = data.get("message") or None
    if response_type == ResponseType.MESSAGE:
        return MessageResponse(content=str(data.get("content") or message or ""), truncated=truncated)
    if response_type == ResponseType.EDIT:
        return EditResponse(
            changes=parse_changes(data.get("changes") or []),
            message=message or DEFAULT_EDIT_MESSAGE,
            truncated=truncated,
        )
    return GenerationResponse(
        elements=parse_elements(data.get("elements") or []),
        message=message or DEFAULT_EDIT_MESSAGE,
        truncated=truncated,
    )


def response_summary(response: AssistantResponse) -> Dict[str, Any]:
    out: Dict[str, Any] = {"type": response.type.value, "truncated": response.truncated}
    if isinstance(response, MessageResponse):
        out["message"] = response.content
    elif isinstance(response, EditResponse):
        out["message"] = response.message
        out["changes"] = len(response.changes)
    else:
        out["message"] = response.message
        out["elements"] = len(response.elements)
    return out
