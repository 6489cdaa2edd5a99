"""
Streaming assistant responses: early type detection, truncated JSON repair
and application to an element tree.
"""

from .assembler import ApplyResult, ResponseAssembler, TypeScanner, apply_response, parse_response
from .models import (
    AssistantResponse,
    EditResponse,
    GenerationResponse,
    MessageResponse,
    ResponseType,
    StopReason,
    response_from_dict,
    response_summary,
)
from .repair import extract_json_candidate, open_containers, repair_truncated_json, split_stop_marker

__all__ = [
    "ApplyResult",
    "ResponseAssembler",
    "TypeScanner",
    "apply_response",
    "parse_response",
    "AssistantResponse",
    "EditResponse",
    "GenerationResponse",
    "MessageResponse",
    "ResponseType",
    "StopReason",
    "response_from_dict",
    "response_summary",
    "extract_json_candidate",
    "open_containers",
    "repair_truncated_json",
    "split_stop_marker",
]
