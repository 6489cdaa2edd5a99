"""
Incremental assembly of a streamed assistant document.
"""

from __future__ import annotations

import json
import logging
from dataclasses import dataclass
from typing import Callable, Dict, List, Optional, Sequence

from ..errors import ResponseParseError, TreeError, TruncatedResponseError
from ..observability.metrics import RuntimeMetrics, default_metrics
from ..patching.merge import merge_report
from ..tree.models import ElementNode
from ..tree.sanitize import restore_inline_images
from .models import (
    AssistantResponse,
    EditResponse,
    GenerationResponse,
    MessageResponse,
    StopReason,
    response_from_dict,
)
from .repair import extract_json_candidate, repair_truncated_json, split_stop_marker

logger = logging.getLogger("screenflow.streaming")

_ESCAPES = {'"': '"', "\\": "\\", "/": "/", "b": "\b", "f": "\f", "n": "\n", "r": "\r", "t": "\t"}


class TypeScanner:
    """
    Prefix-aware scanner over a JSON document arriving in chunks.

    Tracks string, escape and nesting state so the top-level ``"type"`` value
    is reported as soon as its string literal closes, regardless of spacing
    or of the same text appearing inside nested strings. Also keeps a
    provisional preview of the top-level ``message``/``content`` string.
    """

    def __init__(self, key: str = "type", preview_keys: Sequence[str] = ("message", "content")) -> None:
        self.key = key
        self.preview_keys = tuple(preview_keys)
        self.detected: Optional[str] = None
        self.preview = ""
        self._stack: List[str] = []
        self._expect_key = False
        self._in_string = False
        self._escaped = False
        self._string_is_key = False
        self._string_depth = 0
        self._buf: List[str] = []
        self._last_key: Optional[str] = None

    @property
    def depth(self) -> int:
        return len(self._stack)

    def feed(self, chunk: str) -> Optional[str]:
        """Consume ``chunk``; returns the detected type the first time it becomes known."""
        found: Optional[str] = None
        for ch in chunk:
            if self._in_string:
                closed = self._string_char(ch)
                if closed is not None and found is None and self.detected is None:
                    found = closed
                continue
            if ch == '"':
                self._in_string = True
                self._buf = []
                self._string_depth = self.depth
                self._string_is_key = self._expect_key
            elif ch in "{[":
                self._stack.append(ch)
                self._expect_key = ch == "{"
            elif ch in "}]":
                if self._stack:
                    self._stack.pop()
                self._expect_key = False
            elif ch == ":":
                self._expect_key = False
            elif ch == ",":
                self._expect_key = bool(self._stack) and self._stack[-1] == "{"
        if self._in_string and self._previewing():
            self.preview = "".join(self._buf)
        if found is not None:
            self.detected = found
        return found

    def _previewing(self) -> bool:
        return self._string_depth == 1 and not self._string_is_key and self._last_key in self.preview_keys

    def _string_char(self, ch: str) -> Optional[str]:
        if self._escaped:
            self._escaped = False
            # \uXXXX is kept verbatim; the preview is provisional.
            self._buf.append(_ESCAPES.get(ch, "\\" + ch))
            return None
        if ch == "\\":
            self._escaped = True
            return None
        if ch != '"':
            self._buf.append(ch)
            return None
        self._in_string = False
        if self._string_depth != 1:
            return None
        text = "".join(self._buf)
        if self._string_is_key:
            self._last_key = text
            return None
        if self._last_key in self.preview_keys:
            self.preview = text
        if self._last_key == self.key:
            return text
        return None


def parse_response(
    text: str,
    *,
    truncated: bool = False,
    metrics: Optional[RuntimeMetrics] = None,
) -> AssistantResponse:
    """
    Parse a finished document. Repair is attempted only for truncated
    documents; any failure raises and nothing partial is returned.
    """

    registry = metrics or default_metrics
    candidate = extract_json_candidate(text)
    try:
        data = json.loads(candidate)
    except ValueError as exc:
        if not truncated:
            raise ResponseParseError(f"Assistant returned text that is not JSON: {exc}", raw_text=text) from exc
        logger.info("Assistant response was truncated; attempting repair")
        registry.record_repair("attempted")
        try:
            data = json.loads(repair_truncated_json(candidate))
        except ValueError as repair_exc:
            registry.record_repair("failed")
            raise TruncatedResponseError(
                "The response was truncated and could not be repaired; try a smaller, targeted change"
            ) from repair_exc
        registry.record_repair("succeeded")
    try:
        return response_from_dict(data, truncated=truncated, raw_text=text)
    except TreeError as exc:
        raise ResponseParseError(f"Assistant response has an invalid element tree: {exc.message}", raw_text=text) from exc


class ResponseAssembler:
    def __init__(
        self,
        on_type: Optional[Callable[[str], None]] = None,
        *,
        metrics: Optional[RuntimeMetrics] = None,
    ) -> None:
        self.scanner = TypeScanner()
        self.detected_type: Optional[str] = None
        self._chunks: List[str] = []
        self._on_type = on_type
        self._metrics = metrics

    @property
    def text(self) -> str:
        return "".join(self._chunks)

    @property
    def preview(self) -> str:
        return self.scanner.preview

    def feed(self, chunk: str) -> Optional[str]:
        if not chunk:
            return None
        self._chunks.append(chunk)
        found = self.scanner.feed(chunk)
        if found is not None and self.detected_type is None:
            self.detected_type = found
            if self._on_type is not None:
                self._on_type(found)
        return found

    def finish(self, truncated: Optional[bool] = None) -> AssistantResponse:
        """
        Parse the accumulated text. ``truncated`` overrides the stream's own
        ``__STOP:<reason>__`` marker when given.
        """

        body, reason = split_stop_marker(self.text)
        if truncated is None:
            truncated = reason == StopReason.MAX_TOKENS.value
        return parse_response(body, truncated=truncated, metrics=self._metrics)


@dataclass
class ApplyResult:
    elements: List[ElementNode]
    message: str
    changed: bool
    applied: int = 0
    ignored: int = 0
    response_type: str = ""


def apply_response(
    elements: Sequence[ElementNode],
    response: AssistantResponse,
    *,
    url_map: Optional[Dict[str, str]] = None,
) -> ApplyResult:
    if isinstance(response, MessageResponse):
        return ApplyResult(
            elements=list(elements),
            message=response.content,
            changed=False,
            response_type=response.type.value,
        )
    if isinstance(response, EditResponse):
        report = merge_report(elements, response.changes)
        merged = restore_inline_images(report.elements, url_map or {})
        return ApplyResult(
            elements=merged,
            message=response.message,
            changed=True,
            applied=report.applied,
            ignored=report.ignored,
            response_type=response.type.value,
        )
    if isinstance(response, GenerationResponse):
        return ApplyResult(
            elements=restore_inline_images(response.elements, url_map or {}),
            message=response.message,
            changed=True,
            response_type=response.type.value,
        )
    raise ResponseParseError(f"Unsupported response {type(response).__name__}")
