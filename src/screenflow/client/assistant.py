"""
Client for the screen generation endpoint.
"""

from __future__ import annotations

import codecs
import json
import logging
import urllib.error
import urllib.request
from typing import Any, Callable, Dict, Iterable, List, Optional, Sequence

from ..authoring.variables import collect_flow_variables
from ..config import DEFAULT_HTTP_TIMEOUT_SECONDS
from ..errors import AssistantRequestError, ScreenflowError
from ..flows.models import ScreenConfig
from ..observability.logging_utils import redact_payload
from ..streaming.assembler import ApplyResult, ResponseAssembler, apply_response
from ..streaming.models import AssistantResponse
from ..tree.models import ElementNode, dump_elements
from ..tree.sanitize import strip_inline_images

logger = logging.getLogger("screenflow.client.assistant")

HttpStreamClient = Callable[[str, Dict[str, Any], Dict[str, str]], Iterable[str]]

_READ_SIZE = 1024


def _screen_config(raw: Any) -> ScreenConfig:
    return raw if isinstance(raw, ScreenConfig) else ScreenConfig.from_dict(raw)


class AssistantClient:
    """
    Streams a generation request and assembles the response document.
    The http_stream parameter allows deterministic mocking in tests.
    """

    def __init__(
        self,
        endpoint: str,
        token: Optional[str] = None,
        http_stream: Optional[HttpStreamClient] = None,
        timeout: float = DEFAULT_HTTP_TIMEOUT_SECONDS,
    ) -> None:
        self.endpoint = endpoint
        self.token = token
        self.timeout = timeout
        self._http_stream = http_stream or self._default_http_stream

    def _build_headers(self) -> Dict[str, str]:
        headers = {"Content-Type": "application/json"}
        if self.token:
            headers["Authorization"] = f"Bearer {self.token}"
        return headers

    def build_payload(
        self,
        prompt: str,
        *,
        current_elements: Optional[Sequence[ElementNode]] = None,
        screens: Sequence[Any] = (),
        assets: Sequence[Dict[str, Any]] = (),
        history: Sequence[Dict[str, Any]] = (),
        flow_id: Optional[str] = None,
        screen_id: Optional[str] = None,
        images: Optional[List[str]] = None,
    ) -> Dict[str, Any]:
        configs = [_screen_config(s) for s in screens]
        current = None
        if current_elements is not None:
            stripped, _ = strip_inline_images(current_elements)
            current = dump_elements(stripped)
        all_screens: List[Dict[str, Any]] = []
        for screen in configs:
            elements = None
            if screen.elements is not None:
                elements = dump_elements(strip_inline_images(screen.elements)[0])
            all_screens.append({"id": screen.id, "type": screen.type, "elements": elements})
        return {
            "prompt": prompt,
            "images": images or None,
            "currentElements": current,
            "allScreens": all_screens,
            "assets": [{"name": a.get("name"), "type": a.get("type")} for a in assets],
            "variables": [
                {"name": info.name, "setByScreens": info.set_by_screens, "values": info.values}
                for info in collect_flow_variables(configs)
            ],
            "conversationHistory": [{"role": m.get("role"), "content": m.get("content")} for m in history],
            "flowId": flow_id,
            "screenId": screen_id,
        }

    def stream(self, payload: Dict[str, Any], on_type: Optional[Callable[[str], None]] = None) -> AssistantResponse:
        """Send ``payload`` and assemble the streamed document, stop marker included."""
        logger.debug("Assistant request %s", redact_payload(payload))
        assembler = ResponseAssembler(on_type=on_type)
        try:
            for chunk in self._http_stream(self.endpoint, payload, self._build_headers()):
                assembler.feed(chunk)
        except urllib.error.HTTPError as exc:
            raise AssistantRequestError(f"Generation request failed with status {exc.code}", status=exc.code) from exc
        except ScreenflowError:
            raise
        except Exception as exc:
            raise AssistantRequestError(f"Generation request failed: {exc}") from exc
        return assembler.finish()

    def generate(self, prompt: str, on_type: Optional[Callable[[str], None]] = None, **context: Any) -> AssistantResponse:
        return self.stream(self.build_payload(prompt, **context), on_type=on_type)

    def edit(
        self,
        prompt: str,
        current_elements: Sequence[ElementNode],
        on_type: Optional[Callable[[str], None]] = None,
        **context: Any,
    ) -> ApplyResult:
        """Generate against ``current_elements`` and apply the result, restoring inline images."""
        _, url_map = strip_inline_images(current_elements)
        response = self.generate(prompt, on_type=on_type, current_elements=current_elements, **context)
        return apply_response(current_elements, response, url_map=url_map)

    def _default_http_stream(self, url: str, body: Dict[str, Any], headers: Dict[str, str]) -> Iterable[str]:
        payload = json.dumps(body).encode("utf-8")
        req = urllib.request.Request(url, data=payload, headers=headers, method="POST")
        decoder = codecs.getincrementaldecoder("utf-8")()
        with urllib.request.urlopen(req, timeout=self.timeout) as resp:  # pragma: no cover - live calls
            while True:
                block = resp.read(_READ_SIZE)
                if not block:
                    break
                text = decoder.decode(block)
                if text:
                    yield text
            tail = decoder.decode(b"", final=True)
            if tail:
                yield tail
