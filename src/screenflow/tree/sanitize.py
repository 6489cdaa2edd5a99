"""
Inline image handling for payloads sent to the assistant.

Base64 ``data:`` URLs are large and useless to the model, so they are swapped
for a placeholder on the way out and put back when the response is applied.
"""

from __future__ import annotations

from dataclasses import replace
from typing import Dict, List, Sequence, Tuple

from .models import ElementNode
from .traversal import TreeStrategy, transform

IMAGE_PLACEHOLDER = "[uploaded-image]"


class _StripImages(TreeStrategy):
    def __init__(self) -> None:
        self.url_map: Dict[str, str] = {}

    def enter(self, node: ElementNode, path):
        url = node.props.get("url")
        if isinstance(url, str) and url.startswith("data:"):
            self.url_map[node.id] = url
            return replace(node, props={**node.props, "url": IMAGE_PLACEHOLDER})
        return node


class _RestoreImages(TreeStrategy):
    def __init__(self, url_map: Dict[str, str]) -> None:
        self.url_map = url_map

    def enter(self, node: ElementNode, path):
        original = self.url_map.get(node.id)
        if original is None:
            return node
        url = node.props.get("url")
        if url and url != IMAGE_PLACEHOLDER:
            return node
        return replace(node, props={**node.props, "url": original})


def strip_inline_images(nodes: Sequence[ElementNode]) -> Tuple[List[ElementNode], Dict[str, str]]:
    strategy = _StripImages()
    stripped = transform(nodes, strategy)
    return stripped, strategy.url_map


def restore_inline_images(nodes: Sequence[ElementNode], url_map: Dict[str, str]) -> List[ElementNode]:
    if not url_map:
        return list(nodes)
    return transform(nodes, _RestoreImages(url_map))
