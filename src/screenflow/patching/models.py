"""
Change records produced by the assistant and applied by the merge engine.
"""

from __future__ import annotations

import copy
import logging
from dataclasses import dataclass, field, replace
from typing import Any, Callable, Dict, List, Optional

from ..errors import TreeError
from ..tree.models import ElementAction, ElementNode, VisibleWhen

logger = logging.getLogger("screenflow.patching")

FIRST = "first"
LAST = "last"
BEFORE_PREFIX = "before:"
AFTER_PREFIX = "after:"


def _action(raw: Any) -> Optional[ElementAction]:
    return ElementAction.from_dict(raw) if isinstance(raw, dict) else None


def _actions(raw: Any) -> List[ElementAction]:
    return [ElementAction.from_dict(item) for item in raw or [] if isinstance(item, dict)]


def _visible_when(raw: Any) -> Optional[VisibleWhen]:
    return VisibleWhen.from_dict(raw) if isinstance(raw, dict) else None


def _conditions(raw: Any) -> Optional[Dict[str, Any]]:
    return copy.deepcopy(raw) if isinstance(raw, dict) else None


# wire key -> (node attribute, parser)
REPLACEABLE_FIELDS: Dict[str, tuple[str, Callable[[Any], Any]]] = {
    "action": ("action", _action),
    "actions": ("actions", _actions),
    "visibleWhen": ("visible_when", _visible_when),
    "conditions": ("conditions", _conditions),
    "entrance": ("entrance", copy.deepcopy),
    "textAnimation": ("text_animation", copy.deepcopy),
    "interactive": ("interactive", copy.deepcopy),
}


@dataclass
class Change:
    """
    One id-targeted edit. ``replacements`` holds already-parsed values keyed by
    node attribute, for every replaceable wire key present on the change
    (an explicit null clears the field).
    """

    id: Optional[str] = None
    remove: bool = False
    style: Optional[Dict[str, Any]] = None
    props: Optional[Dict[str, Any]] = None
    replacements: Dict[str, Any] = field(default_factory=dict)
    children: Optional[List[ElementNode]] = None
    insert: Optional[ElementNode] = None
    position: Optional[str] = None

    @property
    def is_root_insert(self) -> bool:
        return self.id is None and self.insert is not None

    @property
    def anchor(self) -> tuple[str, Optional[str]]:
        """``(kind, child_id)`` where kind is first, last, before, after or unknown."""
        position = self.position
        if not position or position == LAST:
            return LAST, None
        if position == FIRST:
            return FIRST, None
        if position.startswith(BEFORE_PREFIX):
            return "before", position[len(BEFORE_PREFIX):]
        if position.startswith(AFTER_PREFIX):
            return "after", position[len(AFTER_PREFIX):]
        return "unknown", position

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Change":
        if not isinstance(data, dict):
            raise TreeError(f"Change must be an object, got {type(data).__name__}", code="SF-1101")
        raw_id = data.get("id")
        position = data.get("position")
        insert = None
        raw_insert = data.get("insertChild")
        if isinstance(raw_insert, dict):
            # Accept both {insertChild: element, position} and {insertChild: {element, position}}.
            if "element" in raw_insert and "type" not in raw_insert:
                position = raw_insert.get("position", position)
                raw_insert = raw_insert.get("element")
            insert = ElementNode.from_dict(raw_insert)
        raw_children = data.get("children")
        style = data.get("style")
        props = data.get("props")
        return cls(
            id=str(raw_id) if raw_id else None,
            remove=bool(data.get("remove")),
            style=copy.deepcopy(style) if isinstance(style, dict) else None,
            props=copy.deepcopy(props) if isinstance(props, dict) else None,
            replacements={
                attr: parse(data[wire]) for wire, (attr, parse) in REPLACEABLE_FIELDS.items() if wire in data
            },
            children=[ElementNode.from_dict(c) for c in raw_children] if isinstance(raw_children, list) else None,
            insert=insert,
            position=position if isinstance(position, str) else None,
        )

    def apply_fields(self, node: ElementNode) -> ElementNode:
        """Shallow-merge style/props and swap in replaced fields and children."""
        updates: Dict[str, Any] = dict(self.replacements)
        if self.style:
            updates["style"] = {**node.style, **self.style}
        if self.props:
            updates["props"] = {**node.props, **self.props}
        if self.children is not None:
            if node.type.is_container:
                updates["children"] = copy.deepcopy(self.children)
            else:
                logger.debug("Ignoring children replacement on leaf element '%s'", node.id)
        if not updates:
            return node
        return replace(node, **updates)


def parse_changes(raw: Any) -> List[Change]:
    if raw is None:
        return []
    if not isinstance(raw, (list, tuple)):
        raise TreeError("Changes must be a list", code="SF-1101")
    return [item if isinstance(item, Change) else Change.from_dict(item) for item in raw]
