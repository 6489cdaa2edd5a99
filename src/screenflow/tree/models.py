"""
Element tree models shared by the runtime, the patch engine and the service.
"""

from __future__ import annotations

import copy
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, List, Optional

from ..errors import TreeError
from .traversal import ensure_unique_ids


class ElementType(str, Enum):
    VSTACK = "vstack"
    HSTACK = "hstack"
    ZSTACK = "zstack"
    SCROLLVIEW = "scrollview"
    TEXT = "text"
    IMAGE = "image"
    VIDEO = "video"
    LOTTIE = "lottie"
    ICON = "icon"
    INPUT = "input"
    SPACER = "spacer"
    DIVIDER = "divider"

    @property
    def is_container(self) -> bool:
        return self in CONTAINER_TYPES


CONTAINER_TYPES = frozenset({ElementType.VSTACK, ElementType.HSTACK, ElementType.ZSTACK, ElementType.SCROLLVIEW})


class ActionType(str, Enum):
    TAP = "tap"
    NAVIGATE = "navigate"
    LINK = "link"
    TOGGLE = "toggle"
    DISMISS = "dismiss"
    SET_VARIABLE = "set_variable"


_NODE_KEYS = {
    "id",
    "type",
    "style",
    "props",
    "children",
    "position",
    "action",
    "actions",
    "visibleWhen",
    "conditions",
    "entrance",
    "textAnimation",
    "interactive",
}

_POSITION_FIELDS = {
    "type": "type",
    "top": "top",
    "left": "left",
    "right": "right",
    "bottom": "bottom",
    "centerX": "center_x",
    "centerY": "center_y",
    "zIndex": "z_index",
}


@dataclass
class ElementPosition:
    type: Optional[str] = None
    top: Optional[float] = None
    left: Optional[float] = None
    right: Optional[float] = None
    bottom: Optional[float] = None
    center_x: Optional[bool] = None
    center_y: Optional[bool] = None
    z_index: Optional[int] = None

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "ElementPosition":
        return cls(**{attr: data.get(wire) for wire, attr in _POSITION_FIELDS.items()})

    def to_dict(self) -> Dict[str, Any]:
        out: Dict[str, Any] = {}
        for wire, attr in _POSITION_FIELDS.items():
            value = getattr(self, attr)
            if value is not None:
                out[wire] = value
        return out


@dataclass
class VisibleWhen:
    group: str
    has_selection: bool = True

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "VisibleWhen":
        return cls(group=str(data.get("group") or ""), has_selection=bool(data.get("hasSelection", True)))

    def to_dict(self) -> Dict[str, Any]:
        return {"group": self.group, "hasSelection": self.has_selection}


@dataclass
class ElementAction:
    type: ActionType
    destination: Any = None
    group: Optional[str] = None
    variable: Optional[str] = None
    value: Any = None

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "ElementAction":
        raw_type = data.get("type")
        try:
            action_type = ActionType(raw_type)
        except ValueError as exc:
            raise TreeError(f"Unknown action type '{raw_type}'", code="SF-1003") from exc
        return cls(
            type=action_type,
            destination=copy.deepcopy(data.get("destination")),
            group=data.get("group") or None,
            variable=data.get("variable"),
            value=copy.deepcopy(data.get("value")),
        )

    def to_dict(self) -> Dict[str, Any]:
        out: Dict[str, Any] = {"type": self.type.value}
        if self.destination is not None:
            out["destination"] = copy.deepcopy(self.destination)
        if self.group:
            out["group"] = self.group
        if self.variable is not None:
            out["variable"] = self.variable
        if self.type == ActionType.SET_VARIABLE or self.value is not None:
            out["value"] = copy.deepcopy(self.value)
        return out


@dataclass
class ElementNode:
    id: str
    type: ElementType
    style: Dict[str, Any] = field(default_factory=dict)
    props: Dict[str, Any] = field(default_factory=dict)
    children: List["ElementNode"] = field(default_factory=list)
    position: Optional[ElementPosition] = None
    action: Optional[ElementAction] = None
    actions: List[ElementAction] = field(default_factory=list)
    visible_when: Optional[VisibleWhen] = None
    conditions: Optional[Dict[str, Any]] = None
    entrance: Any = None
    text_animation: Any = None
    interactive: Any = None
    extra: Dict[str, Any] = field(default_factory=dict)

    @property
    def all_actions(self) -> List[ElementAction]:
        """Singular action first, then the list, in declared order."""
        collected = [self.action] if self.action is not None else []
        collected.extend(self.actions)
        return collected

    @property
    def show_if(self) -> Optional[Dict[str, Any]]:
        if not self.conditions:
            return None
        return self.conditions.get("show_if")

    def has_action_type(self, action_type: ActionType) -> bool:
        return any(a.type == action_type for a in self.all_actions)

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "ElementNode":
        if not isinstance(data, dict):
            raise TreeError(f"Element must be an object, got {type(data).__name__}")
        node_id = data.get("id")
        if not node_id or not isinstance(node_id, str):
            raise TreeError("Element is missing a string 'id'")
        raw_type = data.get("type")
        try:
            element_type = ElementType(raw_type)
        except ValueError as exc:
            raise TreeError(f"Unknown element type '{raw_type}'", element_id=node_id) from exc
        raw_children = data.get("children") or []
        if raw_children and not element_type.is_container:
            raise TreeError(
                f"Leaf element '{node_id}' of type '{element_type.value}' cannot have children",
                code="SF-1004",
                element_id=node_id,
            )
        position = data.get("position")
        visible_when = data.get("visibleWhen")
        action = data.get("action")
        return cls(
            id=node_id,
            type=element_type,
            style=copy.deepcopy(data.get("style") or {}),
            props=copy.deepcopy(data.get("props") or {}),
            children=[cls.from_dict(child) for child in raw_children],
            position=ElementPosition.from_dict(position) if isinstance(position, dict) else None,
            action=ElementAction.from_dict(action) if isinstance(action, dict) else None,
            actions=[ElementAction.from_dict(a) for a in data.get("actions") or [] if isinstance(a, dict)],
            visible_when=VisibleWhen.from_dict(visible_when) if isinstance(visible_when, dict) else None,
            conditions=copy.deepcopy(data.get("conditions")) if isinstance(data.get("conditions"), dict) else None,
            entrance=copy.deepcopy(data.get("entrance")),
            text_animation=copy.deepcopy(data.get("textAnimation")),
            interactive=copy.deepcopy(data.get("interactive")),
            extra={k: copy.deepcopy(v) for k, v in data.items() if k not in _NODE_KEYS},
        )

    def to_dict(self) -> Dict[str, Any]:
        out: Dict[str, Any] = {
            "id": self.id,
            "type": self.type.value,
            "style": copy.deepcopy(self.style),
            "props": copy.deepcopy(self.props),
        }
        if self.type.is_container:
            out["children"] = [child.to_dict() for child in self.children]
        if self.position is not None:
            out["position"] = self.position.to_dict()
        if self.action is not None:
            out["action"] = self.action.to_dict()
        if self.actions:
            out["actions"] = [a.to_dict() for a in self.actions]
        if self.visible_when is not None:
            out["visibleWhen"] = self.visible_when.to_dict()
        if self.conditions is not None:
            out["conditions"] = copy.deepcopy(self.conditions)
        if self.entrance is not None:
            out["entrance"] = copy.deepcopy(self.entrance)
        if self.text_animation is not None:
            out["textAnimation"] = copy.deepcopy(self.text_animation)
        if self.interactive is not None:
            out["interactive"] = copy.deepcopy(self.interactive)
        for key, value in self.extra.items():
            out.setdefault(key, copy.deepcopy(value))
        return out


def parse_elements(raw: List[Dict[str, Any]] | None) -> List[ElementNode]:
    """Parse a wire element list and reject duplicate ids anywhere in the tree."""
    nodes = [ElementNode.from_dict(item) for item in raw or []]
    ensure_unique_ids(nodes)
    return nodes


def dump_elements(nodes: List[ElementNode]) -> List[Dict[str, Any]]:
    return [node.to_dict() for node in nodes]
