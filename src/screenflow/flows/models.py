"""
Flow session models.
"""

from __future__ import annotations

import copy
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, List, Optional

from ..tree.models import ElementNode, parse_elements

ELEMENTS_SCREEN = "noboard_screen"
CUSTOM_SCREEN = "custom_screen"
VARIABLES_KEY = "_variables"


class FlowStatus(str, Enum):
    LOADING = "loading"
    READY = "ready"
    COMPLETED = "completed"
    ABANDONED = "abandoned"
    ERROR = "error"


class ViewKind(str, Enum):
    ELEMENTS = "elements"
    CUSTOM = "custom"
    MISSING_COMPONENT = "missing_component"


@dataclass
class ScreenConfig:
    id: str
    type: str = ELEMENTS_SCREEN
    props: Dict[str, Any] = field(default_factory=dict)
    elements: Optional[List[ElementNode]] = None
    custom_component_name: Optional[str] = None
    custom_variables: List[str] = field(default_factory=list)
    hidden: bool = False

    @property
    def is_custom(self) -> bool:
        return self.type == CUSTOM_SCREEN

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "ScreenConfig":
        raw_elements = data.get("elements")
        screen_type = data.get("type") or ELEMENTS_SCREEN
        # Older payloads tagged element screens as custom screens.
        if screen_type == CUSTOM_SCREEN and raw_elements:
            screen_type = ELEMENTS_SCREEN
        return cls(
            id=str(data.get("id") or ""),
            type=screen_type,
            props=copy.deepcopy(data.get("props") or {}),
            elements=parse_elements(raw_elements) if raw_elements is not None else None,
            custom_component_name=data.get("custom_component_name"),
            custom_variables=list(data.get("custom_variables") or []),
            hidden=bool(data.get("hidden")),
        )

    def to_dict(self) -> Dict[str, Any]:
        out: Dict[str, Any] = {"id": self.id, "type": self.type, "props": copy.deepcopy(self.props)}
        if self.elements is not None:
            out["elements"] = [node.to_dict() for node in self.elements]
        if self.custom_component_name:
            out["custom_component_name"] = self.custom_component_name
        if self.custom_variables:
            out["custom_variables"] = list(self.custom_variables)
        if self.hidden:
            out["hidden"] = True
        return out


@dataclass
class ScreenView:
    kind: ViewKind
    screen: ScreenConfig
    index: int
    component: Any = None
    message: Optional[str] = None
    skip_token: Optional[str] = None
