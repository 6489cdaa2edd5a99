"""
Variable catalogue for a flow: which screens write and read each variable.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Dict, List, Sequence, Set

from ..flows.models import ScreenConfig
from ..runtime.conditions import condition_variables
from ..runtime.destinations import destination_variables
from ..runtime.templates import format_value, template_variables
from ..tree.models import ActionType, ElementType
from ..tree.traversal import iter_nodes


@dataclass
class VariableInfo:
    name: str
    values: List[str] = field(default_factory=list)
    set_by_screens: List[int] = field(default_factory=list)
    read_by_screens: List[int] = field(default_factory=list)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "name": self.name,
            "values": list(self.values),
            "setByScreens": list(self.set_by_screens),
            "readByScreens": list(self.read_by_screens),
        }


def _add_once(items: List[Any], value: Any) -> None:
    if value not in items:
        items.append(value)


def collect_flow_variables(screens: Sequence[Any]) -> List[VariableInfo]:
    catalogue: Dict[str, VariableInfo] = {}

    def _info(name: str) -> VariableInfo:
        if name not in catalogue:
            catalogue[name] = VariableInfo(name=name)
        return catalogue[name]

    for index, raw in enumerate(screens):
        screen = raw if isinstance(raw, ScreenConfig) else ScreenConfig.from_dict(raw)
        for name in screen.custom_variables:
            _add_once(_info(name).set_by_screens, index)
        for node, _ in iter_nodes(screen.elements or []):
            read: Set[str] = set()
            if node.type == ElementType.INPUT and node.props.get("variable"):
                _add_once(_info(node.props["variable"]).set_by_screens, index)
            for action in node.all_actions:
                if action.type == ActionType.SET_VARIABLE and action.variable:
                    info = _info(action.variable)
                    _add_once(info.set_by_screens, index)
                    rendered = format_value(action.value)
                    if rendered:
                        _add_once(info.values, rendered)
                if action.destination is not None and not isinstance(action.destination, str):
                    read |= destination_variables(action.destination)
            text = node.props.get("text")
            if isinstance(text, str):
                read.update(template_variables(text))
            read |= condition_variables(node.show_if)
            for name in sorted(read):
                _add_once(_info(name).read_by_screens, index)

    return sorted(catalogue.values(), key=lambda info: info.name)
