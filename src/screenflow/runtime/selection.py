"""
Toggle selection state and the per-screen text input buffer.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any, Dict, FrozenSet, Mapping, Optional

from .conditions import UNDEFINED
from .templates import format_value

if TYPE_CHECKING:  # pragma: no cover
    from ..tree.models import ElementNode


@dataclass(frozen=True)
class SelectionState:
    toggled: FrozenSet[str] = frozenset()
    groups: Mapping[str, str] = field(default_factory=dict)


def toggle(state: SelectionState, element_id: str, group: Optional[str] = None) -> SelectionState:
    """
    Grouped toggles behave like radio buttons: the new id replaces the group's
    previous selection, and re-selecting the current id changes nothing.
    Ungrouped toggles flip membership.
    """

    if group:
        previous = state.groups.get(group)
        if previous == element_id:
            return state
        toggled = set(state.toggled)
        if previous:
            toggled.discard(previous)
        toggled.add(element_id)
        return SelectionState(toggled=frozenset(toggled), groups={**state.groups, group: element_id})
    if element_id in state.toggled:
        return SelectionState(toggled=state.toggled - {element_id}, groups=dict(state.groups))
    return SelectionState(toggled=state.toggled | {element_id}, groups=dict(state.groups))


def group_has_selection(state: SelectionState, group: str) -> bool:
    return bool(state.groups.get(group))


def is_toggled(state: SelectionState, element_id: str) -> bool:
    return element_id in state.toggled


class InputBuffer:
    """Uncommitted text input values, keyed by ``props.variable`` or the element id."""

    def __init__(self) -> None:
        self._values: Dict[str, str] = {}

    @staticmethod
    def key_for(element: "ElementNode") -> str:
        return element.props.get("variable") or element.id

    def set(self, element: "ElementNode", text: str) -> None:
        self._values[self.key_for(element)] = text

    def value_for(self, element: "ElementNode", variables: Optional[Mapping[str, Any]] = None) -> str:
        key = self.key_for(element)
        if key in self._values:
            return self._values[key]
        if variables is not None:
            value = variables.get(key, UNDEFINED)
            if value is not UNDEFINED:
                return format_value(value)
        return ""

    def pending(self) -> Dict[str, str]:
        return dict(self._values)

    def drain(self) -> Dict[str, str]:
        values, self._values = self._values, {}
        return values

    def __len__(self) -> int:
        return len(self._values)
