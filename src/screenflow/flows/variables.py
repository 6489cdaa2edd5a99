"""
Session-scoped variable store.
"""

from __future__ import annotations

import logging
from typing import Any, Dict, Iterator, Mapping, Optional

from ..runtime.conditions import UNDEFINED

logger = logging.getLogger("screenflow.flows.variables")


class VariableStore(Mapping[str, Any]):
    """Flat name -> value mapping. Last write wins; values are stored as given."""

    def __init__(self, initial: Optional[Mapping[str, Any]] = None) -> None:
        self._values: Dict[str, Any] = dict(initial or {})

    def set(self, name: str, value: Any) -> None:
        self._values[name] = value

    def update(self, values: Mapping[str, Any]) -> None:
        self._values.update(values)

    def get(self, name: str, default: Any = UNDEFINED) -> Any:
        return self._values.get(name, default)

    def snapshot(self) -> Dict[str, Any]:
        return dict(self._values)

    def __getitem__(self, name: str) -> Any:
        return self._values[name]

    def __iter__(self) -> Iterator[str]:
        return iter(self._values)

    def __len__(self) -> int:
        return len(self._values)


def merged_scope(collected: Mapping[str, Any], store: Mapping[str, Any]) -> Dict[str, Any]:
    """Collected screen data unioned with the store; the store wins on collisions."""
    scope = dict(collected)
    for key, value in store.items():
        if key in scope and scope[key] != value:
            logger.debug("Variable '%s' set by both screen data and the variable store; using the store value", key)
        scope[key] = value
    return scope
