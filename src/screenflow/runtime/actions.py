"""
Executes element actions against the variable store and selection state.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Any, Callable, Dict, Optional

from ..observability.metrics import RuntimeMetrics, default_metrics
from ..tree.models import ActionType, ElementAction, ElementNode
from .destinations import describe_destination
from .selection import InputBuffer, SelectionState, toggle

if TYPE_CHECKING:  # pragma: no cover
    from ..flows.variables import VariableStore

logger = logging.getLogger("screenflow.runtime.actions")

TrackFn = Callable[[str, Dict[str, Any]], None]


class ActionDispatcher:
    """
    Runs an element's singular ``action`` and then each entry of ``actions``.

    Every execution emits one ``element_action`` analytics record before its
    effect is applied. ``navigate`` receives the raw destination and is
    responsible for resolving it against a fresh scope.
    """

    def __init__(
        self,
        store: "VariableStore",
        *,
        navigate: Callable[[Any], None],
        dismiss: Callable[[], None],
        open_url: Optional[Callable[[str], Any]] = None,
        track: Optional[TrackFn] = None,
        screen_id: Optional[str] = None,
        selection: Optional[SelectionState] = None,
        inputs: Optional[InputBuffer] = None,
        metrics: Optional[RuntimeMetrics] = None,
    ) -> None:
        self.store = store
        self.screen_id = screen_id
        self.selection = selection or SelectionState()
        self.inputs = inputs or InputBuffer()
        self._navigate = navigate
        self._dismiss = dismiss
        self._open_url = open_url
        self._track = track
        self._metrics = metrics or default_metrics
        self._handlers: Dict[ActionType, Callable[[ElementNode, ElementAction], None]] = {
            ActionType.TAP: self._on_tap,
            ActionType.SET_VARIABLE: self._on_set_variable,
            ActionType.TOGGLE: self._on_toggle,
            ActionType.NAVIGATE: self._on_navigate,
            ActionType.LINK: self._on_link,
            ActionType.DISMISS: self._on_dismiss,
        }

    def handle(self, element: ElementNode) -> None:
        for action in element.all_actions:
            self.execute(element, action)

    def execute(self, element: ElementNode, action: ElementAction) -> None:
        if self._track is not None:
            self._track(
                "element_action",
                {
                    "screen_id": self.screen_id,
                    "element_id": element.id,
                    "action_type": action.type.value,
                    "destination": describe_destination(action.destination),
                },
            )
        self._metrics.record_action(action.type.value)
        self._handlers[action.type](element, action)

    def update_input(self, element: ElementNode, text: str) -> None:
        self.inputs.set(element, text)

    def flush_inputs(self) -> None:
        pending = self.inputs.drain()
        if pending:
            self.store.update(pending)

    def _on_tap(self, element: ElementNode, action: ElementAction) -> None:
        return None

    def _on_set_variable(self, element: ElementNode, action: ElementAction) -> None:
        if action.variable is not None:
            self.store.set(action.variable, action.value)
        self.flush_inputs()

    def _on_toggle(self, element: ElementNode, action: ElementAction) -> None:
        self.selection = toggle(self.selection, element.id, action.group)

    def _on_navigate(self, element: ElementNode, action: ElementAction) -> None:
        self.flush_inputs()
        self._navigate(action.destination)

    def _on_link(self, element: ElementNode, action: ElementAction) -> None:
        url = action.destination
        if not isinstance(url, str) or not url or self._open_url is None:
            return
        try:
            self._open_url(url)
        except Exception as exc:
            logger.debug("Opening link from element '%s' failed: %s", element.id, exc)

    def _on_dismiss(self, element: ElementNode, action: ElementAction) -> None:
        self._dismiss()
