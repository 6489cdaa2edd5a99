"""
Flow session state machine: load, navigate, complete or abandon.
"""

from __future__ import annotations

import asyncio
import logging
import uuid
from typing import Any, Callable, Dict, List, Mapping, Optional, Protocol, Sequence

from ..errors import FlowStateError
from ..observability.metrics import RuntimeMetrics, default_metrics
from ..runtime.actions import ActionDispatcher
from ..runtime.destinations import NEXT, PREVIOUS, resolve_destination
from ..runtime.render import ResolvedNode, resolve_screen
from ..tree.traversal import find_node
from .models import VARIABLES_KEY, FlowStatus, ScreenConfig, ScreenView, ViewKind
from .variables import VariableStore, merged_scope

logger = logging.getLogger("screenflow.flows.session")

NO_SCREENS_MESSAGE = "No onboarding screens configured"


class FlowAnalytics(Protocol):
    def track(self, event: str, properties: Optional[Dict[str, Any]] = None) -> None: ...

    def flush(self) -> bool: ...

    def set_experiment_context(self, experiment_id: str, variant_id: Optional[str]) -> None: ...


class ScreenSource(Protocol):
    def get_config(self) -> Dict[str, Any]: ...

    def assign_variant(self, experiment_id: str, user_id: str) -> Dict[str, Any]: ...


class FlowSession:
    """
    One run of an onboarding flow from load to completion or abandonment.

    Transitions are ignored outside ``READY``, so completion and abandonment
    each fire at most once.
    """

    def __init__(
        self,
        screens: Optional[Sequence[Any]] = None,
        *,
        initial_variables: Optional[Mapping[str, Any]] = None,
        analytics: Optional[FlowAnalytics] = None,
        components: Optional[Mapping[str, Any]] = None,
        on_complete: Optional[Callable[[Dict[str, Any]], None]] = None,
        on_abandon: Optional[Callable[[], None]] = None,
        open_url: Optional[Callable[[str], Any]] = None,
        user_id: Optional[str] = None,
        metrics: Optional[RuntimeMetrics] = None,
    ) -> None:
        self.status = FlowStatus.LOADING
        self.error: Optional[str] = None
        self.screens: List[ScreenConfig] = []
        self.index = 0
        self.collected: Dict[str, Any] = {}
        self.store = VariableStore(initial_variables)
        self.flow_id: Optional[str] = None
        self.experiment_id: Optional[str] = None
        self.variant_id: Optional[str] = None
        self.completion_payload: Optional[Dict[str, Any]] = None
        self.user_id = user_id or getattr(analytics, "user_id", None) or f"user_{uuid.uuid4().hex[:12]}"
        self.analytics = analytics
        self.components: Dict[str, Any] = dict(components or {})
        self._initial_screens = list(screens) if screens is not None else None
        self._on_complete = on_complete
        self._on_abandon = on_abandon
        self._open_url = open_url
        self._metrics = metrics or default_metrics
        self._dispatchers: Dict[str, ActionDispatcher] = {}

    # Loading

    def load(self, source: Any = None) -> "FlowSession":
        if self.status != FlowStatus.LOADING:
            raise FlowStateError(f"Flow session already loaded (status: {self.status.value})")
        try:
            raw_screens = self._fetch_screens(source)
            screens = [s if isinstance(s, ScreenConfig) else ScreenConfig.from_dict(s) for s in raw_screens]
        except Exception as exc:
            logger.warning("Failed to load onboarding flow: %s", exc)
            return self._fail(str(exc) or exc.__class__.__name__)
        screens = [screen for screen in screens if not screen.hidden]
        if not screens:
            return self._fail(NO_SCREENS_MESSAGE)
        self.screens = screens
        self.index = 0
        self.status = FlowStatus.READY
        self._track("onboarding_started", {"flow_id": self.flow_id, "screen_id": screens[0].id})
        return self

    async def a_load(self, source: Any = None) -> "FlowSession":
        return await asyncio.to_thread(self.load, source)

    def _fetch_screens(self, source: Any) -> Sequence[Any]:
        if source is None:
            return self._initial_screens or []
        if isinstance(source, (list, tuple)):
            return source
        response = source.get_config()
        self.flow_id = response.get("config_id")
        screens = (response.get("config") or {}).get("screens") or []
        experiments = response.get("experiments") or []
        if experiments:
            screens = self._apply_experiment(source, experiments[0], screens)
        return screens

    def _apply_experiment(self, source: ScreenSource, experiment: Dict[str, Any], screens: Sequence[Any]) -> Sequence[Any]:
        experiment_id = experiment.get("id")
        try:
            assignment = source.assign_variant(experiment_id, self.user_id)
        except Exception as exc:
            logger.warning("Variant assignment for experiment '%s' failed, using base screens: %s", experiment_id, exc)
            return screens
        self.experiment_id = experiment_id
        self.variant_id = assignment.get("variant_id")
        if self.analytics is not None:
            self.analytics.set_experiment_context(experiment_id, self.variant_id)
        variant_screens = (assignment.get("variant_config") or {}).get("screens") or []
        if variant_screens:
            logger.info("Using %d variant screens for experiment '%s'", len(variant_screens), experiment_id)
            return variant_screens
        return screens

    def _fail(self, message: str) -> "FlowSession":
        self.status = FlowStatus.ERROR
        self.error = message
        self.screens = []
        return self

    # Transitions

    @property
    def current_screen(self) -> Optional[ScreenConfig]:
        if self.status != FlowStatus.READY:
            return None
        return self.screens[self.index]

    @property
    def is_last_screen(self) -> bool:
        return self.index >= len(self.screens) - 1

    def next(self, data: Optional[Mapping[str, Any]] = None) -> None:
        if not self._accepts("next"):
            return
        if data:
            self.collected.update(data)
        if self.is_last_screen:
            self._complete(data)
        else:
            self._move_to(self.index + 1)

    def back(self) -> None:
        if not self._accepts("back"):
            return
        if self.index > 0:
            self._move_to(self.index - 1)

    def skip_screen(self) -> None:
        if not self._accepts("skip_screen"):
            return
        if self.is_last_screen:
            self._complete(None)
        else:
            self._move_to(self.index + 1)

    def skip_all(self) -> None:
        if not self._accepts("skip_all"):
            return
        self.status = FlowStatus.ABANDONED
        self._track(
            "onboarding_abandoned",
            {
                "flow_id": self.flow_id,
                "screen_id": self.screens[self.index].id,
                "current_screen_index": self.index,
            },
        )
        self._flush()
        if self._on_abandon is not None:
            self._on_abandon()

    def navigate_to(self, screen_id: str) -> None:
        target = self._index_of(screen_id)
        if target is None:
            logger.debug("No screen with id '%s'; advancing instead", screen_id)
            self.next()
            return
        if not self._accepts("navigate_to"):
            return
        self._move_to(target)

    def follow(self, token: Optional[str]) -> None:
        """Follow a resolved destination token; ``None`` falls back to ``next``."""
        if token is None or token == NEXT:
            self.next()
        elif token == PREVIOUS:
            self.back()
        else:
            self.navigate_to(token)

    def update_data(self, data: Mapping[str, Any]) -> None:
        self.collected.update(data)

    def scope(self) -> Dict[str, Any]:
        return merged_scope(self.collected, self.store)

    def _accepts(self, kind: str) -> bool:
        if self.status != FlowStatus.READY:
            logger.debug("Ignoring '%s' in status %s", kind, self.status.value)
            return False
        self._metrics.record_transition(kind)
        return True

    def _index_of(self, screen_id: str) -> Optional[int]:
        for idx, screen in enumerate(self.screens):
            if screen.id == screen_id:
                return idx
        return None

    def _move_to(self, index: int) -> None:
        if index == self.index:
            return
        self.index = index
        if index > 0:
            self._track(
                "screen_viewed",
                {"flow_id": self.flow_id, "screen_id": self.screens[index].id, "screen_index": index},
            )

    def _complete(self, last_data: Optional[Mapping[str, Any]]) -> None:
        self.status = FlowStatus.COMPLETED
        payload: Dict[str, Any] = {**self.collected, **dict(last_data or {})}
        payload[VARIABLES_KEY] = self.store.snapshot()
        self.completion_payload = payload
        self._track("onboarding_completed", {"flow_id": self.flow_id, "screen_id": self.screens[self.index].id})
        self._flush()
        if self._on_complete is not None:
            self._on_complete(payload)

    def _track(self, event: str, properties: Dict[str, Any]) -> None:
        if self.analytics is not None:
            self.analytics.track(event, properties)

    def _flush(self) -> None:
        if self.analytics is not None:
            self.analytics.flush()

    # Screen content

    def current_view(self) -> Optional[ScreenView]:
        screen = self.current_screen
        if screen is None:
            return None
        if not screen.is_custom:
            return ScreenView(kind=ViewKind.ELEMENTS, screen=screen, index=self.index)
        name = screen.custom_component_name or ""
        component = self.components.get(name)
        if component is None:
            return ScreenView(
                kind=ViewKind.MISSING_COMPONENT,
                screen=screen,
                index=self.index,
                message=f'Component "{name}" not found.',
                skip_token=NEXT,
            )
        return ScreenView(kind=ViewKind.CUSTOM, screen=screen, index=self.index, component=component)

    def dispatcher(self) -> ActionDispatcher:
        """Action dispatcher for the current screen; selection and inputs persist per screen."""
        screen = self._require_screen()
        existing = self._dispatchers.get(screen.id)
        if existing is not None:
            return existing
        dispatcher = ActionDispatcher(
            self.store,
            navigate=self._navigate_from_element,
            dismiss=self.skip_all,
            open_url=self._open_url,
            track=self._track,
            screen_id=screen.id,
            metrics=self._metrics,
        )
        self._dispatchers[screen.id] = dispatcher
        return dispatcher

    def render(self) -> List[ResolvedNode]:
        screen = self._require_screen()
        dispatcher = self.dispatcher()
        return resolve_screen(screen.elements or [], self.scope(), dispatcher.selection, dispatcher.inputs)

    def tap(self, element_id: str) -> None:
        self.dispatcher().handle(self._require_element(element_id))

    def type_text(self, element_id: str, text: str) -> None:
        self.dispatcher().update_input(self._require_element(element_id), text)

    def _navigate_from_element(self, destination: Any) -> None:
        self.follow(resolve_destination(destination, self.scope()))

    def _require_screen(self) -> ScreenConfig:
        screen = self.current_screen
        if screen is None:
            raise FlowStateError(f"No current screen (status: {self.status.value})")
        return screen

    def _require_element(self, element_id: str):
        screen = self._require_screen()
        node = find_node(screen.elements or [], element_id)
        if node is None:
            raise FlowStateError(f"Screen '{screen.id}' has no element '{element_id}'", code="SF-4002")
        return node
