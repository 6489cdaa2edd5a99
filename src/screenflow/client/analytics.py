"""
Batched analytics delivery with at-least-once retry.
"""

from __future__ import annotations

import asyncio
import contextlib
import logging
import time
from typing import Any, Callable, Dict, List, Optional, Protocol

from ..config import DEFAULT_BATCH_SIZE, DEFAULT_FLUSH_SECONDS, ScreenflowConfig
from ..observability.logging_utils import redact_payload
from ..observability.metrics import RuntimeMetrics, default_metrics

logger = logging.getLogger("screenflow.client.analytics")


class AnalyticsSink(Protocol):
    def track_events(self, events: List[Dict[str, Any]]) -> Any: ...


class AnalyticsBuffer:
    """
    Buffers ``{event, user_id, session_id, timestamp, properties}`` records and
    delivers them in batches. A failed batch goes back to the front of the
    buffer; nothing is dropped, so the buffer grows while the sink is down.
    """

    def __init__(
        self,
        sink: AnalyticsSink,
        user_id: str,
        session_id: str,
        batch_size: int = DEFAULT_BATCH_SIZE,
        flush_interval: float = DEFAULT_FLUSH_SECONDS,
        clock: Callable[[], float] = time.monotonic,
        metrics: Optional[RuntimeMetrics] = None,
    ) -> None:
        self.sink = sink
        self.user_id = user_id
        self.session_id = session_id
        self.batch_size = max(int(batch_size), 1)
        self.flush_interval = flush_interval
        self.experiment_id: Optional[str] = None
        self.variant_id: Optional[str] = None
        self.closed = False
        self._events: List[Dict[str, Any]] = []
        self._clock = clock
        self._last_flush = clock()
        self._metrics = metrics or default_metrics

    @classmethod
    def from_config(cls, sink: AnalyticsSink, user_id: str, session_id: str, config: ScreenflowConfig) -> "AnalyticsBuffer":
        return cls(
            sink,
            user_id,
            session_id,
            batch_size=config.analytics_batch_size,
            flush_interval=config.analytics_flush_seconds,
        )

    @property
    def pending(self) -> List[Dict[str, Any]]:
        return list(self._events)

    def __len__(self) -> int:
        return len(self._events)

    def set_experiment_context(self, experiment_id: str, variant_id: Optional[str]) -> None:
        self.experiment_id = experiment_id
        self.variant_id = variant_id

    def track(self, event: str, properties: Optional[Dict[str, Any]] = None) -> None:
        merged = dict(properties or {})
        if self.experiment_id:
            merged["experiment_id"] = self.experiment_id
        if self.variant_id:
            merged["variant_id"] = self.variant_id
        self._events.append(
            {
                "event": event,
                "user_id": self.user_id,
                "session_id": self.session_id,
                "timestamp": int(time.time() * 1000),
                "properties": merged,
            }
        )
        logger.debug("Tracked %s %s", event, redact_payload(merged))
        if len(self._events) >= self.batch_size:
            self.flush()

    def flush(self) -> bool:
        """Send everything buffered. Returns False when the batch was re-queued."""
        self._last_flush = self._clock()
        if not self._events:
            return True
        batch, self._events = self._events, []
        try:
            self.sink.track_events(batch)
        except Exception as exc:
            self._events = batch + self._events
            self._metrics.record_flush("failed")
            logger.warning("Failed to flush %d analytics events, re-queued: %s", len(batch), exc)
            return False
        self._metrics.record_flush("ok")
        logger.debug("Flushed %d analytics events", len(batch))
        return True

    def flush_if_due(self, now: Optional[float] = None) -> bool:
        current = self._clock() if now is None else now
        if current - self._last_flush < self.flush_interval:
            return False
        return self.flush()

    async def run_periodic(self, stop: asyncio.Event) -> None:
        """Flush every ``flush_interval`` seconds until ``stop`` is set, then flush once more."""
        while not stop.is_set():
            with contextlib.suppress(asyncio.TimeoutError):
                await asyncio.wait_for(stop.wait(), timeout=self.flush_interval)
            self.flush()

    def close(self) -> bool:
        self.closed = True
        return self.flush()
