"""
In-process counters for the flow runtime and assistant edit pipeline.
"""

from __future__ import annotations

from typing import Dict


class RuntimeMetrics:
    def __init__(self) -> None:
        self._actions: Dict[str, int] = {}
        self._transitions: Dict[str, int] = {}
        self._changes_applied: int = 0
        self._changes_ignored: int = 0
        self._repairs: Dict[str, int] = {}
        self._analytics_flushes: Dict[str, int] = {}

    def record_action(self, action_type: str) -> None:
        key = action_type or "unknown"
        self._actions[key] = self._actions.get(key, 0) + 1

    def record_transition(self, kind: str) -> None:
        key = kind or "unknown"
        self._transitions[key] = self._transitions.get(key, 0) + 1

    def record_changes(self, applied: int, ignored: int) -> None:
        self._changes_applied += max(applied, 0)
        self._changes_ignored += max(ignored, 0)

    def record_repair(self, status: str) -> None:
        key = status or "unknown"
        self._repairs[key] = self._repairs.get(key, 0) + 1

    def record_flush(self, status: str) -> None:
        key = status or "unknown"
        self._analytics_flushes[key] = self._analytics_flushes.get(key, 0) + 1

    def get_action_counts(self) -> Dict[str, int]:
        return dict(self._actions)

    def get_transition_counts(self) -> Dict[str, int]:
        return dict(self._transitions)

    def get_change_counters(self) -> Dict[str, int]:
        return {"applied": self._changes_applied, "ignored": self._changes_ignored}

    def get_repair_counts(self) -> Dict[str, int]:
        return dict(self._repairs)

    def get_flush_counts(self) -> Dict[str, int]:
        return dict(self._analytics_flushes)

    def snapshot(self) -> Dict[str, object]:
        return {
            "actions": self.get_action_counts(),
            "transitions": self.get_transition_counts(),
            "changes": self.get_change_counters(),
            "repairs": self.get_repair_counts(),
            "analytics_flushes": self.get_flush_counts(),
        }


default_metrics = RuntimeMetrics()
