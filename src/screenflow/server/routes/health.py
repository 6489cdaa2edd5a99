"""Health and runtime counter routes."""

from __future__ import annotations

from typing import Any, Dict

from fastapi import APIRouter, Depends

from ...observability.metrics import RuntimeMetrics


def build_health_router(metrics: RuntimeMetrics, get_project) -> APIRouter:
    router = APIRouter()

    @router.get("/health")
    def health() -> Dict[str, str]:
        return {"status": "ok"}

    @router.get("/metrics")
    def runtime_metrics(project=Depends(get_project)) -> Dict[str, Any]:
        return metrics.snapshot()

    return router


__all__ = ["build_health_router"]
