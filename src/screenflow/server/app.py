"""Application factory that builds the FastAPI app with all wiring."""

from __future__ import annotations

from typing import Optional

from fastapi import FastAPI

from ..config import ScreenflowConfig, load_config
from ..observability.metrics import RuntimeMetrics, default_metrics
from ..version import __version__
from .deps import build_project_dependency
from .routes.analytics import build_analytics_router
from .routes.config import build_config_router
from .routes.edits import build_edits_router
from .routes.health import build_health_router
from .store import ProjectStore


def create_app(
    store: Optional[ProjectStore] = None,
    *,
    config: Optional[ScreenflowConfig] = None,
    metrics: Optional[RuntimeMetrics] = None,
) -> FastAPI:
    """Create the FastAPI app."""
    if store is None:
        cfg = config or load_config()
        store = ProjectStore.from_file(cfg.store_path) if cfg.store_path else ProjectStore()
    registry = metrics or default_metrics
    get_project = build_project_dependency(store)

    app = FastAPI(title="screenflow", version=__version__)
    app.state.store = store
    app.include_router(build_health_router(registry, get_project))
    app.include_router(build_config_router(store, get_project))
    app.include_router(build_analytics_router(store, get_project))
    app.include_router(build_edits_router(store, get_project))
    return app


__all__ = ["create_app"]
