"""Analytics sink route."""

from __future__ import annotations

import logging

from fastapi import APIRouter, Depends, HTTPException

from ..schemas import TrackEventsRequest, TrackEventsResponse
from ..store import Project, ProjectStore

logger = logging.getLogger("screenflow.server")


def build_analytics_router(store: ProjectStore, get_project) -> APIRouter:
    router = APIRouter()

    @router.post("/track-events", response_model=TrackEventsResponse)
    def track_events(payload: TrackEventsRequest, project: Project = Depends(get_project)) -> TrackEventsResponse:
        if not payload.events:
            raise HTTPException(status_code=400, detail="Invalid events array")
        inserted = store.record_events(project, [event.model_dump() for event in payload.events])
        logger.debug("Recorded %d analytics events for project %s", inserted, project.id)
        return TrackEventsResponse(success=True, inserted=inserted)

    return router


__all__ = ["build_analytics_router"]
