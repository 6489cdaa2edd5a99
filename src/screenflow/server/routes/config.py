"""Screen source routes: config fetch and experiment variant assignment."""

from __future__ import annotations

import logging

from fastapi import APIRouter, Depends, HTTPException

from ..schemas import AssignVariantRequest, AssignVariantResponse, GetConfigResponse, VariantConfig
from ..store import Project, ProjectStore

logger = logging.getLogger("screenflow.server")


def build_config_router(store: ProjectStore, get_project) -> APIRouter:
    router = APIRouter()

    @router.get("/get-config", response_model=GetConfigResponse)
    def get_config(project: Project = Depends(get_project)) -> GetConfigResponse:
        return GetConfigResponse(**store.config_payload(project))

    @router.post("/assign-variant", response_model=AssignVariantResponse)
    def assign_variant(payload: AssignVariantRequest, project: Project = Depends(get_project)) -> AssignVariantResponse:
        try:
            experiment, variant, cached = store.assign_variant(project, payload.experiment_id, payload.user_id)
        except KeyError:
            raise HTTPException(status_code=404, detail="Experiment not found")
        except ValueError as exc:
            raise HTTPException(status_code=400, detail=str(exc)) from exc
        logger.info("Assigned variant %s of experiment %s (cached=%s)", variant.variant_id, experiment.id, cached)
        return AssignVariantResponse(
            variant_id=variant.variant_id,
            variant_config=VariantConfig(screens=variant.screens),
            cached=cached,
        )

    return router


__all__ = ["build_config_router"]
