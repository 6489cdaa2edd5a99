"""Applies assistant documents to stored screens."""

from __future__ import annotations

import logging

from fastapi import APIRouter, Depends, HTTPException

from ...errors import ResponseParseError, TreeError, TruncatedResponseError
from ...streaming.assembler import ResponseAssembler, apply_response
from ...tree.models import dump_elements, parse_elements
from ...tree.sanitize import strip_inline_images
from ..schemas import ApplyDocumentRequest, ApplyDocumentResponse
from ..store import Project, ProjectStore

logger = logging.getLogger("screenflow.server")


def build_edits_router(store: ProjectStore, get_project) -> APIRouter:
    router = APIRouter()

    @router.post("/screens/{screen_id}/apply", response_model=ApplyDocumentResponse)
    def apply_document(
        screen_id: str, payload: ApplyDocumentRequest, project: Project = Depends(get_project)
    ) -> ApplyDocumentResponse:
        screen = project.screen(screen_id)
        if screen is None:
            raise HTTPException(status_code=404, detail=f"Screen '{screen_id}' not found")
        try:
            current = parse_elements(screen.get("elements") or [])
        except TreeError as exc:
            raise HTTPException(status_code=409, detail={"code": exc.code, "message": exc.message}) from exc
        _, url_map = strip_inline_images(current)
        assembler = ResponseAssembler()
        assembler.feed(payload.text)
        try:
            response = assembler.finish(truncated=payload.truncated)
            result = apply_response(current, response, url_map=url_map)
        except (ResponseParseError, TruncatedResponseError, TreeError) as exc:
            logger.info("Rejected assistant document for screen %s: %s", screen_id, exc)
            raise HTTPException(status_code=422, detail={"code": exc.code, "message": exc.message}) from exc
        if result.changed:
            store.replace_elements(project, screen_id, result.elements)
        return ApplyDocumentResponse(
            screen_id=screen_id,
            response_type=result.response_type,
            message=result.message,
            changed=result.changed,
            applied=result.applied,
            ignored=result.ignored,
            elements=dump_elements(result.elements),
        )

    return router


__all__ = ["build_edits_router"]
