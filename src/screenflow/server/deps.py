"""
API key authentication for FastAPI endpoints.
"""

from __future__ import annotations

from typing import Callable

from fastapi import Header, HTTPException

from .store import Project, ProjectStore

API_KEY_HEADER = "X-API-Key"


def build_project_dependency(store: ProjectStore) -> Callable[..., Project]:
    def get_project(x_api_key: str | None = Header(default=None)) -> Project:
        project = store.by_api_key(x_api_key)
        if project is None:
            raise HTTPException(status_code=401, detail="Invalid or missing API key")
        return project

    return get_project
