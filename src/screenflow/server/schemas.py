"""Pydantic schemas used by the FastAPI server."""

from __future__ import annotations

from typing import Any, Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field


class OnboardingConfig(BaseModel):
    version: str
    screens: List[Dict[str, Any]] = Field(default_factory=list)


class GetConfigResponse(BaseModel):
    config: OnboardingConfig
    version: str
    config_id: Optional[str] = None
    experiments: List[Dict[str, Any]] = Field(default_factory=list)
    organization_id: Optional[str] = None
    project_id: Optional[str] = None


class AssignVariantRequest(BaseModel):
    experiment_id: str = Field(..., min_length=1)
    user_id: str = Field(..., min_length=1)


class VariantConfig(BaseModel):
    screens: List[Dict[str, Any]] = Field(default_factory=list)


class AssignVariantResponse(BaseModel):
    variant_id: str
    variant_config: VariantConfig
    cached: bool = False


class AnalyticsEvent(BaseModel):
    model_config = ConfigDict(extra="allow")

    event: str
    user_id: str
    session_id: str
    timestamp: int
    properties: Dict[str, Any] = Field(default_factory=dict)


class TrackEventsRequest(BaseModel):
    events: Optional[List[AnalyticsEvent]] = None


class TrackEventsResponse(BaseModel):
    success: bool
    inserted: int


class ApplyDocumentRequest(BaseModel):
    text: str = Field(..., description="Raw assistant document, optionally ending in a __STOP:<reason>__ marker")
    truncated: Optional[bool] = Field(default=None, description="Overrides the stop marker when set")


class ApplyDocumentResponse(BaseModel):
    screen_id: str
    response_type: str
    message: str
    changed: bool
    applied: int = 0
    ignored: int = 0
    elements: List[Dict[str, Any]] = Field(default_factory=list)
