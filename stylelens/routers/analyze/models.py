"""Pydantic models used by the analyze router."""

from typing import Any, Dict, List, Optional

from pydantic import BaseModel, Field


class AnalysisResponse(BaseModel):
    """Aggregated image analysis payload."""

    tags: List[Dict[str, Any]] = Field(
        default_factory=list, description="Imagga tags in provider order"
    )
    colors: Dict[str, Any] = Field(
        default_factory=dict, description="Imagga dominant and image colors"
    )
    fashion_recommendations: List[str] = Field(default_factory=list)


class ErrorResponse(BaseModel):
    """Generic error payload."""

    error: str
    details: Optional[str] = None


class HealthResponse(BaseModel):
    status: str
    service: str
    version: str
