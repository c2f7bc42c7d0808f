"""Pydantic models used by the face router."""

from typing import Any, Dict

from pydantic import BaseModel, Field


class FaceAnalysisResponse(BaseModel):
    """Attribute bundle of the first detected face."""

    attributes: Dict[str, Any]
    demo: bool = Field(False, description="True when the payload is static demo data")


class ConnectionStatusResponse(BaseModel):
    success: bool
    data: Dict[str, Any] = Field(default_factory=dict)
    message: str
