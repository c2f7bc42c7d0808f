"""FastAPI dependencies shared across analysis endpoints."""

from fastapi import Depends

from stylelens.config import ProviderSettings, load_provider_settings
from stylelens.core.facepp import FaceppClient
from stylelens.services.analysis_service import ImageAnalyzer


def get_settings() -> ProviderSettings:
    """Read provider settings from the environment for the current request."""
    return load_provider_settings()


def get_image_analyzer(
    settings: ProviderSettings = Depends(get_settings),
) -> ImageAnalyzer:
    return ImageAnalyzer(settings)


def get_face_client(
    settings: ProviderSettings = Depends(get_settings),
) -> FaceppClient:
    return FaceppClient(settings)
