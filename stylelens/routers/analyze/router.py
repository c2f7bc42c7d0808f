"""FastAPI router for image analysis endpoints."""

from typing import Optional, Union

from fastapi import APIRouter, Depends, File, UploadFile
from fastapi.responses import JSONResponse
from starlette.datastructures import UploadFile as StarletteUploadFile

from stylelens.config import ProviderSettings, logger
from stylelens.core.errors import GENERIC_FAILURE_MESSAGE, AnalysisError
from stylelens.core.temp_files import save_upload_to_temp
from stylelens.services.analysis_service import ImageAnalyzer

from .dependencies import get_image_analyzer, get_settings
from .models import AnalysisResponse, ErrorResponse, HealthResponse

SERVICE_NAME = "stylelens-api"
SERVICE_VERSION = "1.0.0"

router = APIRouter(prefix="/api", tags=["Image Analysis"])


def error_response(status_code: int, error: str, details: Optional[str] = None) -> JSONResponse:
    """Render an ErrorResponse, omitting details when there are none."""
    body = ErrorResponse(error=error, details=details)
    return JSONResponse(
        status_code=status_code, content=body.model_dump(exclude_none=True)
    )


@router.post(
    "/analyze",
    response_model=AnalysisResponse,
    responses={400: {"model": ErrorResponse}, 500: {"model": ErrorResponse}},
)
async def analyze_image(
    image: Union[UploadFile, str, None] = File(
        default=None, description="Image to analyze"
    ),
    analyzer: ImageAnalyzer = Depends(get_image_analyzer),
    settings: ProviderSettings = Depends(get_settings),
):
    """Tag an image, extract its colors and ask the language model for outfit ideas."""

    logger.info("Analysis request received")
    upload = None

    try:
        # A plain text field named "image" counts as no file
        if isinstance(image, StarletteUploadFile) and image.filename:
            upload = await save_upload_to_temp(image, settings.upload_dir)

        result = await analyzer.analyze(upload)
        return AnalysisResponse(**result.to_dict())

    except AnalysisError as exc:
        return error_response(exc.status_code, exc.message, exc.details)

    except Exception as exc:
        logger.error("Unexpected error in analysis request", exc_info=True)
        return error_response(500, GENERIC_FAILURE_MESSAGE, str(exc))


@router.get("/health", response_model=HealthResponse)
async def health_check() -> HealthResponse:
    """Simple health check endpoint."""

    return HealthResponse(
        status="healthy", service=SERVICE_NAME, version=SERVICE_VERSION
    )
