"""FastAPI router relaying face-attribute analysis to Face++."""

from typing import Optional, Union

from fastapi import APIRouter, Depends, File, Query, UploadFile
from starlette.datastructures import UploadFile as StarletteUploadFile

from stylelens.config import ProviderSettings, logger
from stylelens.core.errors import MisconfiguredService
from stylelens.core.facepp import (
    FaceAnalysisError,
    FaceppClient,
    get_demo_analysis,
    validate_image_file,
)

from ..analyze.dependencies import get_face_client, get_settings
from ..analyze.router import error_response
from .models import ConnectionStatusResponse, FaceAnalysisResponse

router = APIRouter(prefix="/api/face", tags=["Face Analysis"])


@router.post("/analyze", response_model=FaceAnalysisResponse)
async def analyze_face(
    image: Union[UploadFile, str, None] = File(
        default=None, description="Portrait image"
    ),
    fallback: Optional[str] = Query(
        default=None, description="Set to 'demo' to receive demo data on failure"
    ),
    client: FaceppClient = Depends(get_face_client),
    settings: ProviderSettings = Depends(get_settings),
):
    """Return the attributes of the first face detected in the image."""

    image_bytes = None
    content_type = None
    if isinstance(image, StarletteUploadFile) and image.filename:
        # One byte past the cap is enough to reject an oversized upload
        image_bytes = await image.read(settings.max_image_bytes + 1)
        content_type = image.content_type or ""

    validation = validate_image_file(
        content_type,
        len(image_bytes) if image_bytes is not None else None,
        settings.max_image_bytes,
    )
    if not validation.valid:
        logger.warning("Face image rejected", extra={"reason": validation.error})
        return error_response(400, validation.error)

    try:
        attributes = await client.detect(image_bytes, image.filename, content_type)
        return FaceAnalysisResponse(attributes=attributes)

    except MisconfiguredService as exc:
        if fallback == "demo":
            logger.warning("Face++ not configured, serving demo data")
            return FaceAnalysisResponse(attributes=get_demo_analysis(), demo=True)
        return error_response(exc.status_code, exc.message)

    except FaceAnalysisError as exc:
        if fallback == "demo":
            logger.warning(
                "Face analysis failed, serving demo data",
                extra={"kind": exc.kind.value},
            )
            return FaceAnalysisResponse(attributes=get_demo_analysis(), demo=True)
        return error_response(exc.status_code, exc.message, exc.upstream_message)


@router.get("/status", response_model=ConnectionStatusResponse)
async def face_connection_status(client: FaceppClient = Depends(get_face_client)):
    """Check that the configured Face++ credentials are accepted."""

    try:
        result = await client.check_connection()
        return ConnectionStatusResponse(**result)
    except MisconfiguredService as exc:
        return error_response(exc.status_code, exc.message)
    except FaceAnalysisError as exc:
        return error_response(exc.status_code, exc.message, exc.upstream_message)


@router.get("/demo", response_model=FaceAnalysisResponse)
async def face_demo() -> FaceAnalysisResponse:
    return FaceAnalysisResponse(attributes=get_demo_analysis(), demo=True)
