"""Router package exposing all API routers."""

from fastapi import APIRouter

from .analyze.router import router as analyze_router
from .face.router import router as face_router

router = APIRouter()
router.include_router(analyze_router)
router.include_router(face_router)

__all__ = ["router", "analyze_router", "face_router"]
