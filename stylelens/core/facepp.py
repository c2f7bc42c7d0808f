"""
Face++ face-attribute detection client.
Relays an image to the detect endpoint and classifies failures through an
explicit (status, error code) lookup table.
"""

import copy
from dataclasses import dataclass
from enum import Enum
from typing import Any, Dict, Optional, Tuple

import httpx

from stylelens.config import ProviderSettings, logger
from stylelens.core.errors import MisconfiguredService, response_payload

RETURN_ATTRIBUTES = (
    "gender,age,ethnicity,skinstatus,headpose,beauty,"
    "facequality,emotion,hair,eyestatus"
)
ALLOWED_IMAGE_TYPES = ("image/jpeg", "image/jpg", "image/png", "image/bmp")
CONNECTION_CHECK_TIMEOUT_SECONDS = 10.0


class FaceErrorKind(str, Enum):
    NO_FACE_DETECTED = "no_face_detected"
    BAD_CREDENTIALS = "bad_credentials"
    RATE_LIMITED = "rate_limited"
    OVERSIZED_IMAGE = "oversized_image"
    UNSUPPORTED_FORMAT = "unsupported_format"
    INVALID_FACE = "invalid_face"
    INVALID_REQUEST = "invalid_request"
    NETWORK_TIMEOUT = "network_timeout"
    NETWORK_ERROR = "network_error"
    SERVICE_UNAVAILABLE = "service_unavailable"
    UNKNOWN = "unknown"


# kind -> (HTTP status returned to our caller, user-facing message)
FACE_ERROR_RESPONSES: Dict[FaceErrorKind, Tuple[int, str]] = {
    FaceErrorKind.NO_FACE_DETECTED: (
        422,
        "No face detected. Please upload a clear image with a visible face.",
    ),
    FaceErrorKind.BAD_CREDENTIALS: (
        502,
        "Face++ authorization failed. Verify the API credentials and permissions.",
    ),
    FaceErrorKind.RATE_LIMITED: (
        429,
        "Face++ rate limit exceeded. Please wait a moment and try again.",
    ),
    FaceErrorKind.OVERSIZED_IMAGE: (
        413,
        "Image file too large. Please use an image smaller than 2MB.",
    ),
    FaceErrorKind.UNSUPPORTED_FORMAT: (
        415,
        "Unsupported image format. Please use JPG, PNG, or BMP files only.",
    ),
    FaceErrorKind.INVALID_FACE: (
        422,
        "Invalid face detected. Please ensure the image contains a clear, front-facing face.",
    ),
    FaceErrorKind.INVALID_REQUEST: (
        400,
        "Invalid request. Please check your image and try again.",
    ),
    FaceErrorKind.NETWORK_TIMEOUT: (
        504,
        "Request timeout. The image may be too large or the connection is slow.",
    ),
    FaceErrorKind.NETWORK_ERROR: (
        502,
        "Network error while contacting Face++. Please try again.",
    ),
    FaceErrorKind.SERVICE_UNAVAILABLE: (
        503,
        "Face++ service temporarily unavailable. Please try again later.",
    ),
    FaceErrorKind.UNKNOWN: (502, "Face++ request failed."),
}

# (upstream status, Face++ error code) -> kind
FACEPP_ERROR_TABLE: Dict[Tuple[int, str], FaceErrorKind] = {
    (401, "AUTHENTICATION_ERROR"): FaceErrorKind.BAD_CREDENTIALS,
    (403, "AUTHORIZATION_ERROR"): FaceErrorKind.BAD_CREDENTIALS,
    (403, "CONCURRENCY_LIMIT_EXCEEDED"): FaceErrorKind.RATE_LIMITED,
    (403, "IMAGE_ERROR_UNSUPPORTED_FORMAT"): FaceErrorKind.UNSUPPORTED_FORMAT,
    (403, "IMAGE_FILE_TOO_LARGE"): FaceErrorKind.OVERSIZED_IMAGE,
    (403, "NO_FACE_FOUND"): FaceErrorKind.NO_FACE_DETECTED,
    (400, "IMAGE_ERROR_UNSUPPORTED_FORMAT"): FaceErrorKind.UNSUPPORTED_FORMAT,
    (400, "IMAGE_FILE_TOO_LARGE"): FaceErrorKind.OVERSIZED_IMAGE,
    (400, "INVALID_IMAGE_SIZE"): FaceErrorKind.OVERSIZED_IMAGE,
    (400, "IMAGE_ERROR_INVALID_FACE"): FaceErrorKind.INVALID_FACE,
    (400, "INVALID_IMAGE_FACE"): FaceErrorKind.INVALID_FACE,
    (412, "IMAGE_DOWNLOAD_TIMEOUT"): FaceErrorKind.NETWORK_TIMEOUT,
    (413, "REQUEST_ENTITY_TOO_LARGE"): FaceErrorKind.OVERSIZED_IMAGE,
}

# Used when the error code is not in the table
FACEPP_STATUS_FALLBACKS: Dict[int, FaceErrorKind] = {
    400: FaceErrorKind.INVALID_REQUEST,
    401: FaceErrorKind.BAD_CREDENTIALS,
    403: FaceErrorKind.BAD_CREDENTIALS,
    413: FaceErrorKind.OVERSIZED_IMAGE,
    429: FaceErrorKind.RATE_LIMITED,
}


class FaceAnalysisError(Exception):
    """Classified Face++ failure."""

    def __init__(
        self,
        kind: FaceErrorKind,
        upstream_message: Optional[str] = None,
        upstream_status: Optional[int] = None,
    ) -> None:
        self.kind = kind
        self.status_code, self.message = FACE_ERROR_RESPONSES[kind]
        self.upstream_message = upstream_message
        self.upstream_status = upstream_status
        super().__init__(self.message)


@dataclass
class ImageValidation:
    valid: bool
    error: Optional[str] = None


def validate_image_file(
    content_type: Optional[str], size: Optional[int], max_bytes: int
) -> ImageValidation:
    """Check type and size of an image before sending it to Face++."""
    if content_type is None or size is None:
        return ImageValidation(valid=False, error="No file selected")

    if content_type.lower() not in ALLOWED_IMAGE_TYPES:
        return ImageValidation(
            valid=False,
            error="Unsupported format. Please use JPG, PNG, or BMP files only.",
        )

    if size > max_bytes:
        return ImageValidation(
            valid=False,
            error=(
                "File too large. Please use an image smaller than "
                f"{max_bytes // (1024 * 1024)}MB."
            ),
        )

    return ImageValidation(valid=True)


def _error_code(payload: Any) -> str:
    if isinstance(payload, dict):
        raw = (
            payload.get("error_message")
            or payload.get("error_msg")
            or payload.get("error")
            or ""
        )
    else:
        raw = payload or ""
    return str(raw).split(":", 1)[0].strip().upper()


def classify_status(status_code: int, payload: Any) -> FaceErrorKind:
    """Map an upstream status + error payload to a FaceErrorKind."""
    code = _error_code(payload)
    kind = FACEPP_ERROR_TABLE.get((status_code, code))
    if kind is not None:
        return kind
    if status_code >= 500:
        return FaceErrorKind.SERVICE_UNAVAILABLE
    return FACEPP_STATUS_FALLBACKS.get(status_code, FaceErrorKind.UNKNOWN)


class FaceppClient:
    """Thin async client over the Face++ v3 API."""

    def __init__(
        self,
        settings: ProviderSettings,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ) -> None:
        self.settings = settings
        self._transport = transport

    def _credentials(self) -> Dict[str, str]:
        if not self.settings.face_configured:
            raise MisconfiguredService("Missing Face++ credentials")
        return {
            "api_key": self.settings.face_key,
            "api_secret": self.settings.face_secret,
        }

    async def _send(
        self, method: str, path: str, timeout: float, **kwargs: Any
    ) -> Dict[str, Any]:
        url = f"{self.settings.facepp_base_url}{path}"
        try:
            async with httpx.AsyncClient(
                timeout=timeout, transport=self._transport
            ) as client:
                response = await client.request(method, url, **kwargs)
        except httpx.TimeoutException as exc:
            raise FaceAnalysisError(FaceErrorKind.NETWORK_TIMEOUT, str(exc))
        except httpx.RequestError as exc:
            raise FaceAnalysisError(FaceErrorKind.NETWORK_ERROR, str(exc))

        payload = response_payload(response)
        if not response.is_success:
            kind = classify_status(response.status_code, payload)
            logger.error(
                "Face++ API error",
                extra={
                    "status": response.status_code,
                    "kind": kind.value,
                    "upstream": payload,
                },
            )
            raise FaceAnalysisError(
                kind, _error_code(payload) or None, response.status_code
            )

        return payload if isinstance(payload, dict) else {}

    async def detect(
        self, image_bytes: bytes, filename: str, content_type: str
    ) -> Dict[str, Any]:
        """
        Detect faces and return the attribute bundle of the first one.

        Raises:
            MisconfiguredService: Face++ credentials are absent
            FaceAnalysisError: Classified upstream failure or no face found
        """
        params = {**self._credentials(), "return_attributes": RETURN_ATTRIBUTES}
        data = await self._send(
            "POST",
            "/facepp/v3/detect",
            timeout=self.settings.timeout_seconds,
            params=params,
            files={"image_file": (filename, image_bytes, content_type)},
        )

        faces = data.get("faces") or []
        if not faces:
            raise FaceAnalysisError(FaceErrorKind.NO_FACE_DETECTED)

        logger.info("Face++ detection succeeded", extra={"face_count": len(faces)})
        first = faces[0] if isinstance(faces[0], dict) else {}
        return first.get("attributes") or {}

    async def check_connection(self) -> Dict[str, Any]:
        """Verify credentials against the get_app endpoint."""
        data = await self._send(
            "GET",
            "/facepp/v3/get_app",
            timeout=CONNECTION_CHECK_TIMEOUT_SECONDS,
            params=self._credentials(),
        )
        return {
            "success": True,
            "data": data,
            "message": "API connection successful",
        }


DEMO_ANALYSIS: Dict[str, Any] = {
    "gender": {"value": "Male", "confidence": 95.2},
    "age": {"value": 28, "range": {"my": 25, "My": 32}},
    "ethnicity": {"value": "Asian", "confidence": 89.7},
    "skinstatus": {"status": "Clear", "health": 85.3, "stain": 2.1, "acne": 1.8},
    "headpose": {
        "pitch_angle": {"value": -2.3},
        "roll_angle": {"value": 1.8},
        "yaw_angle": {"value": 0.5},
    },
    "beauty": {"male_score": 78.9, "female_score": 0},
    "facequality": {"value": 0.92, "threshold": 0.7},
    "emotion": {
        "anger": 2.1,
        "disgust": 1.5,
        "fear": 0.8,
        "happiness": 78.3,
        "neutral": 15.2,
        "sadness": 1.1,
        "surprise": 1.0,
    },
    "hair": {
        "bald": 0.1,
        "color": {"black": 15.2, "blonde": 3.1, "brown": 78.9, "gray": 2.8},
    },
}


def get_demo_analysis() -> Dict[str, Any]:
    """Static attribute bundle served when live detection is unavailable."""
    return copy.deepcopy(DEMO_ANALYSIS)
