"""Error taxonomy for the image analysis flow."""

from typing import Any, Optional

import httpx

GENERIC_FAILURE_MESSAGE = "Image analysis failed"


class AnalysisError(Exception):
    """Base class for failures surfaced to API callers."""

    kind = "AnalysisError"
    status_code = 500

    def __init__(
        self,
        message: str,
        details: Optional[str] = None,
        payload: Any = None,
    ) -> None:
        super().__init__(message)
        self.message = message
        self.details = details
        self.payload = payload


class MissingInput(AnalysisError):
    """No image was provided in the request."""

    kind = "MissingInput"
    status_code = 400


class MisconfiguredService(AnalysisError):
    """Required provider credentials are absent."""

    kind = "MisconfiguredService"


class UpstreamProtocolViolation(AnalysisError):
    """An upstream call succeeded but its body lacked an expected field."""

    kind = "UpstreamProtocolViolation"

    def __init__(self, details: str, payload: Any = None) -> None:
        super().__init__(GENERIC_FAILURE_MESSAGE, details=details, payload=payload)


class UpstreamCallFailure(AnalysisError):
    """Network error or non-success status from a provider."""

    kind = "UpstreamCallFailure"

    def __init__(
        self,
        details: str,
        payload: Any = None,
        upstream_status: Optional[int] = None,
    ) -> None:
        super().__init__(GENERIC_FAILURE_MESSAGE, details=details, payload=payload)
        self.upstream_status = upstream_status


class RecommendationParseFailure(AnalysisError):
    """Completion text was not the expected JSON shape. Never reaches callers."""

    kind = "RecommendationParseFailure"


def response_payload(response: httpx.Response) -> Any:
    """Return the JSON body of a response, falling back to raw text."""
    try:
        return response.json()
    except ValueError:
        return response.text or None


def raise_for_upstream(response: httpx.Response) -> None:
    """Convert a non-2xx provider response into UpstreamCallFailure."""
    if response.is_success:
        return

    raise UpstreamCallFailure(
        f"Request failed with status code {response.status_code}",
        payload=response_payload(response),
        upstream_status=response.status_code,
    )


async def send_upstream(
    client: httpx.AsyncClient, method: str, url: str, **kwargs: Any
) -> httpx.Response:
    """Send a provider request, mapping transport and status errors to the taxonomy."""
    try:
        response = await client.request(method, url, **kwargs)
    except httpx.TimeoutException as exc:
        raise UpstreamCallFailure(f"Request to {url} timed out: {exc}") from exc
    except httpx.RequestError as exc:
        raise UpstreamCallFailure(f"Network error calling {url}: {exc}") from exc

    raise_for_upstream(response)
    return response
