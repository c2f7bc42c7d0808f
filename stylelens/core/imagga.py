"""
Imagga vision API client.
Two-step protocol: upload the image once, then query tags and colors
by the returned upload identifier.
"""

from typing import Any, Dict, List

import httpx

from stylelens.config import ProviderSettings, logger
from stylelens.core.errors import UpstreamProtocolViolation, send_upstream


def _auth(settings: ProviderSettings) -> httpx.BasicAuth:
    return httpx.BasicAuth(settings.imagga_key or "", settings.imagga_secret or "")


def _json_body(response: httpx.Response, endpoint: str) -> Dict[str, Any]:
    try:
        body = response.json()
    except ValueError:
        raise UpstreamProtocolViolation(
            f"Imagga {endpoint} response was not valid JSON",
            payload=response.text,
        )
    return body if isinstance(body, dict) else {}


async def upload_image(
    client: httpx.AsyncClient,
    settings: ProviderSettings,
    path: str,
    filename: str,
    content_type: str,
) -> str:
    """
    Upload an image file to Imagga.

    Args:
        client: Shared HTTP client for the current request
        settings: Provider credentials and endpoints
        path: Local path of the temporary upload
        filename: Original filename reported to Imagga
        content_type: MIME type of the image

    Returns:
        str: The upload identifier used by the tags/colors queries

    Raises:
        UpstreamCallFailure: On network errors or non-2xx status
        UpstreamProtocolViolation: If result.upload_id is missing
    """
    logger.info("Uploading image to Imagga", extra={"upload_filename": filename})

    with open(path, "rb") as handle:
        response = await send_upstream(
            client,
            "POST",
            f"{settings.imagga_base_url}/uploads",
            files={"image": (filename, handle, content_type)},
            auth=_auth(settings),
        )
    body = _json_body(response, "upload")

    result = body.get("result")
    upload_id = result.get("upload_id") if isinstance(result, dict) else None
    if not upload_id:
        raise UpstreamProtocolViolation("Upload ID not received", payload=body)

    logger.debug("Imagga upload accepted", extra={"upload_id": upload_id})
    return upload_id


async def fetch_tags(
    client: httpx.AsyncClient, settings: ProviderSettings, upload_id: str
) -> List[Dict[str, Any]]:
    """Return Imagga's tag list for an upload, in provider order."""
    response = await send_upstream(
        client,
        "GET",
        f"{settings.imagga_base_url}/tags",
        params={"image_upload_id": upload_id},
        auth=_auth(settings),
    )
    result = _json_body(response, "tags").get("result") or {}
    tags = result.get("tags") if isinstance(result, dict) else None
    return tags if isinstance(tags, list) else []


async def fetch_colors(
    client: httpx.AsyncClient, settings: ProviderSettings, upload_id: str
) -> Dict[str, Any]:
    """Return Imagga's color profile (dominant and image colors) for an upload."""
    response = await send_upstream(
        client,
        "GET",
        f"{settings.imagga_base_url}/colors",
        params={"image_upload_id": upload_id},
        auth=_auth(settings),
    )
    result = _json_body(response, "colors").get("result") or {}
    colors = result.get("colors") if isinstance(result, dict) else None
    if isinstance(colors, dict):
        return colors
    # Some responses put the color lists directly under result
    if isinstance(result, dict) and (
        "dominant_colors" in result or "image_colors" in result
    ):
        return {
            key: result[key]
            for key in ("dominant_colors", "image_colors")
            if key in result
        }
    return {}
