"""Groq chat-completion client used for fashion recommendations."""

import json
from typing import Any, Dict, List, Optional

import httpx

from stylelens.config import ProviderSettings, logger
from stylelens.core.errors import RecommendationParseFailure, send_upstream
from stylelens.core.prompt_templates import build_chat_messages


async def request_completion(
    client: httpx.AsyncClient,
    settings: ProviderSettings,
    payload: Dict[str, List[str]],
) -> Optional[str]:
    """
    Ask the language model for recommendations about the normalised vision data.

    Returns:
        The raw text content of the first choice, or None if absent
    """
    body = {
        "model": settings.groq_model,
        "messages": build_chat_messages(payload),
        "response_format": {"type": "json_object"},
    }

    logger.info(
        "Requesting fashion recommendations",
        extra={"model": settings.groq_model, "tag_count": len(payload["tags"])},
    )

    response = await send_upstream(
        client,
        "POST",
        settings.groq_api_url,
        json=body,
        headers={
            "Authorization": f"Bearer {settings.groq_key}",
            "Content-Type": "application/json",
        },
    )

    try:
        data = response.json()
        return data["choices"][0]["message"]["content"]
    except (ValueError, KeyError, IndexError, TypeError):
        logger.warning("Completion response missing choices[0].message.content")
        return None


def _decode_recommendations(content: Optional[str]) -> List[str]:
    if not content:
        raise RecommendationParseFailure("Completion content is empty")

    try:
        parsed: Any = json.loads(content)
    except json.JSONDecodeError as exc:
        raise RecommendationParseFailure(f"Completion is not valid JSON: {exc}")

    recommendations = (
        parsed.get("recommendations") if isinstance(parsed, dict) else None
    )
    if not isinstance(recommendations, list):
        raise RecommendationParseFailure("Completion lacks a 'recommendations' array")

    return [str(item) for item in recommendations]


def parse_recommendations(content: Optional[str]) -> List[str]:
    """Extract the recommendation list, degrading to [] on any parse failure."""
    try:
        return _decode_recommendations(content)
    except RecommendationParseFailure as exc:
        logger.error("Error parsing Groq response", extra={"error": exc.message})
        return []
