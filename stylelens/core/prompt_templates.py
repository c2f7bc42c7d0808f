"""Prompt templates and builders for StyleLens fashion recommendations."""

from __future__ import annotations

import json
from typing import Any, Dict, List


# --- RECOMMENDATION PROMPT ---

FASHION_SYSTEM_PROMPT = (
    "You are a fashion assistant. Analyze image tags and colors, suggest fashion "
    "items, future design trends, and add color emojis for each color. "
    "Return JSON with key 'recommendations' (array of strings)."
)


def _color_names(entries: Any) -> List[str]:
    if not isinstance(entries, list):
        return []
    return [
        entry["color_name"]
        for entry in entries
        if isinstance(entry, dict) and entry.get("color_name")
    ]


def build_recommendation_payload(
    tags: List[Dict[str, Any]],
    colors: Dict[str, Any],
) -> Dict[str, List[str]]:
    """Reduce raw Imagga tags/colors to the label lists sent to the model.

    Missing or malformed fields become empty lists so partial vision data
    never blocks the completion call.
    """
    labels = []
    for item in tags or []:
        tag = item.get("tag") if isinstance(item, dict) else None
        label = tag.get("en") if isinstance(tag, dict) else None
        if label:
            labels.append(label)

    colors = colors if isinstance(colors, dict) else {}
    return {
        "tags": labels,
        "dominant_colors": _color_names(colors.get("dominant_colors")),
        "image_colors": _color_names(colors.get("image_colors")),
    }


def build_chat_messages(payload: Dict[str, List[str]]) -> List[Dict[str, str]]:
    """Return the system + user message pair for the completion request."""
    return [
        {"role": "system", "content": FASHION_SYSTEM_PROMPT},
        {"role": "user", "content": json.dumps(payload)},
    ]


__all__ = [
    "FASHION_SYSTEM_PROMPT",
    "build_recommendation_payload",
    "build_chat_messages",
]
