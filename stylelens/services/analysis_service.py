"""Upload-analysis orchestration: Imagga upload, tags/colors, Groq recommendations."""

from __future__ import annotations

import asyncio
import logging
import time
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional

import httpx

from stylelens.config import ProviderSettings, logger
from stylelens.core import groq, imagga
from stylelens.core.errors import AnalysisError, MisconfiguredService, MissingInput
from stylelens.core.prompt_templates import build_recommendation_payload
from stylelens.core.temp_files import TempUpload, remove_temp_file


def _log(level: int, message: str, **context: Any) -> None:
    """Helper to emit structured logs with contextual metadata."""
    logger.log(level, "%s | context=%s", message, context)


@dataclass(slots=True)
class AnalysisResult:
    """Aggregated response returned to the caller."""

    tags: List[Dict[str, Any]]
    colors: Dict[str, Any]
    fashion_recommendations: List[str] = field(default_factory=list)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "tags": self.tags,
            "colors": self.colors,
            "fashion_recommendations": self.fashion_recommendations,
        }


class ImageAnalyzer:
    """Runs the analysis pipeline for one uploaded image at a time.

    The analyzer owns the temporary upload once ``analyze`` is called and
    removes it on every exit path.
    """

    def __init__(
        self,
        settings: ProviderSettings,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ) -> None:
        self.settings = settings
        self._transport = transport

    def _check_configuration(self) -> None:
        if not self.settings.imagga_configured:
            raise MisconfiguredService("Missing Imagga credentials")
        if not self.settings.groq_configured:
            raise MisconfiguredService("Missing Groq API key")

    def _client(self) -> httpx.AsyncClient:
        return httpx.AsyncClient(
            timeout=self.settings.timeout_seconds, transport=self._transport
        )

    async def analyze(self, upload: Optional[TempUpload]) -> AnalysisResult:
        """
        Analyze an uploaded image.

        Raises:
            MissingInput: No upload was provided
            MisconfiguredService: Provider credentials are absent
            UpstreamProtocolViolation / UpstreamCallFailure: An Imagga or Groq
                step failed; no partial result is produced
        """
        if upload is None:
            raise MissingInput("No image uploaded")

        start_time = time.time()
        try:
            self._check_configuration()
            async with self._client() as client:
                result = await self._run_pipeline(client, upload)
        except AnalysisError as exc:
            _log(
                logging.ERROR,
                "analysis_failed",
                kind=exc.kind,
                details=exc.details or exc.message,
                upstream_payload=exc.payload,
            )
            raise
        finally:
            remove_temp_file(upload.path)

        _log(
            logging.INFO,
            "analysis_completed",
            tag_count=len(result.tags),
            recommendation_count=len(result.fashion_recommendations),
            duration_seconds=round(time.time() - start_time, 3),
        )
        return result

    async def _run_pipeline(
        self, client: httpx.AsyncClient, upload: TempUpload
    ) -> AnalysisResult:
        upload_id = await imagga.upload_image(
            client,
            self.settings,
            upload.path,
            upload.filename,
            upload.content_type,
        )

        tags, colors = await self._fetch_tags_and_colors(client, upload_id)

        payload = build_recommendation_payload(tags, colors)
        content = await groq.request_completion(client, self.settings, payload)

        return AnalysisResult(
            tags=tags,
            colors=colors,
            fashion_recommendations=groq.parse_recommendations(content),
        )

    async def _fetch_tags_and_colors(
        self, client: httpx.AsyncClient, upload_id: str
    ) -> tuple[List[Dict[str, Any]], Dict[str, Any]]:
        tags_task = asyncio.ensure_future(
            imagga.fetch_tags(client, self.settings, upload_id)
        )
        colors_task = asyncio.ensure_future(
            imagga.fetch_colors(client, self.settings, upload_id)
        )
        try:
            tags, colors = await asyncio.gather(tags_task, colors_task)
        except BaseException:
            # Both must finish or the step fails; drop whichever is still running
            for task in (tags_task, colors_task):
                task.cancel()
            await asyncio.gather(tags_task, colors_task, return_exceptions=True)
            raise
        return tags, colors
