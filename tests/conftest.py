from __future__ import annotations

import os

os.environ.setdefault("LOG_FILE", os.devnull)

from typing import Any, Callable, Dict, List, Optional

import httpx
import pytest
from fastapi.testclient import TestClient

from stylelens.config import ProviderSettings
from stylelens.core.facepp import FaceppClient
from stylelens.main import app
from stylelens.routers.analyze.dependencies import (
    get_face_client,
    get_image_analyzer,
    get_settings,
)
from stylelens.services import analysis_service
from stylelens.services.analysis_service import ImageAnalyzer

IMAGGA_BASE = "https://imagga.test/v2"
GROQ_URL = "https://groq.test/openai/v1/chat/completions"
FACEPP_BASE = "https://facepp.test"

UPLOADS = "/v2/uploads"
TAGS = "/v2/tags"
COLORS = "/v2/colors"
COMPLETIONS = "/openai/v1/chat/completions"
DETECT = "/facepp/v3/detect"
GET_APP = "/facepp/v3/get_app"


class FakeUpstream:
    """Route table for httpx.MockTransport that records every request."""

    def __init__(self) -> None:
        self.routes: Dict[str, Dict[str, Any]] = {}
        self.requests: List[httpx.Request] = []

    def add(
        self,
        path: str,
        status: int = 200,
        json: Any = None,
        text: Optional[str] = None,
        exc: Optional[Callable[..., Exception]] = None,
    ) -> None:
        self.routes[path] = {"status": status, "json": json, "text": text, "exc": exc}

    def handler(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        route = self.routes.get(request.url.path)
        if route is None:
            return httpx.Response(404, json={"error": "no route"})
        if route["exc"] is not None:
            raise route["exc"]("simulated failure", request=request)
        if route["text"] is not None:
            return httpx.Response(route["status"], text=route["text"])
        return httpx.Response(route["status"], json=route["json"])

    def count(self, path: str) -> int:
        return sum(1 for req in self.requests if req.url.path == path)

    def last(self, path: str) -> httpx.Request:
        return [req for req in self.requests if req.url.path == path][-1]

    @property
    def transport(self) -> httpx.MockTransport:
        return httpx.MockTransport(self.handler)


def completion(content: Optional[str]) -> Dict[str, Any]:
    return {"choices": [{"message": {"role": "assistant", "content": content}}]}


@pytest.fixture()
def upstream() -> FakeUpstream:
    return FakeUpstream()


@pytest.fixture()
def happy_upstream(upstream: FakeUpstream) -> FakeUpstream:
    upstream.add(UPLOADS, json={"result": {"upload_id": "u1"}, "status": {"type": "success"}})
    upstream.add(TAGS, json={"result": {"tags": [{"confidence": 87.1, "tag": {"en": "jacket"}}]}})
    upstream.add(
        COLORS,
        json={
            "result": {
                "colors": {
                    "dominant_colors": [{"color_name": "Navy Blue", "html_code": "#1f2a44", "percent": 61.2}],
                    "image_colors": [{"color_name": "White", "html_code": "#ffffff", "percent": 38.8}],
                }
            }
        },
    )
    upstream.add(COMPLETIONS, json=completion('{"recommendations": ["Try a navy bomber jacket"]}'))
    return upstream


@pytest.fixture()
def settings(tmp_path) -> ProviderSettings:
    return ProviderSettings(
        imagga_key="imagga-key",
        imagga_secret="imagga-secret",
        groq_key="groq-key",
        face_key="face-key",
        face_secret="face-secret",
        imagga_base_url=IMAGGA_BASE,
        groq_api_url=GROQ_URL,
        facepp_base_url=FACEPP_BASE,
        timeout_seconds=5.0,
        upload_dir=str(tmp_path),
    )


@pytest.fixture()
def removed_paths(monkeypatch: pytest.MonkeyPatch) -> List[str]:
    """Record every temp-file removal made by the analyzer."""
    calls: List[str] = []
    original = analysis_service.remove_temp_file

    def _tracking_remove(path: str) -> None:
        calls.append(path)
        original(path)

    monkeypatch.setattr(analysis_service, "remove_temp_file", _tracking_remove)
    return calls


@pytest.fixture()
def make_client(upstream: FakeUpstream):
    clients: List[TestClient] = []

    def _make(provider_settings: ProviderSettings) -> TestClient:
        app.dependency_overrides[get_settings] = lambda: provider_settings
        app.dependency_overrides[get_image_analyzer] = lambda: ImageAnalyzer(
            provider_settings, transport=upstream.transport
        )
        app.dependency_overrides[get_face_client] = lambda: FaceppClient(
            provider_settings, transport=upstream.transport
        )
        client = TestClient(app)
        clients.append(client)
        return client

    yield _make

    for client in clients:
        client.close()
    app.dependency_overrides.clear()


@pytest.fixture()
def client(make_client, settings: ProviderSettings) -> TestClient:
    return make_client(settings)


@pytest.fixture()
def image_file():
    return {"image": ("look.jpg", b"\xff\xd8\xff\xe0fake-jpeg-bytes", "image/jpeg")}
