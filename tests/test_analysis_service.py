"""
Direct tests of ImageAnalyzer outside the HTTP layer.
"""
import asyncio
import pathlib
from dataclasses import replace

import httpx
import pytest

from conftest import COLORS, COMPLETIONS, TAGS, UPLOADS
from stylelens.core.errors import (
    MisconfiguredService,
    MissingInput,
    UpstreamCallFailure,
    UpstreamProtocolViolation,
)
from stylelens.core.temp_files import TempUpload, remove_temp_file
from stylelens.services.analysis_service import AnalysisResult, ImageAnalyzer


@pytest.fixture()
def temp_upload(tmp_path):
    path = tmp_path / "upload.jpg"
    path.write_bytes(b"\xff\xd8jpeg")
    return TempUpload(path=str(path), filename="upload.jpg", content_type="image/jpeg", size=6)


def _run(analyzer, upload):
    return asyncio.run(analyzer.analyze(upload))


def test_analyze_returns_result(settings, happy_upstream, temp_upload, removed_paths):
    analyzer = ImageAnalyzer(settings, transport=happy_upstream.transport)

    result = _run(analyzer, temp_upload)

    assert isinstance(result, AnalysisResult)
    assert result.fashion_recommendations == ["Try a navy bomber jacket"]
    assert result.to_dict()["tags"] == [{"confidence": 87.1, "tag": {"en": "jacket"}}]
    assert removed_paths == [temp_upload.path]


def test_missing_upload_raises_missing_input(settings, upstream, removed_paths):
    analyzer = ImageAnalyzer(settings, transport=upstream.transport)

    with pytest.raises(MissingInput) as exc_info:
        _run(analyzer, None)

    assert exc_info.value.status_code == 400
    assert upstream.requests == []
    assert removed_paths == []


def test_misconfiguration_still_removes_upload(settings, upstream, temp_upload, removed_paths):
    analyzer = ImageAnalyzer(replace(settings, imagga_key=""), transport=upstream.transport)

    with pytest.raises(MisconfiguredService):
        _run(analyzer, temp_upload)

    assert upstream.requests == []
    assert removed_paths == [temp_upload.path]


def test_protocol_violation_carries_upstream_body(settings, upstream, temp_upload):
    upstream.add(UPLOADS, json={"status": {"type": "error"}})
    analyzer = ImageAnalyzer(settings, transport=upstream.transport)

    with pytest.raises(UpstreamProtocolViolation) as exc_info:
        _run(analyzer, temp_upload)

    assert exc_info.value.details == "Upload ID not received"
    assert exc_info.value.payload == {"status": {"type": "error"}}


def test_non_json_upload_body_is_protocol_violation(settings, upstream, temp_upload, removed_paths):
    upstream.add(UPLOADS, text="<html>gateway</html>")
    analyzer = ImageAnalyzer(settings, transport=upstream.transport)

    with pytest.raises(UpstreamProtocolViolation):
        _run(analyzer, temp_upload)

    assert len(removed_paths) == 1


def test_call_failure_carries_status_and_payload(settings, happy_upstream, temp_upload, removed_paths):
    happy_upstream.add(COLORS, status=403, json={"status": {"text": "quota exceeded"}})
    analyzer = ImageAnalyzer(settings, transport=happy_upstream.transport)

    with pytest.raises(UpstreamCallFailure) as exc_info:
        _run(analyzer, temp_upload)

    assert exc_info.value.upstream_status == 403
    assert exc_info.value.payload == {"status": {"text": "quota exceeded"}}
    assert happy_upstream.count(TAGS) == 1
    assert happy_upstream.count(COMPLETIONS) == 0
    assert len(removed_paths) == 1


def test_timeout_is_call_failure(settings, happy_upstream, temp_upload):
    happy_upstream.add(COMPLETIONS, exc=httpx.ReadTimeout)
    analyzer = ImageAnalyzer(settings, transport=happy_upstream.transport)

    with pytest.raises(UpstreamCallFailure) as exc_info:
        _run(analyzer, temp_upload)

    assert "timed out" in exc_info.value.details


def test_no_retries_on_failure(settings, upstream, temp_upload):
    upstream.add(UPLOADS, status=503, json={})
    analyzer = ImageAnalyzer(settings, transport=upstream.transport)

    with pytest.raises(UpstreamCallFailure):
        _run(analyzer, temp_upload)

    assert upstream.count(UPLOADS) == 1


def test_remove_temp_file_tolerates_missing_file(tmp_path):
    remove_temp_file(str(tmp_path / "already-gone.jpg"))


def test_tags_and_colors_requested_concurrently(settings, happy_upstream, temp_upload):
    tags_arrived = asyncio.Event()
    colors_arrived = asyncio.Event()

    async def handler(request):
        # Each query waits for its sibling; a sequential caller times out here
        if request.url.path == TAGS:
            tags_arrived.set()
            await asyncio.wait_for(colors_arrived.wait(), timeout=2)
        elif request.url.path == COLORS:
            colors_arrived.set()
            await asyncio.wait_for(tags_arrived.wait(), timeout=2)
        return happy_upstream.handler(request)

    analyzer = ImageAnalyzer(settings, transport=httpx.MockTransport(handler))

    result = _run(analyzer, temp_upload)

    assert result.tags == [{"confidence": 87.1, "tag": {"en": "jacket"}}]
    assert happy_upstream.count(TAGS) == 1
    assert happy_upstream.count(COLORS) == 1


def test_upload_streams_file_instead_of_reading_it_whole(
    settings, happy_upstream, temp_upload, monkeypatch
):
    def _full_read(self):
        raise AssertionError("upload should stream from an open file handle")

    monkeypatch.setattr(pathlib.Path, "read_bytes", _full_read)
    analyzer = ImageAnalyzer(settings, transport=happy_upstream.transport)

    _run(analyzer, temp_upload)

    upload = happy_upstream.last(UPLOADS)
    assert b"\xff\xd8jpeg" in upload.content
    assert b'filename="upload.jpg"' in upload.content
