"""Pytest configuration helpers.

Puts `backend/` on `sys.path` so tests can import `penguin_studio` without
an install, and provides a scripted stand-in for the DashScope API served
through `httpx.MockTransport`.
"""
import asyncio
import json
import os
import sys

import httpx
import pytest

ROOT = os.path.abspath(os.path.join(os.path.dirname(__file__), ".."))
BACKEND = os.path.join(ROOT, "backend")
if BACKEND not in sys.path:
    sys.path.insert(0, BACKEND)

from penguin_studio.config import Settings  # noqa: E402
from penguin_studio.main import create_app  # noqa: E402
from penguin_studio.services.providers.wan_video import WanVideoClient  # noqa: E402
from penguin_studio.services.video_store import VideoStore  # noqa: E402

VIDEO_URL = "https://dashscope-result-sgp.oss.example.com/output/video.mp4"
VIDEO_BYTES = b"\x00\x00\x00\x18ftypmp42" + b"penguin" * 64


class FakeDashScope:
    """Scripted DashScope: task creation, task status, and the result file.

    `statuses[task_id]` is a list of remote statuses; each status call pops
    the head until one entry is left, which then repeats.
    """

    def __init__(self):
        self.submissions: list[dict] = []
        self.submit_headers: list[httpx.Headers] = []
        self.status_calls = 0
        self.video_fetches = 0
        self.statuses: dict[str, list[str]] = {}
        self.submit_response: httpx.Response | None = None
        self.status_response: httpx.Response | None = None
        self.fail_message = "Content moderation rejected the input"
        self._next_task = 0

    @property
    def total_calls(self) -> int:
        return len(self.submissions) + self.status_calls + self.video_fetches

    def handler(self, request: httpx.Request) -> httpx.Response:
        path = request.url.path
        if request.method == "POST" and path.endswith("/video-synthesis"):
            self.submissions.append(json.loads(request.content))
            self.submit_headers.append(request.headers)
            if self.submit_response is not None:
                return self.submit_response
            self._next_task += 1
            task_id = f"task-{self._next_task:04d}"
            return httpx.Response(
                200,
                json={"request_id": "req-1", "output": {"task_id": task_id, "task_status": "PENDING"}},
            )

        if request.method == "GET" and "/tasks/" in path:
            self.status_calls += 1
            if self.status_response is not None:
                return self.status_response
            task_id = path.rsplit("/", 1)[1]
            script = self.statuses.setdefault(task_id, ["PENDING"])
            status = script.pop(0) if len(script) > 1 else script[0]
            output = {"task_id": task_id, "task_status": status}
            if status == "SUCCEEDED":
                output["video_url"] = VIDEO_URL
            if status == "FAILED":
                output["message"] = self.fail_message
            return httpx.Response(200, json={"request_id": "req-2", "output": output})

        if str(request.url) == VIDEO_URL:
            self.video_fetches += 1
            return httpx.Response(200, content=VIDEO_BYTES)

        return httpx.Response(404, json={"message": "not found"})

    def client(self) -> httpx.AsyncClient:
        return httpx.AsyncClient(transport=httpx.MockTransport(self.handler))


@pytest.fixture
def dashscope():
    return FakeDashScope()


@pytest.fixture
def settings(tmp_path):
    return Settings(
        _env_file=None,
        DASHSCOPE_API_KEY="sk-test",
        UPLOAD_DIR=str(tmp_path / "uploads"),
        OUTPUT_DIR=str(tmp_path / "outputs"),
        SUBMIT_DELAY=0,
    )


@pytest.fixture
def app(settings, dashscope):
    """App wired to the fake DashScope instead of the network."""
    provider_http = dashscope.client()
    download_http = dashscope.client()
    yield create_app(
        settings,
        provider=WanVideoClient(settings, http_client=provider_http),
        video_store=VideoStore(
            settings.OUTPUT_DIR, timeout=settings.DOWNLOAD_TIMEOUT, http_client=download_http
        ),
    )

    async def close():
        await provider_http.aclose()
        await download_http.aclose()

    asyncio.run(close())
