"""Async HTTP client for a running Penguin Studio server.

Mirrors what the browser does: submit, poll ``/api/video-status`` every few
seconds through a cancellable ``StatusPoll``, then fetch the file.
"""

from __future__ import annotations

import logging
import os
from typing import Any

import httpx

from penguin_studio.errors import (
    ConfigurationError,
    NotFoundError,
    RateLimitError,
    StudioError,
    UpstreamError,
    ValidationError,
)
from penguin_studio.schemas.generation import GenerateResponse, StatusResponse
from penguin_studio.services.polling import StatusPoll

logger = logging.getLogger(__name__)

_ERRORS_BY_STATUS: dict[int, type[StudioError]] = {
    404: NotFoundError,
    429: RateLimitError,
}


def _form_value(value: Any) -> str:
    if isinstance(value, bool):
        return "true" if value else "false"
    return str(value)


class StudioClient:
    def __init__(self, base_url: str = "http://localhost:3000", http_client: httpx.AsyncClient | None = None):
        self.base_url = base_url.rstrip("/")
        self._client = http_client or httpx.AsyncClient(base_url=self.base_url, timeout=180.0)
        self._own_client = http_client is None

    async def __aenter__(self) -> StudioClient:
        return self

    async def __aexit__(self, *exc_info: Any) -> None:
        await self.aclose()

    async def aclose(self) -> None:
        if self._own_client:
            await self._client.aclose()

    def _raise_for_error(self, response: httpx.Response) -> None:
        if response.is_success:
            return
        try:
            message = response.json().get("error")
        except ValueError:
            message = None
        if response.status_code == 400:
            cls = ConfigurationError if message and "API key" in message else ValidationError
        else:
            cls = _ERRORS_BY_STATUS.get(response.status_code, UpstreamError)
        raise cls(message or f"HTTP {response.status_code}")

    async def health(self) -> dict[str, Any]:
        response = await self._client.get("/api/health")
        self._raise_for_error(response)
        return response.json()

    async def _generate(self, data: dict[str, Any], files: dict[str, Any] | None = None) -> GenerateResponse:
        form = {k: _form_value(v) for k, v in data.items() if v is not None}
        response = await self._client.post("/api/generate-video", data=form, files=files)
        self._raise_for_error(response)
        return GenerateResponse.model_validate(response.json())

    async def generate_text(
        self,
        prompt: str,
        *,
        negative_prompt: str | None = None,
        duration: int = 5,
        resolution: str = "1080p",
        audio: bool = True,
        prompt_extend: bool = True,
        watermark: bool = False,
    ) -> GenerateResponse:
        return await self._generate({
            "textPrompt": prompt,
            "negativePrompt": negative_prompt or None,
            "duration": duration,
            "resolution": resolution,
            "audio": audio,
            "promptExtend": prompt_extend,
            "watermark": watermark,
        })

    async def generate_image(
        self,
        image_path: str,
        *,
        prompt: str | None = None,
        duration: int = 5,
        resolution: str = "1080p",
        audio: bool = True,
        prompt_extend: bool = True,
        watermark: bool = False,
    ) -> GenerateResponse:
        content_type = "image/png" if image_path.lower().endswith(".png") else "image/jpeg"
        with open(image_path, "rb") as f:
            files = {"image": (os.path.basename(image_path), f.read(), content_type)}
        return await self._generate(
            {
                "prompt": prompt,
                "duration": duration,
                "resolution": resolution,
                "audio": audio,
                "promptExtend": prompt_extend,
                "watermark": watermark,
            },
            files=files,
        )

    async def status(self, task_id: str) -> StatusResponse:
        response = await self._client.get(f"/api/video-status/{task_id}")
        # FAILED/CANCELED come back as 200 with success=false
        if response.status_code != 200:
            self._raise_for_error(response)
        return StatusResponse.model_validate(response.json())

    def poll(self, task_id: str, interval: float = 3.0, max_polls: int = 200) -> StatusPoll:
        return StatusPoll(self.status, task_id, interval=interval, max_polls=max_polls)

    async def download(self, task_id: str, dest: str) -> str:
        async with self._client.stream("GET", f"/api/download/{task_id}") as response:
            if not response.is_success:
                await response.aread()
                self._raise_for_error(response)
            with open(dest, "wb") as f:
                async for chunk in response.aiter_bytes():
                    f.write(chunk)
        logger.info("Saved %s to %s", task_id, dest)
        return dest
