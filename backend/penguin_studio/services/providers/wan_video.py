"""Wan 2.5 video generation provider (DashScope).

Supports:
- wan2.5-i2v-preview image-to-video (img_url + resolution)
- wan2.5-t2v-preview text-to-video (prompt + size)

Both models share the video-synthesis endpoint and the async task pattern:
1. POST /services/aigc/video-generation/video-synthesis → task_id
2. GET  /tasks/{task_id} → task_status (+ video_url once SUCCEEDED)

Polling is driven by the caller; every method here makes exactly one
request and never retries.
"""

from __future__ import annotations

import json
import logging
from dataclasses import dataclass
from typing import Any

import httpx

from penguin_studio.config import Settings
from penguin_studio.errors import (
    ConfigurationError,
    UpstreamAuthError,
    UpstreamError,
    UpstreamProtocolError,
    UpstreamRateLimitError,
    UpstreamTimeoutError,
    ValidationError,
)
from penguin_studio.schemas.generation import GenerationRequest, Mode, TaskStatus
from penguin_studio.services.upload_store import image_to_data_url

logger = logging.getLogger(__name__)

DEFAULT_IMAGE_PROMPT = "A beautiful scene with dynamic movement and cinematic quality"

# Text-to-video takes pixel dimensions instead of a resolution tier.
RESOLUTION_SIZES: dict[str, str] = {
    "480p": "832*480",
    "720p": "1280*720",
    "1080p": "1920*1080",
}
FALLBACK_SIZE = "832*480"


def resolution_to_size(resolution: Any) -> str:
    """Map a resolution tier to a ``W*H`` size string, defaulting to 832*480."""
    key = getattr(resolution, "value", resolution)
    return RESOLUTION_SIZES.get(str(key).lower(), FALLBACK_SIZE)


def build_image_payload(
    request: GenerationRequest,
    image_data_url: str,
    model: str = "wan2.5-i2v-preview",
) -> dict[str, Any]:
    return {
        "model": model,
        "input": {
            "img_url": image_data_url,
            "prompt": request.prompt or DEFAULT_IMAGE_PROMPT,
        },
        "parameters": {
            "resolution": request.resolution.value.upper(),
            "duration": request.duration,
            "prompt_extend": request.prompt_extend,
            "watermark": request.watermark,
            "audio": request.audio,
        },
    }


def build_text_payload(
    request: GenerationRequest,
    model: str = "wan2.5-t2v-preview",
) -> dict[str, Any]:
    input_data: dict[str, Any] = {"prompt": request.prompt}
    # The field must be absent, not empty, when there is no negative prompt
    if request.negative_prompt:
        input_data["negative_prompt"] = request.negative_prompt

    return {
        "model": model,
        "input": input_data,
        "parameters": {
            "size": resolution_to_size(request.resolution),
            "duration": request.duration,
            "prompt_extend": request.prompt_extend,
            "watermark": request.watermark,
            "audio": request.audio,
        },
    }


@dataclass
class RemoteTask:
    """One observation of a remote task."""

    task_id: str
    status: TaskStatus
    video_url: str | None = None
    message: str | None = None


def _redact(payload: dict[str, Any]) -> str:
    shown = json.loads(json.dumps(payload))
    img = shown.get("input", {}).get("img_url")
    if img:
        shown["input"]["img_url"] = f"<data url, {len(img)} chars>"
    return json.dumps(shown, ensure_ascii=False)


def _upstream_message(response: httpx.Response) -> str | None:
    try:
        body = response.json()
    except ValueError:
        return None
    if isinstance(body, dict) and body.get("message"):
        return str(body["message"])
    return None


def _raise_for_upstream(response: httpx.Response) -> None:
    if response.status_code < 400:
        return
    message = _upstream_message(response)
    if response.status_code == 401:
        raise UpstreamAuthError(message)
    if response.status_code == 429:
        raise UpstreamRateLimitError(message)
    raise UpstreamError(message or f"Video generation API returned HTTP {response.status_code}")


class WanVideoClient:
    """Thin async client for the DashScope Wan video-synthesis API."""

    def __init__(self, settings: Settings, http_client: httpx.AsyncClient | None = None):
        self.settings = settings
        self._client = http_client or httpx.AsyncClient()
        self._own_client = http_client is None

    def ensure_configured(self) -> None:
        if not self.settings.DASHSCOPE_API_KEY:
            raise ConfigurationError()

    def _headers(self, async_mode: bool = False) -> dict[str, str]:
        headers = {"Authorization": f"Bearer {self.settings.DASHSCOPE_API_KEY}"}
        if async_mode:
            headers["X-DashScope-Async"] = "enable"
            headers["Content-Type"] = "application/json"
        return headers

    def build_payload(self, request: GenerationRequest) -> dict[str, Any]:
        if request.mode is Mode.IMAGE:
            if not request.image_path:
                raise ValidationError("No image file provided for image-to-video mode.")
            return build_image_payload(
                request, image_to_data_url(request.image_path), self.settings.IMAGE_MODEL
            )
        return build_text_payload(request, self.settings.TEXT_MODEL)

    async def _send(self, method: str, url: str, **kwargs: Any) -> httpx.Response:
        try:
            response = await self._client.request(method, url, **kwargs)
        except httpx.TimeoutException as e:
            logger.error("DashScope %s %s timed out: %s", method, url, e)
            raise UpstreamTimeoutError() from e
        except httpx.HTTPError as e:
            logger.error("DashScope %s %s failed: %s", method, url, e)
            raise UpstreamError(str(e) or None) from e
        if response.status_code >= 400:
            logger.error(
                "DashScope %s %s returned %d: %s",
                method, url, response.status_code, response.text[:500],
            )
        _raise_for_upstream(response)
        return response

    async def submit(self, request: GenerationRequest) -> str:
        """Create one remote generation task and return its task id."""
        self.ensure_configured()
        payload = self.build_payload(request)

        logger.info(
            "Submitting %s-to-video task (model=%s, duration=%ss, resolution=%s)",
            request.mode.value, payload["model"], request.duration, request.resolution.value,
        )
        logger.debug("DashScope payload: %s", _redact(payload))

        response = await self._send(
            "POST",
            self.settings.SYNTHESIS_URL,
            json=payload,
            headers=self._headers(async_mode=True),
            timeout=self.settings.SUBMIT_TIMEOUT,
        )
        try:
            data = response.json()
        except ValueError as e:
            raise UpstreamProtocolError() from e

        output = data.get("output") if isinstance(data, dict) else None
        task_id = output.get("task_id") if isinstance(output, dict) else None
        if not task_id:
            logger.error("DashScope task creation returned no task id: %s", data)
            raise UpstreamProtocolError()

        logger.info("DashScope task created: %s (status=%s)", task_id, output.get("task_status"))
        return str(task_id)

    async def get_task(self, task_id: str) -> RemoteTask:
        """Read the current status of a remote task once."""
        self.ensure_configured()
        response = await self._send(
            "GET",
            f"{self.settings.TASK_URL}/{task_id}",
            headers=self._headers(),
            timeout=self.settings.STATUS_TIMEOUT,
        )
        try:
            data = response.json()
        except ValueError as e:
            raise UpstreamProtocolError("Invalid status response format") from e

        output = data.get("output") if isinstance(data, dict) else None
        if not isinstance(output, dict):
            raise UpstreamProtocolError("Invalid status response format")

        video_url = output.get("video_url")
        if not video_url:
            results = output.get("results") or []
            if results and isinstance(results[0], dict):
                video_url = results[0].get("url")

        status = TaskStatus.parse(output.get("task_status"))
        logger.debug("DashScope task %s: %s", task_id, status.value)
        return RemoteTask(
            task_id=task_id,
            status=status,
            video_url=video_url,
            message=output.get("message"),
        )

    async def aclose(self) -> None:
        if self._own_client:
            await self._client.aclose()
