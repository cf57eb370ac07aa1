from __future__ import annotations
"""Generation API — accepts an image or a text prompt and submits one remote task."""

import asyncio
import logging

from fastapi import APIRouter, Depends, File, Form, Request, UploadFile

from penguin_studio.api.deps import (
    client_id,
    get_app_settings,
    get_provider,
    get_rate_limiter,
    get_registry,
    get_upload_store,
)
from penguin_studio.config import Settings
from penguin_studio.errors import ValidationError
from penguin_studio.schemas.generation import GenerateResponse, Mode, parse_generation_form
from penguin_studio.services.providers.wan_video import WanVideoClient
from penguin_studio.services.rate_limiter import SlidingWindowRateLimiter
from penguin_studio.services.task_registry import TaskRegistry
from penguin_studio.services.upload_store import UploadStore

router = APIRouter()
logger = logging.getLogger(__name__)


async def _read_image(image: UploadFile, max_size: int) -> bytes:
    if not (image.content_type or "").startswith("image/"):
        raise ValidationError("Only image files are allowed!")
    data = await image.read(max_size + 1)
    if len(data) > max_size:
        raise ValidationError(
            f"File too large. Maximum size is {max_size // (1024 * 1024)}MB."
        )
    if not data:
        raise ValidationError("No image file provided for image-to-video mode.")
    return data


@router.post("/generate-video", response_model=GenerateResponse)
async def generate_video(
    request: Request,
    image: UploadFile | None = File(None),
    prompt: str | None = Form(None),
    text_prompt: str | None = Form(None, alias="textPrompt"),
    negative_prompt: str | None = Form(None, alias="negativePrompt"),
    duration: str | None = Form(None),
    resolution: str | None = Form(None),
    audio: str | None = Form(None),
    prompt_extend: str | None = Form(None, alias="promptExtend"),
    watermark: str | None = Form(None),
    settings: Settings = Depends(get_app_settings),
    limiter: SlidingWindowRateLimiter = Depends(get_rate_limiter),
    provider: WanVideoClient = Depends(get_provider),
    uploads: UploadStore = Depends(get_upload_store),
    registry: TaskRegistry = Depends(get_registry),
):
    """Validate the submission, apply the rate limit, and create the remote task.

    Nothing reaches the remote service unless the credentials are configured,
    the mode-specific input is present, and the caller is within its limit.
    """
    provider.ensure_configured()

    has_image = image is not None and bool(image.filename)
    gen_request = parse_generation_form(
        has_image=has_image,
        prompt=prompt,
        text_prompt=text_prompt,
        negative_prompt=negative_prompt,
        duration=duration,
        resolution=resolution,
        audio=audio,
        prompt_extend=prompt_extend,
        watermark=watermark,
    )
    image_bytes = await _read_image(image, settings.MAX_FILE_SIZE) if has_image else None

    limiter.check(client_id(request))

    if image_bytes is not None:
        path = uploads.save(image_bytes, image.filename)
        gen_request = gen_request.model_copy(update={"image_path": path})

    logger.info(
        "Starting %s-to-video generation: duration=%ss resolution=%s audio=%s prompt=%r",
        gen_request.mode.value, gen_request.duration, gen_request.resolution.value,
        gen_request.audio, gen_request.prompt or "(none)",
    )

    # Spaces out bursts against the upstream quota
    if settings.SUBMIT_DELAY > 0:
        await asyncio.sleep(settings.SUBMIT_DELAY)

    task_id = await provider.submit(gen_request)
    registry.register(task_id, gen_request)

    if gen_request.mode is Mode.IMAGE:
        message = "Video generation task created successfully! 🎬"
    else:
        message = "Text-to-video generation task created successfully! 🎬"
    return GenerateResponse(task_id=task_id, message=message)
