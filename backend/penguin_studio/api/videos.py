from __future__ import annotations
"""Task status and finished-video download endpoints."""

import logging

from fastapi import APIRouter, Depends
from fastapi.responses import FileResponse

from penguin_studio.api.deps import get_status_service, get_video_store
from penguin_studio.schemas.generation import StatusResponse
from penguin_studio.services.status import StatusService
from penguin_studio.services.video_store import VideoStore

router = APIRouter()
logger = logging.getLogger(__name__)


@router.get(
    "/video-status/{task_id}",
    response_model=StatusResponse,
    response_model_exclude_none=True,
)
async def video_status(task_id: str, service: StatusService = Depends(get_status_service)):
    """Poll target for the browser (every ~3s until a terminal status)."""
    return await service.check(task_id)


@router.get("/download/{task_id}")
async def download_video(task_id: str, store: VideoStore = Depends(get_video_store)):
    path = store.get(task_id)
    return FileResponse(
        path=path,
        media_type="video/mp4",
        filename=f"penguin-video-{task_id}.mp4",
    )
