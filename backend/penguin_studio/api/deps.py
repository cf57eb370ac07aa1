"""FastAPI dependencies — collaborators live on ``app.state``.

Tests swap any of them through ``app.dependency_overrides``.
"""

from __future__ import annotations

from fastapi import Depends, Request

from penguin_studio.config import Settings
from penguin_studio.services.providers.wan_video import WanVideoClient
from penguin_studio.services.rate_limiter import SlidingWindowRateLimiter
from penguin_studio.services.status import StatusService
from penguin_studio.services.task_registry import TaskRegistry
from penguin_studio.services.upload_store import UploadStore
from penguin_studio.services.video_store import VideoStore


def get_app_settings(request: Request) -> Settings:
    return request.app.state.settings


def get_rate_limiter(request: Request) -> SlidingWindowRateLimiter:
    return request.app.state.rate_limiter


def get_provider(request: Request) -> WanVideoClient:
    return request.app.state.provider


def get_upload_store(request: Request) -> UploadStore:
    return request.app.state.upload_store


def get_video_store(request: Request) -> VideoStore:
    return request.app.state.video_store


def get_registry(request: Request) -> TaskRegistry:
    return request.app.state.registry


def get_status_service(
    provider: WanVideoClient = Depends(get_provider),
    store: VideoStore = Depends(get_video_store),
    registry: TaskRegistry = Depends(get_registry),
) -> StatusService:
    return StatusService(provider, store, registry)


def client_id(request: Request) -> str:
    """Identify the caller for rate limiting."""
    if request.client and request.client.host:
        return request.client.host
    return "unknown"
