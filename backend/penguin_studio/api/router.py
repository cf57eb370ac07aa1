from __future__ import annotations
"""Master API router — mounts all sub-routers."""

from fastapi import APIRouter

from penguin_studio.api.generation import router as generation_router
from penguin_studio.api.system import router as system_router
from penguin_studio.api.videos import router as videos_router

api_router = APIRouter(prefix="/api", redirect_slashes=False)

api_router.include_router(system_router, tags=["System"])
api_router.include_router(generation_router, tags=["Generation"])
api_router.include_router(videos_router, tags=["Videos"])
