from __future__ import annotations
"""Penguin Video Studio — FastAPI application entry point.

Mounts the API routes, configures CORS and error rendering, and owns the
process-local collaborators (rate limiter, task registry, HTTP clients).
"""

import logging
import os
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from penguin_studio import __version__
from penguin_studio.api.router import api_router
from penguin_studio.config import Settings, get_settings
from penguin_studio.errors import StudioError, ValidationError
from penguin_studio.services.providers.wan_video import WanVideoClient
from penguin_studio.services.rate_limiter import SlidingWindowRateLimiter
from penguin_studio.services.task_registry import TaskRegistry
from penguin_studio.services.upload_store import UploadStore
from penguin_studio.services.video_store import VideoStore

logger = logging.getLogger(__name__)


def configure_logging(settings: Settings) -> None:
    logging.basicConfig(
        level=logging.DEBUG if settings.DEBUG else logging.INFO,
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
    )
    # httpx logs every request at INFO, including the task URLs
    logging.getLogger("httpx").setLevel(logging.WARNING)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Create storage directories on startup, close HTTP clients on shutdown."""
    settings: Settings = app.state.settings
    os.makedirs(settings.UPLOAD_DIR, exist_ok=True)
    os.makedirs(settings.OUTPUT_DIR, exist_ok=True)

    logger.info("🐧 %s starting up...", settings.APP_NAME)
    logger.info("API key configured: %s", "yes" if settings.API_KEY_CONFIGURED else "no - set DASHSCOPE_API_KEY")
    logger.info("Region: %s (%s)", settings.DASHSCOPE_REGION, settings.DASHSCOPE_BASE_URL)
    logger.info("Upload directory: %s", settings.UPLOAD_DIR)
    logger.info("Output directory: %s", settings.OUTPUT_DIR)

    yield

    await app.state.provider.aclose()
    await app.state.video_store.aclose()
    logger.info("🐧 %s shut down", settings.APP_NAME)


async def studio_error_handler(request: Request, exc: StudioError) -> JSONResponse:
    if exc.status_code >= 500:
        logger.error("%s %s failed: %s", request.method, request.url.path, exc.message)
    else:
        logger.info("%s %s rejected (%d): %s", request.method, request.url.path, exc.status_code, exc.message)
    return JSONResponse(
        status_code=exc.status_code,
        content={"success": False, "error": exc.message},
    )


async def request_validation_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    """Render FastAPI's own request validation failures like any other 400."""
    errors = exc.errors()
    if errors:
        first = errors[0]
        loc = [str(part) for part in first.get("loc", ()) if part not in ("body", "query", "path")]
        field = ".".join(loc)
        message = f"Invalid {field}: {first.get('msg')}" if field else str(first.get("msg"))
    else:
        message = None
    return await studio_error_handler(request, ValidationError(message))


async def unhandled_error_handler(request: Request, exc: Exception) -> JSONResponse:
    logger.exception("Unhandled error on %s %s", request.method, request.url.path)
    return JSONResponse(
        status_code=500,
        content={"success": False, "error": "Internal server error"},
    )


def create_app(
    settings: Settings | None = None,
    *,
    provider: WanVideoClient | None = None,
    video_store: VideoStore | None = None,
) -> FastAPI:
    """Build the application.

    ``provider`` and ``video_store`` replace the networked defaults, which is
    how tests point the app at a fake DashScope.
    """
    settings = settings or get_settings()
    configure_logging(settings)

    app = FastAPI(
        title=f"{settings.APP_NAME} API",
        description="Image-to-video and text-to-video generation via DashScope Wan 2.5",
        version=__version__,
        lifespan=lifespan,
        redirect_slashes=False,
    )

    app.state.settings = settings
    app.state.rate_limiter = SlidingWindowRateLimiter(
        max_requests=settings.RATE_LIMIT_MAX_REQUESTS,
        window_seconds=settings.RATE_LIMIT_WINDOW,
    )
    app.state.registry = TaskRegistry(ttl=settings.TASK_TTL, stale_ttl=settings.STALE_TASK_TTL)
    app.state.upload_store = UploadStore(settings.UPLOAD_DIR)
    app.state.provider = provider or WanVideoClient(settings)
    app.state.video_store = video_store or VideoStore(
        settings.OUTPUT_DIR, timeout=settings.DOWNLOAD_TIMEOUT
    )

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.CORS_ORIGINS,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    app.add_exception_handler(StudioError, studio_error_handler)
    app.add_exception_handler(RequestValidationError, request_validation_handler)
    app.add_exception_handler(Exception, unhandled_error_handler)

    app.include_router(api_router)
    return app


app = create_app()
