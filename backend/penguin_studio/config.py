from __future__ import annotations
"""Application configuration using Pydantic Settings."""

from functools import lru_cache
from typing import Literal

from pydantic_settings import BaseSettings

_BEIJING_ENDPOINT = "https://dashscope.aliyuncs.com/api/v1"
_INTL_ENDPOINT = "https://dashscope-intl.aliyuncs.com/api/v1"


class Settings(BaseSettings):
    """Penguin Studio settings.

    Loaded from environment variables or .env file.
    """

    # --- Application ---
    APP_NAME: str = "Penguin Video Studio"
    DEBUG: bool = False
    HOST: str = "0.0.0.0"
    PORT: int = 3000
    CORS_ORIGIN: str = "http://localhost:3000"  # comma-separated

    # --- DashScope (Wan 2.5 video generation) ---
    DASHSCOPE_API_KEY: str = ""
    DASHSCOPE_REGION: Literal["singapore", "beijing"] = "singapore"
    IMAGE_MODEL: str = "wan2.5-i2v-preview"
    TEXT_MODEL: str = "wan2.5-t2v-preview"

    # --- Timeouts (seconds) ---
    SUBMIT_DELAY: float = 2.0
    SUBMIT_TIMEOUT: float = 120.0
    STATUS_TIMEOUT: float = 30.0
    DOWNLOAD_TIMEOUT: float = 60.0

    # --- Storage ---
    UPLOAD_DIR: str = "uploads"
    OUTPUT_DIR: str = "outputs"
    MAX_FILE_SIZE: int = 10 * 1024 * 1024

    # --- Rate limiting ---
    RATE_LIMIT_WINDOW: float = 60.0
    RATE_LIMIT_MAX_REQUESTS: int = 2

    # --- Task bookkeeping (seconds) ---
    TASK_TTL: float = 3600.0  # finished tasks
    STALE_TASK_TTL: float = 86400.0  # unfinished tasks; DashScope expires them after 24h

    @property
    def DASHSCOPE_BASE_URL(self) -> str:
        if self.DASHSCOPE_REGION == "beijing":
            return _BEIJING_ENDPOINT
        return _INTL_ENDPOINT

    @property
    def SYNTHESIS_URL(self) -> str:
        """Shared by the image-to-video and text-to-video models."""
        return f"{self.DASHSCOPE_BASE_URL}/services/aigc/video-generation/video-synthesis"

    @property
    def TASK_URL(self) -> str:
        return f"{self.DASHSCOPE_BASE_URL}/tasks"

    @property
    def API_KEY_CONFIGURED(self) -> bool:
        return bool(self.DASHSCOPE_API_KEY)

    @property
    def CORS_ORIGINS(self) -> list[str]:
        return [o.strip() for o in self.CORS_ORIGIN.split(",") if o.strip()]

    model_config = {
        "env_file": ".env",
        "env_file_encoding": "utf-8",
        "extra": "ignore",
    }


@lru_cache
def get_settings() -> Settings:
    """Get cached application settings singleton."""
    return Settings()
