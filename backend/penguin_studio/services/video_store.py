"""Finished-video cache — one ``<task_id>.mp4`` per task in OUTPUT_DIR.

The first completed download for a task is authoritative: later calls for
the same task return the cached file without touching the network.
"""

from __future__ import annotations

import asyncio
import logging
import os

import httpx

from penguin_studio.errors import DownloadError, NotFoundError
from penguin_studio.schemas.generation import TASK_ID_PATTERN

logger = logging.getLogger(__name__)


class VideoStore:
    def __init__(
        self,
        output_dir: str,
        timeout: float = 60.0,
        http_client: httpx.AsyncClient | None = None,
    ):
        self.output_dir = output_dir
        self.timeout = timeout
        self._client = http_client or httpx.AsyncClient()
        self._own_client = http_client is None
        self._locks: dict[str, asyncio.Lock] = {}
        self._lock_users: dict[str, int] = {}
        self.downloads = 0

    def path_for(self, task_id: str) -> str:
        if not TASK_ID_PATTERN.match(task_id or ""):
            raise NotFoundError()
        return os.path.join(self.output_dir, f"{task_id}.mp4")

    def exists(self, task_id: str) -> bool:
        try:
            return os.path.isfile(self.path_for(task_id))
        except NotFoundError:
            return False

    def get(self, task_id: str) -> str:
        """Return the cached file path or raise NotFoundError."""
        path = self.path_for(task_id)
        if not os.path.isfile(path):
            raise NotFoundError()
        return path

    async def ensure_downloaded(self, task_id: str, url: str) -> str:
        """Download the video once; afterwards serve the cached file."""
        path = self.path_for(task_id)
        if os.path.isfile(path):
            return path

        lock = self._locks.setdefault(task_id, asyncio.Lock())
        self._lock_users[task_id] = self._lock_users.get(task_id, 0) + 1
        try:
            async with lock:
                # Another request may have finished the download while we waited.
                if os.path.isfile(path):
                    return path
                await self._download(url, path)
        finally:
            self._lock_users[task_id] -= 1
            if not self._lock_users[task_id]:
                del self._lock_users[task_id]
                del self._locks[task_id]
        return path

    async def _download(self, url: str, filepath: str) -> None:
        """Stream to a .part file and rename it into place when complete."""
        os.makedirs(self.output_dir, exist_ok=True)
        partial = f"{filepath}.part"
        try:
            async with self._client.stream("GET", url, timeout=self.timeout) as response:
                response.raise_for_status()
                with open(partial, "wb") as f:
                    async for chunk in response.aiter_bytes(chunk_size=8192):
                        f.write(chunk)
            os.replace(partial, filepath)
        except (httpx.HTTPError, OSError) as e:
            logger.error("Video download failed for %s: %s", filepath, e)
            if os.path.exists(partial):
                os.remove(partial)
            raise DownloadError(f"Video download failed: {e}") from e

        self.downloads += 1
        logger.info("Video downloaded: %s (%d bytes)", filepath, os.path.getsize(filepath))

    async def aclose(self) -> None:
        if self._own_client:
            await self._client.aclose()
