from __future__ import annotations
"""Status projection — one remote status read per call.

PENDING/RUNNING map to coarse progress figures (the remote API exposes no
finer progress). SUCCEEDED makes sure the video is cached locally before
answering; FAILED and CANCELED pass the remote message through.
"""

import logging

from penguin_studio.errors import UpstreamProtocolError
from penguin_studio.schemas.generation import StatusResponse, Task, TaskStatus, validate_task_id
from penguin_studio.services.providers.wan_video import WanVideoClient
from penguin_studio.services.task_registry import TaskRegistry
from penguin_studio.services.video_store import VideoStore

logger = logging.getLogger(__name__)

PROGRESS = {
    TaskStatus.UNKNOWN: 0,
    TaskStatus.PENDING: 10,
    TaskStatus.RUNNING: 50,
    TaskStatus.SUCCEEDED: 100,
}


def download_url(task_id: str) -> str:
    return f"/api/download/{task_id}"


class StatusService:
    def __init__(self, provider: WanVideoClient, store: VideoStore, registry: TaskRegistry):
        self.provider = provider
        self.store = store
        self.registry = registry

    async def check(self, task_id: str) -> StatusResponse:
        validate_task_id(task_id)
        remote = await self.provider.get_task(task_id)
        task = self.registry.observe(remote)
        if task is None:
            # Not submitted by this process (e.g. before a restart): project as-is.
            task = Task(
                task_id=task_id,
                status=remote.status,
                remote_video_url=remote.video_url,
                error=remote.message,
            )
        status = task.status
        if remote.status is TaskStatus.UNKNOWN and not status.is_terminal:
            status = TaskStatus.UNKNOWN

        if status is TaskStatus.SUCCEEDED:
            video_url = remote.video_url or task.remote_video_url
            if not video_url and not self.store.exists(task_id):
                raise UpstreamProtocolError("Task succeeded but no video URL was returned")
            if video_url:
                await self.store.ensure_downloaded(task_id, video_url)
            return StatusResponse(
                success=True,
                status=status,
                progress=PROGRESS[status],
                video_url=download_url(task_id),
                message="Video generation completed successfully!",
            )

        if status in (TaskStatus.FAILED, TaskStatus.CANCELED):
            logger.warning("Task %s ended %s: %s", task_id, status.value, task.error)
            if status is TaskStatus.FAILED:
                default = "Video generation failed"
            else:
                default = "Video generation was canceled"
            return StatusResponse(success=False, status=status, error=task.error or default)

        return StatusResponse(
            success=True,
            status=status,
            progress=PROGRESS[status],
            message=f"Video generation {status.value.lower()}...",
        )
