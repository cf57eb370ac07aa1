"""In-process task bookkeeping. Nothing here survives a restart."""

from __future__ import annotations

import logging
import threading
from datetime import datetime, timedelta
from typing import Callable

from penguin_studio.errors import UpstreamProtocolError
from penguin_studio.schemas.generation import GenerationRequest, Task, TaskStatus
from penguin_studio.services.providers.wan_video import RemoteTask

logger = logging.getLogger(__name__)


class TaskRegistry:
    """Tasks created by this process, keyed by remote task id.

    Only ``register`` adds entries. Finished tasks are dropped ``ttl``
    seconds after their last update and unfinished ones after
    ``stale_ttl``; the sweep runs on every registration.
    """

    def __init__(
        self,
        ttl: float = 3600.0,
        stale_ttl: float = 86400.0,
        clock: Callable[[], datetime] = datetime.utcnow,
    ) -> None:
        self._tasks: dict[str, Task] = {}
        self._lock = threading.Lock()
        self.ttl = timedelta(seconds=ttl)
        self.stale_ttl = timedelta(seconds=stale_ttl)
        self._clock = clock

    def register(self, task_id: str, request: GenerationRequest) -> Task:
        """Record the task created for an accepted request."""
        self.prune()
        with self._lock:
            if task_id in self._tasks:
                raise UpstreamProtocolError(f"Duplicate task id from provider: {task_id}")
            now = self._clock()
            task = Task(task_id=task_id, mode=request.mode, created_at=now, updated_at=now)
            self._tasks[task_id] = task
        logger.info("Registered task %s (%s)", task_id, request.mode.value)
        return task

    def get(self, task_id: str) -> Task | None:
        with self._lock:
            return self._tasks.get(task_id)

    def observe(self, remote: RemoteTask) -> Task | None:
        """Apply a polled status to a registered task.

        Terminal statuses stick, and an older non-terminal status never
        replaces a newer one. UNKNOWN carries no lifecycle information and
        leaves the task as it is. Returns None for ids this process never
        registered; those are not recorded.
        """
        with self._lock:
            task = self._tasks.get(remote.task_id)
            if task is None:
                return None

            if remote.status is TaskStatus.UNKNOWN:
                logger.warning("Remote reports UNKNOWN for task %s", task.task_id)
                return task

            if task.status.is_terminal or remote.status.rank < task.status.rank:
                if remote.status is not task.status:
                    logger.warning(
                        "Ignoring status %s for task %s (already %s)",
                        remote.status.value, task.task_id, task.status.value,
                    )
                return task

            if remote.status is not task.status:
                logger.info(
                    "Task %s: %s → %s", task.task_id, task.status.value, remote.status.value
                )
            task.status = remote.status
            if remote.video_url:
                task.remote_video_url = remote.video_url
            if remote.status in (TaskStatus.FAILED, TaskStatus.CANCELED):
                task.error = remote.message
            task.updated_at = self._clock()
            return task

    def prune(self) -> int:
        """Drop expired tasks and return how many were removed."""
        now = self._clock()
        with self._lock:
            expired = [
                task_id
                for task_id, task in self._tasks.items()
                if now - task.updated_at > (self.ttl if task.status.is_terminal else self.stale_ttl)
            ]
            for task_id in expired:
                del self._tasks[task_id]
        if expired:
            logger.info("Pruned %d expired task(s)", len(expired))
        return len(expired)

    def __len__(self) -> int:
        return len(self._tasks)
