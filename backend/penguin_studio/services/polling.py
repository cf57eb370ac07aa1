"""Client-side status polling with an explicit, cancellable handle.

``StatusPoll`` replaces a free-running interval timer: it yields a bounded
sequence of status snapshots and stops on a terminal status, an
unsuccessful snapshot, ``max_polls``, or ``cancel()``.
"""

from __future__ import annotations

import asyncio
import logging
from typing import Awaitable, Callable

from penguin_studio.schemas.generation import StatusResponse, TaskStatus

logger = logging.getLogger(__name__)

StatusFetcher = Callable[[str], Awaitable[StatusResponse]]


class StatusPoll:
    def __init__(
        self,
        fetch: StatusFetcher,
        task_id: str,
        interval: float = 3.0,
        max_polls: int = 200,
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
    ):
        self.fetch = fetch
        self.task_id = task_id
        self.interval = interval
        self.max_polls = max_polls
        self._sleep = sleep
        self._cancelled = False
        self.polls = 0
        self.last: StatusResponse | None = None

    def cancel(self) -> None:
        self._cancelled = True

    @property
    def cancelled(self) -> bool:
        return self._cancelled

    @property
    def done(self) -> bool:
        if self._cancelled or self.polls >= self.max_polls:
            return True
        if self.last is None:
            return False
        if not self.last.success:
            return True
        return self.last.status is not None and self.last.status.is_terminal

    def _deregress(self, snapshot: StatusResponse) -> StatusResponse:
        """Keep the projection monotonic: an earlier non-terminal status is ignored.

        UNKNOWN is passed through so an expired task is visible to the caller.
        """
        previous = self.last
        if (
            previous is not None
            and previous.status is not None
            and snapshot.success
            and snapshot.status not in (None, TaskStatus.UNKNOWN)
            and snapshot.status.rank < previous.status.rank
        ):
            logger.debug(
                "Task %s reported %s after %s; keeping %s",
                self.task_id, snapshot.status.value, previous.status.value, previous.status.value,
            )
            return previous
        return snapshot

    def __aiter__(self) -> StatusPoll:
        return self

    async def __anext__(self) -> StatusResponse:
        if self.done:
            raise StopAsyncIteration
        if self.polls > 0:
            await self._sleep(self.interval)
            if self._cancelled:
                raise StopAsyncIteration
        self.polls += 1
        snapshot = self._deregress(await self.fetch(self.task_id))
        self.last = snapshot
        return snapshot

    async def wait(self) -> StatusResponse | None:
        """Drain the poll and return the final snapshot."""
        async for _ in self:
            pass
        return self.last
