"""Sliding-window rate limiter, one instance per application."""

from __future__ import annotations

import logging
import threading
import time
from typing import Callable

from penguin_studio.errors import RateLimitError

logger = logging.getLogger(__name__)


class SlidingWindowRateLimiter:
    """Allow at most ``max_requests`` per client within ``window_seconds``.

    Timestamps older than the window are pruned on every check, so memory
    per client stays bounded by ``max_requests``.
    """

    def __init__(
        self,
        max_requests: int = 2,
        window_seconds: float = 60.0,
        clock: Callable[[], float] = time.monotonic,
    ):
        self.max_requests = max_requests
        self.window_seconds = window_seconds
        self._clock = clock
        self._requests: dict[str, list[float]] = {}
        self._lock = threading.Lock()

    def check(self, client_id: str) -> None:
        """Record a request for ``client_id`` or raise RateLimitError."""
        now = self._clock()
        with self._lock:
            recent = [
                t for t in self._requests.get(client_id, [])
                if now - t < self.window_seconds
            ]
            if len(recent) >= self.max_requests:
                self._requests[client_id] = recent
                logger.warning(
                    "Rate limit hit for %s (%d requests in %.0fs)",
                    client_id, len(recent), self.window_seconds,
                )
                raise RateLimitError()
            recent.append(now)
            self._requests[client_id] = recent

    def remaining(self, client_id: str) -> int:
        now = self._clock()
        with self._lock:
            recent = [
                t for t in self._requests.get(client_id, [])
                if now - t < self.window_seconds
            ]
        return max(self.max_requests - len(recent), 0)

    def reset(self) -> None:
        with self._lock:
            self._requests.clear()
