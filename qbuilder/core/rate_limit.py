"""
In-memory fixed-window rate limiting for authentication endpoints.

Counters live in this process only; a multi-worker deployment gets one
budget per worker.
"""

import math
import time
from threading import Lock
from typing import Callable

from fastapi import Request

from qbuilder.constants.error_codes import ErrorCode
from qbuilder.core.config import (
    AUTH_RATE_LIMIT_ATTEMPTS,
    AUTH_RATE_LIMIT_WINDOW_SECONDS,
)
from qbuilder.core.exceptions import AppException
from qbuilder.utils.logger import get_logger

logger = get_logger(__name__)


class FixedWindowRateLimiter:
    def __init__(
        self,
        points: int,
        duration_seconds: int,
        clock: Callable[[], float] = time.monotonic,
    ):
        self.points = points
        self.duration = duration_seconds
        self._clock = clock
        # key -> (count, window_reset_at)
        self._windows: dict[str, tuple[int, float]] = {}
        self._lock = Lock()

    def consume(self, key: str) -> float | None:
        """
        Count one hit for ``key``.

        Returns ``None`` when allowed, otherwise the seconds until the
        window resets.
        """
        now = self._clock()
        with self._lock:
            count, reset_at = self._windows.get(key, (0, now + self.duration))
            if now >= reset_at:
                count, reset_at = 0, now + self.duration

            if count >= self.points:
                return reset_at - now

            self._windows[key] = (count + 1, reset_at)
            return None

    def purge_expired(self) -> int:
        now = self._clock()
        with self._lock:
            stale = [k for k, (_, reset_at) in self._windows.items() if now >= reset_at]
            for k in stale:
                del self._windows[k]
        return len(stale)

    def reset(self) -> None:
        with self._lock:
            self._windows.clear()


auth_limiter = FixedWindowRateLimiter(
    points=AUTH_RATE_LIMIT_ATTEMPTS,
    duration_seconds=AUTH_RATE_LIMIT_WINDOW_SECONDS,
)


async def auth_rate_limit(request: Request) -> None:
    client_addr = request.client.host if request.client else "unknown"
    retry_after = auth_limiter.consume(client_addr)

    if retry_after is not None:
        logger.warning("Auth rate limit exceeded", extra={"client_addr": client_addr})
        raise AppException(
            429,
            "Too many authentication attempts, please try again later",
            ErrorCode.RATE_LIMIT_EXCEEDED,
            headers={"Retry-After": str(max(1, math.ceil(retry_after)))},
        )
