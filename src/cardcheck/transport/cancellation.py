"""Explicit cancellation for outbound requests.

A ``CancelToken`` is created once per validation and passed down to every
network call. Cancelling it aborts in-flight requests, which then surface as
``NETWORK_CANCELLED`` instead of raising out of the engine.
"""

from __future__ import annotations

import asyncio
import time
from typing import Callable


class CancelToken:
    """Cancellation flag with an optional absolute deadline.

    Example:
        >>> token = CancelToken()
        >>> token.cancelled
        False
        >>> token.cancel()
        >>> token.cancelled
        True
    """

    def __init__(
        self,
        deadline: float | None = None,
        *,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        """Initialize the token.

        Args:
            deadline: Absolute time (on ``clock``) after which the token counts
                as cancelled. None means no deadline.
            clock: Monotonic clock used for the deadline.
        """
        self._event = asyncio.Event()
        self._deadline = deadline
        self._clock = clock

    @classmethod
    def with_timeout(
        cls, seconds: float, *, clock: Callable[[], float] = time.monotonic
    ) -> CancelToken:
        return cls(clock() + seconds, clock=clock)

    def cancel(self) -> None:
        self._event.set()

    @property
    def cancelled(self) -> bool:
        if self._event.is_set():
            return True
        return self._deadline is not None and self._clock() >= self._deadline

    def remaining(self) -> float | None:
        """Seconds left before the deadline (never negative), or None without one."""
        if self._deadline is None:
            return None
        return max(0.0, self._deadline - self._clock())

    async def wait(self) -> None:
        """Block until ``cancel()`` is called."""
        await self._event.wait()
