"""Token bucket admission gate for outbound Govee API traffic."""

from __future__ import annotations

import asyncio
import time
from typing import Awaitable, Callable, Optional

from .logging import get_logger
from .metrics import record_rate_limit_wait, set_rate_limit_tokens

Clock = Callable[[], float]
Sleep = Callable[[float], Awaitable[None]]

DEFAULT_POLL_INTERVAL = 0.05


class TokenBucketLimiter:
    """Lazily refilled token bucket shared by every gateway operation.

    Capacity and refill rate both derive from ``rps``. Refill is computed as
    "read elapsed, then update" without a lock, so concurrent waiters may
    over-admit slightly; the bound is an average rate, not a hard cap.
    """

    def __init__(
        self,
        rps: float = 5.0,
        *,
        clock: Optional[Clock] = None,
        sleep: Optional[Sleep] = None,
        poll_interval: float = DEFAULT_POLL_INTERVAL,
    ) -> None:
        if rps <= 0:
            raise ValueError(f"rps must be positive; got {rps}.")
        self.rps = float(rps)
        self.capacity = max(1.0, self.rps)
        self.poll_interval = poll_interval
        self._clock = clock or time.monotonic
        self._sleep = sleep or asyncio.sleep
        self._tokens = self.capacity
        self._last = self._clock()
        self.logger = get_logger("govee.rate_limit")
        set_rate_limit_tokens(self._tokens)

    @property
    def tokens(self) -> float:
        return self._tokens

    def _refill(self) -> None:
        now = self._clock()
        elapsed = max(0.0, now - self._last)
        self._last = now
        self._tokens = min(self.capacity, self._tokens + elapsed * self.rps)

    async def admit(self) -> None:
        """Suspend until one token is available, then consume it."""

        waited = False
        while True:
            self._refill()
            if self._tokens >= 1.0:
                self._tokens -= 1.0
                set_rate_limit_tokens(self._tokens)
                return
            if not waited:
                waited = True
                record_rate_limit_wait()
                self.logger.debug(
                    "Rate limit exceeded; waiting for a token",
                    extra={"tokens": round(self._tokens, 3), "rps": self.rps},
                )
            await self._sleep(self.poll_interval)
