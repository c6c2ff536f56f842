"""Countdown state machine for a generated PIX instrument.

`tick(now)` is the only place that moves `ACTIVE` to `EXPIRED`; `run()` just
calls it once per tick interval until the instrument leaves `ACTIVE` or the
task is cancelled.
"""

import asyncio
import logging
import math
from datetime import datetime, timedelta, timezone
from typing import Awaitable, Callable

from pixlink.common.state_machine import ACTIVE, ERRORED, EXPIRED, PENDING, validate_transition

Clock = Callable[[], datetime]
DEFAULT_FALLBACK_WINDOW_SECONDS = 600
TICK_INTERVAL_SECONDS = 1.0

logger = logging.getLogger("pixlink.expiry")


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


def format_remaining(seconds: int) -> str:
    """Render remaining time as `MM:SS`, or `H:MM:SS` from one hour up."""

    seconds = max(0, seconds)
    hours, rest = divmod(seconds, 3600)
    minutes, seconds = divmod(rest, 60)
    if hours:
        return f"{hours}:{minutes:02d}:{seconds:02d}"
    return f"{minutes:02d}:{seconds:02d}"


class ExpiryController:
    """Tracks PENDING -> ACTIVE -> EXPIRED, or PENDING -> ERRORED."""

    def __init__(
        self,
        clock: Clock = utc_now,
        fallback_window_seconds: int = DEFAULT_FALLBACK_WINDOW_SECONDS,
        tick_interval_seconds: float = TICK_INTERVAL_SECONDS,
    ) -> None:
        self.clock = clock
        self.fallback_window_seconds = fallback_window_seconds
        self.tick_interval_seconds = tick_interval_seconds
        self.state = PENDING
        self.pay_code: str | None = None
        self.expires_at: datetime | None = None
        self.remaining_seconds = 0
        self.error: str | None = None

    def _move(self, new_state: str) -> None:
        validate_transition(self.state, new_state)
        logger.info("pix instrument state %s -> %s", self.state, new_state)
        self.state = new_state

    def activate(self, pay_code: str, expires_at: datetime | None = None) -> None:
        """Enter ACTIVE once the gateway returned a pay code."""

        if not pay_code:
            raise ValueError("pay_code is required to activate the instrument")
        now = self.clock()
        if expires_at is None:
            expires_at = now + timedelta(seconds=self.fallback_window_seconds)
        elif expires_at.tzinfo is None:
            expires_at = expires_at.replace(tzinfo=timezone.utc)
        self._move(ACTIVE)
        self.pay_code = pay_code
        self.expires_at = expires_at
        self.tick(now)

    def fail(self, reason: str) -> None:
        """Enter ERRORED after a failed generation attempt."""

        self._move(ERRORED)
        self.error = reason

    def tick(self, now: datetime | None = None) -> int:
        """Recompute remaining whole seconds; expire when nothing is left."""

        if self.state != ACTIVE:
            return self.remaining_seconds
        now = now or self.clock()
        left = (self.expires_at - now).total_seconds()
        if left <= 0:
            self.remaining_seconds = 0
            self._move(EXPIRED)
            return 0
        self.remaining_seconds = math.ceil(left)
        return self.remaining_seconds

    @property
    def display(self) -> str:
        return format_remaining(self.remaining_seconds)

    async def run(self, on_tick: Callable[["ExpiryController"], Awaitable[None] | None] | None = None) -> str:
        """Drive `tick` at the fixed interval until the instrument leaves ACTIVE.

        Cancelling the task stops the countdown; the state stays where it was.
        """

        while self.state == ACTIVE:
            self.tick()
            if on_tick is not None:
                result = on_tick(self)
                if asyncio.iscoroutine(result):
                    await result
            if self.state != ACTIVE:
                break
            await asyncio.sleep(self.tick_interval_seconds)
        return self.state
