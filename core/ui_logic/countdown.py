"""
Cancellable asyncio countdown.

Counts whole units down to zero, reporting each tick and firing an
expiry callback exactly once. Used for the round timer and the
power-up cooldown. No UI framework dependencies.
"""
import asyncio
import logging
from typing import Callable, Optional

logger = logging.getLogger(__name__)

TickCallback = Callable[[int], None]
ExpireCallback = Callable[[], None]


class Countdown:
    """
    Countdown from ``units`` to zero, one unit every ``interval`` seconds.

    After ``cancel()`` no tick or expiry callback is delivered, even if
    the sleep for the next tick has already completed.
    """

    def __init__(
        self,
        units: int,
        *,
        interval: float = 1.0,
        on_tick: Optional[TickCallback] = None,
        on_expire: Optional[ExpireCallback] = None,
        name: str = "countdown",
    ) -> None:
        """
        Args:
            units: Starting value
            interval: Seconds per unit
            on_tick: Called with the remaining value after each decrement
            on_expire: Called once when the value reaches zero
            name: Label used in log messages
        """
        if units < 0:
            raise ValueError(f"Countdown units must be >= 0, got {units}")
        self.remaining = units
        self.interval = interval
        self.name = name
        self._on_tick = on_tick
        self._on_expire = on_expire
        self._task: Optional[asyncio.Task] = None
        self._cancelled = False
        self._expired = False

    def start(self) -> None:
        """Start counting on the running event loop."""
        if self._task is not None:
            raise RuntimeError(f"{self.name} already started")
        self._task = asyncio.get_running_loop().create_task(self._run(), name=self.name)

    def cancel(self) -> None:
        """Stop the countdown; safe to call more than once."""
        self._cancelled = True
        if self._task is not None and not self._task.done():
            self._task.cancel()

    @property
    def running(self) -> bool:
        return self._task is not None and not self._task.done() and not self._cancelled

    @property
    def expired(self) -> bool:
        return self._expired

    async def _run(self) -> None:
        while self.remaining > 0:
            await asyncio.sleep(self.interval)
            if self._cancelled:
                return
            self.remaining -= 1
            if self._on_tick:
                self._on_tick(self.remaining)
            # a tick callback may cancel us
            if self._cancelled:
                return
        self._fire_expiry()

    def _fire_expiry(self) -> None:
        if self._expired or self._cancelled:
            return
        self._expired = True
        logger.debug("%s expired", self.name)
        if self._on_expire:
            self._on_expire()
