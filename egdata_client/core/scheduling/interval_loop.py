"""
Core - Interval Loop

Repeating timer whose period is re-read from settings on every tick and
that can be woken early when the setting changes.
"""
import asyncio
from typing import Awaitable, Callable, Optional
from loguru import logger

from ..errors import LockError
from ..messaging import Notifier, MsgTopic


class IntervalTimer:
    """
    Fixed-rate timer.

    The first tick of a fresh timer fires immediately; a rebuilt timer
    (fire_immediately=False) waits one full period first. Missed ticks
    are not replayed.
    """

    def __init__(self, period: float, fire_immediately: bool = True):
        self.period = period
        now = asyncio.get_running_loop().time()
        self._deadline = now if fire_immediately else now + period

    async def wait(self, interrupt: Optional[asyncio.Event] = None) -> bool:
        """
        Sleep until the next tick.

        Returns:
            True when the tick is due, False when `interrupt` was set while
            the tick was still in the future
        """
        loop = asyncio.get_running_loop()
        delay = max(0.0, self._deadline - loop.time())

        woken = False
        if interrupt is None:
            await asyncio.sleep(delay)
        else:
            try:
                await asyncio.wait_for(interrupt.wait(), timeout=delay)
                woken = True
            except asyncio.TimeoutError:
                pass

        now = loop.time()
        if woken and now < self._deadline:
            return False
        self._deadline += self.period
        if self._deadline <= now:
            self._deadline = now + self.period
        return True


class IntervalLoop:
    """
    Unbounded loop running `action` every `interval` units.

    Each tick re-reads the interval; when it differs from the one the
    timer was built with, the timer is rebuilt and a notification is
    emitted. The tick that noticed the change still runs the action.
    `request_reconfigure()` wakes a sleeping loop so a new interval takes
    effect without waiting out the old one. A wake-up runs the action only
    when the old tick was already due, e.g. the request arrived while the
    previous action was still running.
    """

    def __init__(
        self,
        name: str,
        interval_getter: Callable[[], int],
        action: Callable[[], Awaitable],
        seconds_per_unit: float = 60.0,
        unit_label: str = "minutes",
        notifier: Optional[Notifier] = None
    ):
        """
        Args:
            name: Label used in notifications ("Scan", "Upload")
            interval_getter: Returns the current interval in units
            action: Coroutine function run on every tick
            seconds_per_unit: Length of one interval unit
            unit_label: Unit name used in notifications
            notifier: Sink for interval-change and failure notifications
        """
        self.name = name
        self.interval_getter = interval_getter
        self.action = action
        self.seconds_per_unit = seconds_per_unit
        self.unit_label = unit_label
        self.notifier = notifier or Notifier()
        self.fire_count = 0
        self.current_interval: Optional[int] = None
        self._reconfigure = asyncio.Event()
        self._loop: Optional[asyncio.AbstractEventLoop] = None

    def request_reconfigure(self) -> None:
        """Wake the loop to re-read its interval. Safe from any thread."""
        if self._loop is None or self._loop.is_closed():
            return
        self._loop.call_soon_threadsafe(self._reconfigure.set)

    async def run(self) -> None:
        """Run until cancelled."""
        self._loop = asyncio.get_running_loop()
        self.current_interval = self._read_interval(fallback=1)
        timer = IntervalTimer(self._seconds(self.current_interval), fire_immediately=True)
        logger.info(f"{self.name} loop started (every {self.current_interval} {self.unit_label})")

        while True:
            fired = await timer.wait(self._reconfigure)
            self._reconfigure.clear()

            new_interval = self._read_interval(fallback=self.current_interval)
            if new_interval != self.current_interval:
                self.current_interval = new_interval
                timer = IntervalTimer(self._seconds(new_interval), fire_immediately=False)
                self.notifier.info(
                    f"{self.name} interval updated to {new_interval} {self.unit_label}",
                    topic=MsgTopic.SCHEDULER.value,
                )

            if not fired:
                continue

            self.fire_count += 1
            try:
                await self.action()
            except asyncio.CancelledError:
                raise
            except Exception as e:
                logger.exception(f"Error in {self.name.lower()} loop: {e}")
                self.notifier.error(f"{self.name} cycle failed: {e}",
                                    topic=MsgTopic.SCHEDULER.value, exc=e)

    def _read_interval(self, fallback: int) -> int:
        try:
            value = int(self.interval_getter())
        except LockError as e:
            logger.error(f"{self.name} loop could not read its interval: {e}")
            return fallback
        return max(1, value)

    def _seconds(self, interval: int) -> float:
        return interval * self.seconds_per_unit
