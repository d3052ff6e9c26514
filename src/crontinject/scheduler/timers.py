"""Timer primitives used by the scheduler.

The scheduler never sleeps itself. It asks a ``Clock`` for delayed
callbacks and cancels the returned handles on stop. ``LoopClock`` maps
this onto ``asyncio`` (``loop.call_later``); tests substitute a clock that
advances simulated time.
"""

import asyncio
import logging
from datetime import datetime
from typing import Callable, Protocol

from crontinject.scheduler.cron import CronSchedule

logger = logging.getLogger(__name__)


class TimerHandle(Protocol):
    def cancel(self) -> None: ...


class Clock(Protocol):
    """Source of time and delayed callbacks."""

    def time(self) -> float:
        """Monotonic time in seconds."""
        ...

    def now(self) -> datetime:
        """Current local wall-clock time."""
        ...

    def call_later(self, delay: float, callback: Callable[[], None]) -> TimerHandle:
        ...


class LoopClock:
    """Clock backed by an asyncio event loop.

    Args:
        loop: Event loop to schedule on (defaults to the running loop at
            the time of the first call)
    """

    def __init__(self, loop: asyncio.AbstractEventLoop | None = None):
        self._loop = loop

    @property
    def loop(self) -> asyncio.AbstractEventLoop:
        if self._loop is None:
            self._loop = asyncio.get_running_loop()
        return self._loop

    def time(self) -> float:
        return self.loop.time()

    def now(self) -> datetime:
        return datetime.now()

    def call_later(self, delay: float, callback: Callable[[], None]) -> asyncio.TimerHandle:
        return self.loop.call_later(delay, callback)


class IntervalTimer:
    """Repeating timer firing every ``interval`` seconds.

    Deadlines are computed from the first arming time so that callback
    latency does not accumulate.
    """

    def __init__(self, clock: Clock, interval: float, callback: Callable[[], None]):
        self.clock = clock
        self.interval = interval
        self.callback = callback
        self._handle: TimerHandle | None = None
        self._deadline: float | None = None

    def start(self) -> None:
        if self._handle is not None:
            return

        self._deadline = self.clock.time() + self.interval
        self._handle = self.clock.call_later(self.interval, self._tick)

    def _tick(self) -> None:
        self._deadline += self.interval
        delay = max(0.0, self._deadline - self.clock.time())
        self._handle = self.clock.call_later(delay, self._tick)
        self.callback()

    def cancel(self) -> None:
        if self._handle is not None:
            self._handle.cancel()
            self._handle = None

    @property
    def is_active(self) -> bool:
        return self._handle is not None


class CronTimer:
    """Timer firing at each match of a cron schedule.

    The callback receives the datetime the tick was scheduled for.
    """

    def __init__(self, clock: Clock, schedule: CronSchedule, callback: Callable[[datetime], None]):
        self.clock = clock
        self.schedule = schedule
        self.callback = callback
        self._handle: TimerHandle | None = None
        self._target: datetime | None = None

    def start(self) -> None:
        if self._handle is not None:
            return
        self._arm(self.clock.now())

    def _arm(self, after: datetime) -> None:
        self._target = self.schedule.next_fire(after)
        delay = max(0.0, (self._target - self.clock.now()).total_seconds())
        logger.debug(f"Cron '{self.schedule}' next fire at {self._target} (in {delay:.1f}s)")
        self._handle = self.clock.call_later(delay, self._tick)

    def _tick(self) -> None:
        target = self._target
        # Never re-arm for the same target if the wall clock lags the timer
        self._arm(max(self.clock.now(), target))
        self.callback(target)

    def cancel(self) -> None:
        if self._handle is not None:
            self._handle.cancel()
            self._handle = None

    @property
    def is_active(self) -> bool:
        return self._handle is not None

    @property
    def next_fire_at(self) -> datetime | None:
        return self._target if self._handle is not None else None
