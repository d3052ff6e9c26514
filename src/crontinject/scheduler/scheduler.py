"""Scheduler deciding when an inject node fires."""

import logging
import threading
from datetime import datetime, timedelta
from enum import Enum
from typing import Any, Callable

from crontinject.exceptions import ConfigError, PreviewError
from crontinject.scheduler.cron import CronSchedule
from crontinject.scheduler.modes import (
    MAX_INTERVAL_SECONDS,
    OnceMode,
    RecurringMode,
    TimingMode,
    compile_mode,
)
from crontinject.scheduler.rules import CompiledRule
from crontinject.scheduler.timers import Clock, CronTimer, IntervalTimer, LoopClock, TimerHandle

logger = logging.getLogger("crontinject.scheduler")


class SchedulerStatus(Enum):
    """Lifecycle state of a scheduler."""
    IDLE = "idle"
    ARMED_ONCE = "armed_once"
    ARMED_RECURRING = "armed_recurring"
    STOPPED = "stopped"


class Scheduler:
    """Arms the timer for one timing mode and notifies its owner on each fire.

    Features:
        - Fixed interval, cron and named-rule recurring modes
        - Optional one-shot delay before the recurring mode is armed
        - Windowed rules that disarm themselves at the end of the window
        - Forced fires that leave timers untouched
        - Pure preview of upcoming fire dates

    Args:
        on_fire: Called once per fire (timer tick or forced)
        clock: Time source and timer factory (defaults to the asyncio loop)
        name: Label used in log messages
        interval_cap: Largest accepted interval in seconds

    Example:
        scheduler = Scheduler(on_fire=lambda: print("fire"))
        scheduler.configure(IntervalMode(seconds=5), once_delay=0.1)
        scheduler.start()
        ...
        scheduler.stop()
    """

    def __init__(
        self,
        on_fire: Callable[[], Any],
        clock: Clock | None = None,
        name: str | None = None,
        interval_cap: float = MAX_INTERVAL_SECONDS,
    ):
        self.on_fire = on_fire
        self.clock = clock or LoopClock()
        self.name = name or "scheduler"
        self.interval_cap = interval_cap
        self.mode: RecurringMode | None = None
        self.once_delay: float | None = None
        self.fire_count = 0
        self._compiled: float | CronSchedule | CompiledRule | None = None
        self._config_error: ConfigError | None = None
        self._status = SchedulerStatus.IDLE
        self._started = False
        self._once_handle: TimerHandle | None = None
        self._timer: IntervalTimer | CronTimer | None = None
        self._lock = threading.RLock()

    def configure(self, mode: TimingMode | None, once_delay: float | None = None) -> None:
        """Validate and compile the timing configuration.

        A ``OnceMode`` passed as ``mode`` configures a once-only scheduler.
        On failure the error is recorded and logged, and the scheduler stays
        inert: ``start()`` will not arm anything.

        Args:
            mode: Recurring mode to arm, or None for no recurring timer
            once_delay: Seconds before a single initial fire, or None

        Raises:
            ConfigError: If the interval is out of range, the once delay is
                negative, or the cron/rule expression does not compile
        """
        with self._lock:
            if self._started:
                raise ConfigError("Cannot reconfigure a started scheduler")

            self.mode = None
            self.once_delay = None
            self._compiled = None
            self._config_error = None

            try:
                if isinstance(mode, OnceMode):
                    if once_delay is None:
                        once_delay = mode.delay
                    mode = None

                if once_delay is not None:
                    once_delay = self._validate_once_delay(once_delay)

                compiled = compile_mode(mode, self.interval_cap) if mode is not None else None
            except ConfigError as e:
                self._config_error = e
                logger.error(f"[{self.name}] {e}")
                raise

            self.mode = mode
            self.once_delay = once_delay
            self._compiled = compiled

    @staticmethod
    def _validate_once_delay(delay: Any) -> float:
        if isinstance(delay, bool):
            raise ConfigError(f"Invalid once delay {delay!r}")
        try:
            delay = float(delay)
        except (TypeError, ValueError):
            raise ConfigError(f"Invalid once delay {delay!r}") from None
        if delay != delay or delay < 0:
            raise ConfigError(f"Once delay must be non-negative, got {delay}")
        return delay

    def start(self) -> None:
        """Arm the once timer, or the recurring timer when there is no delay."""
        with self._lock:
            if self._config_error is not None:
                logger.debug(f"[{self.name}] Not starting: configuration is invalid")
                return

            if self._started:
                return

            self._started = True

            if self.once_delay is not None:
                logger.debug(f"[{self.name}] once delay = {self.once_delay}s")
                self._once_handle = self.clock.call_later(self.once_delay, self._on_once)
                self._status = SchedulerStatus.ARMED_ONCE
            else:
                self._arm_recurring()

    def stop(self) -> None:
        """Cancel every outstanding timer. Safe to call in any state."""
        with self._lock:
            if not self._started:
                return

            self._release()
            if self._status != SchedulerStatus.STOPPED:
                logger.debug(f"[{self.name}] Stopped")
            self._status = SchedulerStatus.STOPPED

    def force_fire(self) -> None:
        """Fire once immediately without touching any timer."""
        self._emit()

    def preview(self, count: int, after: datetime | None = None) -> list[datetime]:
        """Preview the next fire dates of this scheduler's recurring mode."""
        return self.preview_next_dates(self.mode, count, after=after, interval_cap=self.interval_cap)

    @staticmethod
    def preview_next_dates(
        mode: TimingMode | None,
        count: int,
        after: datetime | None = None,
        interval_cap: float = MAX_INTERVAL_SECONDS,
    ) -> list[datetime]:
        """Compute the next ``count`` fire dates of a mode without scheduling.

        Windowed rules only yield dates inside their window, so fewer than
        ``count`` dates may be returned.

        Args:
            mode: Interval, cron or rule mode
            count: Number of dates wanted (must be positive)
            after: Reference time (defaults to now)

        Returns:
            List of upcoming fire datetimes

        Raises:
            PreviewError: If count is not positive or the mode cannot be compiled
        """
        if isinstance(count, bool) or not isinstance(count, int) or count <= 0:
            raise PreviewError(f"count must be a positive integer, got {count!r}")

        if mode is None or isinstance(mode, OnceMode):
            raise PreviewError("Only interval, cron and rule modes have upcoming dates")

        try:
            compiled = compile_mode(mode, interval_cap)
        except ConfigError as e:
            raise PreviewError(str(e)) from e

        if after is None:
            after = datetime.now()

        if isinstance(compiled, CronSchedule):
            return compiled.next_dates(count, after)

        if isinstance(compiled, CompiledRule):
            if compiled.window is None:
                return compiled.schedule.next_dates(count, after)

            window = compiled.window
            dates = []
            # Start just before the window so a fire exactly at its start counts
            cursor = max(after, window.start - timedelta(seconds=1))
            while len(dates) < count:
                cursor = compiled.schedule.next_fire(cursor)
                if cursor >= window.end:
                    break
                dates.append(cursor)
            return dates

        return [after + timedelta(seconds=compiled * n) for n in range(1, count + 1)]

    def _arm_recurring(self) -> None:
        compiled = self._compiled

        if compiled is None:
            self._status = SchedulerStatus.IDLE
            return

        if isinstance(compiled, CompiledRule):
            self._timer = CronTimer(self.clock, compiled.schedule, self._on_rule_tick)
        elif isinstance(compiled, CronSchedule):
            self._timer = CronTimer(self.clock, compiled, self._on_cron_tick)
        else:
            self._timer = IntervalTimer(self.clock, compiled, self._on_interval_tick)

        self._timer.start()
        self._status = SchedulerStatus.ARMED_RECURRING
        logger.debug(f"[{self.name}] Armed {self.status_text}")

    def _release(self) -> None:
        if self._once_handle is not None:
            self._once_handle.cancel()
            self._once_handle = None

        if self._timer is not None:
            self._timer.cancel()
            self._timer = None

    def _on_once(self) -> None:
        with self._lock:
            if self._status != SchedulerStatus.ARMED_ONCE:
                return
            self._once_handle = None

        self._emit()

        with self._lock:
            # The fire callback may have stopped us
            if self._status == SchedulerStatus.ARMED_ONCE:
                self._arm_recurring()

    def _on_interval_tick(self) -> None:
        if self._status == SchedulerStatus.ARMED_RECURRING:
            self._emit()

    def _on_cron_tick(self, scheduled_for: datetime) -> None:
        if self._status == SchedulerStatus.ARMED_RECURRING:
            self._emit()

    def _on_rule_tick(self, scheduled_for: datetime) -> None:
        with self._lock:
            if self._status != SchedulerStatus.ARMED_RECURRING:
                return

            window = self._compiled.window
            if window is not None:
                now = max(self.clock.now(), scheduled_for)
                if now >= window.end:
                    logger.info(f"[{self.name}] Rule window ended at {window.end}, disarming")
                    self._release()
                    self._status = SchedulerStatus.STOPPED
                    return
                if not window.contains(now):
                    logger.debug(f"[{self.name}] Tick before window start {window.start}, skipped")
                    return

        self._emit()

    def _emit(self) -> None:
        self.fire_count += 1
        logger.debug(f"[{self.name}] Fire #{self.fire_count}")
        try:
            self.on_fire()
        except Exception as e:
            logger.error(f"[{self.name}] Error in fire callback: {e}", exc_info=True)

    @property
    def status(self) -> SchedulerStatus:
        return self._status

    @property
    def status_text(self) -> str:
        """Human-readable description of the configured timing."""
        compiled = self._compiled

        if compiled is None:
            return "None"

        if isinstance(compiled, CompiledRule):
            if compiled.window is not None:
                return f"{compiled.expression} | {compiled.window}"
            return compiled.expression

        if isinstance(compiled, CronSchedule):
            return compiled.expression

        millis = compiled * 1000
        return str(int(millis)) if float(millis).is_integer() else str(millis)

    @property
    def config_error(self) -> ConfigError | None:
        return self._config_error

    @property
    def is_armed(self) -> bool:
        return self._status in (SchedulerStatus.ARMED_ONCE, SchedulerStatus.ARMED_RECURRING)
