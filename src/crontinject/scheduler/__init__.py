"""Timing engine for crontinject.

Decides when an inject node fires: fixed intervals, cron expressions,
named rules (optionally bounded by a start/end window) and a one-shot
delay that can precede any of them.

Example:
    from crontinject.scheduler import Scheduler, IntervalMode

    scheduler = Scheduler(on_fire=handle_fire)
    scheduler.configure(IntervalMode(seconds=30), once_delay=0.1)
    scheduler.start()

    # Preview without scheduling anything
    Scheduler.preview_next_dates(RuleMode("onTime", ("09:00",)), count=5)
"""

from crontinject.scheduler.scheduler import Scheduler, SchedulerStatus
from crontinject.scheduler.modes import (
    MAX_INTERVAL_SECONDS,
    CronMode,
    IntervalMode,
    ModeType,
    OnceMode,
    RuleMode,
    resolve_timing_mode,
)
from crontinject.scheduler.cron import CronSchedule
from crontinject.scheduler.rules import CompiledRule, RuleWindow, compile_rule
from crontinject.scheduler.timers import Clock, LoopClock

__all__ = [
    "Scheduler",
    "SchedulerStatus",
    "MAX_INTERVAL_SECONDS",
    "CronMode",
    "IntervalMode",
    "ModeType",
    "OnceMode",
    "RuleMode",
    "resolve_timing_mode",
    "CronSchedule",
    "CompiledRule",
    "RuleWindow",
    "compile_rule",
    "Clock",
    "LoopClock",
]
