"""Timing modes describing how a scheduler is driven."""

from dataclasses import dataclass, field
from enum import Enum
from typing import Any

from crontinject.exceptions import ConfigError
from crontinject.scheduler.cron import CronSchedule
from crontinject.scheduler.rules import CompiledRule, compile_rule

# Largest interval, in seconds, that still fits a 32-bit millisecond timer
MAX_INTERVAL_SECONDS = 2_147_483


class ModeType(Enum):
    """Type of timing mode."""
    INTERVAL = "interval"
    CRON = "cron"
    RULE = "rule"
    ONCE = "once"


@dataclass(frozen=True)
class IntervalMode:
    """Fire every ``seconds`` seconds."""

    seconds: float
    type: ModeType = field(default=ModeType.INTERVAL, init=False)


@dataclass(frozen=True)
class CronMode:
    """Fire whenever the cron expression matches."""

    expression: str
    type: ModeType = field(default=ModeType.CRON, init=False)


@dataclass(frozen=True)
class RuleMode:
    """Fire according to a named rule method and its positional arguments."""

    method: str
    args: tuple = ()
    type: ModeType = field(default=ModeType.RULE, init=False)


@dataclass(frozen=True)
class OnceMode:
    """Fire a single time after ``delay`` seconds."""

    delay: float
    type: ModeType = field(default=ModeType.ONCE, init=False)


TimingMode = IntervalMode | CronMode | RuleMode | OnceMode
RecurringMode = IntervalMode | CronMode | RuleMode


def _is_set(value: Any) -> bool:
    return value is not None and value != ""


def resolve_timing_mode(
    repeat: float | str | None = None,
    crontab: str | None = None,
    rule_method: str | None = None,
    rule_args: Any = None,
) -> RecurringMode | None:
    """Pick the recurring mode from raw configuration fields.

    Priority is interval, then cron, then rule. Values that are empty or
    zero count as "not configured". Nothing is validated here; invalid
    values are rejected when the mode is compiled.
    """
    if _is_set(repeat):
        try:
            seconds = float(repeat)
        except (TypeError, ValueError):
            return IntervalMode(seconds=repeat)
        if seconds != 0:
            return IntervalMode(seconds=seconds)

    if _is_set(crontab):
        return CronMode(expression=crontab)

    if _is_set(rule_method):
        if isinstance(rule_args, list):
            rule_args = tuple(rule_args)
        return RuleMode(method=rule_method, args=rule_args if rule_args is not None else ())

    return None


def validate_interval(seconds: float, cap: float = MAX_INTERVAL_SECONDS) -> float:
    """Check an interval against the millisecond-timer ceiling.

    Raises:
        ConfigError: If the interval is not positive or exceeds ``cap``
    """
    if isinstance(seconds, bool) or not isinstance(seconds, (int, float)):
        raise ConfigError(f"Interval must be a number, got {seconds!r}")

    if seconds != seconds or seconds <= 0:
        raise ConfigError(f"Interval must be positive, got {seconds}")

    if seconds > cap:
        raise ConfigError("Interval too large")

    return seconds


def compile_mode(mode: RecurringMode, cap: float = MAX_INTERVAL_SECONDS) -> CronSchedule | CompiledRule | float:
    """Validate and compile a recurring mode.

    Returns:
        Interval seconds, a CronSchedule, or a CompiledRule

    Raises:
        ConfigError: If the mode is invalid or cannot be compiled
    """
    if isinstance(mode, IntervalMode):
        return validate_interval(mode.seconds, cap)

    if isinstance(mode, CronMode):
        return CronSchedule(mode.expression)

    if isinstance(mode, RuleMode):
        args = list(mode.args) if isinstance(mode.args, tuple) else mode.args
        return compile_rule(mode.method, args)

    raise ConfigError(f"{type(mode).__name__} is not a recurring mode")
