"""Named recurring rules compiled to cron expressions.

A rule is a method name plus positional JSON-compatible arguments. Each
method turns its arguments into a cron expression; ``onIntervalTime`` also
carries a start/end window that the scheduler enforces on every tick.

Methods:
    everyNMinutes(n)                 - "*/n * * * *"
    everyNHours(n, minute=0)         - "minute */n * * *"
    onTime("HH:MM")                  - every day at HH:MM
    everyNthDay(n, "HH:MM")          - every nth day of the month at HH:MM
    onWeekDays([0, 1, ...], "HH:MM") - on the given weekdays (0 = Sunday)
    onMonthDay(day, "HH:MM")         - on a day of the month at HH:MM
    onIntervalTime(start, end, "HH:MM"?) - daily within [start, end)
    cron(expression)                 - a raw cron expression

Example:
    rule = compile_rule("everyNthDay", [2, "09:30"])
    rule.expression  # "30 9 */2 * *"
"""

import json
from dataclasses import dataclass
from datetime import datetime
from typing import Any, Callable

from crontinject.exceptions import ConfigError, InvalidRuleError
from crontinject.scheduler.cron import CronSchedule

WINDOWED_METHOD = "onIntervalTime"


@dataclass(frozen=True)
class RuleWindow:
    """Half-open ``[start, end)`` interval in which a rule may fire."""

    start: datetime
    end: datetime

    def contains(self, moment: datetime) -> bool:
        return self.start <= moment < self.end

    def __str__(self) -> str:
        return f"ST:{self.start.isoformat(sep=' ')} | ET:{self.end.isoformat(sep=' ')}"


@dataclass(frozen=True)
class CompiledRule:
    method: str
    expression: str
    schedule: CronSchedule
    window: RuleWindow | None = None


def _parse_time(method: str, value: Any) -> tuple[int, int]:
    if not isinstance(value, str):
        raise InvalidRuleError(method, f"time must be a 'HH:MM' string, got {value!r}")

    parts = value.strip().split(":")
    if len(parts) not in (2, 3):
        raise InvalidRuleError(method, f"time must be 'HH:MM', got {value!r}")

    try:
        hour, minute = int(parts[0]), int(parts[1])
    except ValueError:
        raise InvalidRuleError(method, f"time must be 'HH:MM', got {value!r}") from None

    if not (0 <= hour <= 23 and 0 <= minute <= 59):
        raise InvalidRuleError(method, f"time out of range: {value!r}")

    return hour, minute


def _parse_int(method: str, value: Any, low: int, high: int, label: str) -> int:
    if isinstance(value, bool) or not isinstance(value, (int, float, str)):
        raise InvalidRuleError(method, f"{label} must be a number, got {value!r}")

    try:
        number = int(value)
    except (ValueError, OverflowError):
        raise InvalidRuleError(method, f"{label} must be a number, got {value!r}") from None

    if number != float(value) or not (low <= number <= high):
        raise InvalidRuleError(method, f"{label} must be an integer in [{low}, {high}], got {value!r}")

    return number


def parse_timestamp(method: str, value: Any) -> datetime:
    """Parse an ISO-8601 string or epoch milliseconds into a naive local datetime."""
    if isinstance(value, bool):
        raise InvalidRuleError(method, f"invalid date {value!r}")

    if isinstance(value, (int, float)):
        try:
            return datetime.fromtimestamp(value / 1000)
        except (OverflowError, OSError, ValueError) as e:
            raise InvalidRuleError(method, f"invalid date {value!r}: {e}") from e

    if isinstance(value, str):
        text = value.strip()
        if text.endswith("Z"):
            text = text[:-1] + "+00:00"
        try:
            moment = datetime.fromisoformat(text)
        except ValueError:
            raise InvalidRuleError(method, f"invalid date {value!r}") from None
        if moment.tzinfo is not None:
            moment = moment.astimezone().replace(tzinfo=None)
        return moment

    raise InvalidRuleError(method, f"invalid date {value!r}")


def _expect(method: str, args: list, minimum: int, maximum: int) -> None:
    if not (minimum <= len(args) <= maximum):
        if minimum == maximum:
            expected = str(minimum)
        else:
            expected = f"{minimum} to {maximum}"
        raise InvalidRuleError(method, f"expected {expected} arguments, got {len(args)}")


def _every_n_minutes(method: str, args: list) -> tuple[str, None]:
    _expect(method, args, 1, 1)
    n = _parse_int(method, args[0], 1, 59, "n")
    return f"*/{n} * * * *", None


def _every_n_hours(method: str, args: list) -> tuple[str, None]:
    _expect(method, args, 1, 2)
    n = _parse_int(method, args[0], 1, 23, "n")
    minute = _parse_int(method, args[1], 0, 59, "minute") if len(args) > 1 else 0
    return f"{minute} */{n} * * *", None


def _on_time(method: str, args: list) -> tuple[str, None]:
    _expect(method, args, 1, 1)
    hour, minute = _parse_time(method, args[0])
    return f"{minute} {hour} * * *", None


def _every_nth_day(method: str, args: list) -> tuple[str, None]:
    _expect(method, args, 2, 2)
    n = _parse_int(method, args[0], 1, 31, "n")
    hour, minute = _parse_time(method, args[1])
    return f"{minute} {hour} */{n} * *", None


def _on_week_days(method: str, args: list) -> tuple[str, None]:
    _expect(method, args, 2, 2)
    days = args[0]
    if not isinstance(days, list) or not days:
        raise InvalidRuleError(method, "weekdays must be a non-empty list")
    weekdays = sorted({_parse_int(method, day, 0, 6, "weekday") for day in days})
    hour, minute = _parse_time(method, args[1])
    return f"{minute} {hour} * * {','.join(str(day) for day in weekdays)}", None


def _on_month_day(method: str, args: list) -> tuple[str, None]:
    _expect(method, args, 2, 2)
    day = _parse_int(method, args[0], 1, 31, "day")
    hour, minute = _parse_time(method, args[1])
    return f"{minute} {hour} {day} * *", None


def _on_interval_time(method: str, args: list) -> tuple[str, RuleWindow]:
    _expect(method, args, 2, 3)
    start = parse_timestamp(method, args[0])
    end = parse_timestamp(method, args[1])
    if start >= end:
        raise InvalidRuleError(method, "start must be before end")

    if len(args) > 2 and args[2] is not None:
        hour, minute = _parse_time(method, args[2])
    else:
        hour, minute = start.hour, start.minute

    return f"{minute} {hour} * * *", RuleWindow(start=start, end=end)


def _raw_cron(method: str, args: list) -> tuple[str, None]:
    _expect(method, args, 1, 1)
    if not isinstance(args[0], str):
        raise InvalidRuleError(method, "expression must be a string")
    return args[0], None


RULE_METHODS: dict[str, Callable[[str, list], tuple[str, RuleWindow | None]]] = {
    "everyNMinutes": _every_n_minutes,
    "everyNHours": _every_n_hours,
    "onTime": _on_time,
    "everyNthDay": _every_nth_day,
    "onWeekDays": _on_week_days,
    "onMonthDay": _on_month_day,
    WINDOWED_METHOD: _on_interval_time,
    "cron": _raw_cron,
}


def parse_rule_args(method: str, args: Any) -> list:
    """Normalize rule arguments given as a list or as a JSON-encoded list."""
    if args is None:
        return []

    if isinstance(args, str):
        try:
            args = json.loads(args) if args.strip() else []
        except json.JSONDecodeError as e:
            raise InvalidRuleError(method, f"arguments are not valid JSON: {e}") from e

    if isinstance(args, tuple):
        args = list(args)

    if not isinstance(args, list):
        raise InvalidRuleError(method, "arguments must be a list")

    return args


def compile_rule(method: str, args: Any) -> CompiledRule:
    """Compile a named rule into a cron schedule.

    Args:
        method: Rule method name (see module docstring)
        args: Positional arguments, as a list or a JSON-encoded list

    Returns:
        CompiledRule with the cron expression and optional window

    Raises:
        InvalidRuleError: If the method is unknown or the arguments are invalid
    """
    builder = RULE_METHODS.get(method)
    if builder is None:
        raise InvalidRuleError(method, "unknown method")

    expression, window = builder(method, parse_rule_args(method, args))

    try:
        schedule = CronSchedule(expression)
    except ConfigError as e:
        raise InvalidRuleError(method, str(e)) from e

    return CompiledRule(method=method, expression=expression, schedule=schedule, window=window)
