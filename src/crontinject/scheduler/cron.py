"""Cron expression compiler backed by croniter.

Supports standard cron syntax, with an optional leading seconds field:
    - Minute (0-59)
    - Hour (0-23)
    - Day of month (1-31)
    - Month (1-12)
    - Day of week (0-7, where 0 and 7 are Sunday)
    - Second (0-59), only in the six-field form "S M H DoM Mon DoW"

Special characters:
    - * (any value)
    - , (value list separator)
    - - (range of values)
    - / (step values)

Examples:
    "*/5 * * * *" - Every 5 minutes
    "0 */2 * * *" - Every 2 hours
    "0 9 * * 1-5" - 9 AM on weekdays
    "0 0 1 * *" - First day of every month at midnight
    "30 */5 * * * *" - Every 5 minutes, 30 seconds past the minute
"""

from datetime import datetime

from croniter import croniter

from crontinject.exceptions import ConfigError


class CronSchedule:
    """Compiled cron expression answering "when is the next fire"."""

    def __init__(self, expression: str):
        """Compile a cron expression.

        Args:
            expression: Cron expression string

        Raises:
            ConfigError: If the expression cannot be parsed
        """
        if not isinstance(expression, str) or not expression.strip():
            raise ConfigError("Cron expression must be a non-empty string")

        self.expression = expression.strip()

        try:
            # Parse eagerly so malformed expressions fail at configuration time
            croniter(self.expression, datetime(2000, 1, 1), second_at_beginning=True)
        except (ValueError, KeyError) as e:
            raise ConfigError(f"Invalid cron expression '{expression}': {e}") from e

    def next_fire(self, after: datetime | None = None) -> datetime:
        """Calculate the next fire time strictly after the given datetime.

        Args:
            after: Starting datetime (defaults to now)

        Returns:
            Next datetime matching the cron expression
        """
        if after is None:
            after = datetime.now()

        return croniter(self.expression, after, second_at_beginning=True).get_next(datetime)

    def next_dates(self, count: int, after: datetime | None = None) -> list[datetime]:
        """Calculate the next ``count`` fire times after the given datetime."""
        if after is None:
            after = datetime.now()

        itr = croniter(self.expression, after, second_at_beginning=True)
        return [itr.get_next(datetime) for _ in range(count)]

    def __str__(self) -> str:
        return self.expression

    def __repr__(self) -> str:
        return f"CronSchedule('{self.expression}')"
