"""Tests for the croniter-backed cron compiler."""

import pytest
from datetime import datetime
from crontinject.exceptions import ConfigError
from crontinject.scheduler.cron import CronSchedule


class TestCronScheduleParsing:
    """Test cron expression compilation."""

    def test_accepts_standard_expression(self):
        """Test a five-field expression compiles."""
        cron = CronSchedule("*/15 9-17 * * 1-5")
        assert cron.expression == "*/15 9-17 * * 1-5"

    def test_strips_whitespace(self):
        """Test surrounding whitespace is ignored."""
        cron = CronSchedule("  0 9 * * *  ")
        assert cron.expression == "0 9 * * *"

    def test_invalid_field_count(self):
        """Test error on invalid field count."""
        with pytest.raises(ConfigError, match="Invalid cron expression"):
            CronSchedule("* * *")

    def test_invalid_value(self):
        """Test error on out-of-range value."""
        with pytest.raises(ConfigError):
            CronSchedule("61 * * * *")

    def test_empty_expression(self):
        """Test error on empty expression."""
        with pytest.raises(ConfigError, match="non-empty"):
            CronSchedule("   ")

    def test_non_string_expression(self):
        """Test error on non-string expression."""
        with pytest.raises(ConfigError):
            CronSchedule(None)


class TestCronScheduleNextFire:
    """Test calculating next fire times."""

    def test_next_fire_simple(self):
        """Test next fire later the same day."""
        cron = CronSchedule("30 9 * * *")
        next_run = cron.next_fire(datetime(2024, 6, 15, 8, 0))

        assert next_run == datetime(2024, 6, 15, 9, 30)

    def test_next_fire_next_day(self):
        """Test next fire on next day when time has passed."""
        cron = CronSchedule("30 9 * * *")
        next_run = cron.next_fire(datetime(2024, 6, 15, 10, 0))

        assert next_run == datetime(2024, 6, 16, 9, 30)

    def test_next_fire_is_strictly_after(self):
        """Test a matching reference time is not returned again."""
        cron = CronSchedule("30 9 * * *")
        next_run = cron.next_fire(datetime(2024, 6, 15, 9, 30))

        assert next_run == datetime(2024, 6, 16, 9, 30)

    def test_next_fire_every_5_minutes(self):
        """Test next fire for every 5 minutes."""
        cron = CronSchedule("*/5 * * * *")
        next_run = cron.next_fire(datetime(2024, 6, 15, 10, 12))

        assert next_run == datetime(2024, 6, 15, 10, 15)

    def test_six_fields_lead_with_seconds(self):
        """Test the first of six fields is the seconds field."""
        cron = CronSchedule("30 */5 * * * *")
        next_run = cron.next_fire(datetime(2024, 6, 15, 10, 1))

        assert next_run == datetime(2024, 6, 15, 10, 5, 30)

    def test_next_fire_defaults_to_now(self):
        """Test next fire defaults to current time."""
        cron = CronSchedule("* * * * *")
        next_run = cron.next_fire()

        assert 0 < (next_run - datetime.now()).total_seconds() <= 61

    def test_next_dates(self):
        """Test computing several upcoming dates."""
        cron = CronSchedule("0 */6 * * *")
        dates = cron.next_dates(3, datetime(2024, 6, 15, 1, 0))

        assert dates == [
            datetime(2024, 6, 15, 6, 0),
            datetime(2024, 6, 15, 12, 0),
            datetime(2024, 6, 15, 18, 0),
        ]


class TestCronScheduleString:
    """Test string representations."""

    def test_str(self):
        expr = "0 9 * * 1-5"
        assert str(CronSchedule(expr)) == expr

    def test_repr(self):
        expr = "0 9 * * 1-5"
        assert repr(CronSchedule(expr)) == f"CronSchedule('{expr}')"
