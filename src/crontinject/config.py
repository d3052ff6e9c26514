import os
from dataclasses import dataclass, field
from typing import Any

from crontinject.properties import PropertySpec, coerce_specs, normalize_props
from crontinject.scheduler.modes import MAX_INTERVAL_SECONDS, RecurringMode, resolve_timing_mode


@dataclass
class Settings:
    interval_cap: float = MAX_INTERVAL_SECONDS
    default_once_delay: float = 0.1
    preview_count: int = 5

    def __post_init__(self):
        """Validate engine settings."""
        if self.interval_cap <= 0:
            raise ValueError("interval_cap must be positive")

        if self.default_once_delay < 0:
            raise ValueError("default_once_delay must be non-negative")

        if self.preview_count < 1:
            raise ValueError("preview_count must be at least 1")

    @classmethod
    def from_env(cls, prefix: str = "CRONTINJECT_") -> "Settings":
        """Load settings from environment variables."""
        settings_map = {
            "interval_cap": ("interval_cap", float, MAX_INTERVAL_SECONDS),
            "default_once_delay": ("default_once_delay", float, 0.1),
            "preview_count": ("preview_count", int, 5),
        }

        kwargs = {}
        for name, (env_name, type_cast, default) in settings_map.items():
            value = os.getenv(f"{prefix}{env_name.upper()}")
            kwargs[name] = type_cast(value) if value not in (None, "") else default

        return cls(**kwargs)


@dataclass
class InjectConfig:
    """Configuration of one inject node.

    Timing fields are resolved by priority: ``repeat`` (seconds), then
    ``crontab``, then ``cronti_method`` with ``cronti_args``. ``once``
    adds a single fire ``once_delay`` seconds after start.

    Args:
        props: Property specs evaluated on every fire
        repeat: Interval in seconds
        crontab: Cron expression
        cronti_method: Rule method name
        cronti_args: Rule arguments (list, or JSON-encoded list)
        once: Fire once shortly after start
        once_delay: Seconds before the once fire (default from Settings)
    """
    props: list[PropertySpec] = field(default_factory=list)
    repeat: float | str | None = None
    crontab: str | None = None
    cronti_method: str | None = None
    cronti_args: Any = None
    once: bool = False
    once_delay: float | None = None

    def __post_init__(self):
        """Validate inject configuration."""
        self.props = coerce_specs(self.props or [])

        if self.once_delay is not None and self.once_delay < 0:
            raise ValueError("once_delay must be non-negative")

    def timing_mode(self) -> RecurringMode | None:
        """Resolve the recurring timing mode."""
        return resolve_timing_mode(
            repeat=self.repeat,
            crontab=self.crontab,
            rule_method=self.cronti_method,
            rule_args=self.cronti_args,
        )

    def effective_once_delay(self, settings: Settings | None = None) -> float | None:
        """Delay of the once fire, or None when ``once`` is off."""
        if not self.once:
            return None
        if self.once_delay:
            return self.once_delay
        return (settings or Settings()).default_once_delay

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "InjectConfig":
        """Create from a raw node configuration, including legacy shapes."""
        once_delay = data.get("onceDelay", data.get("once_delay"))
        return cls(
            props=normalize_props(data),
            repeat=data.get("repeat"),
            crontab=data.get("crontab"),
            cronti_method=data.get("crontiMethod", data.get("cronti_method")),
            cronti_args=data.get("crontiArgs", data.get("cronti_args")),
            once=bool(data.get("once", False)),
            once_delay=float(once_delay) if once_delay not in (None, "") else None,
        )
