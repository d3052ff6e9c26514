"""crontinject - Triggerable scheduling engine built on asyncio.

Fires on a fixed interval, a cron expression or a named rule, optionally
preceded by a one-shot delay, and builds a message from property specs on
every fire.

Basic usage:
    import asyncio
    from crontinject import InjectConfig, InjectNode, PropertySpec, PropertyType

    config = InjectConfig(
        props=[
            PropertySpec("payload", "", PropertyType.DATE),
            PropertySpec("topic", "heartbeat"),
        ],
        repeat=30,
        once=True,
    )

    async def main():
        async with InjectNode(config, send=print):
            await asyncio.sleep(120)

Rules and previews:
    from crontinject.scheduler import RuleMode, Scheduler

    Scheduler.preview_next_dates(RuleMode("everyNthDay", (2, "09:30")), count=5)
"""

__version__ = "0.1.0"

from crontinject.builder import FireResult, MessageBuilder
from crontinject.config import InjectConfig, Settings
from crontinject.node import InjectNode
from crontinject.properties import PropertySpec, PropertyType, normalize_props
from crontinject.registry import NodeRegistry
from crontinject.scheduler import (
    CronMode,
    IntervalMode,
    OnceMode,
    RuleMode,
    Scheduler,
    SchedulerStatus,
)
from crontinject.exceptions import (
    CrontinjectError,
    ConfigError,
    InvalidRuleError,
    ExpressionCompileError,
    EvaluationError,
    PreviewError,
    ControlOperationError,
    NodeNotFoundError,
    BadRequestError,
    InternalError,
)

__all__ = [
    # Engine
    "Scheduler",
    "SchedulerStatus",
    "IntervalMode",
    "CronMode",
    "RuleMode",
    "OnceMode",
    # Messages
    "MessageBuilder",
    "FireResult",
    "PropertySpec",
    "PropertyType",
    "normalize_props",
    # Nodes
    "InjectNode",
    "NodeRegistry",
    # Configuration
    "InjectConfig",
    "Settings",
    # Exceptions
    "CrontinjectError",
    "ConfigError",
    "InvalidRuleError",
    "ExpressionCompileError",
    "EvaluationError",
    "PreviewError",
    "ControlOperationError",
    "NodeNotFoundError",
    "BadRequestError",
    "InternalError",
]
