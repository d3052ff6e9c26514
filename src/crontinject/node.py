import asyncio
import inspect
import logging
import uuid
from typing import Any, Callable

from crontinject.builder import FireResult, MessageBuilder
from crontinject.config import InjectConfig, Settings
from crontinject.exceptions import ConfigError
from crontinject.properties import PropertySpec, coerce_specs, prepare_specs
from crontinject.scheduler import Clock, Scheduler

logger = logging.getLogger(__name__)


class InjectNode:
    """Owner wiring a Scheduler to a MessageBuilder and a downstream sink.

    Every fire builds a fresh message from the configured props and passes
    it to ``send``, even when some props failed. Failures are reported once
    per fire through ``on_error`` as a single ``"; "``-joined message.

    Configuration problems (bad interval, cron or rule, uncompilable
    expressions) are reported through the same channel; the node is still
    created and can be fired manually.

    Usage:
        config = InjectConfig(
            props=[PropertySpec("payload", "", PropertyType.DATE)],
            repeat=5,
            once=True,
        )

        async def forward(msg: dict):
            await queue.put(msg)

        async with InjectNode(config, send=forward) as node:
            ...
    """

    def __init__(
        self,
        config: InjectConfig,
        send: Callable[[dict], Any],
        node_id: str | None = None,
        clock: Clock | None = None,
        builder: MessageBuilder | None = None,
        on_error: Callable[[str], Any] | None = None,
        settings: Settings | None = None,
    ):
        self.id = node_id or uuid.uuid4().hex
        self.config = config
        self.settings = settings or Settings()
        self.send = send
        self.on_error = on_error
        self.builder = builder or MessageBuilder()
        self.props = config.props
        self.last_result: FireResult | None = None
        self.last_error: str | None = None
        self._pending: set[asyncio.Future] = set()

        for error in prepare_specs(self.props):
            self._report_error(str(error))

        self.scheduler = Scheduler(
            on_fire=self._on_fire,
            clock=clock,
            name=self.id,
            interval_cap=self.settings.interval_cap,
        )

        try:
            self.scheduler.configure(
                config.timing_mode(),
                config.effective_once_delay(self.settings),
            )
        except ConfigError as e:
            self._report_error(str(e))

    def start(self) -> None:
        self.scheduler.start()

    def close(self) -> None:
        self.scheduler.stop()

    def receive(self, props: list[PropertySpec | dict] | None = None) -> FireResult:
        """Build and deliver one message.

        Args:
            props: One-off replacement for the configured props

        Returns:
            FireResult of the build
        """
        override = None
        if props is not None:
            override = coerce_specs(props)
            for error in prepare_specs(override):
                self._report_error(str(error))

        result = self.builder.build(self.props, {}, override_specs=override)
        self.last_result = result

        try:
            self._deliver(result.message)
        finally:
            if not result.is_success:
                self._report_error(result.error_message)

        return result

    def _on_fire(self) -> None:
        self.receive()

    def _deliver(self, message: dict) -> None:
        outcome = self.send(message)
        if inspect.isawaitable(outcome):
            future = asyncio.ensure_future(outcome)
            self._pending.add(future)
            future.add_done_callback(self._on_send_done)

    def _on_send_done(self, future: asyncio.Future) -> None:
        self._pending.discard(future)
        if future.cancelled():
            return
        error = future.exception()
        if error is not None:
            logger.error(f"[{self.id}] Error delivering message: {error}", exc_info=error)

    def _report_error(self, message: str) -> None:
        self.last_error = message
        logger.error(f"[{self.id}] {message}")
        if self.on_error is not None:
            self.on_error(message)

    @property
    def status(self) -> str:
        return self.scheduler.status_text

    async def __aenter__(self):
        self.start()
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb):
        self.close()
