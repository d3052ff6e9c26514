"""Build injected messages from property specs."""

import json
import logging
import os
import re
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Callable, Mapping

from jmespath.exceptions import JMESPathError

from crontinject.exceptions import EvaluationError
from crontinject.properties import PropertySpec, PropertyType, get_property, set_property

logger = logging.getLogger(__name__)

_ENV_TEMPLATE = re.compile(r"\$\{([^}]+)\}")


@dataclass
class FireResult:
    """Outcome of one message build.

    Attributes:
        message: The target mapping, with every successful property written
        errors: Error messages of failing properties, in evaluation order
    """

    message: dict
    errors: list[str] = field(default_factory=list)

    @property
    def is_success(self) -> bool:
        return not self.errors

    @property
    def error_message(self) -> str | None:
        return "; ".join(self.errors) if self.errors else None


class MessageBuilder:
    """Evaluate property specs into a message.

    Each spec is evaluated in declared order and written into the target,
    so later specs can read what earlier ones wrote. A failing spec adds
    one entry to ``FireResult.errors`` and the build carries on.

    Args:
        env: Environment used by ENV properties (defaults to ``os.environ``)
        flow_context: Mapping read by FLOW properties
        global_context: Mapping read by GLOBAL properties
        clock: Returns the current time for DATE properties
    """

    def __init__(
        self,
        env: Mapping[str, str] | None = None,
        flow_context: Mapping[str, Any] | None = None,
        global_context: Mapping[str, Any] | None = None,
        clock: Callable[[], datetime] | None = None,
    ):
        self.env = env if env is not None else os.environ
        self.flow_context = flow_context if flow_context is not None else {}
        self.global_context = global_context if global_context is not None else {}
        self.clock = clock or datetime.now

        self._evaluators: dict[PropertyType, Callable[[Any, dict], Any]] = {
            PropertyType.STR: self._eval_str,
            PropertyType.NUM: self._eval_num,
            PropertyType.BOOL: self._eval_bool,
            PropertyType.JSON: self._eval_json,
            PropertyType.BIN: self._eval_bin,
            PropertyType.DATE: self._eval_date,
            PropertyType.ENV: self._eval_env,
            PropertyType.MSG: self._eval_msg,
            PropertyType.FLOW: self._eval_flow,
            PropertyType.GLOBAL: self._eval_global,
        }

    def build(
        self,
        specs: list[PropertySpec],
        target: dict,
        override_specs: list[PropertySpec] | None = None,
    ) -> FireResult:
        """Evaluate specs into ``target`` in place.

        Args:
            specs: Configured property specs
            target: Message to write into
            override_specs: Replaces ``specs`` for this call only

        Returns:
            FireResult holding ``target`` and the collected errors
        """
        if override_specs is not None:
            specs = override_specs

        errors: list[str] = []

        for spec in specs:
            if not spec.name:
                continue

            try:
                if spec.type == PropertyType.EXPRESSION:
                    if spec.compiled is None:
                        # Compile failure was reported when the spec was prepared
                        continue
                    value = self._eval_expression(spec, target)
                else:
                    value = self.evaluate(spec, target)
                set_property(target, spec.name, value)
            except EvaluationError as e:
                errors.append(str(e))
            except Exception as e:
                errors.append(f"{type(e).__name__}: {e}")

        if errors:
            logger.debug(f"Built message with {len(errors)} error(s): {'; '.join(errors)}")

        return FireResult(message=target, errors=errors)

    def evaluate(self, spec: PropertySpec, target: dict) -> Any:
        """Resolve a non-expression spec's value.

        Raises:
            EvaluationError: If the value cannot be resolved
        """
        evaluator = self._evaluators.get(spec.type)
        if evaluator is None:
            raise EvaluationError(spec.name, f"Unsupported property type '{spec.type.value}'")

        try:
            return evaluator(spec.value, target)
        except EvaluationError:
            raise
        except Exception as e:
            raise EvaluationError(spec.name, f"{type(e).__name__}: {e}") from e

    def _eval_expression(self, spec: PropertySpec, target: dict) -> Any:
        try:
            return spec.compiled.search(target)
        except JMESPathError as e:
            raise EvaluationError(spec.name, str(e)) from e

    @staticmethod
    def _eval_str(value: Any, target: dict) -> str:
        return "" if value is None else str(value)

    @staticmethod
    def _eval_num(value: Any, target: dict) -> int | float:
        if isinstance(value, bool):
            raise ValueError(f"Invalid number {value!r}")
        if isinstance(value, (int, float)):
            return value

        text = str(value).strip()
        try:
            return int(text)
        except ValueError:
            pass
        try:
            return float(text)
        except ValueError:
            raise ValueError(f"Invalid number {value!r}") from None

    @staticmethod
    def _eval_bool(value: Any, target: dict) -> bool:
        if isinstance(value, bool):
            return value
        return str(value).strip().lower() == "true"

    @staticmethod
    def _eval_json(value: Any, target: dict) -> Any:
        if not isinstance(value, str):
            return value
        return json.loads(value)

    @staticmethod
    def _eval_bin(value: Any, target: dict) -> bytes:
        if isinstance(value, (bytes, bytearray)):
            return bytes(value)
        if isinstance(value, list):
            return bytes(value)

        text = "" if value is None else str(value)
        try:
            data = json.loads(text)
        except json.JSONDecodeError:
            return text.encode("utf-8")
        if isinstance(data, list):
            return bytes(data)
        return text.encode("utf-8")

    def _eval_date(self, value: Any, target: dict) -> Any:
        now = self.clock()
        fmt = (value or "").strip() if isinstance(value, str) else ""

        if fmt in ("", "ms"):
            return int(now.timestamp() * 1000)
        if fmt == "iso":
            return now.isoformat()
        if fmt == "object":
            return now
        if fmt == "s":
            return int(now.timestamp())
        raise ValueError(f"Unknown date format '{fmt}'")

    def _eval_env(self, value: Any, target: dict) -> str:
        name = "" if value is None else str(value).strip()

        if "${" not in name:
            return self.env.get(name, "")

        return _ENV_TEMPLATE.sub(lambda m: self.env.get(m.group(1).strip(), ""), name)

    @staticmethod
    def _eval_msg(value: Any, target: dict) -> Any:
        return get_property(target, value)

    def _eval_flow(self, value: Any, target: dict) -> Any:
        return get_property(self.flow_context, value)

    def _eval_global(self, value: Any, target: dict) -> Any:
        return get_property(self.global_context, value)
