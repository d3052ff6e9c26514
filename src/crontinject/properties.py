"""Property specs and path-style access to message properties."""

import logging
import re
from collections.abc import Mapping
from dataclasses import dataclass
from enum import Enum
from typing import Any

import jmespath
from jmespath.exceptions import JMESPathError

from crontinject.exceptions import ExpressionCompileError

logger = logging.getLogger(__name__)


class PropertyType(Enum):
    """How a property value is resolved."""
    STR = "str"
    NUM = "num"
    BOOL = "bool"
    JSON = "json"
    BIN = "bin"
    DATE = "date"
    ENV = "env"
    MSG = "msg"
    FLOW = "flow"
    GLOBAL = "global"
    EXPRESSION = "jmespath"

    @classmethod
    def from_tag(cls, tag: str | None) -> "PropertyType":
        """Look up a type by its wire tag (``"jsonata"`` maps to EXPRESSION)."""
        if not tag:
            return cls.STR
        if tag == "jsonata":
            return cls.EXPRESSION
        try:
            return cls(tag)
        except ValueError:
            raise ValueError(f"Unknown property type '{tag}'") from None


@dataclass
class PropertySpec:
    """One property assignment of an injected message.

    Attributes:
        name: Property path to write (empty names are skipped)
        value: Raw value, interpreted according to ``type``
        type: Property type
        compiled: Compiled expression for EXPRESSION properties, None when
            not compiled yet or when compilation failed
    """

    name: str
    value: Any = ""
    type: PropertyType = PropertyType.STR
    compiled: Any = None

    def compile(self) -> None:
        """Compile the expression of an EXPRESSION property.

        Raises:
            ExpressionCompileError: If the expression is invalid
        """
        if self.type != PropertyType.EXPRESSION:
            return

        self.compiled = None
        try:
            self.compiled = jmespath.compile(self.value or "")
        except JMESPathError as e:
            raise ExpressionCompileError(self.name, str(e)) from e

    def to_dict(self) -> dict[str, Any]:
        return {"p": self.name, "v": self.value, "vt": self.type.value}

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "PropertySpec":
        """Create from the ``{"p", "v", "vt"}`` wire format."""
        return cls(
            name=data.get("p") or "",
            value=data.get("v") if data.get("v") is not None else "",
            type=PropertyType.from_tag(data.get("vt")),
        )


def prepare_specs(specs: list[PropertySpec]) -> list[ExpressionCompileError]:
    """Compile every EXPRESSION spec once.

    Specs that fail keep ``compiled=None`` and are skipped on every build.

    Returns:
        The compile errors, in spec order
    """
    errors = []
    for spec in specs:
        try:
            spec.compile()
        except ExpressionCompileError as e:
            logger.error(str(e))
            errors.append(e)
    return errors


def coerce_specs(props: list[PropertySpec | dict[str, Any]]) -> list[PropertySpec]:
    """Accept specs or wire dicts and return specs."""
    return [p if isinstance(p, PropertySpec) else PropertySpec.from_dict(p) for p in props]


def normalize_props(config: dict[str, Any]) -> list[dict[str, Any]]:
    """Turn a raw node configuration into a well-formed property list.

    Old configurations carry ``payload``/``payloadType``/``topic`` fields
    instead of ``props``; newer ones may still leave the payload or topic
    value on those fields. The input is not modified.
    """
    props = config.get("props")

    if not isinstance(props, list):
        return [
            {"p": "payload", "v": config.get("payload"), "vt": config.get("payloadType")},
            {"p": "topic", "v": config.get("topic"), "vt": "str"},
        ]

    normalized = []
    for prop in props:
        prop = dict(prop)
        if prop.get("p") == "payload" and "v" not in prop:
            prop["v"] = config.get("payload")
            prop["vt"] = config.get("payloadType")
        elif prop.get("p") == "topic" and prop.get("vt") == "str" and "v" not in prop:
            prop["v"] = config.get("topic")
        normalized.append(prop)
    return normalized


# Largest list index a path write may pad up to
MAX_LIST_INDEX = 65_535

_PATH_TOKEN = re.compile(
    r"""
    \.?(?P<name>[A-Za-z_$][\w$-]*)      # dotted name
    | \[\s*(?P<index>\d+)\s*\]          # [0]
    | \[\s*(?P<quote>["'])(?P<key>.*?)(?P=quote)\s*\]   # ["key"]
    """,
    re.VERBOSE,
)


def parse_path(path: str) -> list[str | int]:
    """Split ``a.b[0]["c d"]`` into ``["a", "b", 0, "c d"]``.

    Raises:
        ValueError: If the path is malformed
    """
    if not isinstance(path, str) or not path:
        raise ValueError(f"Invalid property expression: {path!r}")

    parts: list[str | int] = []
    pos = 0
    while pos < len(path):
        match = _PATH_TOKEN.match(path, pos)
        if match is None or (match.group("name") and pos == 0 and path.startswith(".")):
            raise ValueError(f"Invalid property expression: {path!r}")
        if match.group("name") is not None:
            parts.append(match.group("name"))
        elif match.group("index") is not None:
            parts.append(int(match.group("index")))
        else:
            parts.append(match.group("key"))
        pos = match.end()
    return parts


def get_property(obj: Any, path: str) -> Any:
    """Read a path from nested dicts/lists, returning None when missing."""
    current = obj
    for part in parse_path(path):
        if isinstance(current, Mapping):
            current = current.get(part)
        elif isinstance(current, list) and isinstance(part, int):
            current = current[part] if part < len(current) else None
        else:
            return None
        if current is None:
            return None
    return current


def set_property(obj: dict, path: str, value: Any) -> None:
    """Write a path into nested dicts/lists, creating missing containers.

    Raises:
        ValueError: If the path is malformed or crosses a non-container value
    """
    parts = parse_path(path)
    current: Any = obj

    for part, following in zip(parts, parts[1:]):
        container = [] if isinstance(following, int) else {}
        if isinstance(current, dict):
            if current.get(part) is None:
                current[part] = container
            current = current[part]
        elif isinstance(current, list) and isinstance(part, int):
            _pad(current, part, path)
            if current[part] is None:
                current[part] = container
            current = current[part]
        else:
            raise ValueError(f"Cannot set property '{path}': '{part}' is not reachable")

        if not isinstance(current, (dict, list)):
            raise ValueError(f"Cannot set property '{path}': '{part}' is not an object")

    last = parts[-1]
    if isinstance(current, dict):
        current[last] = value
    elif isinstance(current, list) and isinstance(last, int):
        _pad(current, last, path)
        current[last] = value
    else:
        raise ValueError(f"Cannot set property '{path}'")


def _pad(items: list, index: int, path: str) -> None:
    if index > MAX_LIST_INDEX:
        raise ValueError(f"Cannot set property '{path}': index {index} exceeds {MAX_LIST_INDEX}")
    if len(items) <= index:
        items.extend([None] * (index + 1 - len(items)))
