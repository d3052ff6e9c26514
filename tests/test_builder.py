"""Tests for message building."""

import pytest
from datetime import datetime
from crontinject.builder import FireResult, MessageBuilder
from crontinject.properties import PropertySpec, PropertyType, prepare_specs


@pytest.fixture
def builder():
    """Builder with a fixed environment, contexts and clock."""
    return MessageBuilder(
        env={"HOST": "box", "PORT": "8080"},
        flow_context={"counter": 3, "cfg": {"name": "flow"}},
        global_context={"site": {"id": "s-1"}},
        clock=lambda: datetime(2026, 1, 1, 12, 0, 0),
    )


def spec(name, value="", type=PropertyType.STR):
    return PropertySpec(name=name, value=value, type=type)


class TestLiteralTypes:
    """Test evaluation of literal property types."""

    def test_str(self, builder):
        result = builder.build([spec("payload", "hi")], {})
        assert result.message == {"payload": "hi"}
        assert result.is_success

    @pytest.mark.parametrize("value,expected", [("42", 42), ("-3.5", -3.5), ("1e3", 1000.0), (7, 7)])
    def test_num(self, builder, value, expected):
        result = builder.build([spec("payload", value, PropertyType.NUM)], {})
        assert result.message["payload"] == expected

    @pytest.mark.parametrize(
        "value,expected",
        [("true", True), ("True", True), ("TRUE", True), ("false", False), ("yes", False)],
    )
    def test_bool(self, builder, value, expected):
        result = builder.build([spec("payload", value, PropertyType.BOOL)], {})
        assert result.message["payload"] is expected

    def test_json(self, builder):
        result = builder.build([spec("payload", '{"a": [1, 2]}', PropertyType.JSON)], {})
        assert result.message["payload"] == {"a": [1, 2]}

    def test_bin_from_array(self, builder):
        result = builder.build([spec("payload", "[1, 2, 255]", PropertyType.BIN)], {})
        assert result.message["payload"] == b"\x01\x02\xff"

    def test_bin_from_text(self, builder):
        result = builder.build([spec("payload", "abc", PropertyType.BIN)], {})
        assert result.message["payload"] == b"abc"

    @pytest.mark.parametrize(
        "fmt,expected",
        [
            ("iso", "2026-01-01T12:00:00"),
            ("object", datetime(2026, 1, 1, 12, 0, 0)),
            ("", int(datetime(2026, 1, 1, 12, 0, 0).timestamp() * 1000)),
        ],
    )
    def test_date(self, builder, fmt, expected):
        result = builder.build([spec("payload", fmt, PropertyType.DATE)], {})
        assert result.message["payload"] == expected


class TestLookupTypes:
    """Test environment, message and context lookups."""

    def test_env_name(self, builder):
        result = builder.build([spec("payload", "HOST", PropertyType.ENV)], {})
        assert result.message["payload"] == "box"

    def test_env_template(self, builder):
        result = builder.build([spec("payload", "${HOST}:${PORT}", PropertyType.ENV)], {})
        assert result.message["payload"] == "box:8080"

    def test_env_missing_is_empty(self, builder):
        result = builder.build([spec("payload", "NOPE", PropertyType.ENV)], {})
        assert result.message["payload"] == ""
        assert result.is_success

    def test_msg(self, builder):
        target = {"source": {"value": 9}}
        result = builder.build([spec("payload", "source.value", PropertyType.MSG)], target)
        assert result.message["payload"] == 9

    def test_flow(self, builder):
        result = builder.build([spec("payload", "cfg.name", PropertyType.FLOW)], {})
        assert result.message["payload"] == "flow"

    def test_global(self, builder):
        result = builder.build([spec("payload", "site.id", PropertyType.GLOBAL)], {})
        assert result.message["payload"] == "s-1"


class TestExpressions:
    """Test expression-language properties."""

    def test_expression_reads_earlier_writes(self, builder):
        specs = [
            spec("payload", '{"items": [1, 2, 3]}', PropertyType.JSON),
            spec("count", "length(payload.items)", PropertyType.EXPRESSION),
        ]
        prepare_specs(specs)

        result = builder.build(specs, {})

        assert result.message["count"] == 3
        assert result.is_success

    def test_expression_evaluation_error(self, builder):
        specs = [
            spec("payload", "text"),
            spec("bad", "abs(payload)", PropertyType.EXPRESSION),
            spec("topic", "after"),
        ]
        prepare_specs(specs)

        result = builder.build(specs, {})

        assert len(result.errors) == 1
        assert "bad" not in result.message
        assert result.message["topic"] == "after"

    def test_uncompiled_expression_skipped_silently(self, builder):
        specs = [spec("bad", "]", PropertyType.EXPRESSION), spec("topic", "t")]
        errors = prepare_specs(specs)

        result = builder.build(specs, {})

        assert len(errors) == 1
        assert specs[0].compiled is None
        assert result.is_success
        assert result.message == {"topic": "t"}


class TestBuild:
    """Test ordering, aggregation and overrides."""

    def test_errors_in_order_and_successes_kept(self, builder):
        specs = [
            spec("a", "1"),
            spec("b", "not-a-number", PropertyType.NUM),
            spec("c", "3"),
            spec("d", "{oops", PropertyType.JSON),
        ]

        result = builder.build(specs, {})

        assert result.message == {"a": "1", "c": "3"}
        assert len(result.errors) == 2
        assert "Invalid number" in result.errors[0]
        assert "JSONDecodeError" in result.errors[1]
        assert result.error_message == "; ".join(result.errors)

    def test_empty_name_skipped(self, builder):
        result = builder.build([spec("", "ignored"), spec("topic", "t")], {})
        assert result.message == {"topic": "t"}
        assert result.is_success

    def test_override_replaces_specs_once(self, builder):
        specs = [spec("payload", "configured")]

        overridden = builder.build(specs, {}, override_specs=[spec("topic", "forced")])
        regular = builder.build(specs, {})

        assert overridden.message == {"topic": "forced"}
        assert regular.message == {"payload": "configured"}
        assert specs == [spec("payload", "configured")]

    def test_empty_override_builds_nothing(self, builder):
        result = builder.build([spec("payload", "x")], {}, override_specs=[])
        assert result.message == {}

    def test_nested_path_write(self, builder):
        result = builder.build([spec("payload.list[1].name", "n")], {})
        assert result.message == {"payload": {"list": [None, {"name": "n"}]}}

    def test_target_mutated_in_place(self, builder):
        target = {"keep": True}
        result = builder.build([spec("payload", "x")], target)

        assert result.message is target
        assert target == {"keep": True, "payload": "x"}

    def test_unwritable_path_is_error(self, builder):
        specs = [spec("payload", "text"), spec("payload.inner", "x")]

        result = builder.build(specs, {})

        assert result.message == {"payload": "text"}
        assert len(result.errors) == 1
        assert "Cannot set property" in result.errors[0]

    def test_deeply_nested_json_does_not_abort_batch(self, builder):
        depth = 100_000
        specs = [
            spec("a", "1", PropertyType.NUM),
            spec("b", "[" * depth + "]" * depth, PropertyType.JSON),
            spec("c", "ok"),
        ]

        result = builder.build(specs, {})

        assert result.message == {"a": 1, "c": "ok"}
        assert len(result.errors) == 1
        assert "RecursionError" in result.errors[0]

    def test_unexpected_evaluator_error_collected(self):
        class FailingBuilder(MessageBuilder):
            @staticmethod
            def _eval_str(value, target):
                raise RuntimeError(f"cannot render {value}")

        result = FailingBuilder(env={}).build(
            [spec("payload", "x"), spec("count", "2", PropertyType.NUM)], {}
        )

        assert result.message == {"count": 2}
        assert result.errors == ["RuntimeError: cannot render x"]

    def test_invalid_msg_path_is_error(self, builder):
        result = builder.build([spec("payload", "", PropertyType.MSG)], {})
        assert len(result.errors) == 1


class TestFireResult:
    def test_success(self):
        result = FireResult(message={"a": 1})
        assert result.is_success
        assert result.error_message is None

    def test_failure(self):
        result = FireResult(message={}, errors=["one", "two"])
        assert not result.is_success
        assert result.error_message == "one; two"
