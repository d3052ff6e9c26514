"""Tests for custom exceptions."""

import pytest
from crontinject.exceptions import (
    BadRequestError,
    ConfigError,
    ControlOperationError,
    CrontinjectError,
    EvaluationError,
    ExpressionCompileError,
    InternalError,
    InvalidRuleError,
    NodeNotFoundError,
    PreviewError,
)


class TestExceptions:
    """Tests for exception classes."""

    def test_base_inheritance(self):
        """Test CrontinjectError inherits from Exception."""
        assert issubclass(CrontinjectError, Exception)

    def test_invalid_rule_error(self):
        """Test InvalidRuleError."""
        error = InvalidRuleError("onTime", "expected HH:MM")

        assert isinstance(error, ConfigError)
        assert error.method == "onTime"
        assert error.reason == "expected HH:MM"
        assert str(error) == "Invalid argument for rule method 'onTime': expected HH:MM"

    def test_expression_compile_error(self):
        """Test ExpressionCompileError."""
        error = ExpressionCompileError("payload", "unexpected token")

        assert error.property_name == "payload"
        assert str(error) == "Invalid expression for 'payload': unexpected token"

    def test_evaluation_error(self):
        """Test EvaluationError keeps the bare message."""
        error = EvaluationError("payload", "ValueError: bad")

        assert error.property_name == "payload"
        assert str(error) == "ValueError: bad"

    def test_node_not_found_error(self):
        """Test NodeNotFoundError."""
        error = NodeNotFoundError("n-1")

        assert isinstance(error, ControlOperationError)
        assert error.node_id == "n-1"
        assert str(error) == "Node 'n-1' not registered"

    @pytest.mark.parametrize(
        "error_class",
        [ConfigError, PreviewError, ControlOperationError, BadRequestError, InternalError],
    )
    def test_all_inherit_from_base(self, error_class):
        """Test every error can be caught as CrontinjectError."""
        with pytest.raises(CrontinjectError):
            raise error_class("failure")
