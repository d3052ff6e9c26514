"""Custom exceptions for crontinject."""

class CrontinjectError(Exception):
    pass


class ConfigError(CrontinjectError):
    """Raised when a timing configuration is invalid."""
    pass


class InvalidRuleError(ConfigError):
    """Raised when a rule method or its arguments cannot be compiled."""

    def __init__(self, method: str, reason: str):
        self.method = method
        self.reason = reason
        super().__init__(f"Invalid argument for rule method '{method}': {reason}")


class ExpressionCompileError(CrontinjectError):
    """Raised when a property expression fails to compile."""

    def __init__(self, property_name: str, message: str):
        self.property_name = property_name
        super().__init__(f"Invalid expression for '{property_name}': {message}")


class EvaluationError(CrontinjectError):
    """Raised when a property cannot be evaluated against the target."""

    def __init__(self, property_name: str, message: str):
        self.property_name = property_name
        super().__init__(message)


class PreviewError(CrontinjectError):
    """Raised when next fire dates cannot be computed."""
    pass


class ControlOperationError(CrontinjectError):
    pass


class NodeNotFoundError(ControlOperationError):
    """Raised when a node is not found in the registry."""

    def __init__(self, node_id: str):
        self.node_id = node_id
        super().__init__(f"Node '{node_id}' not registered")


class BadRequestError(ControlOperationError):
    """Raised when a control operation receives invalid input."""
    pass


class InternalError(ControlOperationError):
    """Raised when a control operation fails unexpectedly."""
    pass
