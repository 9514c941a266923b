"""Error types raised by evaluator infrastructure."""

from bencha.core.errors import BenchaError


class EvaluatorError(BenchaError):
    """Raised when an evaluator cannot produce a verdict."""

    def __init__(self, evaluator: str, reason: str) -> None:
        self.evaluator = evaluator
        super().__init__(f"Failed to evaluate with '{evaluator}': {reason}")


class EvaluatorTypeNotSupportedError(BenchaError):
    """Raised when no constructor is registered for an evaluator type."""

    def __init__(self, evaluator_type: str) -> None:
        self.evaluator_type = evaluator_type
        super().__init__(
            f"Failed to create evaluator: unsupported evaluator type '{evaluator_type}'"
        )


class VerdictParseError(BenchaError):
    """Raised when a judge agent's output contains no valid verdict object."""

    def __init__(self, reason: str) -> None:
        super().__init__(f"Failed to parse judge verdict: {reason}")
