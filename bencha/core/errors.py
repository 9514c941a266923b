"""Base exception classes for all bencha-specific errors."""


class BenchaError(Exception):
    """Base class for all bencha errors."""

    def __init__(self, message: str, retriable: bool = False) -> None:
        super().__init__(message)
        self.retriable = retriable


class InfrastructureError(BenchaError):
    """Raised when a run cannot be set up: no workspace, no checkout, no filesystem.

    The orchestrator lets these propagate to its caller; every other failure
    is captured as data inside the results bundle.
    """
