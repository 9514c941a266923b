"""Error types raised by history infrastructure."""

from pathlib import Path

from bencha.core.errors import BenchaError


class HistoryFileNotFoundError(BenchaError):
    """Raised when the history log to be read does not exist."""

    def __init__(self, path: Path) -> None:
        self.path = path
        super().__init__(f"Failed to read history: no history file found at {path}")


class MalformedHistoryRecordError(BenchaError):
    """Raised for a line that is not valid JSON or does not match the record schema.

    The streaming reader logs and skips these; they never abort a read.
    """

    def __init__(self, line_number: int, reason: str) -> None:
        self.line_number = line_number
        self.reason = reason
        super().__init__(f"Failed to parse history line {line_number}: {reason}")


class HistoryWriteError(BenchaError):
    """Raised when a record cannot be appended to the history log."""

    def __init__(self, path: Path, reason: str) -> None:
        self.path = path
        super().__init__(f"Failed to append to history {path}: {reason}")
