"""HistoryObserver port — domain events emitted while writing and reading the history log."""

from typing import Protocol


class HistoryObserver(Protocol):
    def history_record_appended(self, path: str, run_id: str | None, test_case: str) -> None: ...

    def history_line_skipped(self, path: str, line_number: int, reason: str) -> None: ...

    def history_read_completed(self, path: str, records: int, skipped: int) -> None: ...
