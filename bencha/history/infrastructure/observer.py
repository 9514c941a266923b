"""Structlog implementation of the HistoryObserver port."""

import structlog


class StructlogHistoryObserver:
    """Delegates history events to structlog.

    Satisfies the HistoryObserver protocol structurally.
    """

    def __init__(self) -> None:
        self._log = structlog.get_logger()

    def history_record_appended(self, path: str, run_id: str | None, test_case: str) -> None:
        self._log.info(
            "history.record_appended", path=path, run_id=run_id, test_case=test_case
        )

    def history_line_skipped(self, path: str, line_number: int, reason: str) -> None:
        self._log.warning(
            "history.line_skipped", path=path, line_number=line_number, reason=reason
        )

    def history_read_completed(self, path: str, records: int, skipped: int) -> None:
        self._log.debug(
            "history.read_completed", path=path, records=records, skipped=skipped
        )
