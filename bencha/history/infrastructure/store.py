"""JSONL history store — appends one HistoryRecord per completed run."""

import os
from datetime import datetime
from pathlib import Path

from bencha.history.domain.observer import HistoryObserver
from bencha.history.domain.record import HistoryRecord
from bencha.history.infrastructure.errors import HistoryWriteError
from bencha.orchestration.domain.bundle import ResultsBundle


class JsonlHistoryStore:
    """Append-only writer for the history log.

    Each record is written with a single os.write on an O_APPEND descriptor
    and fsynced, so concurrent writers never interleave within a line.
    """

    def __init__(self, path: Path, observer: HistoryObserver) -> None:
        self._path = path
        self._observer = observer

    @property
    def path(self) -> Path:
        return self._path

    def append(
        self, bundle: ResultsBundle, exported_at: datetime | None = None
    ) -> HistoryRecord:
        """Project bundle to a HistoryRecord and append it as one line.

        Raises:
            HistoryWriteError: if the directory or file cannot be written.
        """
        record = HistoryRecord.from_bundle(bundle=bundle, exported_at=exported_at)
        self.append_record(record=record)
        return record

    def append_record(self, record: HistoryRecord) -> None:
        line = (record.model_dump_json() + "\n").encode("utf-8")
        try:
            self._path.parent.mkdir(parents=True, exist_ok=True)
            fd = os.open(self._path, os.O_WRONLY | os.O_APPEND | os.O_CREAT, 0o644)
            try:
                written = os.write(fd, line)
                os.fsync(fd)
            finally:
                os.close(fd)
        except OSError as exc:
            raise HistoryWriteError(path=self._path, reason=str(exc)) from exc

        if written != len(line):
            raise HistoryWriteError(
                path=self._path,
                reason=f"short write ({written} of {len(line)} bytes)",
            )
        self._observer.history_record_appended(
            path=str(self._path), run_id=record.run_id, test_case=record.test_case.name
        )
