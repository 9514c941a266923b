"""JSONL history reader — streams HistoryRecords one line at a time."""

import json
from collections import deque
from collections.abc import Iterator
from pathlib import Path

from pydantic import ValidationError

from bencha.history.domain.filter import HistoryFilter
from bencha.history.domain.observer import HistoryObserver
from bencha.history.domain.record import HistoryRecord
from bencha.history.infrastructure.errors import (
    HistoryFileNotFoundError,
    MalformedHistoryRecordError,
)


class JsonlHistoryReader:
    """Forward-only reader for the history log.

    Memory stays proportional to one line (or to n for read_last). Malformed
    and schema-invalid lines are reported to the observer and skipped; they
    never abort a read.
    """

    def __init__(self, path: Path, observer: HistoryObserver) -> None:
        self._path = path
        self._observer = observer

    def stream(self, filter: HistoryFilter | None = None) -> Iterator[HistoryRecord]:
        """Return a fresh iterator over matching records; each call re-reads the file.

        `filter.limit` is ignored here; read_filtered applies it.

        Raises:
            HistoryFileNotFoundError: if the history file does not exist.
        """
        if not self._path.is_file():
            raise HistoryFileNotFoundError(path=self._path)
        return self._iterate(filter=filter)

    def read_all(self) -> list[HistoryRecord]:
        return list(self.stream())

    def read_filtered(self, filter: HistoryFilter) -> list[HistoryRecord]:
        """Matching records in file order, stopping early once `filter.limit` is reached."""
        records: list[HistoryRecord] = []
        for record in self.stream(filter=filter):
            records.append(record)
            if filter.limit is not None and len(records) >= filter.limit:
                break
        return records

    def read_last(self, n: int, filter: HistoryFilter | None = None) -> list[HistoryRecord]:
        """The final n matching records, oldest first."""
        if n <= 0:
            return []
        return list(deque(self.stream(filter=filter), maxlen=n))

    def count(self, filter: HistoryFilter | None = None) -> int:
        return sum(1 for _ in self.stream(filter=filter))

    def _iterate(self, filter: HistoryFilter | None) -> Iterator[HistoryRecord]:
        path_str = str(self._path)
        yielded = 0
        skipped = 0
        with open(self._path, "rb") as fh:
            for line_number, line in enumerate(fh, start=1):
                if not line.strip():
                    continue
                try:
                    record = _parse_line(line=line, line_number=line_number)
                except MalformedHistoryRecordError as exc:
                    skipped += 1
                    self._observer.history_line_skipped(
                        path=path_str, line_number=line_number, reason=exc.reason
                    )
                    continue
                if filter is None or filter.matches(record):
                    yielded += 1
                    yield record
        self._observer.history_read_completed(
            path=path_str, records=yielded, skipped=skipped
        )


def _parse_line(line: bytes, line_number: int) -> HistoryRecord:
    """Raises MalformedHistoryRecordError for invalid UTF-8, invalid JSON or a schema mismatch."""
    try:
        text = line.decode("utf-8")
    except UnicodeDecodeError as exc:
        raise MalformedHistoryRecordError(
            line_number=line_number, reason=f"invalid UTF-8: {exc.reason}"
        ) from exc
    try:
        data = json.loads(text)
    except json.JSONDecodeError as exc:
        raise MalformedHistoryRecordError(
            line_number=line_number, reason=f"invalid JSON: {exc}"
        ) from exc
    try:
        return HistoryRecord.model_validate(data)
    except ValidationError as exc:
        raise MalformedHistoryRecordError(
            line_number=line_number,
            reason=f"invalid record: {exc.error_count()} validation error(s)",
        ) from exc
