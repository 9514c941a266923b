"""HistoryFilter — the query surface for streaming reads of the history log."""

import re
from datetime import datetime

from pydantic import BaseModel, Field, field_validator

from bencha.history.domain.record import HistoryRecord, as_utc
from bencha.orchestration.domain.bundle import OverallStatus


def glob_to_regex(pattern: str) -> re.Pattern[str]:
    """Compile a `*`/`?` glob into a case-insensitive full-match pattern."""
    translated = re.escape(pattern).replace(r"\*", ".*").replace(r"\?", ".")
    return re.compile(f"^{translated}$", re.IGNORECASE)


class HistoryFilter(BaseModel, frozen=True):
    """Every set criterion must match. `limit` keeps the first N matches."""

    test_case: str | None = None
    agent: str | None = None
    evaluator: str | None = None
    since: datetime | None = None
    until: datetime | None = None
    statuses: frozenset[OverallStatus] = frozenset()
    limit: int | None = Field(default=None, ge=1)

    @field_validator("since", "until")
    @classmethod
    def _normalise_to_utc(cls, value: datetime | None) -> datetime | None:
        return as_utc(value) if value is not None else None

    def matches(self, record: HistoryRecord) -> bool:
        if self.test_case is not None and not glob_to_regex(self.test_case).match(
            record.test_case.name
        ):
            return False
        if self.agent is not None and record.agent.type != self.agent:
            return False
        if self.evaluator is not None and not any(
            e.evaluator == self.evaluator for e in record.evaluators
        ):
            return False
        if self.since is not None and record.exported_at < self.since:
            return False
        if self.until is not None and record.exported_at > self.until:
            return False
        if self.statuses and record.summary.overall_status not in self.statuses:
            return False
        return True
