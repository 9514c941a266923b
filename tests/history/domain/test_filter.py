"""Tests for HistoryFilter.matches and glob_to_regex."""

from datetime import datetime, timedelta

import pytest
from pydantic import ValidationError

from bencha.evaluator.domain.result import EvaluatorStatus
from bencha.history.domain.filter import HistoryFilter, glob_to_regex
from bencha.history.domain.record import RecordEvaluator
from bencha.orchestration.domain.bundle import OverallStatus
from tests.history.records import T0, make_record


class TestGlob:
    """Test-case globs support * and ? and ignore case."""

    @pytest.mark.parametrize(
        ("pattern", "name", "expected"),
        [
            ("add-*", "add-endpoint", True),
            ("ADD-*", "add-endpoint", True),
            ("add-?ndpoint", "add-endpoint", True),
            ("add-*", "remove-endpoint", False),
            ("endpoint", "add-endpoint", False),
            ("a.b", "axb", False),
        ],
    )
    def test_glob_matching(self, pattern: str, name: str, expected: bool) -> None:
        assert bool(glob_to_regex(pattern).match(name)) is expected


class TestMatches:
    """Every set criterion must hold."""

    def test_empty_filter_matches_everything(self) -> None:
        assert HistoryFilter().matches(make_record())

    def test_agent_is_exact(self) -> None:
        record = make_record(agent="claude-code")

        assert HistoryFilter(agent="claude-code").matches(record)
        assert not HistoryFilter(agent="claude").matches(record)

    def test_evaluator_matches_any_result(self) -> None:
        record = make_record(
            evaluators=[
                RecordEvaluator(evaluator="git-diff", status=EvaluatorStatus.PASSED),
                RecordEvaluator(evaluator="judge", status=EvaluatorStatus.FAILED),
            ]
        )

        assert HistoryFilter(evaluator="judge").matches(record)
        assert not HistoryFilter(evaluator="expected-diff").matches(record)

    def test_since_and_until_are_inclusive(self) -> None:
        record = make_record(exported_at=T0)

        assert HistoryFilter(since=T0, until=T0).matches(record)
        assert not HistoryFilter(since=T0 + timedelta(seconds=1)).matches(record)
        assert not HistoryFilter(until=T0 - timedelta(seconds=1)).matches(record)

    def test_naive_bounds_are_treated_as_utc(self) -> None:
        record = make_record(exported_at=T0)
        naive = datetime(2026, 1, 5, 12, 0)

        assert HistoryFilter(since=naive, until=naive).matches(record)

    def test_statuses(self) -> None:
        record = make_record(overall=OverallStatus.PARTIAL)

        assert HistoryFilter(statuses=frozenset({OverallStatus.PARTIAL})).matches(record)
        assert not HistoryFilter(statuses=frozenset({OverallStatus.PASSED})).matches(record)

    def test_all_criteria_must_hold(self) -> None:
        record = make_record(name="add-endpoint", agent="claude-code")

        assert not HistoryFilter(test_case="add-*", agent="aider").matches(record)


class TestValidation:
    def test_limit_must_be_positive(self) -> None:
        with pytest.raises(ValidationError):
            HistoryFilter(limit=0)
