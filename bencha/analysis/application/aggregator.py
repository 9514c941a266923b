"""Aggregator — turns a sequence of HistoryRecords into an AggregateReport."""

import math
import re
import statistics
from collections.abc import Callable, Iterable
from datetime import UTC, date, datetime, timedelta

from bencha.analysis.domain.report import (
    AgentAnalysis,
    AgentTotals,
    AggregateReport,
    AssertionSummary,
    Breakdown,
    CaseAnalysis,
    EvaluatorAnalysis,
    EvaluatorTotals,
    FailurePattern,
    Insight,
    InsightSeverity,
    InsightType,
    LastRun,
    OverallSummary,
    TrendAnalysis,
    TrendBucket,
    TrendDirection,
    TrendPoint,
)
from bencha.analysis.domain.thresholds import DEFAULT_THRESHOLDS, AnalysisThresholds
from bencha.evaluator.domain.result import EvaluatorStatus
from bencha.history.domain.record import HistoryRecord, RecordEvaluator
from bencha.orchestration.domain.bundle import OverallStatus

_HEX_PATTERN = re.compile(r"\b[0-9a-f]{7,}\b", re.IGNORECASE)
_DIGITS_PATTERN = re.compile(r"\d+")
_WHITESPACE_PATTERN = re.compile(r"\s+")
_MAX_PATTERN_LENGTH = 100

_SEVERITY_ORDER = {
    InsightSeverity.CRITICAL: 0,
    InsightSeverity.WARNING: 1,
    InsightSeverity.INFO: 2,
}


def _ratio(numerator: int, denominator: int) -> float:
    return numerator / denominator if denominator > 0 else 0.0


def _mean(values: list[int] | list[float]) -> float:
    return statistics.fmean(values) if values else 0.0


def _group[K](
    records: Iterable[HistoryRecord], key: Callable[[HistoryRecord], K]
) -> dict[K, list[HistoryRecord]]:
    """Group records by key, preserving first-occurrence order."""
    groups: dict[K, list[HistoryRecord]] = {}
    for record in records:
        groups.setdefault(key(record), []).append(record)
    return groups


def _run_counts(records: list[HistoryRecord]) -> tuple[int, int, int]:
    passed = sum(1 for r in records if r.summary.overall_status == OverallStatus.PASSED)
    failed = sum(1 for r in records if r.summary.overall_status == OverallStatus.FAILED)
    return passed, failed, len(records) - passed - failed


def run_pass_rate(records: list[HistoryRecord]) -> float:
    """passed / (passed + failed); partial runs are left out of the denominator."""
    passed, failed, _ = _run_counts(records)
    return _ratio(passed, passed + failed)


def evaluator_pass_rate(results: list[RecordEvaluator]) -> float:
    """passed / (passed + failed + error); skipped results are left out of the denominator."""
    passed = sum(1 for r in results if r.status == EvaluatorStatus.PASSED)
    decided = sum(1 for r in results if r.status != EvaluatorStatus.SKIPPED)
    return _ratio(passed, decided)


def _durations(records: list[HistoryRecord]) -> list[int]:
    return [r.duration_ms for r in records if r.duration_ms is not None]


def recent_trend(
    records: list[HistoryRecord], thresholds: AnalysisThresholds = DEFAULT_THRESHOLDS
) -> TrendDirection:
    """Compare the pass rate of the most recent third of runs against the earliest third.

    records must already be in chronological order.
    """
    if len(records) < thresholds.trend_min_runs:
        return "insufficient_data"
    window = math.ceil(len(records) / 3)
    earliest, recent = records[:window], records[-window:]
    if sum(_run_counts(earliest)[:2]) == 0 or sum(_run_counts(recent)[:2]) == 0:
        return "stable"
    delta = run_pass_rate(recent) - run_pass_rate(earliest)
    if delta > thresholds.trend_delta:
        return "improving"
    if delta < -thresholds.trend_delta:
        return "degrading"
    return "stable"


def failure_pattern(message: str) -> str:
    """Normalise a failure message so that runs differing only in ids and counts group together."""
    pattern = _HEX_PATTERN.sub("HASH", message)
    pattern = _DIGITS_PATTERN.sub("N", pattern)
    return _WHITESPACE_PATTERN.sub(" ", pattern).strip()[:_MAX_PATTERN_LENGTH]


def aggregate(
    records: Iterable[HistoryRecord],
    thresholds: AnalysisThresholds = DEFAULT_THRESHOLDS,
    now: datetime | None = None,
) -> AggregateReport:
    """Compute every view of the report from records, sorted by exported_at first."""
    ordered = sorted(records, key=lambda r: r.exported_at)
    by_test_case = _analyze_test_cases(records=ordered, thresholds=thresholds)
    by_agent = _analyze_agents(records=ordered)
    by_evaluator = _analyze_evaluators(records=ordered, thresholds=thresholds)
    return AggregateReport(
        generated_at=now or datetime.now(UTC),
        total_records=len(ordered),
        summary=_summarize(records=ordered),
        by_test_case=by_test_case,
        by_agent=by_agent,
        by_evaluator=by_evaluator,
        trends=_analyze_trends(records=ordered, thresholds=thresholds),
        insights=_generate_insights(
            by_test_case=by_test_case,
            by_agent=by_agent,
            by_evaluator=by_evaluator,
            thresholds=thresholds,
        ),
    )


def _summarize(records: list[HistoryRecord]) -> OverallSummary:
    passed, failed, partial = _run_counts(records)
    durations = _durations(records)
    results = [e for r in records for e in r.evaluators]
    agent_statuses = [r.agent.status for r in records]
    executed = [s for s in agent_statuses if s != "skipped"]
    successful = agent_statuses.count("success")

    return OverallSummary(
        total_runs=len(records),
        passed_runs=passed,
        failed_runs=failed,
        partial_runs=partial,
        pass_rate=_ratio(passed, passed + failed),
        avg_duration_ms=_mean(durations),
        total_duration_ms=sum(durations),
        earliest=records[0].exported_at if records else None,
        latest=records[-1].exported_at if records else None,
        evaluator_stats=EvaluatorTotals(
            total_evaluations=len(results),
            passed=sum(1 for e in results if e.status == EvaluatorStatus.PASSED),
            failed=sum(1 for e in results if e.status == EvaluatorStatus.FAILED),
            skipped=sum(1 for e in results if e.status == EvaluatorStatus.SKIPPED),
            errors=sum(1 for e in results if e.status == EvaluatorStatus.ERROR),
            pass_rate=evaluator_pass_rate(results),
        ),
        agent_stats=AgentTotals(
            successful=successful,
            failed=agent_statuses.count("failed"),
            timeout=agent_statuses.count("timeout"),
            skipped=agent_statuses.count("skipped"),
            success_rate=_ratio(successful, len(executed)),
        ),
    )


def _run_breakdowns(
    records: list[HistoryRecord], key: Callable[[HistoryRecord], str]
) -> list[Breakdown]:
    return [
        Breakdown(
            name=name,
            run_count=len(group),
            pass_rate=run_pass_rate(group),
            avg_duration_ms=_mean(_durations(group)),
        )
        for name, group in _group(records, key).items()
    ]


def _evaluator_breakdowns(records: list[HistoryRecord]) -> list[Breakdown]:
    results: dict[str, list[RecordEvaluator]] = {}
    for record in records:
        for result in record.evaluators:
            results.setdefault(result.evaluator, []).append(result)
    return [
        Breakdown(
            name=name,
            run_count=len(group),
            pass_rate=evaluator_pass_rate(group),
            avg_duration_ms=_mean([r.duration_ms for r in group]),
        )
        for name, group in results.items()
    ]


def _analyze_test_cases(
    records: list[HistoryRecord], thresholds: AnalysisThresholds
) -> list[CaseAnalysis]:
    analyses: list[CaseAnalysis] = []
    for name, group in _group(records, lambda r: r.test_case.name).items():
        passed, failed, partial = _run_counts(group)
        durations = _durations(group)
        last = group[-1]
        analyses.append(
            CaseAnalysis(
                name=name,
                description=last.test_case.description,
                repo=last.test_case.repo,
                run_count=len(group),
                passed_runs=passed,
                failed_runs=failed,
                partial_runs=partial,
                pass_rate=_ratio(passed, passed + failed),
                evaluator_pass_rate=evaluator_pass_rate(
                    [e for r in group for e in r.evaluators]
                ),
                avg_duration_ms=_mean(durations),
                min_duration_ms=min(durations, default=None),
                max_duration_ms=max(durations, default=None),
                agents_used=_run_breakdowns(group, lambda r: r.agent.type),
                evaluators=_evaluator_breakdowns(group),
                recent_trend=recent_trend(records=group, thresholds=thresholds),
                last_run=LastRun(
                    timestamp=last.exported_at,
                    status=last.summary.overall_status,
                    duration_ms=last.duration_ms,
                ),
            )
        )
    analyses.sort(key=lambda a: a.run_count, reverse=True)
    return analyses


def _analyze_agents(records: list[HistoryRecord]) -> list[AgentAnalysis]:
    analyses: list[AgentAnalysis] = []
    for agent_type, group in _group(records, lambda r: r.agent.type).items():
        durations = _durations(group)
        executed = [r for r in group if r.agent.status != "skipped"]
        successes = sum(1 for r in executed if r.agent.status == "success")
        timeouts = sum(1 for r in executed if r.agent.status == "timeout")
        analyses.append(
            AgentAnalysis(
                type=agent_type,
                run_count=len(group),
                success_rate=_ratio(successes, len(executed)),
                timeout_count=timeouts,
                timeout_rate=_ratio(timeouts, len(executed)),
                avg_exit_code=_mean([r.agent.exit_code for r in executed]),
                avg_duration_ms=_mean(durations),
                min_duration_ms=min(durations, default=None),
                max_duration_ms=max(durations, default=None),
                test_cases=_run_breakdowns(group, lambda r: r.test_case.name),
                evaluator_performance=_evaluator_breakdowns(group),
            )
        )
    analyses.sort(key=lambda a: a.run_count, reverse=True)
    return analyses


def _metric_means(results: list[RecordEvaluator]) -> dict[str, float]:
    values: dict[str, list[float]] = {}
    for result in results:
        for key, value in result.metrics.items():
            if isinstance(value, bool) or not isinstance(value, int | float):
                continue
            values.setdefault(key, []).append(float(value))
    return {key: statistics.fmean(series) for key, series in values.items()}


def _assertion_summaries(results: list[RecordEvaluator]) -> list[AssertionSummary]:
    scores: dict[str, list[float]] = {}
    for result in results:
        for name, score in result.assertions.items():
            scores.setdefault(name, []).append(score)

    summaries: list[AssertionSummary] = []
    for name, series in scores.items():
        passed = sum(1 for s in series if s >= 1.0)
        failed = sum(1 for s in series if s <= 0.0)
        summaries.append(
            AssertionSummary(
                name=name,
                total_evaluations=len(series),
                passed=passed,
                partial=len(series) - passed - failed,
                failed=failed,
                pass_rate=_ratio(passed, len(series)),
                avg_score=statistics.fmean(series),
            )
        )
    return summaries


def _failure_patterns(results: list[RecordEvaluator], top: int) -> list[FailurePattern]:
    counts: dict[str, int] = {}
    examples: dict[str, str] = {}
    for result in results:
        if result.status not in (EvaluatorStatus.FAILED, EvaluatorStatus.ERROR):
            continue
        if not result.message:
            continue
        pattern = failure_pattern(result.message)
        counts[pattern] = counts.get(pattern, 0) + 1
        examples.setdefault(pattern, result.message)

    ranked = sorted(counts.items(), key=lambda item: item[1], reverse=True)[:top]
    return [
        FailurePattern(pattern=pattern, count=count, example_message=examples[pattern])
        for pattern, count in ranked
    ]


def _analyze_evaluators(
    records: list[HistoryRecord], thresholds: AnalysisThresholds
) -> list[EvaluatorAnalysis]:
    by_name: dict[str, list[RecordEvaluator]] = {}
    for record in records:
        for result in record.evaluators:
            by_name.setdefault(result.evaluator, []).append(result)

    analyses: list[EvaluatorAnalysis] = []
    for name, results in by_name.items():
        durations = [r.duration_ms for r in results]
        skipped = sum(1 for r in results if r.status == EvaluatorStatus.SKIPPED)
        analyses.append(
            EvaluatorAnalysis(
                name=name,
                run_count=len(results),
                passed=sum(1 for r in results if r.status == EvaluatorStatus.PASSED),
                failed=sum(1 for r in results if r.status == EvaluatorStatus.FAILED),
                skipped=skipped,
                errors=sum(1 for r in results if r.status == EvaluatorStatus.ERROR),
                pass_rate=evaluator_pass_rate(results),
                skip_rate=_ratio(skipped, len(results)),
                avg_duration_ms=_mean(durations),
                min_duration_ms=min(durations),
                max_duration_ms=max(durations),
                metric_means=_metric_means(results),
                assertions=_assertion_summaries(results),
                failure_patterns=_failure_patterns(
                    results, top=thresholds.top_failure_patterns
                ),
            )
        )
    analyses.sort(key=lambda a: a.run_count, reverse=True)
    return analyses


def _week_start(day: date) -> date:
    return day - timedelta(days=day.weekday())


def _buckets(
    records: list[HistoryRecord],
    period_start: Callable[[HistoryRecord], date],
    window: timedelta,
) -> list[TrendBucket]:
    grouped = _group(records, period_start)
    starts = sorted(grouped)

    buckets: list[TrendBucket] = []
    for start in starts:
        group = grouped[start]
        passed, failed, partial = _run_counts(group)
        trailing = [
            r for s in starts if start - window < s <= start for r in grouped[s]
        ]
        buckets.append(
            TrendBucket(
                start=start,
                run_count=len(group),
                passed=passed,
                failed=failed,
                partial=partial,
                pass_rate=_ratio(passed, passed + failed),
                avg_duration_ms=_mean(_durations(group)),
                rolling_pass_rate=run_pass_rate(trailing),
            )
        )
    return buckets


def _analyze_trends(
    records: list[HistoryRecord], thresholds: AnalysisThresholds
) -> TrendAnalysis:
    series: dict[str, list[TrendPoint]] = {}
    for record in records:
        series.setdefault(record.test_case.name, []).append(
            TrendPoint(timestamp=record.exported_at, status=record.summary.overall_status)
        )

    return TrendAnalysis(
        daily=_buckets(
            records,
            period_start=lambda r: r.exported_at.astimezone(UTC).date(),
            window=timedelta(days=thresholds.daily_window_days),
        ),
        weekly=_buckets(
            records,
            period_start=lambda r: _week_start(r.exported_at.astimezone(UTC).date()),
            window=timedelta(weeks=thresholds.weekly_window_weeks),
        ),
        test_case_series=series,
    )


def _percent(rate: float) -> str:
    return f"{rate * 100:.0f}%"


def _generate_insights(
    by_test_case: list[CaseAnalysis],
    by_agent: list[AgentAnalysis],
    by_evaluator: list[EvaluatorAnalysis],
    thresholds: AnalysisThresholds,
) -> list[Insight]:
    insights: list[Insight] = []

    for case in by_test_case:
        context = {"test_case": case.name}
        data = {"pass_rate": case.pass_rate, "run_count": float(case.run_count)}
        # Partial runs carry no pass/fail verdict; with none decided the rate says nothing.
        decided = case.passed_runs + case.failed_runs > 0
        if (
            decided
            and case.run_count >= thresholds.low_pass_rate_min_runs
            and case.pass_rate < thresholds.low_pass_rate
        ):
            insights.append(
                Insight(
                    type=InsightType.REGRESSION,
                    severity=InsightSeverity.CRITICAL,
                    title=f'"{case.name}" has a {_percent(case.pass_rate)} pass rate',
                    description=(
                        f"Only {_percent(case.pass_rate)} of decided runs passed"
                        f" across {case.run_count} runs."
                    ),
                    context=context,
                    data=data,
                )
            )
        if case.recent_trend == "degrading":
            insights.append(
                Insight(
                    type=InsightType.REGRESSION,
                    severity=InsightSeverity.WARNING,
                    title=f'"{case.name}" shows a degrading trend',
                    description="Recent runs pass less often than the earliest runs.",
                    context=context,
                    data=data,
                )
            )
        elif case.recent_trend == "improving":
            insights.append(
                Insight(
                    type=InsightType.IMPROVEMENT,
                    severity=InsightSeverity.INFO,
                    title=f'"{case.name}" shows an improving trend',
                    description="Recent runs pass more often than the earliest runs.",
                    context=context,
                    data=data,
                )
            )
        if (
            decided
            and case.run_count >= thresholds.consistent_min_runs
            and case.pass_rate >= thresholds.consistent_pass_rate
        ):
            insights.append(
                Insight(
                    type=InsightType.IMPROVEMENT,
                    severity=InsightSeverity.INFO,
                    title=f'"{case.name}" maintains a {_percent(case.pass_rate)} pass rate',
                    description=f"Consistent results across {case.run_count} runs.",
                    context=context,
                    data=data,
                )
            )

    for evaluator in by_evaluator:
        if evaluator.run_count < thresholds.evaluator_min_runs:
            continue
        if evaluator.skip_rate > thresholds.high_skip_rate:
            insights.append(
                Insight(
                    type=InsightType.INFO,
                    severity=InsightSeverity.WARNING,
                    title=f"{evaluator.name} skipped {_percent(evaluator.skip_rate)} of the time",
                    description=(
                        f"Skipped in {evaluator.skipped} of {evaluator.run_count} runs."
                        " Check its configuration and prerequisites."
                    ),
                    context={"evaluator": evaluator.name},
                    data={
                        "skip_rate": evaluator.skip_rate,
                        "run_count": float(evaluator.run_count),
                    },
                )
            )
        elif evaluator.pass_rate < thresholds.low_pass_rate:
            insights.append(
                Insight(
                    type=InsightType.REGRESSION,
                    severity=InsightSeverity.WARNING,
                    title=f"{evaluator.name} has a {_percent(evaluator.pass_rate)} pass rate",
                    description=(
                        f"Passed {evaluator.passed} of {evaluator.run_count} runs."
                        " Review its criteria or the agent's performance."
                    ),
                    context={"evaluator": evaluator.name},
                    data={
                        "pass_rate": evaluator.pass_rate,
                        "run_count": float(evaluator.run_count),
                    },
                )
            )

    for agent in by_agent:
        if agent.timeout_rate > thresholds.agent_timeout_rate:
            insights.append(
                Insight(
                    type=InsightType.REGRESSION,
                    severity=InsightSeverity.WARNING,
                    title=f"{agent.type} timed out in {_percent(agent.timeout_rate)} of runs",
                    description=(
                        f"{agent.timeout_count} of {agent.run_count} executions hit"
                        " the run timeout."
                    ),
                    context={"agent": agent.type},
                    data={
                        "timeout_rate": agent.timeout_rate,
                        "timeout_count": float(agent.timeout_count),
                    },
                )
            )

    insights.sort(key=lambda i: _SEVERITY_ORDER[i.severity])
    return insights
