"""AggregateReport — ephemeral statistics computed from a set of HistoryRecords."""

from datetime import date, datetime
from enum import StrEnum
from typing import Literal

from pydantic import BaseModel, Field

from bencha.orchestration.domain.bundle import OverallStatus

type TrendDirection = Literal["improving", "stable", "degrading", "insufficient_data"]


class InsightType(StrEnum):
    IMPROVEMENT = "improvement"
    REGRESSION = "regression"
    INFO = "info"


class InsightSeverity(StrEnum):
    CRITICAL = "critical"
    WARNING = "warning"
    INFO = "info"


class EvaluatorTotals(BaseModel, frozen=True):
    total_evaluations: int
    passed: int
    failed: int
    skipped: int
    errors: int
    pass_rate: float


class AgentTotals(BaseModel, frozen=True):
    successful: int
    failed: int
    timeout: int
    skipped: int
    success_rate: float


class OverallSummary(BaseModel, frozen=True):
    total_runs: int
    passed_runs: int
    failed_runs: int
    partial_runs: int
    pass_rate: float
    avg_duration_ms: float
    total_duration_ms: int
    earliest: datetime | None = None
    latest: datetime | None = None
    evaluator_stats: EvaluatorTotals
    agent_stats: AgentTotals


class Breakdown(BaseModel, frozen=True):
    """Run count and pass rate of one sub-group (an agent, an evaluator, a test case)."""

    name: str
    run_count: int
    pass_rate: float
    avg_duration_ms: float | None = None


class LastRun(BaseModel, frozen=True):
    timestamp: datetime
    status: OverallStatus
    duration_ms: int | None = None


class CaseAnalysis(BaseModel, frozen=True):
    name: str
    description: str | None = None
    repo: str
    run_count: int
    passed_runs: int
    failed_runs: int
    partial_runs: int
    pass_rate: float
    evaluator_pass_rate: float
    avg_duration_ms: float
    min_duration_ms: int | None = None
    max_duration_ms: int | None = None
    agents_used: list[Breakdown]
    evaluators: list[Breakdown]
    recent_trend: TrendDirection
    last_run: LastRun


class AgentAnalysis(BaseModel, frozen=True):
    type: str
    run_count: int
    success_rate: float
    timeout_count: int
    timeout_rate: float
    avg_exit_code: float
    avg_duration_ms: float
    min_duration_ms: int | None = None
    max_duration_ms: int | None = None
    test_cases: list[Breakdown]
    evaluator_performance: list[Breakdown]


class AssertionSummary(BaseModel, frozen=True):
    """Per-assertion scores: 1.0 counts as passed, 0.0 as failed, anything between as partial."""

    name: str
    total_evaluations: int
    passed: int
    partial: int
    failed: int
    pass_rate: float
    avg_score: float


class FailurePattern(BaseModel, frozen=True):
    pattern: str
    count: int
    example_message: str


class EvaluatorAnalysis(BaseModel, frozen=True):
    name: str
    run_count: int
    passed: int
    failed: int
    skipped: int
    errors: int
    pass_rate: float
    skip_rate: float
    avg_duration_ms: float
    min_duration_ms: int
    max_duration_ms: int
    metric_means: dict[str, float] = Field(default_factory=dict)
    assertions: list[AssertionSummary] = Field(default_factory=list)
    failure_patterns: list[FailurePattern] = Field(default_factory=list)


class TrendBucket(BaseModel, frozen=True):
    """One UTC day, or one ISO week starting on Monday."""

    start: date
    run_count: int
    passed: int
    failed: int
    partial: int
    pass_rate: float
    avg_duration_ms: float
    rolling_pass_rate: float


class TrendPoint(BaseModel, frozen=True):
    timestamp: datetime
    status: OverallStatus


class TrendAnalysis(BaseModel, frozen=True):
    daily: list[TrendBucket]
    weekly: list[TrendBucket]
    test_case_series: dict[str, list[TrendPoint]]


class Insight(BaseModel, frozen=True):
    type: InsightType
    severity: InsightSeverity
    title: str
    description: str
    context: dict[str, str] = Field(default_factory=dict)
    data: dict[str, float] = Field(default_factory=dict)


class AggregateReport(BaseModel, frozen=True):
    generated_at: datetime
    total_records: int
    summary: OverallSummary
    by_test_case: list[CaseAnalysis]
    by_agent: list[AgentAnalysis]
    by_evaluator: list[EvaluatorAnalysis]
    trends: TrendAnalysis
    insights: list[Insight]
