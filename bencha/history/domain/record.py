"""HistoryRecord — the one-line-per-run projection of a ResultsBundle kept in the history log."""

from datetime import UTC, datetime
from typing import Any, Literal

from pydantic import BaseModel, Field, field_validator

from bencha.evaluator.domain.result import EvaluatorStatus
from bencha.orchestration.domain.bundle import BUNDLE_VERSION, OverallStatus, ResultsBundle

type RecordAgentStatus = Literal["success", "failed", "timeout", "skipped"]


def as_utc(value: datetime) -> datetime:
    """Naive datetimes are taken to be UTC; aware ones are converted."""
    if value.tzinfo is None:
        return value.replace(tzinfo=UTC)
    return value.astimezone(UTC)


class RecordTestCase(BaseModel, frozen=True):
    name: str = Field(min_length=1)
    repo: str
    branch: str | None = None
    commit: str | None = None
    description: str | None = None


class RecordAgent(BaseModel, frozen=True):
    type: str
    status: RecordAgentStatus
    exit_code: int


class RecordEvaluator(BaseModel, frozen=True):
    evaluator: str
    status: EvaluatorStatus
    metrics: dict[str, Any] = Field(default_factory=dict)
    assertions: dict[str, float] = Field(default_factory=dict)
    duration_ms: int = Field(default=0, ge=0)
    message: str | None = None


class RecordSummary(BaseModel, frozen=True):
    overall_status: OverallStatus
    total_evaluators: int = Field(ge=0)
    passed: int = Field(ge=0)
    failed: int = Field(ge=0)
    skipped: int = Field(ge=0)


class RecordExecution(BaseModel, frozen=True):
    duration_ms: int | None = Field(default=None, ge=0)


class HistoryRecord(BaseModel, frozen=True):
    """One line of the history log.

    Unknown keys are ignored so older and newer writers can share a file;
    `execution`, `run_id`, `test_case.description` and per-evaluator `message`
    may be absent.
    """

    version: str = BUNDLE_VERSION
    exported_at: datetime
    run_id: str | None = None
    test_case: RecordTestCase
    agent: RecordAgent
    evaluators: list[RecordEvaluator]
    summary: RecordSummary
    execution: RecordExecution | None = None

    @field_validator("exported_at")
    @classmethod
    def _normalise_to_utc(cls, value: datetime) -> datetime:
        return as_utc(value)

    @property
    def duration_ms(self) -> int | None:
        return self.execution.duration_ms if self.execution is not None else None

    @classmethod
    def from_bundle(
        cls, bundle: ResultsBundle, exported_at: datetime | None = None
    ) -> "HistoryRecord":
        return cls(
            version=bundle.version,
            exported_at=exported_at or datetime.now(UTC),
            run_id=bundle.run.id,
            test_case=RecordTestCase(
                name=bundle.test_case.name,
                repo=bundle.test_case.repo,
                branch=bundle.test_case.branch,
                commit=bundle.test_case.commit,
                description=bundle.test_case.description or None,
            ),
            agent=RecordAgent(
                type=bundle.agent.type,
                status=bundle.agent.status,
                exit_code=bundle.agent.exit_code,
            ),
            evaluators=[
                RecordEvaluator(
                    evaluator=result.evaluator,
                    status=result.status,
                    metrics=result.metrics,
                    assertions=result.assertions,
                    duration_ms=result.duration_ms,
                    message=result.message,
                )
                for result in bundle.evaluators
            ],
            summary=RecordSummary(
                overall_status=bundle.summary.overall_status,
                total_evaluators=bundle.summary.total_evaluators,
                passed=bundle.summary.passed,
                failed=bundle.summary.failed,
                skipped=bundle.summary.skipped,
            ),
            execution=RecordExecution(duration_ms=bundle.execution.duration_ms),
        )
