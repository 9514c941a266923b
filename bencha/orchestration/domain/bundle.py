"""ResultsBundle — the serializable record of one completed run."""

from datetime import datetime
from enum import StrEnum

from pydantic import BaseModel, ConfigDict, Field

from bencha.agent.domain.result import AgentError
from bencha.evaluator.domain.result import Artifact, EvaluatorResult, EvaluatorStatus
from bencha.orchestration.domain.run import RunState, RunStatus, StateTransition

BUNDLE_VERSION = "1.0.0"

# Agent status recorded for evaluation-only runs, where no agent was executed.
AGENT_SKIPPED = "skipped"


class OverallStatus(StrEnum):
    PASSED = "passed"
    FAILED = "failed"
    PARTIAL = "partial"


class CaseMetadata(BaseModel):
    model_config = ConfigDict(frozen=True)

    name: str
    description: str = ""
    config_file: str | None = None
    config_hash: str | None = None
    repo: str
    branch: str | None = None
    commit: str | None = None
    expected_branch: str | None = None


class ExecutionEnvironment(BaseModel):
    model_config = ConfigDict(frozen=True)

    os: str
    python_version: str
    working_directory: str


class ExecutionMetadata(BaseModel):
    model_config = ConfigDict(frozen=True)

    started_at: datetime
    completed_at: datetime
    duration_ms: int = Field(ge=0)
    bencha_version: str
    environment: ExecutionEnvironment


class AgentSection(BaseModel):
    model_config = ConfigDict(frozen=True)

    type: str
    status: str
    exit_code: int
    log_path: str | None = None
    duration_ms: int = Field(default=0, ge=0)
    output_truncated: bool = False
    errors: list[AgentError] = Field(default_factory=list)


class RunSection(BaseModel):
    model_config = ConfigDict(frozen=True)

    id: str
    state: RunState
    status: RunStatus
    state_history: list[StateTransition]


class BundleSummary(BaseModel):
    """Counts per status. `error` results count under `failed`; `errors` is that subset."""

    model_config = ConfigDict(frozen=True)

    overall_status: OverallStatus
    total_evaluators: int = Field(ge=0)
    passed: int = Field(ge=0)
    failed: int = Field(ge=0)
    skipped: int = Field(ge=0)
    errors: int = Field(default=0, ge=0)


class BundleArtifacts(BaseModel):
    model_config = ConfigDict(frozen=True)

    agent_log: str | None = None
    reports: list[str] = Field(default_factory=list)
    evaluator_artifacts: list[Artifact] = Field(default_factory=list)


class ResultsBundle(BaseModel):
    model_config = ConfigDict(frozen=True)

    version: str = BUNDLE_VERSION
    test_case: CaseMetadata
    execution: ExecutionMetadata
    agent: AgentSection
    run: RunSection
    evaluators: list[EvaluatorResult]
    summary: BundleSummary
    artifacts: BundleArtifacts


def overall_status(results: list[EvaluatorResult]) -> OverallStatus:
    """failed if any evaluator failed or errored; else partial if any skipped; else passed."""
    statuses = {r.status for r in results}
    if statuses & {EvaluatorStatus.FAILED, EvaluatorStatus.ERROR}:
        return OverallStatus.FAILED
    if EvaluatorStatus.SKIPPED in statuses:
        return OverallStatus.PARTIAL
    return OverallStatus.PASSED


def summarize(results: list[EvaluatorResult]) -> BundleSummary:
    passed = sum(1 for r in results if r.status == EvaluatorStatus.PASSED)
    failed = sum(1 for r in results if r.status == EvaluatorStatus.FAILED)
    errors = sum(1 for r in results if r.status == EvaluatorStatus.ERROR)
    skipped = sum(1 for r in results if r.status == EvaluatorStatus.SKIPPED)
    return BundleSummary(
        overall_status=overall_status(results=results),
        total_evaluators=len(results),
        passed=passed,
        failed=failed + errors,
        skipped=skipped,
        errors=errors,
    )


def run_status(overall: OverallStatus, agent_timed_out: bool) -> RunStatus:
    if overall == OverallStatus.FAILED:
        return RunStatus.TIMEOUT if agent_timed_out else RunStatus.FAILED
    return RunStatus.PASSED
