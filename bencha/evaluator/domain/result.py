"""EvaluatorResult value object — one evaluator's verdict on one run."""

from datetime import UTC, datetime
from enum import StrEnum
from typing import Any

from pydantic import BaseModel, ConfigDict, Field

from bencha.core.sanitize import SanitizedError


class EvaluatorStatus(StrEnum):
    PASSED = "passed"
    FAILED = "failed"
    SKIPPED = "skipped"
    ERROR = "error"


class Artifact(BaseModel):
    model_config = ConfigDict(frozen=True)

    path: str
    type: str
    description: str | None = None


class EvaluatorResult(BaseModel):
    """Immutable verdict plus the metrics that justify it.

    `duration_ms` and `timestamp` are stamped by the orchestrator once the
    evaluator returns.
    """

    model_config = ConfigDict(frozen=True)

    evaluator: str = Field(min_length=1)
    status: EvaluatorStatus
    metrics: dict[str, Any] = Field(default_factory=dict)
    message: str
    assertions: dict[str, float] = Field(default_factory=dict)
    artifacts: list[Artifact] = Field(default_factory=list)
    error: SanitizedError | None = None
    duration_ms: int = Field(default=0, ge=0)
    timestamp: datetime = Field(default_factory=lambda: datetime.now(UTC))
