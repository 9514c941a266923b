"""AgentExecutionResult value object — the outcome of one bounded agent execution."""

from datetime import datetime
from enum import StrEnum

from pydantic import BaseModel, ConfigDict, Field


class AgentStatus(StrEnum):
    SUCCESS = "success"
    FAILED = "failed"
    TIMEOUT = "timeout"


class AgentErrorKind(StrEnum):
    UNAVAILABLE = "unavailable"
    SPAWN = "spawn"
    EXIT_CODE = "exit_code"
    TIMEOUT = "timeout"
    RUNTIME = "runtime"


class AgentError(BaseModel):
    model_config = ConfigDict(frozen=True)

    kind: AgentErrorKind
    message: str


class AgentExecutionResult(BaseModel):
    """Immutable record of everything observed while the agent process ran.

    `exit_code` is -1 when the process never started; a negative value N means
    the process was terminated by signal -N.
    """

    model_config = ConfigDict(frozen=True)

    agent_type: str
    status: AgentStatus
    exit_code: int
    output: str
    output_truncated: bool = False
    started_at: datetime
    completed_at: datetime
    duration_ms: int = Field(ge=0)
    errors: list[AgentError] = Field(default_factory=list)
