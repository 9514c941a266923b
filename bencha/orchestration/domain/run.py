"""Run state machine — the lifecycle of one evaluation attempt."""

from datetime import UTC, datetime
from enum import StrEnum

from pydantic import BaseModel, ConfigDict

from bencha.orchestration.domain.errors import InvalidRunTransitionError


class RunState(StrEnum):
    INITIALIZING = "initializing"
    WORKSPACE_READY = "workspace_ready"
    AGENT_RUNNING = "agent_running"
    AGENT_SUCCEEDED = "agent_succeeded"
    AGENT_FAILED = "agent_failed"
    AGENT_TIMEOUT = "agent_timeout"
    EVALUATING = "evaluating"
    COMPLETED = "completed"


class RunStatus(StrEnum):
    PENDING = "pending"
    RUNNING = "running"
    PASSED = "passed"
    FAILED = "failed"
    TIMEOUT = "timeout"
    ERROR = "error"


_AGENT_OUTCOMES = {RunState.AGENT_SUCCEEDED, RunState.AGENT_FAILED, RunState.AGENT_TIMEOUT}

# Evaluation-only runs go straight from workspace_ready to evaluating.
_TRANSITIONS: dict[RunState, set[RunState]] = {
    RunState.INITIALIZING: {RunState.WORKSPACE_READY},
    RunState.WORKSPACE_READY: {RunState.AGENT_RUNNING, RunState.EVALUATING},
    RunState.AGENT_RUNNING: _AGENT_OUTCOMES,
    RunState.AGENT_SUCCEEDED: {RunState.EVALUATING},
    RunState.AGENT_FAILED: {RunState.EVALUATING},
    RunState.AGENT_TIMEOUT: {RunState.EVALUATING},
    RunState.EVALUATING: {RunState.COMPLETED},
    RunState.COMPLETED: set(),
}


class StateTransition(BaseModel):
    model_config = ConfigDict(frozen=True)

    state: RunState
    at: datetime


class RunStateMachine:
    """Tracks a run's state; history is append-only and every move is validated."""

    def __init__(self, run_id: str) -> None:
        self.run_id = run_id
        self._history: list[StateTransition] = [
            StateTransition(state=RunState.INITIALIZING, at=datetime.now(UTC))
        ]

    @property
    def state(self) -> RunState:
        return self._history[-1].state

    @property
    def history(self) -> list[StateTransition]:
        return list(self._history)

    @property
    def agent_timed_out(self) -> bool:
        return any(t.state == RunState.AGENT_TIMEOUT for t in self._history)

    def advance(self, to_state: RunState) -> RunState:
        """Move to to_state and return the state left behind.

        Raises:
            InvalidRunTransitionError: if to_state is not reachable from the current state.
        """
        from_state = self.state
        if to_state not in _TRANSITIONS[from_state]:
            raise InvalidRunTransitionError(
                run_id=self.run_id, from_state=from_state, to_state=to_state
            )
        self._history.append(StateTransition(state=to_state, at=datetime.now(UTC)))
        return from_state
