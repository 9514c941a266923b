"""Tests for the run state machine."""

import pytest

from bencha.core.errors import BenchaError
from bencha.orchestration.domain.errors import InvalidRunTransitionError
from bencha.orchestration.domain.run import RunState, RunStateMachine


def _states(machine: RunStateMachine) -> list[RunState]:
    return [t.state for t in machine.history]


class TestRunStateMachine:
    """Every move is validated and recorded."""

    def test_starts_initializing(self) -> None:
        machine = RunStateMachine(run_id="r1")
        assert machine.state == RunState.INITIALIZING
        assert _states(machine) == [RunState.INITIALIZING]

    def test_full_agent_run(self) -> None:
        machine = RunStateMachine(run_id="r1")
        for state in (
            RunState.WORKSPACE_READY,
            RunState.AGENT_RUNNING,
            RunState.AGENT_SUCCEEDED,
            RunState.EVALUATING,
            RunState.COMPLETED,
        ):
            machine.advance(to_state=state)

        assert machine.state == RunState.COMPLETED
        assert len(machine.history) == 6
        assert machine.agent_timed_out is False

    def test_timeout_still_reaches_evaluating(self) -> None:
        machine = RunStateMachine(run_id="r1")
        machine.advance(to_state=RunState.WORKSPACE_READY)
        machine.advance(to_state=RunState.AGENT_RUNNING)
        machine.advance(to_state=RunState.AGENT_TIMEOUT)
        machine.advance(to_state=RunState.EVALUATING)

        assert machine.agent_timed_out is True
        assert RunState.AGENT_TIMEOUT in _states(machine)

    def test_evaluation_only_skips_agent(self) -> None:
        machine = RunStateMachine(run_id="r1")
        machine.advance(to_state=RunState.WORKSPACE_READY)
        machine.advance(to_state=RunState.EVALUATING)

        assert machine.state == RunState.EVALUATING

    def test_advance_returns_previous_state(self) -> None:
        machine = RunStateMachine(run_id="r1")
        assert machine.advance(to_state=RunState.WORKSPACE_READY) == RunState.INITIALIZING

    def test_history_timestamps_are_ordered(self) -> None:
        machine = RunStateMachine(run_id="r1")
        machine.advance(to_state=RunState.WORKSPACE_READY)
        first, second = machine.history
        assert first.at <= second.at

    def test_history_is_a_copy(self) -> None:
        machine = RunStateMachine(run_id="r1")
        machine.history.clear()
        assert len(machine.history) == 1

    @pytest.mark.parametrize(
        ("path", "illegal"),
        [
            ([], RunState.EVALUATING),
            ([RunState.WORKSPACE_READY], RunState.COMPLETED),
            ([RunState.WORKSPACE_READY, RunState.AGENT_RUNNING], RunState.EVALUATING),
            (
                [
                    RunState.WORKSPACE_READY,
                    RunState.EVALUATING,
                    RunState.COMPLETED,
                ],
                RunState.EVALUATING,
            ),
        ],
    )
    def test_illegal_transitions(self, path: list[RunState], illegal: RunState) -> None:
        machine = RunStateMachine(run_id="r1")
        for state in path:
            machine.advance(to_state=state)

        with pytest.raises(InvalidRunTransitionError) as exc_info:
            machine.advance(to_state=illegal)
        assert isinstance(exc_info.value, BenchaError)
        assert len(machine.history) == len(path) + 1
