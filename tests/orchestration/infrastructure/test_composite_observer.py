"""Tests for CompositeRunObserver."""

from bencha.orchestration.infrastructure.composite_observer import CompositeRunObserver
from tests.orchestration.fake_observer import FakeRunObserver


class TestCompositeRunObserver:
    """Every event reaches every observer."""

    def test_fans_out_run_lifecycle(self) -> None:
        first, second = FakeRunObserver(), FakeRunObserver()
        composite = CompositeRunObserver(observers=[first, second])

        composite.run_started(
            run_id="r1", test_case="case", total_evaluators=2, evaluation_only=False
        )
        composite.run_state_changed(
            run_id="r1", from_state="initializing", to_state="workspace_ready"
        )
        composite.run_completed(run_id="r1", overall_status="passed", duration_ms=10)

        for observer in (first, second):
            assert observer.run_started_events[0].test_case == "case"
            assert observer.state_changes[0].to_state == "workspace_ready"
            assert observer.run_completed_events[0].duration_ms == 10

    def test_fans_out_evaluator_events(self) -> None:
        first, second = FakeRunObserver(), FakeRunObserver()
        composite = CompositeRunObserver(observers=[first, second])

        composite.evaluator_started(run_id="r1", evaluator="git-diff")
        composite.evaluator_completed(
            run_id="r1", evaluator="git-diff", status="passed", duration_ms=3
        )
        composite.evaluator_failed(run_id="r1", evaluator="judge", reason="boom")
        composite.run_aborted(run_id="r1", reason="clone failed")

        for observer in (first, second):
            assert observer.evaluators_started == ["git-diff"]
            assert observer.evaluators_completed[0].status == "passed"
            assert observer.evaluators_failed[0].reason == "boom"
            assert observer.run_aborted_events[0].reason == "clone failed"

    def test_no_observers(self) -> None:
        CompositeRunObserver(observers=[]).run_aborted(run_id="r1", reason="x")

    def test_fans_out_cleanup_and_hook_events(self) -> None:
        first, second = FakeRunObserver(), FakeRunObserver()
        composite = CompositeRunObserver(observers=[first, second])

        composite.hook_completed(
            run_id="r1", hook="webhook", status="failed", message="connection refused"
        )
        composite.run_cleanup_failed(run_id="r1", reason="device busy")

        for observer in (first, second):
            assert observer.hooks_completed[0].message == "connection refused"
            assert observer.cleanup_failures[0].reason == "device busy"
