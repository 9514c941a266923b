"""CompositeRunObserver — fans out all run events to a list of observers."""

from bencha.orchestration.domain.observer import RunObserver


class CompositeRunObserver:
    """Delegates every observer event to each observer in order.

    Does NOT inherit from RunObserver (structural typing via Protocol).
    """

    def __init__(self, observers: list[RunObserver]) -> None:
        self._observers = observers

    def run_started(
        self, run_id: str, test_case: str, total_evaluators: int, evaluation_only: bool
    ) -> None:
        for obs in self._observers:
            obs.run_started(
                run_id=run_id,
                test_case=test_case,
                total_evaluators=total_evaluators,
                evaluation_only=evaluation_only,
            )

    def run_state_changed(self, run_id: str, from_state: str, to_state: str) -> None:
        for obs in self._observers:
            obs.run_state_changed(run_id=run_id, from_state=from_state, to_state=to_state)

    def run_aborted(self, run_id: str, reason: str) -> None:
        for obs in self._observers:
            obs.run_aborted(run_id=run_id, reason=reason)

    def run_completed(self, run_id: str, overall_status: str, duration_ms: int) -> None:
        for obs in self._observers:
            obs.run_completed(
                run_id=run_id, overall_status=overall_status, duration_ms=duration_ms
            )

    def run_cleanup_failed(self, run_id: str, reason: str) -> None:
        for obs in self._observers:
            obs.run_cleanup_failed(run_id=run_id, reason=reason)

    def hook_completed(self, run_id: str, hook: str, status: str, message: str) -> None:
        for obs in self._observers:
            obs.hook_completed(run_id=run_id, hook=hook, status=status, message=message)

    def evaluator_started(self, run_id: str, evaluator: str) -> None:
        for obs in self._observers:
            obs.evaluator_started(run_id=run_id, evaluator=evaluator)

    def evaluator_completed(
        self, run_id: str, evaluator: str, status: str, duration_ms: int
    ) -> None:
        for obs in self._observers:
            obs.evaluator_completed(
                run_id=run_id, evaluator=evaluator, status=status, duration_ms=duration_ms
            )

    def evaluator_failed(self, run_id: str, evaluator: str, reason: str) -> None:
        for obs in self._observers:
            obs.evaluator_failed(run_id=run_id, evaluator=evaluator, reason=reason)
