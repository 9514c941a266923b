"""RunObserver port — domain events emitted while a run moves through its lifecycle."""

from typing import Protocol


class RunObserver(Protocol):
    """Observer port for run orchestration events.

    Implementations may log to structlog, render progress, or record for tests.
    """

    def run_started(
        self, run_id: str, test_case: str, total_evaluators: int, evaluation_only: bool
    ) -> None: ...

    def run_state_changed(self, run_id: str, from_state: str, to_state: str) -> None: ...

    def run_aborted(self, run_id: str, reason: str) -> None: ...

    def run_completed(
        self, run_id: str, overall_status: str, duration_ms: int
    ) -> None: ...

    def run_cleanup_failed(self, run_id: str, reason: str) -> None: ...

    def hook_completed(self, run_id: str, hook: str, status: str, message: str) -> None: ...

    def evaluator_started(self, run_id: str, evaluator: str) -> None: ...

    def evaluator_completed(
        self, run_id: str, evaluator: str, status: str, duration_ms: int
    ) -> None: ...

    def evaluator_failed(self, run_id: str, evaluator: str, reason: str) -> None: ...
