"""Structlog implementation of the RunObserver port."""

import structlog


class StructlogRunObserver:
    """Delegates run orchestration events to structlog.

    Satisfies the RunObserver protocol structurally.
    """

    def __init__(self) -> None:
        self._log = structlog.get_logger()

    def run_started(
        self, run_id: str, test_case: str, total_evaluators: int, evaluation_only: bool
    ) -> None:
        self._log.info(
            "run.started",
            run_id=run_id,
            test_case=test_case,
            total_evaluators=total_evaluators,
            evaluation_only=evaluation_only,
        )

    def run_state_changed(self, run_id: str, from_state: str, to_state: str) -> None:
        self._log.debug(
            "run.state_changed", run_id=run_id, from_state=from_state, to_state=to_state
        )

    def run_aborted(self, run_id: str, reason: str) -> None:
        self._log.error("run.aborted", run_id=run_id, reason=reason)

    def run_completed(self, run_id: str, overall_status: str, duration_ms: int) -> None:
        self._log.info(
            "run.completed",
            run_id=run_id,
            overall_status=overall_status,
            duration_ms=duration_ms,
        )

    def run_cleanup_failed(self, run_id: str, reason: str) -> None:
        self._log.warning("run.cleanup_failed", run_id=run_id, reason=reason)

    def hook_completed(self, run_id: str, hook: str, status: str, message: str) -> None:
        log = self._log.info if status == "success" else self._log.warning
        log("hook.completed", run_id=run_id, hook=hook, status=status, message=message)

    def evaluator_started(self, run_id: str, evaluator: str) -> None:
        self._log.info("evaluator.started", run_id=run_id, evaluator=evaluator)

    def evaluator_completed(
        self, run_id: str, evaluator: str, status: str, duration_ms: int
    ) -> None:
        self._log.info(
            "evaluator.completed",
            run_id=run_id,
            evaluator=evaluator,
            status=status,
            duration_ms=duration_ms,
        )

    def evaluator_failed(self, run_id: str, evaluator: str, reason: str) -> None:
        self._log.error(
            "evaluator.failed", run_id=run_id, evaluator=evaluator, reason=reason
        )
