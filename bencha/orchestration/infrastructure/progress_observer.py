"""ProgressRunObserver — renders the run stage and evaluator progress with Rich on stderr."""

from rich.console import Console
from rich.markup import escape
from rich.progress import (
    BarColumn,
    MofNCompleteColumn,
    Progress,
    SpinnerColumn,
    TaskID,
    TextColumn,
    TimeElapsedColumn,
)

_STAGE_LABELS: dict[str, str] = {
    "workspace_ready": "workspace ready",
    "agent_running": "agent running",
    "agent_succeeded": "agent succeeded",
    "agent_failed": "agent failed",
    "agent_timeout": "agent timed out",
    "evaluating": "evaluating",
    "completed": "completed",
}

_STATUS_STYLES: dict[str, str] = {
    "passed": "green",
    "failed": "red",
    "error": "red",
    "skipped": "yellow",
}


class ProgressRunObserver:
    """One progress row per run: the current stage plus evaluators done/total.

    Pass ``disabled=True`` to suppress all terminal output (useful in tests).

    Does NOT inherit from RunObserver (structural typing via Protocol).
    """

    def __init__(self, disabled: bool = False) -> None:
        self._disabled = disabled
        self._progress: Progress | None = None
        self._task_id: TaskID | None = None
        self._test_case = ""

    def _describe(self, stage: str) -> str:
        return f"[bold]{escape(self._test_case)}[/bold] {stage}"

    def _stop(self) -> None:
        if self._progress is not None:
            self._progress.stop()
        self._progress = None
        self._task_id = None

    def run_started(
        self, run_id: str, test_case: str, total_evaluators: int, evaluation_only: bool
    ) -> None:
        self._stop()
        self._test_case = test_case
        if self._disabled:
            return
        self._progress = Progress(
            SpinnerColumn(),
            TextColumn("{task.description}"),
            BarColumn(bar_width=30),
            MofNCompleteColumn(),
            TimeElapsedColumn(),
            console=Console(stderr=True),
            transient=False,
        )
        self._task_id = self._progress.add_task(
            description=self._describe(stage="preparing workspace"),
            total=float(total_evaluators),
        )
        self._progress.start()

    def run_state_changed(self, run_id: str, from_state: str, to_state: str) -> None:
        if self._progress is None or self._task_id is None:
            return
        label = _STAGE_LABELS.get(to_state, to_state)
        self._progress.update(self._task_id, description=self._describe(stage=label))

    def run_aborted(self, run_id: str, reason: str) -> None:
        if self._progress is not None:
            self._progress.console.print(f"[red]Run aborted:[/red] {escape(reason)}")
        self._stop()

    def run_completed(self, run_id: str, overall_status: str, duration_ms: int) -> None:
        self._stop()

    def run_cleanup_failed(self, run_id: str, reason: str) -> None:
        if not self._disabled:
            Console(stderr=True).print(f"[yellow]Cleanup failed:[/yellow] {escape(reason)}")

    def hook_completed(self, run_id: str, hook: str, status: str, message: str) -> None:
        if self._progress is None:
            return
        style = "green" if status == "success" else "yellow"
        self._progress.console.print(
            f"  [{style}]{status:>7}[/{style}]  hook {escape(hook)}  [dim]{escape(message)}[/dim]"
        )

    def evaluator_started(self, run_id: str, evaluator: str) -> None:
        pass

    def evaluator_completed(
        self, run_id: str, evaluator: str, status: str, duration_ms: int
    ) -> None:
        if self._progress is None or self._task_id is None:
            return
        style = _STATUS_STYLES.get(status, "default")
        self._progress.console.print(
            f"  [{style}]{status:>7}[/{style}]  {escape(evaluator)}  [dim]{duration_ms}ms[/dim]"
        )
        self._progress.advance(self._task_id)

    def evaluator_failed(self, run_id: str, evaluator: str, reason: str) -> None:
        pass
