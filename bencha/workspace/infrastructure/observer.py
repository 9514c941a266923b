"""Structlog implementation of the WorkspaceObserver port."""

import structlog


class StructlogWorkspaceObserver:
    """Delegates workspace domain events to structlog.

    Satisfies the WorkspaceObserver protocol structurally.
    """

    def __init__(self) -> None:
        self._log = structlog.get_logger()

    def workspace_creating(self, run_id: str, repo: str) -> None:
        self._log.info("workspace.creating", run_id=run_id, repo=repo)

    def workspace_created(self, run_id: str, root: str, commit: str | None) -> None:
        self._log.info("workspace.created", run_id=run_id, root=root, commit=commit)

    def workspace_stale_lock_removed(self, run_id: str, pid: int) -> None:
        self._log.warning("workspace.stale_lock_removed", run_id=run_id, pid=pid)

    def workspace_cleaned(self, run_id: str, kept: bool) -> None:
        self._log.info("workspace.cleaned", run_id=run_id, kept=kept)
