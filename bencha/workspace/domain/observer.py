"""WorkspaceObserver port — domain events emitted while preparing and tearing down workspaces."""

from typing import Protocol


class WorkspaceObserver(Protocol):
    def workspace_creating(self, run_id: str, repo: str) -> None: ...

    def workspace_created(self, run_id: str, root: str, commit: str | None) -> None: ...

    def workspace_stale_lock_removed(self, run_id: str, pid: int) -> None: ...

    def workspace_cleaned(self, run_id: str, kept: bool) -> None: ...
