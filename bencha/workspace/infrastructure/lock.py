"""Workspace lock file — records the owning process so concurrent runs never share a tree."""

import json
import os
from datetime import UTC, datetime
from pathlib import Path

from pydantic import BaseModel, ValidationError

from bencha.workspace.infrastructure.errors import WorkspaceError, WorkspaceErrorCode


class LockInfo(BaseModel, frozen=True):
    pid: int
    timestamp: datetime
    repo: str


def read_lock(lock_path: Path) -> LockInfo | None:
    """Return the lock's contents, or None when absent or unreadable."""
    try:
        return LockInfo.model_validate_json(lock_path.read_text(encoding="utf-8"))
    except (FileNotFoundError, ValidationError):
        return None


def is_process_alive(pid: int) -> bool:
    if pid <= 0:
        return False
    try:
        os.kill(pid, 0)
    except ProcessLookupError:
        return False
    except PermissionError:
        # Exists but owned by another user.
        return True
    return True


def acquire_lock(lock_path: Path, repo: str) -> LockInfo | None:
    """Create the lock file, replacing a stale one.

    Returns the stale lock that was replaced, if any.

    Raises:
        WorkspaceError: WORKSPACE_LOCKED if a live process holds the lock.
    """
    stale = read_lock(lock_path=lock_path)
    if stale is not None:
        if is_process_alive(pid=stale.pid):
            raise WorkspaceError(
                code=WorkspaceErrorCode.WORKSPACE_LOCKED,
                reason=f"{lock_path.parent} is in use by process {stale.pid}",
            )
        lock_path.unlink(missing_ok=True)

    info = LockInfo(pid=os.getpid(), timestamp=datetime.now(UTC), repo=repo)
    lock_path.parent.mkdir(parents=True, exist_ok=True)
    try:
        fd = os.open(lock_path, os.O_WRONLY | os.O_CREAT | os.O_EXCL, 0o644)
    except FileExistsError as exc:
        raise WorkspaceError(
            code=WorkspaceErrorCode.WORKSPACE_LOCKED,
            reason=f"{lock_path.parent} was locked concurrently",
        ) from exc
    with os.fdopen(fd, "w", encoding="utf-8") as fh:
        fh.write(json.dumps(info.model_dump(mode="json")))
    return stale


def release_lock(lock_path: Path) -> None:
    lock_path.unlink(missing_ok=True)
