"""Error types raised by workspace infrastructure."""

from enum import StrEnum
from pathlib import Path

from bencha.core.errors import InfrastructureError


class WorkspaceErrorCode(StrEnum):
    WORKSPACE_LOCKED = "WORKSPACE_LOCKED"
    CLONE_FAILED = "CLONE_FAILED"
    EXPECTED_BRANCH_NOT_FOUND = "EXPECTED_BRANCH_NOT_FOUND"
    CHECKOUT_FAILED = "CHECKOUT_FAILED"
    COPY_FAILED = "COPY_FAILED"
    CLEANUP_FAILED = "CLEANUP_FAILED"


class WorkspaceError(InfrastructureError):
    """Raised when a run workspace cannot be prepared or torn down."""

    def __init__(self, code: WorkspaceErrorCode, reason: str) -> None:
        self.code = code
        action = "clean up" if code == WorkspaceErrorCode.CLEANUP_FAILED else "prepare"
        super().__init__(f"Failed to {action} workspace [{code}]: {reason}")


class GitCommandError(InfrastructureError):
    """Raised when a git subprocess exits non-zero or cannot be started."""

    def __init__(self, args: list[str], reason: str) -> None:
        self.git_args = args
        super().__init__(f"Failed to run git {' '.join(args)}: {reason}")


class PathTraversalError(InfrastructureError):
    """Raised when a caller-supplied path resolves outside the workspace root."""

    def __init__(self, root: Path, relative: str) -> None:
        self.root = root
        self.relative = relative
        super().__init__(
            f"Failed to resolve path: '{relative}' escapes workspace root {root}"
        )
