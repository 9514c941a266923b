"""WorkspaceManager — allocates, populates and tears down per-run directory trees."""

import asyncio
import shutil
from datetime import UTC, datetime
from pathlib import Path

from bencha.config.domain.benchmark import BenchmarkConfig
from bencha.core.errors import InfrastructureError
from bencha.workspace.domain.naming import generate_run_id
from bencha.workspace.domain.observer import WorkspaceObserver
from bencha.workspace.domain.workspace import Workspace
from bencha.workspace.infrastructure.errors import (
    GitCommandError,
    PathTraversalError,
    WorkspaceError,
    WorkspaceErrorCode,
)
from bencha.workspace.infrastructure.git import GitClient
from bencha.workspace.infrastructure.lock import acquire_lock, release_lock


def resolve_within(root: Path, relative: str | Path) -> Path:
    """Resolve relative beneath root, rejecting anything that escapes it.

    Raises:
        PathTraversalError: if the resolved path is not inside root.
    """
    base = root.resolve()
    candidate = (base / relative).resolve()
    if not candidate.is_relative_to(base):
        raise PathTraversalError(root=base, relative=str(relative))
    return candidate


class WorkspaceManager:
    """Owns every directory below workspace_root; one subdirectory per run."""

    def __init__(
        self,
        workspace_root: Path,
        observer: WorkspaceObserver,
        git: GitClient | None = None,
    ) -> None:
        self._workspace_root = workspace_root
        self._observer = observer
        self._git = git or GitClient()

    async def create(
        self, config: BenchmarkConfig, run_id: str | None = None
    ) -> Workspace:
        """Check out config.repo into fresh modified, baseline and expected trees.

        Baseline is a byte-for-byte copy of the modified tree taken before the
        agent runs. Everything created is removed again if setup fails.

        Raises:
            WorkspaceError: for any clone, checkout, copy or locking failure.
        """
        workspace = self._allocate(
            name=config.name,
            run_id=run_id,
            with_expected=config.expected_branch is not None,
        )
        self._observer.workspace_creating(run_id=workspace.run_id, repo=config.repo)

        try:
            self._lock(workspace=workspace, repo=config.repo)
            await self._clone_source(workspace=workspace, config=config)
            commit = await self._resolve_commit(workspace=workspace)
            await _copy_tree(source=workspace.modified_dir, destination=workspace.baseline_dir)
            if config.expected_branch is not None and workspace.expected_dir is not None:
                await self._clone_expected(
                    repo=config.repo,
                    branch=config.expected_branch,
                    destination=workspace.expected_dir,
                )
        except InfrastructureError:
            await self._discard(workspace=workspace)
            raise

        workspace = workspace.model_copy(update={"commit": commit})
        self._observer.workspace_created(
            run_id=workspace.run_id, root=str(workspace.root), commit=commit
        )
        return workspace

    def adopt(
        self,
        name: str,
        directory: Path,
        expected_directory: Path | None = None,
        run_id: str | None = None,
    ) -> Workspace:
        """Wrap an existing directory for evaluation-only runs.

        Only the artifacts tree is created under workspace_root; the adopted
        directory serves as both baseline and modified tree and is never deleted.
        The allocated run directory is removed again if it cannot be locked.
        """
        workspace = self._allocate(name=name, run_id=run_id, with_expected=False)
        try:
            self._lock(workspace=workspace, repo=str(directory))
        except InfrastructureError:
            shutil.rmtree(workspace.root, ignore_errors=True)
            raise
        resolved = directory.resolve()
        workspace = workspace.model_copy(
            update={
                "baseline_dir": resolved,
                "modified_dir": resolved,
                "expected_dir": expected_directory.resolve()
                if expected_directory is not None
                else None,
            }
        )
        self._observer.workspace_created(
            run_id=workspace.run_id, root=str(workspace.root), commit=None
        )
        return workspace

    async def cleanup(
        self, workspace: Workspace, keep: bool = False, keep_artifacts: bool = False
    ) -> None:
        """Release the lock and, unless keep is set, delete the run's directory tree.

        With keep_artifacts only the source trees are removed and the artifacts
        directory (agent log, reports, results.json) survives. Adopted
        directories live outside the workspace root and are never touched.

        Raises:
            WorkspaceError: CLEANUP_FAILED if the tree cannot be removed.
        """
        release_lock(lock_path=workspace.lock_path)
        if not keep:
            targets = (
                [p for p in _children(workspace.root) if p != workspace.artifacts_dir]
                if keep_artifacts
                else [workspace.root]
            )
            for target in targets:
                await _remove(target)
        self._observer.workspace_cleaned(run_id=workspace.run_id, kept=keep)

    def _allocate(self, name: str, run_id: str | None, with_expected: bool) -> Workspace:
        run_id = run_id or generate_run_id(name=name, now=datetime.now(UTC))
        workspace = Workspace.layout(
            workspace_root=self._workspace_root.resolve(),
            run_id=run_id,
            with_expected=with_expected,
        )
        try:
            workspace.root.mkdir(parents=True, exist_ok=False)
            workspace.evaluator_artifacts_dir.mkdir(parents=True)
        except OSError as exc:
            raise WorkspaceError(
                code=WorkspaceErrorCode.COPY_FAILED,
                reason=f"cannot create {workspace.root}: {exc}",
            ) from exc
        return workspace

    def _lock(self, workspace: Workspace, repo: str) -> None:
        stale = acquire_lock(lock_path=workspace.lock_path, repo=repo)
        if stale is not None:
            self._observer.workspace_stale_lock_removed(
                run_id=workspace.run_id, pid=stale.pid
            )

    async def _clone_source(self, workspace: Workspace, config: BenchmarkConfig) -> None:
        try:
            await self._git.clone(
                repo=config.repo,
                destination=workspace.modified_dir,
                branch=config.branch,
            )
        except GitCommandError as exc:
            raise WorkspaceError(code=WorkspaceErrorCode.CLONE_FAILED, reason=str(exc)) from exc

        if config.commit is not None:
            try:
                await self._git.checkout_commit(
                    repo_dir=workspace.modified_dir, commit=config.commit
                )
            except GitCommandError as exc:
                raise WorkspaceError(
                    code=WorkspaceErrorCode.CHECKOUT_FAILED, reason=str(exc)
                ) from exc

    async def _resolve_commit(self, workspace: Workspace) -> str:
        try:
            return await self._git.head_commit(repo_dir=workspace.modified_dir)
        except GitCommandError as exc:
            raise WorkspaceError(
                code=WorkspaceErrorCode.CHECKOUT_FAILED, reason=str(exc)
            ) from exc

    async def _clone_expected(self, repo: str, branch: str, destination: Path) -> None:
        try:
            exists = await self._git.remote_branch_exists(repo=repo, branch=branch)
            if not exists:
                raise WorkspaceError(
                    code=WorkspaceErrorCode.EXPECTED_BRANCH_NOT_FOUND,
                    reason=f"branch '{branch}' does not exist in {repo}",
                )
            await self._git.clone(repo=repo, destination=destination, branch=branch)
        except GitCommandError as exc:
            raise WorkspaceError(
                code=WorkspaceErrorCode.EXPECTED_BRANCH_NOT_FOUND, reason=str(exc)
            ) from exc

    async def _discard(self, workspace: Workspace) -> None:
        release_lock(lock_path=workspace.lock_path)
        await asyncio.to_thread(shutil.rmtree, workspace.root, ignore_errors=True)


def _children(root: Path) -> list[Path]:
    try:
        return list(root.iterdir())
    except FileNotFoundError:
        return []


async def _remove(target: Path) -> None:
    try:
        if target.is_dir() and not target.is_symlink():
            await asyncio.to_thread(shutil.rmtree, target)
        else:
            target.unlink()
    except FileNotFoundError:
        pass
    except OSError as exc:
        raise WorkspaceError(
            code=WorkspaceErrorCode.CLEANUP_FAILED, reason=str(exc)
        ) from exc


async def _copy_tree(source: Path, destination: Path) -> None:
    try:
        await asyncio.to_thread(shutil.copytree, source, destination, symlinks=True)
    except OSError as exc:
        raise WorkspaceError(
            code=WorkspaceErrorCode.COPY_FAILED,
            reason=f"cannot copy {source} to {destination}: {exc}",
        ) from exc
