"""Tests for WorkspaceManager against real git repositories."""

from pathlib import Path

import pytest

from bencha.config.domain.agent import CommandAgentConfig
from bencha.config.domain.benchmark import BenchmarkConfig
from bencha.config.domain.evaluator import GitDiffConfig
from bencha.core.errors import InfrastructureError
from bencha.workspace.infrastructure.errors import (
    PathTraversalError,
    WorkspaceError,
    WorkspaceErrorCode,
)
from bencha.workspace.infrastructure.manager import WorkspaceManager, resolve_within
from tests.workspace.fake_observer import FakeWorkspaceObserver
from tests.workspace.local_repo import add_branch, git, make_repo, requires_git


def _config(repo: Path, expected_branch: str | None = None) -> BenchmarkConfig:
    return BenchmarkConfig(
        name="case one",
        repo=str(repo),
        branch="main",
        expected_branch=expected_branch,
        agent=CommandAgentConfig(type="command", command=["true"]),
        evaluators=[GitDiffConfig(type="git-diff")],
    )


@pytest.fixture
def repo(tmp_path: Path) -> Path:
    source = make_repo(tmp_path / "origin", {"app.py": "print('v1')\n"})
    add_branch(source, "solution", {"app.py": "print('v2')\n"})
    return source


@requires_git
class TestCreate:
    """create() checks out modified, baseline and expected trees under one root."""

    async def test_populates_modified_and_baseline(self, tmp_path: Path, repo: Path) -> None:
        manager = WorkspaceManager(
            workspace_root=tmp_path / "ws", observer=FakeWorkspaceObserver()
        )
        ws = await manager.create(config=_config(repo))

        assert (ws.modified_dir / "app.py").read_text() == "print('v1')\n"
        assert (ws.baseline_dir / "app.py").read_text() == "print('v1')\n"
        assert ws.evaluator_artifacts_dir.is_dir()
        assert ws.expected_dir is None

    async def test_records_head_commit(self, tmp_path: Path, repo: Path) -> None:
        observer = FakeWorkspaceObserver()
        manager = WorkspaceManager(workspace_root=tmp_path / "ws", observer=observer)
        ws = await manager.create(config=_config(repo))

        assert ws.commit == git(repo, "rev-parse", "main").strip()
        assert observer.created[0].commit == ws.commit

    async def test_checks_out_expected_branch(self, tmp_path: Path, repo: Path) -> None:
        manager = WorkspaceManager(
            workspace_root=tmp_path / "ws", observer=FakeWorkspaceObserver()
        )
        ws = await manager.create(config=_config(repo, expected_branch="solution"))

        assert ws.expected_dir is not None
        assert (ws.expected_dir / "app.py").read_text() == "print('v2')\n"

    async def test_uses_given_run_id(self, tmp_path: Path, repo: Path) -> None:
        manager = WorkspaceManager(
            workspace_root=tmp_path / "ws", observer=FakeWorkspaceObserver()
        )
        ws = await manager.create(config=_config(repo), run_id="fixed-id")

        assert ws.run_id == "fixed-id"
        assert ws.root == (tmp_path / "ws" / "fixed-id").resolve()

    async def test_holds_lock_while_open(self, tmp_path: Path, repo: Path) -> None:
        manager = WorkspaceManager(
            workspace_root=tmp_path / "ws", observer=FakeWorkspaceObserver()
        )
        ws = await manager.create(config=_config(repo))

        assert ws.lock_path.exists()

    async def test_missing_expected_branch(self, tmp_path: Path, repo: Path) -> None:
        manager = WorkspaceManager(
            workspace_root=tmp_path / "ws", observer=FakeWorkspaceObserver()
        )
        with pytest.raises(WorkspaceError) as exc_info:
            await manager.create(config=_config(repo, expected_branch="nope"), run_id="r")

        assert exc_info.value.code == WorkspaceErrorCode.EXPECTED_BRANCH_NOT_FOUND
        assert not (tmp_path / "ws" / "r").exists()

    async def test_clone_failure_is_infrastructure_error(self, tmp_path: Path) -> None:
        manager = WorkspaceManager(
            workspace_root=tmp_path / "ws", observer=FakeWorkspaceObserver()
        )
        with pytest.raises(InfrastructureError) as exc_info:
            await manager.create(config=_config(tmp_path / "missing"), run_id="r")

        assert isinstance(exc_info.value, WorkspaceError)
        assert exc_info.value.code == WorkspaceErrorCode.CLONE_FAILED
        assert not (tmp_path / "ws" / "r").exists()


@requires_git
class TestCleanup:
    """cleanup() releases the lock and removes what the options say to remove."""

    async def test_removes_everything_by_default(self, tmp_path: Path, repo: Path) -> None:
        observer = FakeWorkspaceObserver()
        manager = WorkspaceManager(workspace_root=tmp_path / "ws", observer=observer)
        ws = await manager.create(config=_config(repo))

        await manager.cleanup(workspace=ws)

        assert not ws.root.exists()
        assert observer.cleaned[0].kept is False

    async def test_keep_artifacts_removes_only_source_trees(
        self, tmp_path: Path, repo: Path
    ) -> None:
        manager = WorkspaceManager(
            workspace_root=tmp_path / "ws", observer=FakeWorkspaceObserver()
        )
        ws = await manager.create(config=_config(repo))
        (ws.artifacts_dir / "results.json").write_text("{}")

        await manager.cleanup(workspace=ws, keep_artifacts=True)

        assert (ws.artifacts_dir / "results.json").exists()
        assert not ws.modified_dir.exists()
        assert not ws.baseline_dir.exists()
        assert not ws.lock_path.exists()

    async def test_keep_leaves_tree_but_releases_lock(
        self, tmp_path: Path, repo: Path
    ) -> None:
        observer = FakeWorkspaceObserver()
        manager = WorkspaceManager(workspace_root=tmp_path / "ws", observer=observer)
        ws = await manager.create(config=_config(repo))

        await manager.cleanup(workspace=ws, keep=True)

        assert ws.modified_dir.exists()
        assert not ws.lock_path.exists()
        assert observer.cleaned[0].kept is True


class TestAdopt:
    """adopt() wraps an existing directory without copying or deleting it."""

    def test_directory_is_modified_and_baseline(self, tmp_path: Path) -> None:
        target = tmp_path / "project"
        target.mkdir()
        manager = WorkspaceManager(
            workspace_root=tmp_path / "ws", observer=FakeWorkspaceObserver()
        )

        ws = manager.adopt(name="eval", directory=target)

        assert ws.modified_dir == target.resolve()
        assert ws.baseline_dir == target.resolve()
        assert ws.expected_dir is None
        assert ws.evaluator_artifacts_dir.is_dir()

    def test_expected_directory(self, tmp_path: Path) -> None:
        target = tmp_path / "project"
        expected = tmp_path / "reference"
        target.mkdir()
        expected.mkdir()
        manager = WorkspaceManager(
            workspace_root=tmp_path / "ws", observer=FakeWorkspaceObserver()
        )

        ws = manager.adopt(name="eval", directory=target, expected_directory=expected)

        assert ws.expected_dir == expected.resolve()

    def test_lock_failure_removes_run_directory(
        self, tmp_path: Path, monkeypatch: pytest.MonkeyPatch
    ) -> None:
        target = tmp_path / "project"
        target.mkdir()

        def held(lock_path: Path, repo: str) -> None:
            raise WorkspaceError(code=WorkspaceErrorCode.WORKSPACE_LOCKED, reason="held")

        monkeypatch.setattr("bencha.workspace.infrastructure.manager.acquire_lock", held)
        manager = WorkspaceManager(
            workspace_root=tmp_path / "ws", observer=FakeWorkspaceObserver()
        )

        with pytest.raises(WorkspaceError) as excinfo:
            manager.adopt(name="eval", directory=target, run_id="eval-run")

        assert excinfo.value.code == WorkspaceErrorCode.WORKSPACE_LOCKED
        assert not (tmp_path / "ws" / "eval-run").exists()
        assert target.is_dir()

    async def test_cleanup_never_touches_adopted_directory(self, tmp_path: Path) -> None:
        target = tmp_path / "project"
        target.mkdir()
        (target / "main.py").write_text("x = 1\n")
        manager = WorkspaceManager(
            workspace_root=tmp_path / "ws", observer=FakeWorkspaceObserver()
        )
        ws = manager.adopt(name="eval", directory=target)

        await manager.cleanup(workspace=ws)

        assert (target / "main.py").read_text() == "x = 1\n"
        assert not ws.root.exists()


class TestResolveWithin:
    """Caller-supplied relative paths may not escape the workspace root."""

    def test_nested_path(self, tmp_path: Path) -> None:
        assert resolve_within(root=tmp_path, relative="a/b.txt") == (
            tmp_path.resolve() / "a" / "b.txt"
        )

    def test_parent_traversal_rejected(self, tmp_path: Path) -> None:
        with pytest.raises(PathTraversalError):
            resolve_within(root=tmp_path / "root", relative="../outside.txt")

    def test_absolute_path_rejected(self, tmp_path: Path) -> None:
        with pytest.raises(PathTraversalError):
            resolve_within(root=tmp_path, relative="/etc/passwd")
