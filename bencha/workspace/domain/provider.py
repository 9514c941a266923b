"""WorkspaceProvider Protocol — structural interface for per-run workspace lifecycle."""

from pathlib import Path
from typing import Protocol

from bencha.config.domain.benchmark import BenchmarkConfig
from bencha.workspace.domain.workspace import Workspace


class WorkspaceProvider(Protocol):
    async def create(
        self, config: BenchmarkConfig, run_id: str | None = None
    ) -> Workspace: ...

    def adopt(
        self,
        name: str,
        directory: Path,
        expected_directory: Path | None = None,
        run_id: str | None = None,
    ) -> Workspace: ...

    async def cleanup(
        self, workspace: Workspace, keep: bool = False, keep_artifacts: bool = False
    ) -> None: ...
