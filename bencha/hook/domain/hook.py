"""PostEvaluationHook Protocol — actions that export or process a finished run's results."""

from pathlib import Path
from typing import Protocol

from pydantic import BaseModel, ConfigDict

from bencha.hook.domain.result import HookResult
from bencha.orchestration.domain.bundle import ResultsBundle


class HookContext(BaseModel):
    """What a hook is handed once results.json is on disk."""

    model_config = ConfigDict(frozen=True)

    bundle: ResultsBundle
    results_path: Path
    artifacts_dir: Path
    workspace_dir: Path


class PostEvaluationHook(Protocol):
    """Runs after a run's results are written. Implementations receive their typed
    config at construction and report failure as a `failed` HookResult.
    """

    @property
    def name(self) -> str: ...

    async def run(self, context: HookContext) -> HookResult: ...
