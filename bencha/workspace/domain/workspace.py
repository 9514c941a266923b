"""Workspace value object — the directory tree owned by a single run."""

from pathlib import Path

from pydantic import BaseModel, ConfigDict

BASELINE_DIR = "src-baseline"
MODIFIED_DIR = "src-modified"
EXPECTED_DIR = "src-expected"
ARTIFACTS_DIR = "artifacts"
EVALUATOR_ARTIFACTS_DIR = "evaluators"
LOCK_FILE = ".lock"


class Workspace(BaseModel):
    """Paths of one run's workspace. Nothing outside `root` belongs to the run."""

    model_config = ConfigDict(frozen=True)

    run_id: str
    root: Path
    baseline_dir: Path
    modified_dir: Path
    expected_dir: Path | None
    artifacts_dir: Path
    evaluator_artifacts_dir: Path
    lock_path: Path
    commit: str | None = None

    @classmethod
    def layout(cls, workspace_root: Path, run_id: str, with_expected: bool) -> "Workspace":
        """Compute (but do not create) the standard layout under workspace_root/run_id."""
        root = workspace_root / run_id
        artifacts = root / ARTIFACTS_DIR
        return cls(
            run_id=run_id,
            root=root,
            baseline_dir=root / BASELINE_DIR,
            modified_dir=root / MODIFIED_DIR,
            expected_dir=root / EXPECTED_DIR if with_expected else None,
            artifacts_dir=artifacts,
            evaluator_artifacts_dir=artifacts / EVALUATOR_ARTIFACTS_DIR,
            lock_path=root / LOCK_FILE,
        )
