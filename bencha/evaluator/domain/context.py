"""EvaluationContext — the read-only snapshot an evaluator scores."""

from pathlib import Path

from pydantic import BaseModel, ConfigDict


class EvaluationContext(BaseModel):
    """Paths an evaluator may read, plus the one directory it may write artifacts to.

    `baseline_dir` is the tree before the agent ran; `modified_dir` the tree
    after. Evaluators must treat both, and `expected_dir`, as read-only.
    """

    model_config = ConfigDict(frozen=True)

    run_id: str
    workspace_dir: Path
    modified_dir: Path
    baseline_dir: Path
    expected_dir: Path | None
    artifacts_dir: Path
