"""ExpectedDiffEvaluator — scores how closely the agent's tree matches a reference tree."""

import asyncio
import json
from datetime import UTC, datetime

from bencha.config.domain.evaluator import ExpectedDiffConfig, evaluator_name
from bencha.evaluator.domain.context import EvaluationContext
from bencha.evaluator.domain.file_comparison import (
    FileComparison,
    FileStatus,
    aggregate_similarity,
)
from bencha.evaluator.domain.result import Artifact, EvaluatorResult, EvaluatorStatus
from bencha.evaluator.infrastructure.artifacts import artifact_filename, write_artifact
from bencha.evaluator.infrastructure.errors import EvaluatorError
from bencha.evaluator.infrastructure.tree_compare import compare_trees


class ExpectedDiffEvaluator:
    def __init__(self, config: ExpectedDiffConfig) -> None:
        self._config = config

    @property
    def name(self) -> str:
        return evaluator_name(self._config)

    @property
    def description(self) -> str:
        return "Compares the agent's output tree with an expected reference tree"

    @property
    def requires_expected_reference(self) -> bool:
        return True

    async def evaluate(self, context: EvaluationContext) -> EvaluatorResult:
        """Pass iff aggregate_similarity >= threshold. Skipped without a reference tree."""
        expected_dir = context.expected_dir
        if expected_dir is None or not expected_dir.is_dir():
            return EvaluatorResult(
                evaluator=self.name,
                status=EvaluatorStatus.SKIPPED,
                message="Expected reference not available; configure expected_branch",
            )
        if not context.modified_dir.is_dir():
            raise EvaluatorError(
                evaluator=self.name, reason="modified directory does not exist"
            )

        comparisons = await asyncio.to_thread(
            compare_trees,
            modified_root=context.modified_dir,
            expected_root=expected_dir,
            max_file_size_bytes=self._config.max_file_size_bytes,
        )
        similarity = aggregate_similarity(comparisons=comparisons)
        threshold = self._config.threshold
        passed = similarity >= threshold
        counts = {status: 0 for status in FileStatus}
        for comparison in comparisons:
            counts[comparison.status] += 1

        metrics = {
            "aggregate_similarity": similarity,
            "threshold": threshold,
            "files_matched": counts[FileStatus.MATCHED],
            "files_changed": counts[FileStatus.CHANGED],
            "files_added": counts[FileStatus.ADDED],
            "files_removed": counts[FileStatus.REMOVED],
            "file_similarities": [_file_detail(c) for c in comparisons],
        }
        report_path = await write_artifact(
            artifacts_dir=context.artifacts_dir,
            filename=artifact_filename(evaluator=self.name, suffix="-report.json"),
            content=_render_report(metrics=metrics, comparisons=comparisons),
        )

        return EvaluatorResult(
            evaluator=self.name,
            status=EvaluatorStatus.PASSED if passed else EvaluatorStatus.FAILED,
            metrics=metrics,
            message=_message(
                passed=passed, similarity=similarity, threshold=threshold, counts=counts
            ),
            artifacts=[
                Artifact(
                    path=str(report_path),
                    type="diff-report",
                    description="Per-file similarity against the expected reference",
                )
            ],
        )


def _file_detail(comparison: FileComparison) -> dict[str, object]:
    detail: dict[str, object] = {
        "path": comparison.path,
        "similarity": comparison.similarity,
        "status": comparison.status.value,
    }
    if comparison.status == FileStatus.CHANGED:
        detail["lines_added"] = comparison.lines_added
        detail["lines_removed"] = comparison.lines_removed
        detail["words_changed"] = comparison.words_changed
        detail["change_entropy"] = comparison.change_entropy
    return detail


def _render_report(metrics: dict[str, object], comparisons: list[FileComparison]) -> str:
    summary = {k: v for k, v in metrics.items() if k != "file_similarities"}
    report = {
        "summary": summary,
        "file_details": [_file_detail(c) for c in comparisons],
        "timestamp": datetime.now(UTC).isoformat(),
    }
    return json.dumps(report, indent=2)


def _message(
    passed: bool, similarity: float, threshold: float, counts: dict[FileStatus, int]
) -> str:
    mark = "✓" if passed else "✗"
    message = (
        f"{mark} Similarity: {similarity * 100:.1f}% (threshold: {threshold * 100:.1f}%)"
        f" | Files: {counts[FileStatus.MATCHED]} matched, {counts[FileStatus.CHANGED]} changed"
    )
    if counts[FileStatus.ADDED]:
        message += f" | {counts[FileStatus.ADDED]} added"
    if counts[FileStatus.REMOVED]:
        message += f" | {counts[FileStatus.REMOVED]} removed"
    return message
