"""GitDiffEvaluator — measures the scope of the agent's change from version control."""

import asyncio
import math
from dataclasses import dataclass
from pathlib import Path

from bencha.config.domain.evaluator import GitDiffAssertions, GitDiffConfig, evaluator_name
from bencha.evaluator.domain.context import EvaluationContext
from bencha.evaluator.domain.result import Artifact, EvaluatorResult, EvaluatorStatus
from bencha.evaluator.infrastructure.artifacts import artifact_filename, write_artifact
from bencha.similarity.domain.engine import generate_patch
from bencha.workspace.infrastructure.git import GitClient
from bencha.workspace.infrastructure.manager import resolve_within

_NO_REPOSITORY_MESSAGE = "Git repository not found or not accessible"


@dataclass(frozen=True)
class FileChange:
    path: str
    lines_added: int
    lines_removed: int

    @property
    def changes(self) -> int:
        return self.lines_added + self.lines_removed


class GitDiffEvaluator:
    """Counts changed files and lines relative to `base_ref`, untracked files included.

    Passes unless one of the configured scope assertions is violated.
    """

    def __init__(self, config: GitDiffConfig, git: GitClient | None = None) -> None:
        self._config = config
        self._git = git or GitClient()

    @property
    def name(self) -> str:
        return evaluator_name(self._config)

    @property
    def description(self) -> str:
        return "Measures files and lines changed by the agent using git diff"

    @property
    def requires_expected_reference(self) -> bool:
        return False

    async def evaluate(self, context: EvaluationContext) -> EvaluatorResult:
        repo = context.modified_dir
        if not (repo / ".git").exists():
            return EvaluatorResult(
                evaluator=self.name,
                status=EvaluatorStatus.SKIPPED,
                metrics=_zero_metrics(),
                message=_NO_REPOSITORY_MESSAGE,
            )

        base_ref = self._config.base_ref
        tracked = _parse_numstat(
            output=await self._git.run(["diff", "--numstat", "-z", base_ref], cwd=repo)
        )
        listing = await self._git.run(
            ["ls-files", "-z", "--others", "--exclude-standard"], cwd=repo
        )
        untracked_paths = [path for path in listing.split("\0") if path]
        untracked_contents = {
            path: await asyncio.to_thread(_read_text, repo, path) for path in untracked_paths
        }
        untracked = [
            FileChange(path=path, lines_added=_count_lines(content), lines_removed=0)
            for path, content in untracked_contents.items()
        ]
        files = tracked + untracked

        lines_added = sum(f.lines_added for f in files)
        lines_removed = sum(f.lines_removed for f in files)
        entropy = file_change_entropy(files=files)
        violations = check_assertions(
            assertions=self._config.assertions,
            files_changed=len(files),
            lines_added=lines_added,
            lines_removed=lines_removed,
            change_entropy=entropy,
        )

        patch = await self._git.run(["diff", base_ref], cwd=repo)
        patch += "".join(
            generate_patch("", content, filename=path)
            for path, content in untracked_contents.items()
        )
        patch_path = await write_artifact(
            artifacts_dir=context.artifacts_dir,
            filename=artifact_filename(evaluator=self.name, suffix=".patch"),
            content=patch,
        )

        base_commit = (await self._git.run(["rev-parse", base_ref], cwd=repo)).strip()
        current_commit = await self._git.head_commit(repo_dir=repo)

        message = f"{len(files)} changed files (+{lines_added}/-{lines_removed} lines)"
        if violations:
            message += f" | Violations: {'; '.join(violations)}"

        return EvaluatorResult(
            evaluator=self.name,
            status=EvaluatorStatus.FAILED if violations else EvaluatorStatus.PASSED,
            metrics={
                "files_changed": len(files),
                "lines_added": lines_added,
                "lines_removed": lines_removed,
                "total_changes": lines_added + lines_removed,
                "change_entropy": entropy,
                "changed_files": [
                    {
                        "path": f.path,
                        "lines_added": f.lines_added,
                        "lines_removed": f.lines_removed,
                    }
                    for f in files
                ],
                "base_commit": base_commit,
                "current_commit": current_commit,
                "violations": violations,
            },
            message=message,
            artifacts=[
                Artifact(
                    path=str(patch_path),
                    type="diff",
                    description="Unified diff of the agent's changes",
                )
            ],
        )


def file_change_entropy(files: list[FileChange]) -> float:
    """Shannon entropy (bits) of how the changed lines are spread across files.

    0 when all changes are in one file; log2(n) when spread evenly over n files.
    """
    total = sum(f.changes for f in files)
    if total == 0:
        return 0.0
    entropy = 0.0
    for f in files:
        if f.changes:
            share = f.changes / total
            entropy -= share * math.log2(share)
    return entropy


def check_assertions(
    assertions: GitDiffAssertions,
    files_changed: int,
    lines_added: int,
    lines_removed: int,
    change_entropy: float,
) -> list[str]:
    """Return one human-readable line per violated bound."""
    violations: list[str] = []
    upper_bounds = [
        ("files_changed", files_changed, "max_files_changed", assertions.max_files_changed),
        ("lines_added", lines_added, "max_lines_added", assertions.max_lines_added),
        ("lines_removed", lines_removed, "max_lines_removed", assertions.max_lines_removed),
        (
            "total_changes",
            lines_added + lines_removed,
            "max_total_changes",
            assertions.max_total_changes,
        ),
        ("change_entropy", change_entropy, "max_change_entropy", assertions.max_change_entropy),
    ]
    for metric, value, bound_name, bound in upper_bounds:
        if bound is not None and value > bound:
            violations.append(f"{metric} ({_fmt(value)}) exceeds {bound_name} ({_fmt(bound)})")

    if assertions.min_change_entropy is not None and change_entropy < assertions.min_change_entropy:
        violations.append(
            f"change_entropy ({_fmt(change_entropy)}) is below min_change_entropy"
            f" ({_fmt(assertions.min_change_entropy)})"
        )
    return violations


def _parse_numstat(output: str) -> list[FileChange]:
    """Parse `git diff --numstat -z`; paths are raw, and a rename's counts are
    followed by its old and new paths as separate fields.
    """
    changes: list[FileChange] = []
    fields = iter(output.split("\0"))
    for field in fields:
        parts = field.split("\t", 2)
        if len(parts) != 3:
            continue
        added, removed, path = parts
        if not path:
            next(fields, "")
            path = next(fields, "")
        # Binary files report '-' for both counts.
        changes.append(
            FileChange(
                path=path,
                lines_added=int(added) if added.isdigit() else 0,
                lines_removed=int(removed) if removed.isdigit() else 0,
            )
        )
    return changes


def _read_text(repo: Path, relative: str) -> str:
    path = resolve_within(root=repo, relative=relative)
    try:
        return path.read_text(encoding="utf-8")
    except UnicodeDecodeError:
        return ""


def _count_lines(content: str) -> int:
    return len(content.splitlines())


def _fmt(value: float) -> str:
    return f"{value:.2f}" if isinstance(value, float) else str(value)


def _zero_metrics() -> dict[str, object]:
    return {
        "files_changed": 0,
        "lines_added": 0,
        "lines_removed": 0,
        "total_changes": 0,
        "change_entropy": 0.0,
        "changed_files": [],
        "violations": [],
    }
