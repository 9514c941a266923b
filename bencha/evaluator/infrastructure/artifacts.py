"""Artifact writing — every evaluator file lands strictly inside the artifacts directory."""

import asyncio
from pathlib import Path

from bencha.workspace.domain.naming import sanitize_workspace_name
from bencha.workspace.infrastructure.manager import resolve_within


def artifact_filename(evaluator: str, suffix: str) -> str:
    """'<sanitized evaluator name><suffix>', e.g. 'git-diff.patch'."""
    return f"{sanitize_workspace_name(evaluator)}{suffix}"


async def write_artifact(artifacts_dir: Path, filename: str, content: str) -> Path:
    """Write content to artifacts_dir/filename and return the resolved path.

    Raises:
        PathTraversalError: if filename resolves outside artifacts_dir.
    """
    path = resolve_within(root=artifacts_dir, relative=filename)
    path.parent.mkdir(parents=True, exist_ok=True)
    await asyncio.to_thread(path.write_text, content, encoding="utf-8")
    return path
