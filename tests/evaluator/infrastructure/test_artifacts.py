"""Tests for artifact writing."""

from pathlib import Path

import pytest

from bencha.evaluator.infrastructure.artifacts import artifact_filename, write_artifact
from bencha.workspace.infrastructure.errors import PathTraversalError


class TestArtifactFilename:
    def test_sanitizes_evaluator_name(self) -> None:
        assert artifact_filename(evaluator="my judge/v2", suffix=".log") == "my-judgev2.log"


class TestWriteArtifact:
    async def test_writes_inside_directory(self, tmp_path: Path) -> None:
        path = await write_artifact(artifacts_dir=tmp_path, filename="git-diff.patch", content="x")

        assert path == (tmp_path / "git-diff.patch").resolve()
        assert path.read_text() == "x"

    async def test_rejects_escaping_filename(self, tmp_path: Path) -> None:
        with pytest.raises(PathTraversalError):
            await write_artifact(
                artifacts_dir=tmp_path / "artifacts", filename="../escape.txt", content="x"
            )

        assert not (tmp_path / "escape.txt").exists()
