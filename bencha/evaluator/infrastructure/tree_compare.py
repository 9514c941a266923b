"""Directory tree comparison for the expected-diff evaluator."""

import os
from pathlib import Path

from bencha.evaluator.domain.file_comparison import FileComparison, FileStatus
from bencha.similarity.domain.engine import (
    change_entropy,
    line_diff,
    text_similarity,
    word_diff,
)

_SKIPPED_DIRS = {".git"}


def list_files(root: Path) -> set[str]:
    """Every file below root as a POSIX relative path, excluding .git and not following symlinks."""
    files: set[str] = set()
    for dirpath, dirnames, filenames in os.walk(root, followlinks=False):
        dirnames[:] = [d for d in dirnames if d not in _SKIPPED_DIRS]
        base = Path(dirpath)
        for filename in filenames:
            files.add((base / filename).relative_to(root).as_posix())
    return files


def compare_trees(
    modified_root: Path, expected_root: Path, max_file_size_bytes: int
) -> list[FileComparison]:
    """Compare every path in either tree; sorted by path."""
    modified = list_files(root=modified_root)
    expected = list_files(root=expected_root)

    comparisons: list[FileComparison] = []
    for path in sorted(modified | expected):
        if path not in expected:
            comparisons.append(FileComparison(path=path, similarity=0.0, status=FileStatus.ADDED))
        elif path not in modified:
            comparisons.append(
                FileComparison(path=path, similarity=0.0, status=FileStatus.REMOVED)
            )
        else:
            comparisons.append(
                compare_file(
                    path=path,
                    modified=modified_root / path,
                    expected=expected_root / path,
                    max_file_size_bytes=max_file_size_bytes,
                )
            )
    return comparisons


def compare_file(
    path: str, modified: Path, expected: Path, max_file_size_bytes: int
) -> FileComparison:
    """Similarity of one file present in both trees.

    Symlinks are compared by target. Text is scored with text_similarity, which
    drops to line granularity for large edits. Oversized and non-UTF-8 files are
    compared byte-for-byte, scoring either 1.0 or 0.0. Unreadable files score 0.0.
    """
    try:
        modified_bytes = _read(path=modified)
        expected_bytes = _read(path=expected)
    except OSError:
        return FileComparison(path=path, similarity=0.0, status=FileStatus.CHANGED)

    weight = max(len(modified_bytes), len(expected_bytes), 1)
    if modified_bytes == expected_bytes:
        return FileComparison(path=path, similarity=1.0, status=FileStatus.MATCHED, weight=weight)
    if max(len(modified_bytes), len(expected_bytes)) > max_file_size_bytes:
        return FileComparison(path=path, similarity=0.0, status=FileStatus.CHANGED, weight=weight)

    try:
        modified_text = modified_bytes.decode("utf-8")
        expected_text = expected_bytes.decode("utf-8")
    except UnicodeDecodeError:
        return FileComparison(path=path, similarity=0.0, status=FileStatus.CHANGED, weight=weight)

    similarity = text_similarity(modified_text, expected_text)
    lines = line_diff(expected_text, modified_text)
    return FileComparison(
        path=path,
        similarity=similarity,
        status=FileStatus.MATCHED if similarity == 1.0 else FileStatus.CHANGED,
        weight=max(len(modified_text), len(expected_text), 1),
        lines_added=lines.additions,
        lines_removed=lines.deletions,
        words_changed=word_diff(expected_text, modified_text).total_changes,
        change_entropy=change_entropy(lines.changes),
    )


def _read(path: Path) -> bytes:
    if path.is_symlink():
        return os.readlink(path).encode("utf-8")
    return path.read_bytes()
