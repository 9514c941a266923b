"""Change summary — the baseline → modified patch shown to a judge agent."""

import os
from pathlib import Path

from bencha.evaluator.infrastructure.tree_compare import list_files
from bencha.similarity.domain.engine import generate_patch

DEFAULT_MAX_CHANGE_CHARS = 50_000


def summarize_change(
    baseline_root: Path, modified_root: Path, max_chars: int = DEFAULT_MAX_CHANGE_CHARS
) -> str:
    """Patch text for every file that differs between the two trees, sorted by path.

    Binary files and files larger than max_chars are named but not rendered.
    Returns "" when there is no baseline snapshot or both roots are the same
    directory, as in evaluation-only runs, or when nothing differs. Text beyond
    max_chars is cut off with a marker.
    """
    if not baseline_root.is_dir() or baseline_root.resolve() == modified_root.resolve():
        return ""
    baseline = list_files(root=baseline_root)
    modified = list_files(root=modified_root)

    parts: list[str] = []
    size = 0
    for path in sorted(baseline | modified):
        if size > max_chars:
            break
        before = _read(baseline_root / path) if path in baseline else b""
        after = _read(modified_root / path) if path in modified else b""
        if before == after:
            continue
        if max(len(before), len(after)) > max_chars:
            parts.append(f"File {path} differs (too large to show)\n")
        else:
            parts.append(_patch(path=path, before=before, after=after))
        size += len(parts[-1])

    text = "".join(parts)
    if len(text) > max_chars:
        text = text[:max_chars] + f"\n[CHANGE TRUNCATED: exceeded {max_chars} characters]\n"
    return text


def _patch(path: str, before: bytes, after: bytes) -> str:
    try:
        return generate_patch(before.decode("utf-8"), after.decode("utf-8"), filename=path)
    except UnicodeDecodeError:
        return f"Binary file {path} differs\n"


def _read(path: Path) -> bytes:
    if path.is_symlink():
        return f"symlink -> {os.readlink(path)}\n".encode()
    return path.read_bytes()
