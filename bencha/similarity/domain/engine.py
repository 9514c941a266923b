"""Similarity engine — edit distance, token diffs, change entropy and patch text.

Every function here is pure: no I/O, no observers. Scores are always clamped
to [0, 1]. Comparison is exact; whitespace and formatting differences count
as changes.
"""

import difflib
import math
import re

from bencha.similarity.domain.diff import Change, ChangeKind, DiffStats

_WORD_SPLIT = re.compile(r"\s+")

# Above this many edit-distance matrix cells, text_similarity switches to line granularity.
EDIT_DISTANCE_CELL_LIMIT = 1_000_000

_PATCH_PREFIX: dict[ChangeKind, str] = {
    ChangeKind.ADDED: "+ ",
    ChangeKind.REMOVED: "- ",
    ChangeKind.UNCHANGED: "  ",
}


def edit_distance(a: str, b: str) -> int:
    """Return the Levenshtein distance between a and b.

    A shared prefix and suffix never contribute to the distance, so only the
    differing middle is run through the matrix, row by row, keeping only the
    previous row in memory.
    """
    if a == b:
        return 0
    a, b = _trim_common_affixes(a, b)
    if not a:
        return len(b)
    if not b:
        return len(a)

    previous = list(range(len(b) + 1))
    for i, char_a in enumerate(a, start=1):
        current = [i] + [0] * len(b)
        for j, char_b in enumerate(b, start=1):
            substitution = previous[j - 1] + (0 if char_a == char_b else 1)
            current[j] = min(previous[j] + 1, current[j - 1] + 1, substitution)
        previous = current
    return previous[-1]


def similarity_score(a: str, b: str) -> float:
    """Normalised similarity in [0, 1]: 1.0 iff a == b, 0.0 when one side is empty."""
    if a == b:
        return 1.0
    max_len = max(len(a), len(b))
    return _clamp(1.0 - edit_distance(a, b) / max_len)


def text_similarity(a: str, b: str, cell_limit: int = EDIT_DISTANCE_CELL_LIMIT) -> float:
    """Character-level similarity_score while the differing middle of a and b fits
    in cell_limit matrix cells; line_diff similarity beyond that.
    """
    if a == b:
        return 1.0
    middle_a, middle_b = _trim_common_affixes(a, b)
    if len(middle_a) * len(middle_b) <= cell_limit:
        return similarity_score(a, b)
    return line_diff(a, b).similarity


def line_diff(a: str, b: str) -> DiffStats:
    """Diff a against b line by line."""
    return _token_diff(original=_split_lines(a), modified=_split_lines(b))


def word_diff(a: str, b: str) -> DiffStats:
    """Diff a against b by whitespace-delimited words."""
    return _token_diff(original=_split_words(a), modified=_split_words(b))


def change_entropy(changes: tuple[Change, ...] | list[Change]) -> float:
    """Shannon entropy of the {changed, unchanged} split over change segments.

    0.0 when every segment is of one kind, 1.0 when changed and unchanged
    segments are evenly interleaved. Informational only.
    """
    if not changes:
        return 0.0
    changed = sum(1 for change in changes if change.is_change)
    total = len(changes)
    entropy = 0.0
    for count in (changed, total - changed):
        if count:
            p = count / total
            entropy -= p * math.log2(p)
    return _clamp(entropy)


def generate_patch(a: str, b: str, filename: str = "file") -> str:
    """Render a line diff of a → b as unified-diff-style text for human review."""
    lines = [f"--- {filename}", f"+++ {filename}"]
    for change in line_diff(a, b).changes:
        prefix = _PATCH_PREFIX[change.kind]
        lines.extend(f"{prefix}{token}" for token in change.tokens)
    return "\n".join(lines) + "\n"


def _split_lines(text: str) -> list[str]:
    return text.split("\n") if text else []


def _split_words(text: str) -> list[str]:
    return [word for word in _WORD_SPLIT.split(text) if word]


def _token_diff(original: list[str], modified: list[str]) -> DiffStats:
    changes = _edit_script(original=original, modified=modified)
    additions = sum(c.count for c in changes if c.kind == ChangeKind.ADDED)
    deletions = sum(c.count for c in changes if c.kind == ChangeKind.REMOVED)
    total_changes = additions + deletions

    denominator = len(original) + additions
    similarity = 1.0 if denominator == 0 else _clamp(1.0 - total_changes / denominator)

    return DiffStats(
        additions=additions,
        deletions=deletions,
        total_changes=total_changes,
        similarity=similarity,
        changes=tuple(changes),
    )


def _edit_script(original: list[str], modified: list[str]) -> list[Change]:
    """Insert/delete script from difflib opcodes.

    A replaced block is reported as its removal followed by its addition, and
    consecutive tokens of the same kind are merged into one Change.
    """
    matcher = difflib.SequenceMatcher(a=original, b=modified, autojunk=False)
    steps: list[tuple[ChangeKind, list[str]]] = []
    for tag, i1, i2, j1, j2 in matcher.get_opcodes():
        if tag == "equal":
            steps.append((ChangeKind.UNCHANGED, original[i1:i2]))
            continue
        if tag in ("replace", "delete"):
            steps.append((ChangeKind.REMOVED, original[i1:i2]))
        if tag in ("replace", "insert"):
            steps.append((ChangeKind.ADDED, modified[j1:j2]))
    return _merge_steps(steps=steps)


def _merge_steps(steps: list[tuple[ChangeKind, list[str]]]) -> list[Change]:
    merged: list[Change] = []
    for kind, tokens in steps:
        if not tokens:
            continue
        if merged and merged[-1].kind == kind:
            merged[-1] = Change(kind=kind, tokens=merged[-1].tokens + tuple(tokens))
        else:
            merged.append(Change(kind=kind, tokens=tuple(tokens)))
    return merged


def _trim_common_affixes(a: str, b: str) -> tuple[str, str]:
    prefix = 0
    limit = min(len(a), len(b))
    while prefix < limit and a[prefix] == b[prefix]:
        prefix += 1
    suffix = 0
    limit -= prefix
    while suffix < limit and a[-1 - suffix] == b[-1 - suffix]:
        suffix += 1
    return a[prefix : len(a) - suffix], b[prefix : len(b) - suffix]


def _clamp(value: float) -> float:
    return max(0.0, min(1.0, value))
