"""File-level comparison between the agent's tree and the expected reference tree."""

from enum import StrEnum

from pydantic import BaseModel, ConfigDict, Field


class FileStatus(StrEnum):
    MATCHED = "matched"
    CHANGED = "changed"
    ADDED = "added"
    REMOVED = "removed"


class FileComparison(BaseModel):
    """One path's similarity. `weight` is the larger side's length in characters (≥1).

    The line, word and entropy figures describe the expected → modified diff of
    text files present in both trees; they stay zero otherwise.
    """

    model_config = ConfigDict(frozen=True)

    path: str
    similarity: float = Field(ge=0.0, le=1.0)
    status: FileStatus
    weight: int = Field(default=1, ge=1)
    lines_added: int = Field(default=0, ge=0)
    lines_removed: int = Field(default=0, ge=0)
    words_changed: int = Field(default=0, ge=0)
    change_entropy: float = Field(default=0.0, ge=0.0, le=1.0)

    @property
    def comparable(self) -> bool:
        return self.status in (FileStatus.MATCHED, FileStatus.CHANGED)


def aggregate_similarity(comparisons: list[FileComparison]) -> float:
    """Length-weighted mean similarity of files present in both trees, minus a structural penalty.

    The penalty is the share of all paths that exist in only one of the two
    trees. Two empty trees are identical (1.0); trees with no path in common
    score 0.0.
    """
    if not comparisons:
        return 1.0
    comparable = [c for c in comparisons if c.comparable]
    if not comparable:
        return 0.0

    total_weight = sum(c.weight for c in comparable)
    weighted_mean = sum(c.similarity * c.weight for c in comparable) / total_weight
    structural_penalty = (len(comparisons) - len(comparable)) / len(comparisons)
    return max(0.0, min(1.0, weighted_mean - structural_penalty))
