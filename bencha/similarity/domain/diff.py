"""Diff value objects — change segments and line/word diff statistics."""

from enum import StrEnum

from pydantic import BaseModel, ConfigDict, Field


class ChangeKind(StrEnum):
    ADDED = "added"
    REMOVED = "removed"
    UNCHANGED = "unchanged"


class Change(BaseModel):
    """A run of consecutive tokens that share the same change kind."""

    model_config = ConfigDict(frozen=True)

    kind: ChangeKind
    tokens: tuple[str, ...] = Field(min_length=1)

    @property
    def count(self) -> int:
        return len(self.tokens)

    @property
    def is_change(self) -> bool:
        return self.kind != ChangeKind.UNCHANGED


class DiffStats(BaseModel):
    """Outcome of a token-level diff between an original and a modified text."""

    model_config = ConfigDict(frozen=True)

    additions: int = Field(ge=0)
    deletions: int = Field(ge=0)
    total_changes: int = Field(ge=0)
    similarity: float = Field(ge=0.0, le=1.0)
    changes: tuple[Change, ...] = ()
