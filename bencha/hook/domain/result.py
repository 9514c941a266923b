"""HookResult value object — the outcome of one post-evaluation hook."""

from enum import StrEnum
from typing import Any

from pydantic import BaseModel, ConfigDict, Field


class HookStatus(StrEnum):
    SUCCESS = "success"
    FAILED = "failed"
    SKIPPED = "skipped"


class HookResult(BaseModel):
    model_config = ConfigDict(frozen=True)

    hook: str = Field(min_length=1)
    status: HookStatus
    message: str
    duration_ms: int = Field(default=0, ge=0)
    metadata: dict[str, Any] = Field(default_factory=dict)
