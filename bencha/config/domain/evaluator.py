"""Evaluator configuration models — one typed config per built-in evaluator."""

from typing import Annotated, Literal

from pydantic import BaseModel, Field, field_validator

from bencha.config.domain.agent import AgentConfig

_DEFAULT_MAX_FILE_SIZE_BYTES = 10 * 1024 * 1024
_DEFAULT_JUDGE_TIMEOUT_MS = 300_000


class GitDiffAssertions(BaseModel, frozen=True):
    """Optional upper/lower bounds on the scope of the agent's change."""

    max_files_changed: int | None = Field(default=None, ge=0)
    max_lines_added: int | None = Field(default=None, ge=0)
    max_lines_removed: int | None = Field(default=None, ge=0)
    max_total_changes: int | None = Field(default=None, ge=0)
    min_change_entropy: float | None = Field(default=None, ge=0.0)
    max_change_entropy: float | None = Field(default=None, ge=0.0)


class GitDiffConfig(BaseModel, frozen=True):
    type: Literal["git-diff"]
    name: str | None = Field(default=None, min_length=1)
    base_ref: str = Field(default="HEAD", min_length=1)
    assertions: GitDiffAssertions = GitDiffAssertions()


class ExpectedDiffConfig(BaseModel, frozen=True):
    """Compare the agent's tree with a reference tree.

    `threshold` has no default: a benchmark must state how close is close enough.
    """

    type: Literal["expected-diff"]
    name: str | None = Field(default=None, min_length=1)
    threshold: float = Field(ge=0.0, le=1.0)
    max_file_size_bytes: int = Field(default=_DEFAULT_MAX_FILE_SIZE_BYTES, gt=0)


class AllAssertionsPolicy(BaseModel, frozen=True):
    """Pass only when every assertion scores at least `min_score`."""

    type: Literal["all"] = "all"
    min_score: float = Field(default=1.0, ge=0.0, le=1.0)


class MeanScorePolicy(BaseModel, frozen=True):
    """Pass when the mean assertion score reaches `threshold`."""

    type: Literal["mean"]
    threshold: float = Field(ge=0.0, le=1.0)


type PassPolicy = Annotated[
    AllAssertionsPolicy | MeanScorePolicy,
    Field(discriminator="type"),
]


class AgenticJudgeConfig(BaseModel, frozen=True):
    type: Literal["agentic-judge"]
    name: str | None = Field(default=None, min_length=1)
    agent: AgentConfig
    assertions: dict[str, str] = Field(min_length=1)
    instructions: str | None = Field(default=None, min_length=1)
    timeout_ms: int = Field(default=_DEFAULT_JUDGE_TIMEOUT_MS, gt=0)
    max_change_chars: int = Field(default=50_000, gt=0)
    pass_policy: PassPolicy = AllAssertionsPolicy()

    @field_validator("assertions", mode="before")
    @classmethod
    def _key_list_assertions(cls, value: object) -> object:
        """Accept a plain list of assertions, keyed assertion_1..assertion_n."""
        if isinstance(value, list):
            return {f"assertion_{i}": text for i, text in enumerate(value, start=1)}
        return value


type EvaluatorConfig = Annotated[
    GitDiffConfig | ExpectedDiffConfig | AgenticJudgeConfig,
    Field(discriminator="type"),
]


def evaluator_name(config: GitDiffConfig | ExpectedDiffConfig | AgenticJudgeConfig) -> str:
    """The name results are reported under: the explicit name, else the type."""
    return config.name or config.type
