"""Agent configuration models — discriminated union on `type` field."""

from typing import Annotated, Literal

from pydantic import BaseModel, Field

_MAX_PROMPT_LENGTH = 50_000


class ClaudeCodeAgentConfig(BaseModel, frozen=True):
    """Claude Code CLI run headless with `-p <prompt>`."""

    type: Literal["claude-code"]
    prompt: str | None = Field(default=None, min_length=1, max_length=_MAX_PROMPT_LENGTH)
    model: str | None = Field(default=None, min_length=1)
    binary: str = Field(default="claude", min_length=1)
    extra_args: list[str] = Field(default_factory=list)


class CommandAgentConfig(BaseModel, frozen=True):
    """Arbitrary argv launched in the workspace; the prompt, if any, goes to stdin."""

    type: Literal["command"]
    command: list[str] = Field(min_length=1)
    prompt: str | None = Field(default=None, max_length=_MAX_PROMPT_LENGTH)
    env: dict[str, str] = Field(default_factory=dict)


class LiteLLMAgentConfig(BaseModel, frozen=True):
    """A single LiteLLM completion; mostly used as an agentic-judge backend."""

    type: Literal["litellm"]
    model: str = Field(min_length=1)
    temperature: float = Field(default=0.0, ge=0.0)
    prompt: str | None = Field(default=None, max_length=_MAX_PROMPT_LENGTH)


type AgentConfig = Annotated[
    ClaudeCodeAgentConfig | CommandAgentConfig | LiteLLMAgentConfig,
    Field(discriminator="type"),
]
