"""AgentExecutionContext — everything an agent needs for one bounded execution."""

from pathlib import Path

from pydantic import BaseModel, ConfigDict, Field


class AgentExecutionContext(BaseModel):
    """Explicit inputs for one execution; agents read nothing from global state.

    `repo_dir` is the tree the agent may modify and the process working
    directory. `env` is merged over the parent environment.
    """

    model_config = ConfigDict(frozen=True)

    workspace_dir: Path
    repo_dir: Path
    artifacts_dir: Path
    prompt: str
    timeout_ms: int = Field(gt=0)
    env: dict[str, str] = Field(default_factory=dict)
