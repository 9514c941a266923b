"""Post-evaluation hook configuration — actions run once results.json has been written."""

from typing import Annotated, Literal

from pydantic import BaseModel, Field, HttpUrl

_DEFAULT_WEBHOOK_TIMEOUT_MS = 5_000
_DEFAULT_SCRIPT_TIMEOUT_MS = 30_000

# Filled in per run by script hooks; the config loader leaves these references literal.
HOOK_VARIABLES = frozenset(
    {"RESULTS_PATH", "ARTIFACTS_DIR", "WORKSPACE_DIR", "TEST_CASE_NAME", "OVERALL_STATUS"}
)


class WebhookHookConfig(BaseModel, frozen=True):
    """POST the results bundle as JSON to `url`."""

    type: Literal["webhook"]
    name: str | None = Field(default=None, min_length=1)
    url: HttpUrl
    method: Literal["POST", "PUT", "PATCH"] = "POST"
    headers: dict[str, str] = Field(default_factory=dict)
    include_artifacts: bool = False
    retry_on_failure: bool = True
    timeout_ms: int = Field(default=_DEFAULT_WEBHOOK_TIMEOUT_MS, gt=0)


class ScriptHookConfig(BaseModel, frozen=True):
    """Run `command` with the run's paths in its environment.

    `${RESULTS_PATH}`, `${ARTIFACTS_DIR}`, `${WORKSPACE_DIR}`, `${TEST_CASE_NAME}`
    and `${OVERALL_STATUS}` are substituted in the command's arguments.
    """

    type: Literal["script"]
    name: str | None = Field(default=None, min_length=1)
    command: list[str] = Field(min_length=1)
    env: dict[str, str] = Field(default_factory=dict)
    working_dir: str | None = Field(default=None, min_length=1)
    timeout_ms: int = Field(default=_DEFAULT_SCRIPT_TIMEOUT_MS, gt=0)


type HookConfig = Annotated[
    WebhookHookConfig | ScriptHookConfig,
    Field(discriminator="type"),
]


def hook_name(config: WebhookHookConfig | ScriptHookConfig) -> str:
    """The name hook outcomes are reported under: the explicit name, else the type."""
    return config.name or config.type
