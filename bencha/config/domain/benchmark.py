"""BenchmarkConfig — the root configuration object for one benchmark test case."""

import ipaddress
from urllib.parse import urlparse

from pydantic import BaseModel, Field, field_validator

from bencha.config.domain.agent import AgentConfig
from bencha.config.domain.evaluator import EvaluatorConfig
from bencha.config.domain.hook import HookConfig

_DEFAULT_TIMEOUT_MS = 30 * 60 * 1000
_DEFAULT_MAX_OUTPUT_BYTES = 10 * 1024 * 1024
_LOCAL_HOSTNAMES = {"localhost", "0.0.0.0"}


class BenchmarkConfig(BaseModel, frozen=True):
    """One test case: which repository to check out, which agent to run, how to score it."""

    name: str = Field(min_length=1, max_length=200)
    description: str = Field(default="", max_length=1000)
    repo: str = Field(min_length=1)
    branch: str | None = Field(default=None, min_length=1)
    commit: str | None = Field(default=None, min_length=1)
    expected_branch: str | None = Field(default=None, min_length=1)
    agent: AgentConfig
    evaluators: list[EvaluatorConfig] = Field(min_length=1)
    post_evaluation: list[HookConfig] = Field(default_factory=list)
    timeout_ms: int = Field(default=_DEFAULT_TIMEOUT_MS, gt=0)
    max_output_bytes: int = Field(default=_DEFAULT_MAX_OUTPUT_BYTES, gt=0)

    @field_validator("repo")
    @classmethod
    def _reject_private_network_urls(cls, value: str) -> str:
        """Remote repositories must be public; local paths are accepted as-is."""
        parsed = urlparse(value)
        if parsed.scheme not in ("http", "https"):
            return value
        hostname = (parsed.hostname or "").lower()
        if not hostname:
            raise ValueError(f"repository URL has no host: {value!r}")
        if hostname in _LOCAL_HOSTNAMES or _is_private_address(hostname):
            raise ValueError(
                f"repository URL must point to a public host, got {hostname!r}"
            )
        return value


def _is_private_address(hostname: str) -> bool:
    try:
        address = ipaddress.ip_address(hostname)
    except ValueError:
        return False
    return address.is_private or address.is_loopback or address.is_unspecified
