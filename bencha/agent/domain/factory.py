"""AgentFactory Protocol — structural interface for constructing Agent instances."""

from typing import Protocol

from bencha.agent.domain.agent import Agent
from bencha.config.domain.agent import AgentConfig


class AgentFactory(Protocol):
    """Constructs a new Agent for a typed agent config."""

    def create(self, config: AgentConfig) -> Agent: ...
