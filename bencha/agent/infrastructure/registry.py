"""Agent registry — maps an agent config's `type` to the constructor that builds it."""

from collections.abc import Callable
from typing import Any

from bencha.agent.domain.agent import Agent
from bencha.agent.domain.observer import AgentObserver
from bencha.agent.infrastructure.cli_agents import ClaudeCodeAgent, CommandAgent
from bencha.agent.infrastructure.errors import AgentTypeNotSupportedError
from bencha.agent.infrastructure.litellm_agent import LiteLLMAgent
from bencha.agent.infrastructure.process import DEFAULT_MAX_OUTPUT_BYTES
from bencha.config.domain.agent import AgentConfig

type AgentConstructor = Callable[[Any, AgentObserver, int], Agent]

_CONSTRUCTORS: dict[str, AgentConstructor] = {
    "claude-code": lambda config, observer, max_output_bytes: ClaudeCodeAgent(
        config=config, observer=observer, max_output_bytes=max_output_bytes
    ),
    "command": lambda config, observer, max_output_bytes: CommandAgent(
        config=config, observer=observer, max_output_bytes=max_output_bytes
    ),
    "litellm": lambda config, observer, max_output_bytes: LiteLLMAgent(
        config=config, observer=observer
    ),
}


class AgentRegistry:
    """Builds Agent instances from typed configs.

    Extra constructors can be registered for agent types that ship outside
    this package.
    """

    def __init__(
        self,
        observer: AgentObserver,
        max_output_bytes: int = DEFAULT_MAX_OUTPUT_BYTES,
    ) -> None:
        self._observer = observer
        self._max_output_bytes = max_output_bytes
        self._constructors = dict(_CONSTRUCTORS)

    def register(self, agent_type: str, constructor: AgentConstructor) -> None:
        self._constructors[agent_type] = constructor

    def create(self, config: AgentConfig) -> Agent:
        """Return a new Agent for config.

        Raises:
            AgentTypeNotSupportedError: if no constructor is registered for config.type.
        """
        constructor = self._constructors.get(config.type)
        if constructor is None:
            raise AgentTypeNotSupportedError(agent_type=config.type)
        return constructor(config, self._observer, self._max_output_bytes)
