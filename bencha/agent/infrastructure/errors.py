"""Error types raised by agent infrastructure."""

from bencha.core.errors import BenchaError


class AgentExecutionError(BenchaError):
    """Raised when an agent cannot complete an execution.

    Never escapes the orchestrator: it is captured into AgentExecutionResult.errors.
    """

    def __init__(self, reason: str, retriable: bool = False) -> None:
        super().__init__(f"Failed to execute agent: {reason}", retriable=retriable)


class AgentTypeNotSupportedError(BenchaError):
    """Raised when the agent type specified in config is not a known agent type."""

    def __init__(self, agent_type: str) -> None:
        self.agent_type = agent_type
        super().__init__(
            f"Failed to create agent: unsupported agent type '{agent_type}'"
        )
