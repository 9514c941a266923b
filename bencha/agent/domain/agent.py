"""Agent Protocol — structural interface for the code-modification capability under test."""

from typing import Protocol

from bencha.agent.domain.context import AgentExecutionContext
from bencha.agent.domain.result import AgentExecutionResult


class Agent(Protocol):
    """A black-box, bounded execution unit.

    `execute` must return within roughly `context.timeout_ms` plus a short
    grace period, whatever the underlying process does.
    """

    @property
    def agent_type(self) -> str: ...

    async def check_availability(self) -> bool: ...

    async def execute(self, context: AgentExecutionContext) -> AgentExecutionResult: ...
