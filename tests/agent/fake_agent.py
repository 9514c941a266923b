"""FakeAgent — in-memory Agent implementation for use in tests."""

from datetime import UTC, datetime

from bencha.agent.domain.context import AgentExecutionContext
from bencha.agent.domain.result import AgentExecutionResult, AgentStatus


def make_execution_result(
    status: AgentStatus = AgentStatus.SUCCESS,
    output: str = "done",
    exit_code: int | None = None,
    agent_type: str = "command",
) -> AgentExecutionResult:
    now = datetime.now(UTC)
    if exit_code is None:
        exit_code = 0 if status == AgentStatus.SUCCESS else 1
    return AgentExecutionResult(
        agent_type=agent_type,
        status=status,
        exit_code=exit_code,
        output=output,
        started_at=now,
        completed_at=now,
        duration_ms=5,
    )


class FakeAgent:
    """Satisfies the Agent protocol. Returns a canned result for any execution.

    If side_effects is provided, each call pops from the front of the list:
    - If the item is an Exception, it is raised.
    - If the item is an AgentExecutionResult, it is returned.
    Once the list is exhausted, the default result is returned for all subsequent calls.

    Every context passed to execute() is recorded in `contexts`.
    """

    def __init__(
        self,
        result: AgentExecutionResult | None = None,
        side_effects: list[AgentExecutionResult | Exception] | None = None,
        available: bool = True,
        agent_type: str = "command",
    ) -> None:
        self._result = result or make_execution_result(agent_type=agent_type)
        self._side_effects: list[AgentExecutionResult | Exception] = (
            list(side_effects) if side_effects is not None else []
        )
        self._available = available
        self._agent_type = agent_type
        self.contexts: list[AgentExecutionContext] = []

    @property
    def agent_type(self) -> str:
        return self._agent_type

    async def check_availability(self) -> bool:
        return self._available

    async def execute(self, context: AgentExecutionContext) -> AgentExecutionResult:
        self.contexts.append(context)
        if self._side_effects:
            effect = self._side_effects.pop(0)
            if isinstance(effect, Exception):
                raise effect
            return effect
        return self._result
