"""AgentObserver port — domain events emitted during agent executions."""

from typing import Protocol


class AgentObserver(Protocol):
    """Observer port for agent domain events.

    Implementations may log to structlog, record for tests, or emit metrics.
    """

    def agent_execution_started(
        self, agent_type: str, cwd: str, timeout_ms: int
    ) -> None: ...

    def agent_execution_completed(
        self,
        agent_type: str,
        status: str,
        exit_code: int,
        duration_ms: int,
        output_truncated: bool,
    ) -> None: ...

    def agent_execution_timed_out(
        self, agent_type: str, timeout_ms: int, force_killed: bool
    ) -> None: ...
