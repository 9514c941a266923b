"""Structlog implementation of the AgentObserver port."""

import structlog


class StructlogAgentObserver:
    """Delegates agent domain events to structlog.

    Satisfies the AgentObserver protocol structurally.
    """

    def __init__(self) -> None:
        self._log = structlog.get_logger()

    def agent_execution_started(
        self, agent_type: str, cwd: str, timeout_ms: int
    ) -> None:
        self._log.info(
            "agent.execution_started",
            agent_type=agent_type,
            cwd=cwd,
            timeout_ms=timeout_ms,
        )

    def agent_execution_completed(
        self,
        agent_type: str,
        status: str,
        exit_code: int,
        duration_ms: int,
        output_truncated: bool,
    ) -> None:
        log = self._log.info if status == "success" else self._log.warning
        log(
            "agent.execution_completed",
            agent_type=agent_type,
            status=status,
            exit_code=exit_code,
            duration_ms=duration_ms,
            output_truncated=output_truncated,
        )

    def agent_execution_timed_out(
        self, agent_type: str, timeout_ms: int, force_killed: bool
    ) -> None:
        self._log.error(
            "agent.execution_timed_out",
            agent_type=agent_type,
            timeout_ms=timeout_ms,
            force_killed=force_killed,
        )
