"""LiteLLMAgent — a single chat completion exposed through the Agent protocol.

It cannot edit files, so it is only useful where the output text is the
product, as with the agentic-judge evaluator.
"""

import asyncio
import time
from datetime import UTC, datetime

import litellm

from bencha.agent.domain.context import AgentExecutionContext
from bencha.agent.domain.observer import AgentObserver
from bencha.agent.domain.result import (
    AgentError,
    AgentErrorKind,
    AgentExecutionResult,
    AgentStatus,
)
from bencha.agent.infrastructure.errors import AgentExecutionError
from bencha.config.domain.agent import LiteLLMAgentConfig


class LiteLLMAgent:
    def __init__(self, config: LiteLLMAgentConfig, observer: AgentObserver) -> None:
        self._config = config
        self._observer = observer

    @property
    def agent_type(self) -> str:
        return self._config.type

    async def check_availability(self) -> bool:
        report = litellm.validate_environment(model=self._config.model)
        return bool(report.get("keys_in_environment", False))

    async def execute(self, context: AgentExecutionContext) -> AgentExecutionResult:
        """Request one completion, racing it against context.timeout_ms."""
        self._observer.agent_execution_started(
            agent_type=self.agent_type,
            cwd=str(context.repo_dir),
            timeout_ms=context.timeout_ms,
        )
        started_at = datetime.now(UTC)
        start = time.monotonic()

        completion = asyncio.create_task(
            litellm.acompletion(
                model=self._config.model,
                temperature=self._config.temperature,
                messages=[{"role": "user", "content": context.prompt}],
            )
        )
        done, _ = await asyncio.wait({completion}, timeout=context.timeout_ms / 1000)

        output = ""
        errors: list[AgentError] = []
        if completion not in done:
            completion.cancel()
            status = AgentStatus.TIMEOUT
            errors.append(
                AgentError(
                    kind=AgentErrorKind.TIMEOUT,
                    message=f"Execution timed out after {context.timeout_ms}ms",
                )
            )
            self._observer.agent_execution_timed_out(
                agent_type=self.agent_type,
                timeout_ms=context.timeout_ms,
                force_killed=False,
            )
        elif completion.exception() is not None:
            status = AgentStatus.FAILED
            failure = AgentExecutionError(
                reason=f"{self._config.model}: {completion.exception()}", retriable=True
            )
            errors.append(AgentError(kind=AgentErrorKind.RUNTIME, message=str(failure)))
        else:
            status = AgentStatus.SUCCESS
            output = completion.result().choices[0].message.content or ""

        duration_ms = int((time.monotonic() - start) * 1000)
        exit_code = 0 if status == AgentStatus.SUCCESS else 1
        self._observer.agent_execution_completed(
            agent_type=self.agent_type,
            status=status,
            exit_code=exit_code,
            duration_ms=duration_ms,
            output_truncated=False,
        )
        return AgentExecutionResult(
            agent_type=self.agent_type,
            status=status,
            exit_code=exit_code,
            output=output,
            started_at=started_at,
            completed_at=datetime.now(UTC),
            duration_ms=duration_ms,
            errors=errors,
        )
