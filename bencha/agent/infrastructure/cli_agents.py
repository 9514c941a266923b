"""Subprocess-backed agents: the Claude Code CLI and arbitrary commands."""

import shutil
from pathlib import Path

from bencha.agent.domain.context import AgentExecutionContext
from bencha.agent.domain.observer import AgentObserver
from bencha.agent.domain.result import AgentExecutionResult
from bencha.agent.infrastructure.process import DEFAULT_MAX_OUTPUT_BYTES, execute_process
from bencha.config.domain.agent import ClaudeCodeAgentConfig, CommandAgentConfig


class ClaudeCodeAgent:
    """Runs `claude -p <prompt>` headless inside the repository under test."""

    def __init__(
        self,
        config: ClaudeCodeAgentConfig,
        observer: AgentObserver,
        max_output_bytes: int = DEFAULT_MAX_OUTPUT_BYTES,
    ) -> None:
        self._config = config
        self._observer = observer
        self._max_output_bytes = max_output_bytes

    @property
    def agent_type(self) -> str:
        return self._config.type

    async def check_availability(self) -> bool:
        return shutil.which(self._config.binary) is not None

    async def execute(self, context: AgentExecutionContext) -> AgentExecutionResult:
        return await execute_process(
            agent_type=self.agent_type,
            argv=self._argv(prompt=context.prompt),
            context=context,
            observer=self._observer,
            max_output_bytes=self._max_output_bytes,
        )

    def _argv(self, prompt: str) -> list[str]:
        argv = [self._config.binary, "-p", prompt]
        if self._config.model:
            argv += ["--model", self._config.model]
        return argv + list(self._config.extra_args)


class CommandAgent:
    """Runs a configured argv; the prompt, when non-empty, is written to stdin."""

    def __init__(
        self,
        config: CommandAgentConfig,
        observer: AgentObserver,
        max_output_bytes: int = DEFAULT_MAX_OUTPUT_BYTES,
    ) -> None:
        self._config = config
        self._observer = observer
        self._max_output_bytes = max_output_bytes

    @property
    def agent_type(self) -> str:
        return self._config.type

    async def check_availability(self) -> bool:
        executable = self._config.command[0]
        if shutil.which(executable) is not None:
            return True
        return Path(executable).is_file()

    async def execute(self, context: AgentExecutionContext) -> AgentExecutionResult:
        return await execute_process(
            agent_type=self.agent_type,
            argv=list(self._config.command),
            context=context,
            observer=self._observer,
            max_output_bytes=self._max_output_bytes,
            stdin_data=context.prompt or None,
            extra_env=self._config.env,
        )
