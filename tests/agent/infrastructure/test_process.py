"""Tests for bounded subprocess execution."""

import time
from pathlib import Path

from bencha.agent.domain.context import AgentExecutionContext
from bencha.agent.domain.result import AgentErrorKind, AgentStatus
from bencha.agent.infrastructure.process import BoundedOutput, execute_process, run_bounded
from tests.agent.fake_observer import FakeAgentObserver


def _context(repo: Path, timeout_ms: int = 10_000, **env: str) -> AgentExecutionContext:
    return AgentExecutionContext(
        workspace_dir=repo.parent,
        repo_dir=repo,
        artifacts_dir=repo.parent / "artifacts",
        prompt="",
        timeout_ms=timeout_ms,
        env=env,
    )


class TestBoundedOutput:
    """Output beyond the limit is dropped and the text is marked truncated."""

    def test_under_limit(self) -> None:
        buffer = BoundedOutput(limit_bytes=10)
        buffer.append(b"hello")
        assert buffer.text() == "hello"
        assert buffer.truncated is False

    def test_over_limit_keeps_prefix(self) -> None:
        buffer = BoundedOutput(limit_bytes=4)
        buffer.append(b"abc")
        buffer.append(b"defg")
        assert buffer.size == 4
        assert buffer.truncated is True
        assert buffer.text().startswith("abcd\n[OUTPUT TRUNCATED")

    def test_chunks_after_limit_are_dropped(self) -> None:
        buffer = BoundedOutput(limit_bytes=2)
        buffer.append(b"ab")
        buffer.append(b"cd")
        assert buffer.size == 2
        assert buffer.truncated is True

    def test_invalid_utf8_is_replaced(self) -> None:
        buffer = BoundedOutput(limit_bytes=10)
        buffer.append(b"\xff")
        assert buffer.text() == "�"


class TestRunBounded:
    """run_bounded races the process against its deadline."""

    async def test_captures_merged_output(self, tmp_path: Path) -> None:
        outcome = await run_bounded(
            argv=["sh", "-c", "echo out; echo err >&2"],
            cwd=tmp_path,
            env={},
            timeout_ms=10_000,
        )
        assert outcome.exit_code == 0
        assert "out" in outcome.output
        assert "err" in outcome.output
        assert outcome.timed_out is False

    async def test_runs_in_cwd(self, tmp_path: Path) -> None:
        outcome = await run_bounded(argv=["pwd"], cwd=tmp_path, env={}, timeout_ms=10_000)
        assert Path(outcome.output.strip()).resolve() == tmp_path.resolve()

    async def test_env_is_merged(self, tmp_path: Path) -> None:
        outcome = await run_bounded(
            argv=["sh", "-c", "echo $BENCHA_TEST_VAR"],
            cwd=tmp_path,
            env={"BENCHA_TEST_VAR": "from-context"},
            timeout_ms=10_000,
        )
        assert outcome.output.strip() == "from-context"

    async def test_stdin_is_fed(self, tmp_path: Path) -> None:
        outcome = await run_bounded(
            argv=["cat"], cwd=tmp_path, env={}, timeout_ms=10_000, stdin_data="fix it"
        )
        assert outcome.output == "fix it"

    async def test_timeout_terminates_process(self, tmp_path: Path) -> None:
        start = time.monotonic()
        outcome = await run_bounded(
            argv=["sleep", "30"],
            cwd=tmp_path,
            env={},
            timeout_ms=200,
            grace_period_seconds=2.0,
        )
        assert outcome.timed_out is True
        assert outcome.force_killed is False
        assert outcome.exit_code != 0
        assert time.monotonic() - start < 10

    async def test_ignored_sigterm_is_force_killed(self, tmp_path: Path) -> None:
        outcome = await run_bounded(
            argv=["sh", "-c", "trap '' TERM; sleep 30"],
            cwd=tmp_path,
            env={},
            timeout_ms=200,
            grace_period_seconds=0.3,
        )
        assert outcome.timed_out is True
        assert outcome.force_killed is True

    async def test_output_is_capped(self, tmp_path: Path) -> None:
        outcome = await run_bounded(
            argv=["head", "-c", "100000", "/dev/zero"],
            cwd=tmp_path,
            env={},
            timeout_ms=10_000,
            max_output_bytes=1000,
        )
        assert outcome.output_truncated is True
        assert "[OUTPUT TRUNCATED: exceeded 1000 bytes]" in outcome.output

    async def test_missing_binary(self, tmp_path: Path) -> None:
        outcome = await run_bounded(
            argv=["/nonexistent/agent-binary"], cwd=tmp_path, env={}, timeout_ms=1000
        )
        assert outcome.exit_code == -1
        assert outcome.spawn_error is not None
        assert outcome.spawn_error.startswith("Failed to start")


class TestExecuteProcess:
    """execute_process classifies outcomes and reports them to the observer."""

    async def test_success(self, tmp_path: Path) -> None:
        observer = FakeAgentObserver()
        result = await execute_process(
            agent_type="command",
            argv=["echo", "patched"],
            context=_context(tmp_path),
            observer=observer,
        )
        assert result.status == AgentStatus.SUCCESS
        assert result.exit_code == 0
        assert result.output == "patched\n"
        assert result.errors == []
        assert observer.started[0].cwd == str(tmp_path)
        assert observer.completed[0].status == "success"

    async def test_non_zero_exit(self, tmp_path: Path) -> None:
        result = await execute_process(
            agent_type="command",
            argv=["sh", "-c", "exit 3"],
            context=_context(tmp_path),
            observer=FakeAgentObserver(),
        )
        assert result.status == AgentStatus.FAILED
        assert result.exit_code == 3
        assert result.errors[0].kind == AgentErrorKind.EXIT_CODE
        assert result.errors[0].message == "Process exited with code 3"

    async def test_timeout(self, tmp_path: Path) -> None:
        observer = FakeAgentObserver()
        result = await execute_process(
            agent_type="command",
            argv=["sleep", "30"],
            context=_context(tmp_path, timeout_ms=200),
            observer=observer,
            grace_period_seconds=2.0,
        )
        assert result.status == AgentStatus.TIMEOUT
        assert result.errors[0].kind == AgentErrorKind.TIMEOUT
        assert result.errors[0].message == "Execution timed out after 200ms"
        assert len(observer.timed_out) == 1
        assert observer.timed_out[0].timeout_ms == 200

    async def test_spawn_failure(self, tmp_path: Path) -> None:
        result = await execute_process(
            agent_type="command",
            argv=["/nonexistent/agent-binary"],
            context=_context(tmp_path),
            observer=FakeAgentObserver(),
        )
        assert result.status == AgentStatus.FAILED
        assert result.exit_code == -1
        assert result.errors[0].kind == AgentErrorKind.SPAWN

    async def test_truncation_is_reported(self, tmp_path: Path) -> None:
        observer = FakeAgentObserver()
        result = await execute_process(
            agent_type="command",
            argv=["head", "-c", "5000", "/dev/zero"],
            context=_context(tmp_path),
            observer=observer,
            max_output_bytes=100,
        )
        assert result.output_truncated is True
        assert observer.completed[0].output_truncated is True

    async def test_context_env_overrides_extra_env(self, tmp_path: Path) -> None:
        result = await execute_process(
            agent_type="command",
            argv=["sh", "-c", "echo $BENCHA_TEST_VAR"],
            context=_context(tmp_path, BENCHA_TEST_VAR="context"),
            observer=FakeAgentObserver(),
            extra_env={"BENCHA_TEST_VAR": "config"},
        )
        assert result.output.strip() == "context"
