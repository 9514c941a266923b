"""Bounded subprocess execution — timeout race, process-group termination, capped output."""

import asyncio
import os
import signal
import time
from dataclasses import dataclass
from datetime import UTC, datetime
from pathlib import Path

from bencha.agent.domain.context import AgentExecutionContext
from bencha.agent.domain.observer import AgentObserver
from bencha.agent.domain.result import (
    AgentError,
    AgentErrorKind,
    AgentExecutionResult,
    AgentStatus,
)

DEFAULT_MAX_OUTPUT_BYTES = 10 * 1024 * 1024
DEFAULT_GRACE_PERIOD_SECONDS = 5.0
_READ_CHUNK_BYTES = 64 * 1024


class BoundedOutput:
    """Accumulates process output up to limit_bytes and drops the rest."""

    def __init__(self, limit_bytes: int) -> None:
        self._limit = limit_bytes
        self._chunks: list[bytes] = []
        self._size = 0
        self.truncated = False

    @property
    def size(self) -> int:
        return self._size

    def append(self, chunk: bytes) -> None:
        if not chunk:
            return
        remaining = self._limit - self._size
        if remaining <= 0:
            self.truncated = True
            return
        if len(chunk) > remaining:
            chunk = chunk[:remaining]
            self.truncated = True
        self._chunks.append(chunk)
        self._size += len(chunk)

    def text(self) -> str:
        decoded = b"".join(self._chunks).decode("utf-8", errors="replace")
        if self.truncated:
            decoded += f"\n[OUTPUT TRUNCATED: exceeded {self._limit} bytes]"
        return decoded


@dataclass(frozen=True)
class ProcessOutcome:
    exit_code: int
    output: str
    output_truncated: bool
    timed_out: bool
    force_killed: bool
    duration_ms: int
    spawn_error: str | None = None


async def run_bounded(
    argv: list[str],
    cwd: Path,
    env: dict[str, str],
    timeout_ms: int,
    max_output_bytes: int = DEFAULT_MAX_OUTPUT_BYTES,
    stdin_data: str | None = None,
    grace_period_seconds: float = DEFAULT_GRACE_PERIOD_SECONDS,
) -> ProcessOutcome:
    """Run argv to completion or until timeout_ms elapses, whichever comes first.

    The process gets its own session so that termination reaches every child
    it spawned: SIGTERM first, SIGKILL once grace_period_seconds have passed.
    stdout and stderr are merged into a single bounded buffer.
    """
    start = time.monotonic()
    try:
        process = await asyncio.create_subprocess_exec(
            *argv,
            stdin=asyncio.subprocess.PIPE
            if stdin_data is not None
            else asyncio.subprocess.DEVNULL,
            stdout=asyncio.subprocess.PIPE,
            stderr=asyncio.subprocess.STDOUT,
            cwd=cwd,
            env={**os.environ, **env},
            start_new_session=True,
        )
    except OSError as exc:
        return ProcessOutcome(
            exit_code=-1,
            output="",
            output_truncated=False,
            timed_out=False,
            force_killed=False,
            duration_ms=_elapsed_ms(start=start),
            spawn_error=f"Failed to start {argv[0]}: {exc}",
        )

    buffer = BoundedOutput(limit_bytes=max_output_bytes)
    reader = asyncio.create_task(_drain(stream=process.stdout, buffer=buffer))
    feeder = (
        asyncio.create_task(_feed(process=process, data=stdin_data))
        if stdin_data is not None
        else None
    )

    exited = asyncio.create_task(process.wait())
    done, _ = await asyncio.wait({exited}, timeout=timeout_ms / 1000)
    timed_out = exited not in done
    force_killed = False

    if timed_out:
        _signal_group(process=process, sig=signal.SIGTERM)
        done, _ = await asyncio.wait({exited}, timeout=grace_period_seconds)
        if exited not in done:
            _signal_group(process=process, sig=signal.SIGKILL)
            force_killed = True
            await exited

    # A detached grandchild may still hold the pipe open; stop reading after the grace period.
    done, _ = await asyncio.wait({reader}, timeout=grace_period_seconds)
    if reader not in done:
        reader.cancel()
    if feeder is not None and not feeder.done():
        feeder.cancel()

    return ProcessOutcome(
        exit_code=exited.result(),
        output=buffer.text(),
        output_truncated=buffer.truncated,
        timed_out=timed_out,
        force_killed=force_killed,
        duration_ms=_elapsed_ms(start=start),
    )


async def execute_process(
    agent_type: str,
    argv: list[str],
    context: AgentExecutionContext,
    observer: AgentObserver,
    max_output_bytes: int = DEFAULT_MAX_OUTPUT_BYTES,
    stdin_data: str | None = None,
    extra_env: dict[str, str] | None = None,
    grace_period_seconds: float = DEFAULT_GRACE_PERIOD_SECONDS,
) -> AgentExecutionResult:
    """Run argv for an agent and translate the outcome into an AgentExecutionResult."""
    observer.agent_execution_started(
        agent_type=agent_type,
        cwd=str(context.repo_dir),
        timeout_ms=context.timeout_ms,
    )
    started_at = datetime.now(UTC)
    outcome = await run_bounded(
        argv=argv,
        cwd=context.repo_dir,
        env={**(extra_env or {}), **context.env},
        timeout_ms=context.timeout_ms,
        max_output_bytes=max_output_bytes,
        stdin_data=stdin_data,
        grace_period_seconds=grace_period_seconds,
    )
    completed_at = datetime.now(UTC)

    if outcome.timed_out:
        observer.agent_execution_timed_out(
            agent_type=agent_type,
            timeout_ms=context.timeout_ms,
            force_killed=outcome.force_killed,
        )

    status, errors = _classify(outcome=outcome, timeout_ms=context.timeout_ms)
    observer.agent_execution_completed(
        agent_type=agent_type,
        status=status,
        exit_code=outcome.exit_code,
        duration_ms=outcome.duration_ms,
        output_truncated=outcome.output_truncated,
    )
    return AgentExecutionResult(
        agent_type=agent_type,
        status=status,
        exit_code=outcome.exit_code,
        output=outcome.output,
        output_truncated=outcome.output_truncated,
        started_at=started_at,
        completed_at=completed_at,
        duration_ms=outcome.duration_ms,
        errors=errors,
    )


def _classify(
    outcome: ProcessOutcome, timeout_ms: int
) -> tuple[AgentStatus, list[AgentError]]:
    if outcome.spawn_error is not None:
        return AgentStatus.FAILED, [
            AgentError(kind=AgentErrorKind.SPAWN, message=outcome.spawn_error)
        ]
    if outcome.timed_out:
        return AgentStatus.TIMEOUT, [
            AgentError(
                kind=AgentErrorKind.TIMEOUT,
                message=f"Execution timed out after {timeout_ms}ms",
            )
        ]
    if outcome.exit_code != 0:
        return AgentStatus.FAILED, [
            AgentError(
                kind=AgentErrorKind.EXIT_CODE,
                message=f"Process exited with code {outcome.exit_code}",
            )
        ]
    return AgentStatus.SUCCESS, []


async def _drain(stream: asyncio.StreamReader | None, buffer: BoundedOutput) -> None:
    if stream is None:
        return
    while chunk := await stream.read(_READ_CHUNK_BYTES):
        buffer.append(chunk)


async def _feed(process: asyncio.subprocess.Process, data: str) -> None:
    if process.stdin is None:
        return
    try:
        process.stdin.write(data.encode("utf-8"))
        await process.stdin.drain()
        process.stdin.close()
    except (BrokenPipeError, ConnectionResetError):
        # The process exited without reading its input; its exit code tells the story.
        return


def _signal_group(process: asyncio.subprocess.Process, sig: signal.Signals) -> None:
    try:
        os.killpg(process.pid, sig)
    except ProcessLookupError:
        return


def _elapsed_ms(start: float) -> int:
    return int((time.monotonic() - start) * 1000)
