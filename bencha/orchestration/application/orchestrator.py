"""Orchestrator — drives one run from workspace checkout to a written ResultsBundle."""

import asyncio
import os
import platform
import sys
import time
from datetime import UTC, datetime
from pathlib import Path

from pydantic import BaseModel, Field

from bencha.agent.domain.context import AgentExecutionContext
from bencha.agent.domain.factory import AgentFactory
from bencha.agent.domain.result import (
    AgentError,
    AgentErrorKind,
    AgentExecutionResult,
    AgentStatus,
)
from bencha.config.domain.benchmark import BenchmarkConfig
from bencha.config.domain.evaluator import EvaluatorConfig, evaluator_name
from bencha.config.domain.hook import HookConfig, hook_name
from bencha.config.domain.source import ConfigSource
from bencha.core.errors import InfrastructureError
from bencha.core.sanitize import sanitize_error, sanitize_message
from bencha.core.version import BENCHA_VERSION
from bencha.evaluator.domain.context import EvaluationContext
from bencha.evaluator.domain.factory import EvaluatorFactory
from bencha.evaluator.domain.result import EvaluatorResult, EvaluatorStatus
from bencha.evaluator.infrastructure.artifacts import write_artifact
from bencha.hook.domain.factory import HookFactory
from bencha.hook.domain.hook import HookContext
from bencha.hook.domain.result import HookResult, HookStatus
from bencha.orchestration.domain.bundle import (
    AGENT_SKIPPED,
    AgentSection,
    BundleArtifacts,
    CaseMetadata,
    ExecutionEnvironment,
    ExecutionMetadata,
    ResultsBundle,
    RunSection,
    run_status,
    summarize,
)
from bencha.orchestration.domain.observer import RunObserver
from bencha.orchestration.domain.run import RunState, RunStateMachine
from bencha.workspace.domain.naming import generate_run_id
from bencha.workspace.domain.provider import WorkspaceProvider
from bencha.workspace.domain.workspace import Workspace

AGENT_LOG_FILENAME = "agent-output.log"
RESULTS_FILENAME = "results.json"
NO_AGENT = "none"

_AGENT_OUTCOME_STATES = {
    AgentStatus.SUCCESS: RunState.AGENT_SUCCEEDED,
    AgentStatus.FAILED: RunState.AGENT_FAILED,
    AgentStatus.TIMEOUT: RunState.AGENT_TIMEOUT,
}


class OrchestratorOptions(BaseModel, frozen=True):
    keep_workspace: bool = False
    keep_artifacts: bool = True
    max_concurrent_evaluators: int = Field(default=4, ge=1)
    workspace_root: Path = Path(".bencha-workspace")


class Orchestrator:
    """Runs the workspace → agent → evaluators pipeline for one benchmark config.

    All collaborators are injected. Only InfrastructureError escapes a run;
    agent failures are recorded in the agent section and evaluator failures
    become `error` results.
    """

    def __init__(
        self,
        workspaces: WorkspaceProvider,
        agent_factory: AgentFactory,
        evaluator_factory: EvaluatorFactory,
        observer: RunObserver,
        options: OrchestratorOptions | None = None,
        hook_factory: HookFactory | None = None,
    ) -> None:
        self._workspaces = workspaces
        self._agent_factory = agent_factory
        self._evaluator_factory = evaluator_factory
        self._observer = observer
        self._options = options or OrchestratorOptions()
        self._hook_factory = hook_factory

    async def run_evaluation(
        self, config: BenchmarkConfig, source: ConfigSource | None = None
    ) -> ResultsBundle:
        """Check out the repository, run the agent, score the result.

        Raises:
            InfrastructureError: if the workspace cannot be prepared or artifacts
                cannot be written. The workspace is cleaned up either way; a
                cleanup failure is reported through run_cleanup_failed instead.
        """
        machine = RunStateMachine(
            run_id=generate_run_id(name=config.name, now=datetime.now(UTC))
        )
        started_at = datetime.now(UTC)
        started = time.monotonic()
        self._observer.run_started(
            run_id=machine.run_id,
            test_case=config.name,
            total_evaluators=len(config.evaluators),
            evaluation_only=False,
        )

        try:
            workspace = await self._workspaces.create(config=config, run_id=machine.run_id)
        except InfrastructureError as exc:
            self._observer.run_aborted(run_id=machine.run_id, reason=str(exc))
            raise

        try:
            self._advance(machine=machine, to_state=RunState.WORKSPACE_READY)
            execution = await self._run_agent(
                machine=machine, config=config, workspace=workspace
            )
            log_path = await write_artifact(
                artifacts_dir=workspace.artifacts_dir,
                filename=AGENT_LOG_FILENAME,
                content=execution.output,
            )
            agent = AgentSection(
                type=execution.agent_type,
                status=execution.status.value,
                exit_code=execution.exit_code,
                log_path=str(log_path),
                duration_ms=execution.duration_ms,
                output_truncated=execution.output_truncated,
                errors=execution.errors,
            )
            return await self._evaluate(
                machine=machine,
                config=config,
                source=source,
                workspace=workspace,
                agent=agent,
                started_at=started_at,
                started=started,
            )
        except InfrastructureError as exc:
            self._observer.run_aborted(run_id=machine.run_id, reason=str(exc))
            raise
        finally:
            await self._cleanup(run_id=machine.run_id, workspace=workspace)

    async def run_evaluation_only(
        self,
        config: BenchmarkConfig,
        directory: Path,
        expected_directory: Path | None = None,
        source: ConfigSource | None = None,
    ) -> ResultsBundle:
        """Score an existing directory without checking out a repository or running an agent.

        `directory` is both baseline and modified tree; it is never modified or deleted.

        Raises:
            InfrastructureError: if the artifacts directory cannot be prepared.
        """
        machine = RunStateMachine(
            run_id=generate_run_id(name=config.name, now=datetime.now(UTC))
        )
        started_at = datetime.now(UTC)
        started = time.monotonic()
        self._observer.run_started(
            run_id=machine.run_id,
            test_case=config.name,
            total_evaluators=len(config.evaluators),
            evaluation_only=True,
        )

        try:
            workspace = self._workspaces.adopt(
                name=config.name,
                directory=directory,
                expected_directory=expected_directory,
                run_id=machine.run_id,
            )
        except InfrastructureError as exc:
            self._observer.run_aborted(run_id=machine.run_id, reason=str(exc))
            raise

        try:
            self._advance(machine=machine, to_state=RunState.WORKSPACE_READY)
            return await self._evaluate(
                machine=machine,
                config=config,
                source=source,
                workspace=workspace,
                agent=AgentSection(type=NO_AGENT, status=AGENT_SKIPPED, exit_code=0),
                started_at=started_at,
                started=started,
            )
        except InfrastructureError as exc:
            self._observer.run_aborted(run_id=machine.run_id, reason=str(exc))
            raise
        finally:
            await self._cleanup(run_id=machine.run_id, workspace=workspace)

    async def _run_agent(
        self, machine: RunStateMachine, config: BenchmarkConfig, workspace: Workspace
    ) -> AgentExecutionResult:
        """Execute the agent once; never raises, every failure becomes a `failed` result."""
        self._advance(machine=machine, to_state=RunState.AGENT_RUNNING)
        started_at = datetime.now(UTC)
        try:
            agent = self._agent_factory.create(config.agent)
            if await agent.check_availability():
                execution = await agent.execute(
                    AgentExecutionContext(
                        workspace_dir=workspace.root,
                        repo_dir=workspace.modified_dir,
                        artifacts_dir=workspace.artifacts_dir,
                        prompt=config.agent.prompt or "",
                        timeout_ms=config.timeout_ms,
                    )
                )
            else:
                execution = _failed_execution(
                    agent_type=config.agent.type,
                    kind=AgentErrorKind.UNAVAILABLE,
                    message=f"Agent '{config.agent.type}' is not available",
                    started_at=started_at,
                )
        except Exception as exc:  # noqa: BLE001
            execution = _failed_execution(
                agent_type=config.agent.type,
                kind=AgentErrorKind.RUNTIME,
                message=sanitize_message(str(exc) or exc.__class__.__name__),
                started_at=started_at,
            )

        self._advance(machine=machine, to_state=_AGENT_OUTCOME_STATES[execution.status])
        return execution

    async def _evaluate(
        self,
        machine: RunStateMachine,
        config: BenchmarkConfig,
        source: ConfigSource | None,
        workspace: Workspace,
        agent: AgentSection,
        started_at: datetime,
        started: float,
    ) -> ResultsBundle:
        self._advance(machine=machine, to_state=RunState.EVALUATING)
        context = EvaluationContext(
            run_id=machine.run_id,
            workspace_dir=workspace.root,
            modified_dir=workspace.modified_dir,
            baseline_dir=workspace.baseline_dir,
            expected_dir=workspace.expected_dir,
            artifacts_dir=workspace.evaluator_artifacts_dir,
        )
        results = await self._run_evaluators(
            run_id=machine.run_id, configs=config.evaluators, context=context
        )
        self._advance(machine=machine, to_state=RunState.COMPLETED)

        summary = summarize(results=results)
        evaluator_artifacts = [a for r in results for a in r.artifacts]
        duration_ms = int((time.monotonic() - started) * 1000)
        bundle = ResultsBundle(
            test_case=CaseMetadata(
                name=config.name,
                description=config.description,
                config_file=str(source.path) if source is not None else None,
                config_hash=source.config_hash if source is not None else None,
                repo=config.repo,
                branch=config.branch,
                commit=workspace.commit or config.commit,
                expected_branch=config.expected_branch,
            ),
            execution=ExecutionMetadata(
                started_at=started_at,
                completed_at=datetime.now(UTC),
                duration_ms=duration_ms,
                bencha_version=BENCHA_VERSION,
                environment=ExecutionEnvironment(
                    os=sys.platform,
                    python_version=platform.python_version(),
                    working_directory=os.getcwd(),
                ),
            ),
            agent=agent,
            run=RunSection(
                id=machine.run_id,
                state=machine.state,
                status=run_status(
                    overall=summary.overall_status,
                    agent_timed_out=machine.agent_timed_out,
                ),
                state_history=machine.history,
            ),
            evaluators=results,
            summary=summary,
            artifacts=BundleArtifacts(
                agent_log=agent.log_path,
                reports=[a.path for a in evaluator_artifacts if a.type.endswith("report")],
                evaluator_artifacts=evaluator_artifacts,
            ),
        )
        results_path = await write_artifact(
            artifacts_dir=workspace.artifacts_dir,
            filename=RESULTS_FILENAME,
            content=bundle.model_dump_json(indent=2),
        )
        await self._run_hooks(
            run_id=machine.run_id,
            configs=config.post_evaluation,
            context=HookContext(
                bundle=bundle,
                results_path=results_path,
                artifacts_dir=workspace.artifacts_dir,
                workspace_dir=workspace.root,
            ),
        )
        self._observer.run_completed(
            run_id=machine.run_id,
            overall_status=summary.overall_status,
            duration_ms=duration_ms,
        )
        return bundle

    async def _run_evaluators(
        self, run_id: str, configs: list[EvaluatorConfig], context: EvaluationContext
    ) -> list[EvaluatorResult]:
        """Run every evaluator concurrently; results come back in config order."""
        results: list[EvaluatorResult | None] = [None] * len(configs)
        sem = asyncio.Semaphore(self._options.max_concurrent_evaluators)

        async with asyncio.TaskGroup() as tg:
            for index, config in enumerate(configs):
                tg.create_task(
                    self._run_one_evaluator(
                        sem=sem,
                        run_id=run_id,
                        index=index,
                        config=config,
                        context=context,
                        results=results,
                    )
                )

        return [result for result in results if result is not None]

    async def _run_one_evaluator(
        self,
        sem: asyncio.Semaphore,
        run_id: str,
        index: int,
        config: EvaluatorConfig,
        context: EvaluationContext,
        results: list[EvaluatorResult | None],
    ) -> None:
        """Score with one evaluator; any exception becomes an `error` result."""
        name = evaluator_name(config)
        async with sem:
            self._observer.evaluator_started(run_id=run_id, evaluator=name)
            started = time.monotonic()
            try:
                evaluator = self._evaluator_factory.create(config)
                if evaluator.requires_expected_reference and context.expected_dir is None:
                    result = EvaluatorResult(
                        evaluator=name,
                        status=EvaluatorStatus.SKIPPED,
                        message=f"Evaluator '{name}' requires an expected reference",
                    )
                else:
                    result = await evaluator.evaluate(context)
            except Exception as exc:  # noqa: BLE001
                self._observer.evaluator_failed(run_id=run_id, evaluator=name, reason=str(exc))
                result = EvaluatorResult(
                    evaluator=name,
                    status=EvaluatorStatus.ERROR,
                    message=f"Evaluator '{name}' raised an error",
                    error=sanitize_error(exc),
                )

        duration_ms = int((time.monotonic() - started) * 1000)
        results[index] = result.model_copy(
            update={"duration_ms": duration_ms, "timestamp": datetime.now(UTC)}
        )
        self._observer.evaluator_completed(
            run_id=run_id, evaluator=name, status=result.status, duration_ms=duration_ms
        )

    async def _run_hooks(
        self, run_id: str, configs: list[HookConfig], context: HookContext
    ) -> None:
        """Run every post-evaluation hook concurrently. Hooks never fail the run."""
        factory = self._hook_factory
        if not configs or factory is None:
            return
        await asyncio.gather(
            *(
                self._run_one_hook(
                    factory=factory, run_id=run_id, config=config, context=context
                )
                for config in configs
            )
        )

    async def _run_one_hook(
        self, factory: HookFactory, run_id: str, config: HookConfig, context: HookContext
    ) -> None:
        name = hook_name(config)
        started = time.monotonic()
        try:
            hook = factory.create(config)
            result = await hook.run(context)
        except Exception as exc:  # noqa: BLE001
            result = HookResult(
                hook=name,
                status=HookStatus.FAILED,
                message=sanitize_message(str(exc) or exc.__class__.__name__),
                duration_ms=int((time.monotonic() - started) * 1000),
            )
        self._observer.hook_completed(
            run_id=run_id, hook=name, status=result.status, message=result.message
        )

    async def _cleanup(self, run_id: str, workspace: Workspace) -> None:
        """Tear the workspace down; a failure is reported, never raised over the run outcome."""
        try:
            await self._workspaces.cleanup(
                workspace=workspace,
                keep=self._options.keep_workspace,
                keep_artifacts=self._options.keep_artifacts,
            )
        except InfrastructureError as exc:
            self._observer.run_cleanup_failed(run_id=run_id, reason=str(exc))

    def _advance(self, machine: RunStateMachine, to_state: RunState) -> None:
        from_state = machine.advance(to_state=to_state)
        self._observer.run_state_changed(
            run_id=machine.run_id, from_state=from_state, to_state=to_state
        )


def _failed_execution(
    agent_type: str, kind: AgentErrorKind, message: str, started_at: datetime
) -> AgentExecutionResult:
    completed_at = datetime.now(UTC)
    return AgentExecutionResult(
        agent_type=agent_type,
        status=AgentStatus.FAILED,
        exit_code=-1,
        output="",
        started_at=started_at,
        completed_at=completed_at,
        duration_ms=int((completed_at - started_at).total_seconds() * 1000),
        errors=[AgentError(kind=kind, message=message)],
    )
