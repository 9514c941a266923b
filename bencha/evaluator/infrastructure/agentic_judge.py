"""AgenticJudgeEvaluator — delegates named assertions to a judging agent."""

import asyncio
from statistics import fmean

from bencha.agent.domain.agent import Agent
from bencha.agent.domain.context import AgentExecutionContext
from bencha.agent.domain.result import AgentStatus
from bencha.config.domain.evaluator import (
    AgenticJudgeConfig,
    AllAssertionsPolicy,
    MeanScorePolicy,
    evaluator_name,
)
from bencha.core.sanitize import sanitize_error
from bencha.evaluator.domain.context import EvaluationContext
from bencha.evaluator.domain.result import Artifact, EvaluatorResult, EvaluatorStatus
from bencha.evaluator.infrastructure.artifacts import artifact_filename, write_artifact
from bencha.evaluator.infrastructure.change_summary import summarize_change
from bencha.evaluator.infrastructure.errors import VerdictParseError
from bencha.evaluator.infrastructure.judge_prompt import build_judge_prompt
from bencha.evaluator.infrastructure.verdict_parser import parse_verdict


class AgenticJudgeEvaluator:
    """Runs a judge agent read-only over the modified tree and applies the pass policy.

    One instance is constructed per configured judge. The judge agent is
    injected so tests can substitute a scripted one.
    """

    def __init__(self, config: AgenticJudgeConfig, agent: Agent) -> None:
        self._config = config
        self._agent = agent

    @property
    def name(self) -> str:
        return evaluator_name(self._config)

    @property
    def description(self) -> str:
        return "Uses an AI agent to judge the change against custom assertions"

    @property
    def requires_expected_reference(self) -> bool:
        return False

    async def evaluate(self, context: EvaluationContext) -> EvaluatorResult:
        """The judge sees the baseline-to-modified patch in its prompt.

        Skipped when the judge is unavailable, fails or times out.

        An unparseable verdict is an `error` result.
        """
        if not await self._agent.check_availability():
            return self._skipped(message=f"Judge agent '{self._agent.agent_type}' is not available")

        change = await asyncio.to_thread(
            summarize_change,
            context.baseline_dir,
            context.modified_dir,
            self._config.max_change_chars,
        )
        execution = await self._agent.execute(
            AgentExecutionContext(
                workspace_dir=context.workspace_dir,
                repo_dir=context.modified_dir,
                artifacts_dir=context.artifacts_dir,
                prompt=build_judge_prompt(
                    assertions=self._config.assertions,
                    instructions=self._config.instructions,
                    change=change,
                ),
                timeout_ms=self._config.timeout_ms,
            )
        )
        log_path = await write_artifact(
            artifacts_dir=context.artifacts_dir,
            filename=artifact_filename(evaluator=self.name, suffix="-judge.log"),
            content=execution.output,
        )
        artifacts = [Artifact(path=str(log_path), type="log", description="Judge agent output")]
        agent_metrics = {
            "agent_type": execution.agent_type,
            "agent_duration_ms": execution.duration_ms,
        }

        if execution.status != AgentStatus.SUCCESS:
            reasons = "; ".join(error.message for error in execution.errors)
            return self._skipped(
                message=f"Judge agent {execution.status}: {reasons}",
                metrics=agent_metrics,
                artifacts=artifacts,
            )

        try:
            verdict = parse_verdict(output=execution.output)
        except VerdictParseError as exc:
            return EvaluatorResult(
                evaluator=self.name,
                status=EvaluatorStatus.ERROR,
                metrics=agent_metrics,
                message=str(exc),
                artifacts=artifacts,
                error=sanitize_error(exc),
            )

        scores = {name: verdict.score(name) for name in self._config.assertions}
        passed, met = _apply_policy(policy=self._config.pass_policy, scores=scores)
        mark = "✓" if passed else "✗"
        return EvaluatorResult(
            evaluator=self.name,
            status=EvaluatorStatus.PASSED if passed else EvaluatorStatus.FAILED,
            metrics={
                **agent_metrics,
                "judge_status": verdict.status,
                "mean_score": fmean(scores.values()),
                "assertions_passed": met,
                "assertions_total": len(scores),
                "pass_policy": self._config.pass_policy.type,
            },
            message=f"{mark} {verdict.message} ({met}/{len(scores)} assertions met)",
            assertions=scores,
            artifacts=artifacts,
        )

    def _skipped(
        self,
        message: str,
        metrics: dict[str, object] | None = None,
        artifacts: list[Artifact] | None = None,
    ) -> EvaluatorResult:
        return EvaluatorResult(
            evaluator=self.name,
            status=EvaluatorStatus.SKIPPED,
            metrics=metrics or {},
            message=message,
            artifacts=artifacts or [],
        )


def _apply_policy(
    policy: AllAssertionsPolicy | MeanScorePolicy, scores: dict[str, float]
) -> tuple[bool, int]:
    """Return (passed, number of assertions meeting the per-assertion bar)."""
    if isinstance(policy, MeanScorePolicy):
        met = sum(1 for score in scores.values() if score >= policy.threshold)
        return fmean(scores.values()) >= policy.threshold, met
    met = sum(1 for score in scores.values() if score >= policy.min_score)
    return met == len(scores), met
