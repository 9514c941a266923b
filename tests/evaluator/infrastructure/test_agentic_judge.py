"""Tests for AgenticJudgeEvaluator with a scripted judge agent."""

import json
from pathlib import Path

import pytest

from bencha.agent.domain.result import AgentStatus
from bencha.config.domain.evaluator import AgenticJudgeConfig
from bencha.evaluator.domain.result import EvaluatorStatus
from bencha.evaluator.infrastructure.agentic_judge import AgenticJudgeEvaluator
from tests.agent.fake_agent import FakeAgent, make_execution_result
from tests.evaluator.context import make_context

_ASSERTIONS = {"tests_added": "Tests were added", "no_debug": "No debug prints remain"}


def _config(**overrides: object) -> AgenticJudgeConfig:
    data: dict[str, object] = {
        "type": "agentic-judge",
        "agent": {"type": "litellm", "model": "gpt-4o"},
        "assertions": _ASSERTIONS,
    }
    data.update(overrides)
    return AgenticJudgeConfig.model_validate(data)


def _judge_output(scores: dict[str, float], status: str = "passed") -> str:
    verdict = {
        "status": status,
        "assertions": {k: {"score": v, "reasoning": "r"} for k, v in scores.items()},
        "message": "Reviewed the change",
    }
    return f"Looked around.\n```json\n{json.dumps(verdict)}\n```\n"


def _judge(
    output: str, config: AgenticJudgeConfig | None = None
) -> tuple[AgenticJudgeEvaluator, FakeAgent]:
    agent = FakeAgent(result=make_execution_result(output=output, agent_type="litellm"))
    return AgenticJudgeEvaluator(config=config or _config(), agent=agent), agent


class TestAllAssertionsPolicy:
    """By default every assertion must score 1.0."""

    async def test_all_met_passes(self, tmp_path: Path) -> None:
        evaluator, _ = _judge(_judge_output({"tests_added": 1.0, "no_debug": 1.0}))

        result = await evaluator.evaluate(make_context(tmp_path))

        assert result.status == EvaluatorStatus.PASSED
        assert result.assertions == {"tests_added": 1.0, "no_debug": 1.0}
        assert result.message == "✓ Reviewed the change (2/2 assertions met)"

    async def test_one_below_fails(self, tmp_path: Path) -> None:
        evaluator, _ = _judge(_judge_output({"tests_added": 1.0, "no_debug": 0.5}))

        result = await evaluator.evaluate(make_context(tmp_path))

        assert result.status == EvaluatorStatus.FAILED
        assert result.metrics["assertions_passed"] == 1
        assert result.metrics["mean_score"] == pytest.approx(0.75)

    async def test_missing_assertion_scores_zero(self, tmp_path: Path) -> None:
        evaluator, _ = _judge(_judge_output({"tests_added": 1.0}))

        result = await evaluator.evaluate(make_context(tmp_path))

        assert result.status == EvaluatorStatus.FAILED
        assert result.assertions["no_debug"] == 0.0

    async def test_judge_status_does_not_override_scores(self, tmp_path: Path) -> None:
        evaluator, _ = _judge(
            _judge_output({"tests_added": 1.0, "no_debug": 1.0}, status="failed")
        )

        result = await evaluator.evaluate(make_context(tmp_path))

        assert result.status == EvaluatorStatus.PASSED
        assert result.metrics["judge_status"] == "failed"


class TestMeanScorePolicy:
    async def test_mean_reaches_threshold(self, tmp_path: Path) -> None:
        config = _config(pass_policy={"type": "mean", "threshold": 0.7})
        evaluator, _ = _judge(
            _judge_output({"tests_added": 1.0, "no_debug": 0.5}), config=config
        )

        result = await evaluator.evaluate(make_context(tmp_path))

        assert result.status == EvaluatorStatus.PASSED
        assert result.metrics["pass_policy"] == "mean"


class TestJudgeExecution:
    """The judge runs read-only over the modified tree."""

    async def test_prompt_and_working_directory(self, tmp_path: Path) -> None:
        evaluator, agent = _judge(_judge_output({"tests_added": 1.0, "no_debug": 1.0}))
        context = make_context(tmp_path)

        await evaluator.evaluate(context)

        (judge_context,) = agent.contexts
        assert judge_context.repo_dir == context.modified_dir
        assert "- **tests_added**: Tests were added" in judge_context.prompt
        assert judge_context.timeout_ms == 300_000

    async def test_writes_judge_log(self, tmp_path: Path) -> None:
        output = _judge_output({"tests_added": 1.0, "no_debug": 1.0})
        evaluator, _ = _judge(output)

        result = await evaluator.evaluate(make_context(tmp_path))

        (artifact,) = result.artifacts
        assert artifact.type == "log"
        assert Path(artifact.path).read_text() == output


class TestJudgeFailures:
    async def test_unavailable_judge_is_skipped(self, tmp_path: Path) -> None:
        agent = FakeAgent(available=False, agent_type="litellm")
        evaluator = AgenticJudgeEvaluator(config=_config(), agent=agent)

        result = await evaluator.evaluate(make_context(tmp_path))

        assert result.status == EvaluatorStatus.SKIPPED
        assert "not available" in result.message
        assert agent.contexts == []

    async def test_timed_out_judge_is_skipped(self, tmp_path: Path) -> None:
        agent = FakeAgent(
            result=make_execution_result(status=AgentStatus.TIMEOUT, output="partial")
        )
        evaluator = AgenticJudgeEvaluator(config=_config(), agent=agent)

        result = await evaluator.evaluate(make_context(tmp_path))

        assert result.status == EvaluatorStatus.SKIPPED
        assert result.message.startswith("Judge agent timeout")

    async def test_unparseable_verdict_is_error(self, tmp_path: Path) -> None:
        evaluator, _ = _judge("I think it is fine.")

        result = await evaluator.evaluate(make_context(tmp_path))

        assert result.status == EvaluatorStatus.ERROR
        assert result.error is not None
        assert result.error.type == "VerdictParseError"
        assert result.message.startswith("Failed to parse judge verdict")


class TestJudgeChangeContext:
    """The baseline-to-modified patch is part of the judge prompt."""

    async def test_prompt_shows_agent_change(self, tmp_path: Path) -> None:
        evaluator, agent = _judge(_judge_output({"tests_added": 1.0, "no_debug": 1.0}))
        context = make_context(tmp_path)
        context.baseline_dir.mkdir()
        (context.baseline_dir / "app.py").write_text("print('before')\n")
        (context.modified_dir / "app.py").write_text("print('after')\n")

        await evaluator.evaluate(context)

        (judge_context,) = agent.contexts
        assert "-print('before')" in judge_context.prompt
        assert "+print('after')" in judge_context.prompt

    async def test_large_change_is_truncated(self, tmp_path: Path) -> None:
        config = _config(max_change_chars=200)
        evaluator, agent = _judge(
            _judge_output({"tests_added": 1.0, "no_debug": 1.0}), config=config
        )
        context = make_context(tmp_path)
        context.baseline_dir.mkdir()
        for index in range(10):
            (context.modified_dir / f"module_{index}.py").write_text("x = 1\n" * 5)

        await evaluator.evaluate(context)

        (judge_context,) = agent.contexts
        assert "[CHANGE TRUNCATED: exceeded 200 characters]" in judge_context.prompt
