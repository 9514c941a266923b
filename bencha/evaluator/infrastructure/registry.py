"""Evaluator registry — maps an evaluator config's `type` to the constructor that builds it."""

from collections.abc import Callable
from typing import Any

from bencha.agent.domain.factory import AgentFactory
from bencha.config.domain.evaluator import EvaluatorConfig
from bencha.evaluator.domain.evaluator import Evaluator
from bencha.evaluator.infrastructure.agentic_judge import AgenticJudgeEvaluator
from bencha.evaluator.infrastructure.errors import EvaluatorTypeNotSupportedError
from bencha.evaluator.infrastructure.expected_diff import ExpectedDiffEvaluator
from bencha.evaluator.infrastructure.git_diff import GitDiffEvaluator
from bencha.workspace.infrastructure.git import GitClient

type EvaluatorConstructor = Callable[[Any], Evaluator]


class EvaluatorRegistry:
    """Builds Evaluator instances from typed configs.

    Satisfies the EvaluatorFactory protocol structurally.
    """

    def __init__(self, agent_factory: AgentFactory, git: GitClient | None = None) -> None:
        git_client = git or GitClient()
        self._constructors: dict[str, EvaluatorConstructor] = {
            "git-diff": lambda config: GitDiffEvaluator(config=config, git=git_client),
            "expected-diff": lambda config: ExpectedDiffEvaluator(config=config),
            "agentic-judge": lambda config: AgenticJudgeEvaluator(
                config=config, agent=agent_factory.create(config.agent)
            ),
        }

    @property
    def supported_types(self) -> list[str]:
        return sorted(self._constructors)

    def register(self, evaluator_type: str, constructor: EvaluatorConstructor) -> None:
        self._constructors[evaluator_type] = constructor

    def create(self, config: EvaluatorConfig) -> Evaluator:
        """Return a new Evaluator for config.

        Raises:
            EvaluatorTypeNotSupportedError: if no constructor is registered for config.type.
        """
        constructor = self._constructors.get(config.type)
        if constructor is None:
            raise EvaluatorTypeNotSupportedError(evaluator_type=config.type)
        return constructor(config)
