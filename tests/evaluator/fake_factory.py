"""FakeEvaluatorFactory — in-memory EvaluatorFactory implementation for use in tests."""

from bencha.config.domain.evaluator import EvaluatorConfig, evaluator_name
from bencha.evaluator.domain.evaluator import Evaluator
from tests.evaluator.fake_evaluator import FakeEvaluator


class FakeEvaluatorFactory:
    """Satisfies the EvaluatorFactory protocol.

    Returns the FakeEvaluator registered under the config's reported name, or a
    passing FakeEvaluator when none was registered.
    """

    def __init__(self, evaluators: dict[str, FakeEvaluator] | None = None) -> None:
        self._evaluators = dict(evaluators) if evaluators is not None else {}
        self.created: list[str] = []

    def create(self, config: EvaluatorConfig) -> Evaluator:
        name = evaluator_name(config)
        self.created.append(name)
        return self._evaluators.get(name) or FakeEvaluator(name=name)
