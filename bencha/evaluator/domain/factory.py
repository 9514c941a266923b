"""EvaluatorFactory Protocol — structural interface for constructing Evaluator instances."""

from typing import Protocol

from bencha.config.domain.evaluator import EvaluatorConfig
from bencha.evaluator.domain.evaluator import Evaluator


class EvaluatorFactory(Protocol):
    def create(self, config: EvaluatorConfig) -> Evaluator: ...
