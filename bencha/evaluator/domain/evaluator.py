"""Evaluator Protocol — structural interface for pluggable scoring units."""

from typing import Protocol

from bencha.evaluator.domain.context import EvaluationContext
from bencha.evaluator.domain.result import EvaluatorResult


class Evaluator(Protocol):
    """Scores one run. Implementations receive their typed config at construction."""

    @property
    def name(self) -> str: ...

    @property
    def description(self) -> str: ...

    @property
    def requires_expected_reference(self) -> bool: ...

    async def evaluate(self, context: EvaluationContext) -> EvaluatorResult: ...
