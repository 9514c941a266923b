"""FakeEvaluator — in-memory Evaluator implementation for use in tests."""

import asyncio

from bencha.evaluator.domain.context import EvaluationContext
from bencha.evaluator.domain.result import EvaluatorResult, EvaluatorStatus


class ConcurrencyGauge:
    """Counts evaluate() calls in flight across the evaluators that share it."""

    def __init__(self) -> None:
        self.in_flight = 0
        self.peak = 0

    def enter(self) -> None:
        self.in_flight += 1
        self.peak = max(self.peak, self.in_flight)

    def leave(self) -> None:
        self.in_flight -= 1


class FakeEvaluator:
    """Satisfies the Evaluator protocol. Returns a canned result, or raises error.

    `delay_seconds` lets tests finish evaluators out of configuration order.
    Every context passed to evaluate() is recorded in `contexts`; a shared
    `gauge` records how many evaluations overlap.
    """

    def __init__(
        self,
        name: str,
        status: EvaluatorStatus = EvaluatorStatus.PASSED,
        error: Exception | None = None,
        requires_expected_reference: bool = False,
        delay_seconds: float = 0.0,
        gauge: ConcurrencyGauge | None = None,
    ) -> None:
        self._name = name
        self._status = status
        self._error = error
        self._requires_expected_reference = requires_expected_reference
        self._delay_seconds = delay_seconds
        self._gauge = gauge
        self.contexts: list[EvaluationContext] = []

    @property
    def name(self) -> str:
        return self._name

    @property
    def description(self) -> str:
        return f"Fake evaluator {self._name}"

    @property
    def requires_expected_reference(self) -> bool:
        return self._requires_expected_reference

    async def evaluate(self, context: EvaluationContext) -> EvaluatorResult:
        self.contexts.append(context)
        if self._gauge is not None:
            self._gauge.enter()
        try:
            if self._delay_seconds:
                await asyncio.sleep(self._delay_seconds)
        finally:
            if self._gauge is not None:
                self._gauge.leave()
        if self._error is not None:
            raise self._error
        return EvaluatorResult(
            evaluator=self._name,
            status=self._status,
            metrics={"score": 1.0},
            message=f"{self._name} {self._status}",
        )
