"""JudgeVerdict — the structured output an agentic judge must produce."""

from typing import Any, Literal

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator


class AssertionVerdict(BaseModel):
    model_config = ConfigDict(frozen=True)

    score: float = Field(ge=0.0, le=1.0)
    reasoning: str = ""


class JudgeVerdict(BaseModel):
    """Validated judge output.

    Assertion scores may be given as bare numbers or `{score, reasoning}`
    objects. Judges that put the scores under `metrics` are accepted too.
    """

    model_config = ConfigDict(frozen=True)

    status: Literal["passed", "failed"]
    assertions: dict[str, AssertionVerdict]
    message: str

    @model_validator(mode="before")
    @classmethod
    def _scores_from_metrics(cls, data: Any) -> Any:
        if isinstance(data, dict) and "assertions" not in data:
            metrics = data.get("metrics")
            if isinstance(metrics, dict):
                scores = {
                    key: value
                    for key, value in metrics.items()
                    if isinstance(value, int | float) and not isinstance(value, bool)
                }
                return {**data, "assertions": scores}
        return data

    @field_validator("assertions", mode="before")
    @classmethod
    def _wrap_bare_scores(cls, value: Any) -> Any:
        if isinstance(value, dict):
            return {
                key: {"score": item} if isinstance(item, int | float) else item
                for key, item in value.items()
            }
        return value

    def score(self, assertion: str) -> float:
        """The judge's score for assertion; 0.0 when the judge omitted it."""
        verdict = self.assertions.get(assertion)
        return verdict.score if verdict is not None else 0.0
