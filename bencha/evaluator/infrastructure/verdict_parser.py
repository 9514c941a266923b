"""Extract a JudgeVerdict from free-form judge agent output."""

import json
import re
from typing import Any

from pydantic import ValidationError

from bencha.evaluator.domain.verdict import JudgeVerdict
from bencha.evaluator.infrastructure.errors import VerdictParseError

_FENCED_JSON = re.compile(r"```json\s*\n(.*?)\n?```", re.DOTALL)


def parse_verdict(output: str) -> JudgeVerdict:
    """Return the first valid verdict found in output.

    Candidates are tried in order: fenced ```json blocks, the whole output,
    then every top-level JSON object embedded in the text, last one first.

    Raises:
        VerdictParseError: if no candidate validates.
    """
    last_error = "no JSON object found in judge output"
    for candidate in _candidates(output=output):
        try:
            return JudgeVerdict.model_validate(candidate)
        except ValidationError as exc:
            last_error = f"invalid verdict: {exc.error_count()} validation error(s)"
    raise VerdictParseError(reason=last_error)


def _candidates(output: str) -> list[Any]:
    candidates: list[Any] = []
    for block in _FENCED_JSON.findall(output):
        decoded = _loads(text=block)
        if decoded is not None:
            candidates.append(decoded)

    whole = _loads(text=output.strip())
    if whole is not None:
        candidates.append(whole)

    candidates.extend(reversed(_embedded_objects(text=output)))
    return candidates


def _loads(text: str) -> Any:
    try:
        return json.loads(text)
    except json.JSONDecodeError:
        return None


def _embedded_objects(text: str) -> list[dict[str, Any]]:
    """Every JSON object that can be decoded starting at some '{', outermost first."""
    decoder = json.JSONDecoder()
    objects: list[dict[str, Any]] = []
    index = text.find("{")
    while index != -1:
        try:
            value, end = decoder.raw_decode(text, index)
        except json.JSONDecodeError:
            index = text.find("{", index + 1)
            continue
        if isinstance(value, dict):
            objects.append(value)
        index = text.find("{", end)
    return objects
