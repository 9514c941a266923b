"""YAML config loader — parses, interpolates env vars, validates, and emits observer events."""

import hashlib
import os
import re
from pathlib import Path
from typing import Any

import yaml
from pydantic import ValidationError

from bencha.config.domain.agent import LiteLLMAgentConfig
from bencha.config.domain.benchmark import BenchmarkConfig
from bencha.config.domain.evaluator import AgenticJudgeConfig, evaluator_name
from bencha.config.domain.hook import HOOK_VARIABLES
from bencha.config.domain.observer import ConfigObserver
from bencha.config.domain.source import ConfigSource, LoadedConfig
from bencha.config.infrastructure.errors import (
    ConfigLoadError,
    ConfigValidationError,
    MissingEnvVarsError,
)

_ENV_VAR_PATTERN = re.compile(r"\$\{([A-Za-z_][A-Za-z0-9_]*)\}")
_HASH_LENGTH = 16


class YamlConfigLoader:
    """Loads, interpolates, validates, and returns a BenchmarkConfig from a YAML file."""

    def __init__(self, observer: ConfigObserver) -> None:
        self._observer = observer

    def load(self, path: Path) -> LoadedConfig:
        """
        Load a benchmark config and record the hash of the file it came from.

        Script-hook variables such as ${RESULTS_PATH} are left literal for the hook.

        Raises:
            ConfigLoadError: if the file is missing or is not valid YAML.
            MissingEnvVarsError: if any ${ENV_VAR} references are unset (all collected first).
            ConfigValidationError: if the schema is violated.
        """
        raw_bytes = _read_bytes(path=path)
        raw = _parse_yaml(path=path, raw_bytes=raw_bytes)

        missing = _missing_env_vars(data=raw)
        if missing:
            raise MissingEnvVarsError(missing)

        config = _build_config(data=_interpolate(data=raw))
        source = ConfigSource(
            path=path,
            config_hash=hashlib.sha256(raw_bytes).hexdigest()[:_HASH_LENGTH],
        )

        _emit_warnings(config=config, observer=self._observer)
        self._observer.config_loaded(
            name=config.name, path=str(path), config_hash=source.config_hash
        )
        return LoadedConfig(config=config, source=source)


def _read_bytes(path: Path) -> bytes:
    try:
        return path.read_bytes()
    except FileNotFoundError as exc:
        raise ConfigLoadError(path=path) from exc


def _parse_yaml(path: Path, raw_bytes: bytes) -> Any:
    try:
        data = yaml.safe_load(raw_bytes.decode("utf-8"))
    except (yaml.YAMLError, UnicodeDecodeError) as exc:
        raise ConfigLoadError(path=path, reason=f"invalid YAML ({exc})") from exc
    if not isinstance(data, dict):
        raise ConfigValidationError("top-level document must be a mapping")
    return data


def _missing_env_vars(data: Any) -> list[str]:
    """Every ${ENV_VAR} referenced anywhere in data that is not currently set."""
    missing: list[str] = []
    pending = [data]
    while pending:
        item = pending.pop()
        if isinstance(item, str):
            for match in _ENV_VAR_PATTERN.finditer(item):
                name = match.group(1)
                if name in HOOK_VARIABLES or name in os.environ or name in missing:
                    continue
                missing.append(name)
        elif isinstance(item, list):
            pending.extend(item)
        elif isinstance(item, dict):
            pending.extend(item.values())
    return missing


def _interpolate(data: Any) -> Any:
    if isinstance(data, str):
        return _ENV_VAR_PATTERN.sub(_env_value, data)
    if isinstance(data, list):
        return [_interpolate(data=item) for item in data]
    if isinstance(data, dict):
        return {key: _interpolate(data=value) for key, value in data.items()}
    return data


def _env_value(match: re.Match[str]) -> str:
    name = match.group(1)
    return match.group(0) if name in HOOK_VARIABLES else os.environ[name]


def _build_config(data: Any) -> BenchmarkConfig:
    try:
        return BenchmarkConfig.model_validate(data)
    except ValidationError as exc:
        raise ConfigValidationError(str(exc)) from exc


def _emit_warnings(config: BenchmarkConfig, observer: ConfigObserver) -> None:
    for evaluator in config.evaluators:
        if (
            isinstance(evaluator, AgenticJudgeConfig)
            and isinstance(evaluator.agent, LiteLLMAgentConfig)
            and evaluator.agent.temperature > 0.0
        ):
            observer.config_judge_temperature_warning(
                evaluator=evaluator_name(evaluator),
                temperature=evaluator.agent.temperature,
            )
