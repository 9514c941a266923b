"""ConfigSource — where a BenchmarkConfig came from, recorded in every results bundle."""

from pathlib import Path

from pydantic import BaseModel, Field

from bencha.config.domain.benchmark import BenchmarkConfig


class ConfigSource(BaseModel, frozen=True):
    path: Path
    config_hash: str = Field(min_length=1)


class LoadedConfig(BaseModel, frozen=True):
    config: BenchmarkConfig
    source: ConfigSource
