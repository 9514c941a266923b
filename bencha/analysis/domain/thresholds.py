"""AnalysisThresholds — the tunable limits behind trend classification and insights."""

from pydantic import BaseModel, Field


class AnalysisThresholds(BaseModel, frozen=True):
    low_pass_rate: float = Field(default=0.5, ge=0.0, le=1.0)
    low_pass_rate_min_runs: int = Field(default=3, ge=1)
    consistent_pass_rate: float = Field(default=0.95, ge=0.0, le=1.0)
    consistent_min_runs: int = Field(default=5, ge=1)
    trend_min_runs: int = Field(default=3, ge=2)
    # Pass-rate delta, in [0,1], that separates stable from improving/degrading.
    trend_delta: float = Field(default=0.10, ge=0.0, le=1.0)
    high_skip_rate: float = Field(default=0.5, ge=0.0, le=1.0)
    # Evaluator insights need at least this many runs.
    evaluator_min_runs: int = Field(default=3, ge=1)
    agent_timeout_rate: float = Field(default=0.25, ge=0.0, le=1.0)
    daily_window_days: int = Field(default=7, ge=1)
    weekly_window_weeks: int = Field(default=4, ge=1)
    top_failure_patterns: int = Field(default=5, ge=1)


DEFAULT_THRESHOLDS = AnalysisThresholds()
