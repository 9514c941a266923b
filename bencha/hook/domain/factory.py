"""HookFactory Protocol — structural interface for constructing post-evaluation hooks."""

from typing import Protocol

from bencha.config.domain.hook import HookConfig
from bencha.hook.domain.hook import PostEvaluationHook


class HookFactory(Protocol):
    def create(self, config: HookConfig) -> PostEvaluationHook: ...
