"""Hook registry — maps a hook config's `type` to the constructor that builds it."""

from collections.abc import Callable
from typing import Any

from bencha.config.domain.hook import HookConfig
from bencha.hook.domain.hook import PostEvaluationHook
from bencha.hook.infrastructure.errors import HookTypeNotSupportedError
from bencha.hook.infrastructure.script import ScriptHook
from bencha.hook.infrastructure.webhook import WebhookHook

type HookConstructor = Callable[[Any], PostEvaluationHook]


class HookRegistry:
    """Builds PostEvaluationHook instances from typed configs.

    Satisfies the HookFactory protocol structurally.
    """

    def __init__(self) -> None:
        self._constructors: dict[str, HookConstructor] = {
            "webhook": lambda config: WebhookHook(config=config),
            "script": lambda config: ScriptHook(config=config),
        }

    @property
    def supported_types(self) -> list[str]:
        return sorted(self._constructors)

    def register(self, hook_type: str, constructor: HookConstructor) -> None:
        self._constructors[hook_type] = constructor

    def create(self, config: HookConfig) -> PostEvaluationHook:
        """Return a new hook for config.

        Raises:
            HookTypeNotSupportedError: if no constructor is registered for config.type.
        """
        constructor = self._constructors.get(config.type)
        if constructor is None:
            raise HookTypeNotSupportedError(hook_type=config.type)
        return constructor(config)
