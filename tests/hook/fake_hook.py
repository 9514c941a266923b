"""FakeHook and FakeHookFactory — in-memory post-evaluation hooks for use in tests."""

from bencha.config.domain.hook import HookConfig, hook_name
from bencha.hook.domain.hook import HookContext, PostEvaluationHook
from bencha.hook.domain.result import HookResult, HookStatus


class FakeHook:
    """Satisfies the PostEvaluationHook protocol. Records contexts, or raises error."""

    def __init__(
        self,
        name: str,
        status: HookStatus = HookStatus.SUCCESS,
        error: Exception | None = None,
    ) -> None:
        self._name = name
        self._status = status
        self._error = error
        self.contexts: list[HookContext] = []

    @property
    def name(self) -> str:
        return self._name

    async def run(self, context: HookContext) -> HookResult:
        self.contexts.append(context)
        if self._error is not None:
            raise self._error
        return HookResult(hook=self._name, status=self._status, message=f"{self._name} ran")


class FakeHookFactory:
    """Satisfies the HookFactory protocol.

    Returns the FakeHook registered under the config's reported name, or a
    succeeding FakeHook when none was registered.
    """

    def __init__(self, hooks: dict[str, FakeHook] | None = None) -> None:
        self._hooks = dict(hooks) if hooks is not None else {}

    def create(self, config: HookConfig) -> PostEvaluationHook:
        name = hook_name(config)
        return self._hooks.get(name) or FakeHook(name=name)
