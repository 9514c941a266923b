"""Script hook — runs a local command against a finished run's results."""

from pathlib import Path

from bencha.agent.infrastructure.process import run_bounded
from bencha.config.domain.hook import ScriptHookConfig, hook_name
from bencha.hook.domain.hook import HookContext
from bencha.hook.domain.result import HookResult, HookStatus

# Characters of process output kept in the result's metadata.
OUTPUT_EXCERPT_CHARS = 1000


class ScriptHook:
    """Satisfies the PostEvaluationHook protocol structurally.

    The command runs without a shell, bounded by the configured timeout. A
    non-zero exit, a timeout or a spawn error yields a `failed` result.
    """

    def __init__(self, config: ScriptHookConfig) -> None:
        self._config = config

    @property
    def name(self) -> str:
        return hook_name(self._config)

    async def run(self, context: HookContext) -> HookResult:
        variables = _variables(context=context)
        argv = [_substitute(arg, variables) for arg in self._config.command]
        cwd = Path(self._config.working_dir) if self._config.working_dir else Path.cwd()

        outcome = await run_bounded(
            argv=argv,
            cwd=cwd,
            env={**variables, **self._config.env},
            timeout_ms=self._config.timeout_ms,
        )
        metadata = {
            "command": argv,
            "exit_code": outcome.exit_code,
            "output": outcome.output[:OUTPUT_EXCERPT_CHARS],
        }
        if outcome.spawn_error is not None:
            status, message = HookStatus.FAILED, outcome.spawn_error
        elif outcome.timed_out:
            status = HookStatus.FAILED
            message = f"Script timed out after {self._config.timeout_ms}ms"
        elif outcome.exit_code != 0:
            status, message = HookStatus.FAILED, f"Script exited with code {outcome.exit_code}"
        else:
            status, message = HookStatus.SUCCESS, "Script completed successfully"
        return HookResult(
            hook=self.name,
            status=status,
            message=message,
            duration_ms=outcome.duration_ms,
            metadata=metadata,
        )


def _variables(context: HookContext) -> dict[str, str]:
    return {
        "RESULTS_PATH": str(context.results_path),
        "ARTIFACTS_DIR": str(context.artifacts_dir),
        "WORKSPACE_DIR": str(context.workspace_dir),
        "TEST_CASE_NAME": context.bundle.test_case.name,
        "OVERALL_STATUS": context.bundle.summary.overall_status.value,
    }


def _substitute(arg: str, variables: dict[str, str]) -> str:
    for key, value in variables.items():
        arg = arg.replace("${" + key + "}", value)
    return arg
