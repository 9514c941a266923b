"""Webhook hook — sends the results bundle to an HTTP endpoint with httpx."""

import asyncio
import time

import httpx

from bencha.config.domain.hook import WebhookHookConfig, hook_name
from bencha.core.sanitize import sanitize_message
from bencha.core.version import BENCHA_VERSION
from bencha.hook.domain.hook import HookContext
from bencha.hook.domain.result import HookResult, HookStatus

RETRY_ATTEMPTS = 3
DEFAULT_RETRY_DELAY_SECONDS = 1.0


class WebhookHook:
    """Satisfies the PostEvaluationHook protocol structurally.

    A non-2xx response or a transport error counts as a failed attempt. With
    `retry_on_failure` the request is tried RETRY_ATTEMPTS times, waiting
    retry_delay_seconds × attempt between tries.
    """

    def __init__(
        self,
        config: WebhookHookConfig,
        transport: httpx.AsyncBaseTransport | None = None,
        retry_delay_seconds: float = DEFAULT_RETRY_DELAY_SECONDS,
    ) -> None:
        self._config = config
        self._transport = transport
        self._retry_delay_seconds = retry_delay_seconds

    @property
    def name(self) -> str:
        return hook_name(self._config)

    async def run(self, context: HookContext) -> HookResult:
        started = time.monotonic()
        payload: dict[str, object] = {"results": context.bundle.model_dump(mode="json")}
        if self._config.include_artifacts:
            payload["artifacts_path"] = str(context.artifacts_dir)
        attempts = RETRY_ATTEMPTS if self._config.retry_on_failure else 1
        url = str(self._config.url)

        last_error = ""
        async with httpx.AsyncClient(
            transport=self._transport,
            timeout=self._config.timeout_ms / 1000,
            headers={"User-Agent": f"bencha/{BENCHA_VERSION}", **self._config.headers},
        ) as client:
            for attempt in range(1, attempts + 1):
                try:
                    response = await client.request(self._config.method, url, json=payload)
                    response.raise_for_status()
                except httpx.HTTPError as exc:
                    last_error = sanitize_message(str(exc) or exc.__class__.__name__)
                    if attempt < attempts:
                        await asyncio.sleep(self._retry_delay_seconds * attempt)
                    continue
                return HookResult(
                    hook=self.name,
                    status=HookStatus.SUCCESS,
                    message=f"Posted results to {url}",
                    duration_ms=_elapsed_ms(started),
                    metadata={"url": url, "method": self._config.method, "attempts": attempt},
                )

        return HookResult(
            hook=self.name,
            status=HookStatus.FAILED,
            message=f"Failed to post results after {attempts} attempt(s): {last_error}",
            duration_ms=_elapsed_ms(started),
            metadata={"url": url, "attempts": attempts},
        )


def _elapsed_ms(started: float) -> int:
    return int((time.monotonic() - started) * 1000)
