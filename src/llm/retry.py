# src/llm/retry.py
"""Bounded retries for provider calls, keyed by failure kind."""

from __future__ import annotations

import asyncio
import logging
import random
from dataclasses import dataclass
from typing import Any, Awaitable, Callable

logger = logging.getLogger(__name__)

_SERVER_CODES = ("500", "502", "503", "504", "529")


class LLMRetryExhausted(Exception):
    """The call kept failing, or failed in a way that is not worth repeating."""

    def __init__(self, caller: str, error_type: str, attempts: int, last_error: Exception):
        self.caller = caller
        self.error_type = error_type
        self.attempts = attempts
        self.last_error = last_error
        super().__init__(f"{caller}: gave up after {attempts} attempt(s) [{error_type}] {last_error}")


@dataclass(frozen=True)
class RetryPolicy:
    """``attempts`` counts every try, including the first."""

    attempts: int
    delay_s: float
    factor: float = 2.0
    jitter: bool = True

    def delay(self, retry: int) -> float:
        base = self.delay_s * self.factor ** retry
        return base * random.uniform(0.5, 1.5) if self.jitter else base  # noqa: S311


# A summary waits on at most a few seconds of backoff before the rule fallback.
RETRY_POLICIES: dict[str, RetryPolicy] = {
    "rate_limit": RetryPolicy(attempts=3, delay_s=1.0),
    "server_error": RetryPolicy(attempts=3, delay_s=1.0),
    "timeout": RetryPolicy(attempts=2, delay_s=0.5, factor=1.0),
}


def classify_error(error: BaseException) -> str:
    status = getattr(error, "status_code", None) or getattr(error, "status", None)
    if isinstance(status, int):
        if status == 429:
            return "rate_limit"
        if status >= 500:
            return "server_error"

    if isinstance(error, (TimeoutError, asyncio.TimeoutError)) or "timeout" in type(error).__name__.lower():
        return "timeout"

    message = str(error).lower()
    if "429" in message or "rate limit" in message:
        return "rate_limit"
    if "overloaded" in message or any(code in message for code in _SERVER_CODES):
        return "server_error"
    return "unknown"


async def with_retry(
    fn: Callable[..., Awaitable[Any]],
    *args: Any,
    caller: str = "llm",
    policies: dict[str, RetryPolicy] | None = None,
    **kwargs: Any,
) -> Any:
    """Await ``fn(*args, **kwargs)``, retrying on transient provider errors.

    Raises:
        LLMRetryExhausted: wraps the last error once the policy for its kind
            runs out, or immediately for kinds with no policy.
    """
    table = RETRY_POLICIES if policies is None else policies
    attempt = 0
    while True:
        attempt += 1
        try:
            return await fn(*args, **kwargs)
        except Exception as exc:
            kind = classify_error(exc)
            policy = table.get(kind)
            if policy is None or attempt >= policy.attempts:
                raise LLMRetryExhausted(caller, kind, attempt, exc) from exc
            pause = policy.delay(attempt - 1)
            logger.warning(
                "%s: %s on attempt %d/%d, next try in %.1fs",
                caller, kind, attempt, policy.attempts, pause,
            )
            await asyncio.sleep(pause)
