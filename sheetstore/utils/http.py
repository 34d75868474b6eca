"""HTTP utilities providing retry/backoff semantics."""

from __future__ import annotations

import asyncio
import logging
from typing import Awaitable, Callable

import httpx

logger = logging.getLogger(__name__)

Sleep = Callable[[float], Awaitable[None]]


class RetryConfig:
    def __init__(
        self,
        *,
        attempts: int = 3,
        backoff_seconds: float = 2.0,
        timeout_seconds: float = 30.0,
    ) -> None:
        if attempts < 1:
            raise ValueError("attempts must be at least 1")
        self.attempts = attempts
        self.backoff_seconds = backoff_seconds
        self.timeout_seconds = timeout_seconds


def is_retryable_status(status_code: int) -> bool:
    """Rate limiting and server-side failures are worth another attempt."""
    return status_code == 429 or status_code >= 500


async def request_with_retry(
    func: Callable[..., Awaitable[httpx.Response]],
    *args,
    retry_config: RetryConfig | None = None,
    sleep: Sleep = asyncio.sleep,
    **kwargs,
) -> httpx.Response:
    """
    Call ``func`` with exponential backoff on 429, 5xx and network errors.

    Each attempt is bounded by ``retry_config.timeout_seconds`` unless the
    caller passes its own ``timeout``.

    Any other response is returned as soon as it arrives. Once the attempts
    are spent the last response is returned, or the last network error is
    re-raised when no response was ever obtained.
    """
    config = retry_config or RetryConfig()
    kwargs.setdefault("timeout", config.timeout_seconds)
    delay = config.backoff_seconds
    last_response: httpx.Response | None = None
    last_exception: Exception | None = None

    for attempt in range(1, config.attempts + 1):
        try:
            response = await func(*args, **kwargs)
        except httpx.TransportError as exc:
            last_exception = exc
            logger.warning(
                "Network failure (%s). Attempt %d of %d.",
                exc.__class__.__name__,
                attempt,
                config.attempts,
            )
        else:
            if not is_retryable_status(response.status_code):
                return response
            last_response = response
            logger.warning(
                "HTTP %d received. Attempt %d of %d, waiting %.1fs.",
                response.status_code,
                attempt,
                config.attempts,
                delay,
            )

        if attempt == config.attempts:
            break
        await sleep(delay)
        delay *= 2

    if last_response is not None:
        return last_response
    if last_exception is not None:
        raise last_exception
    raise RuntimeError("Request failed without raising an exception")


__all__ = ["RetryConfig", "Sleep", "is_retryable_status", "request_with_retry"]
