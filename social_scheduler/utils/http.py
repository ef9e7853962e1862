"""HTTP utilities providing bounded, fixed-delay retry semantics."""

from __future__ import annotations

import asyncio
import logging
from typing import Any, Awaitable, Callable, Type, TypeVar

import httpx

from social_scheduler.core.config import RetrySettings

T = TypeVar("T")

logger = logging.getLogger(__name__)


class RetryConfig:
    """Retry budget for one outbound call.

    ``retries`` is the number of additional attempts after the first one, and
    ``delay_seconds`` the constant pause between attempts.
    """

    def __init__(self, *, retries: int = 3, delay_seconds: float = 1.0) -> None:
        if retries < 0:
            raise ValueError("retries must be zero or positive.")
        if delay_seconds < 0:
            raise ValueError("delay_seconds must be zero or positive.")
        self.retries = retries
        self.delay_seconds = delay_seconds

    @property
    def attempts(self) -> int:
        return self.retries + 1

    @classmethod
    def from_settings(cls, settings: RetrySettings) -> "RetryConfig":
        return cls(retries=settings.http_retries, delay_seconds=settings.http_delay_ms / 1000)

    def __repr__(self) -> str:
        return f"RetryConfig(retries={self.retries}, delay_seconds={self.delay_seconds})"


async def call_with_retry(
    func: Callable[..., Awaitable[T]],
    *args: Any,
    retry_config: RetryConfig | None = None,
    retry_on: tuple[Type[BaseException], ...] = (Exception,),
    **kwargs: Any,
) -> T:
    """Await ``func`` until it succeeds or the retry budget is spent.

    Every exception listed in ``retry_on`` is treated the same way. Once the
    budget is exhausted the last failure is re-raised.
    """
    config = retry_config or RetryConfig()
    attempt = 0
    last_exception: BaseException | None = None

    while attempt < config.attempts:
        try:
            return await func(*args, **kwargs)
        except retry_on as exc:
            last_exception = exc
            attempt += 1
            if attempt >= config.attempts:
                break
            logger.warning(
                "Attempt %s/%s failed (%s). Retrying in %.0fms...",
                attempt,
                config.attempts,
                exc,
                config.delay_seconds * 1000,
            )
            await asyncio.sleep(config.delay_seconds)

    if last_exception is not None:
        logger.error("All %s attempts failed: %s", config.attempts, last_exception)
        raise last_exception
    raise RuntimeError("Request failed without raising an exception")


async def request_with_retry(
    func: Callable[..., Awaitable[httpx.Response]],
    *args: Any,
    retry_config: RetryConfig | None = None,
    **kwargs: Any,
) -> httpx.Response:
    """Perform an httpx request, treating error statuses as failed attempts.

    ``func`` is usually ``client.request`` (or ``client.get``/``client.post``);
    the remaining arguments describe the request: method, URL, ``params``,
    ``headers``, ``json``/``data`` and ``timeout``.
    """

    async def _attempt() -> httpx.Response:
        response = await func(*args, **kwargs)
        response.raise_for_status()
        return response

    return await call_with_retry(
        _attempt, retry_config=retry_config, retry_on=(httpx.HTTPError,)
    )


__all__ = ["RetryConfig", "call_with_retry", "request_with_retry"]
