try:
    from . import _bootstrap  # noqa: F401
except Exception:  # pragma: no cover
    import _bootstrap  # type: ignore # noqa: F401

import httpx
import pytest

from social_scheduler.core.config import RetrySettings
from social_scheduler.utils.http import RetryConfig, call_with_retry, request_with_retry


class FlakyCall:
    def __init__(self, failures: int) -> None:
        self.failures = failures
        self.calls = 0

    async def __call__(self) -> str:
        self.calls += 1
        if self.calls <= self.failures:
            raise RuntimeError(f"failure {self.calls}")
        return "ok"


@pytest.mark.asyncio
@pytest.mark.parametrize("failures", [0, 1, 2, 3])
async def test_call_with_retry_succeeds_within_budget(failures, recorded_sleeps) -> None:
    call = FlakyCall(failures)

    result = await call_with_retry(call, retry_config=RetryConfig(retries=3, delay_seconds=1.0))

    assert result == "ok"
    assert call.calls == failures + 1
    assert recorded_sleeps == [1.0] * failures


@pytest.mark.asyncio
async def test_call_with_retry_raises_last_failure_after_exhaustion(recorded_sleeps) -> None:
    call = FlakyCall(failures=10)

    with pytest.raises(RuntimeError, match="failure 4"):
        await call_with_retry(call, retry_config=RetryConfig(retries=3, delay_seconds=0.5))

    assert call.calls == 4
    assert recorded_sleeps == [0.5, 0.5, 0.5]


@pytest.mark.asyncio
async def test_zero_retries_means_single_attempt(recorded_sleeps) -> None:
    call = FlakyCall(failures=1)

    with pytest.raises(RuntimeError):
        await call_with_retry(call, retry_config=RetryConfig(retries=0, delay_seconds=1.0))

    assert call.calls == 1
    assert recorded_sleeps == []


@pytest.mark.asyncio
async def test_exceptions_outside_retry_on_propagate_immediately(recorded_sleeps) -> None:
    calls = 0

    async def _lookup() -> None:
        nonlocal calls
        calls += 1
        raise KeyError("missing")

    with pytest.raises(KeyError):
        await call_with_retry(
            _lookup,
            retry_config=RetryConfig(retries=3, delay_seconds=1.0),
            retry_on=(RuntimeError,),
        )

    assert calls == 1
    assert recorded_sleeps == []


@pytest.mark.asyncio
async def test_request_with_retry_retries_error_statuses() -> None:
    statuses = iter([500, 503, 200])
    seen: list[str] = []

    def handler(request: httpx.Request) -> httpx.Response:
        seen.append(str(request.url))
        return httpx.Response(next(statuses), json={"ok": True})

    async with httpx.AsyncClient(transport=httpx.MockTransport(handler)) as client:
        response = await request_with_retry(
            client.request,
            "GET",
            "https://api.example.com/items",
            retry_config=RetryConfig(retries=3, delay_seconds=0),
        )

    assert response.status_code == 200
    assert seen == ["https://api.example.com/items"] * 3


@pytest.mark.asyncio
async def test_request_with_retry_surfaces_final_status_error() -> None:
    calls = 0

    def handler(request: httpx.Request) -> httpx.Response:
        nonlocal calls
        calls += 1
        return httpx.Response(404, json={"error": "not found"})

    async with httpx.AsyncClient(transport=httpx.MockTransport(handler)) as client:
        with pytest.raises(httpx.HTTPStatusError) as exc_info:
            await request_with_retry(
                client.request,
                "GET",
                "https://api.example.com/missing",
                retry_config=RetryConfig(retries=2, delay_seconds=0),
            )

    assert exc_info.value.response.status_code == 404
    assert calls == 3


def test_retry_config_rejects_negative_values() -> None:
    with pytest.raises(ValueError):
        RetryConfig(retries=-1)
    with pytest.raises(ValueError):
        RetryConfig(delay_seconds=-0.1)


def test_retry_config_from_settings_converts_milliseconds() -> None:
    settings = RetrySettings(HTTP_RETRY_COUNT=5, HTTP_RETRY_DELAY_MS=250)

    config = RetryConfig.from_settings(settings)

    assert config.retries == 5
    assert config.attempts == 6
    assert config.delay_seconds == 0.25
