from __future__ import annotations

import asyncio
import json
from datetime import datetime, timedelta, timezone
from pathlib import Path

import httplib2
import httpx
import pytest
from googleapiclient.errors import HttpError

from social_scheduler.clients.google_auth import (
    GoogleOAuthClient,
    OAuthTokenExchangeError,
    ReauthenticationRequiredError,
)
from social_scheduler.clients.token_store import TokenFileStore
from social_scheduler.core.config import GoogleSettings, OAuthSettings
from social_scheduler.models.oauth import StoredOAuthToken
from social_scheduler.services.google_tokens import GoogleTokenService, TokenState


def _ms(moment: datetime) -> int:
    return int(moment.timestamp() * 1000)


def _expired_ms() -> int:
    return _ms(datetime.now(timezone.utc) - timedelta(minutes=1))


def _valid_ms() -> int:
    return _ms(datetime.now(timezone.utc) + timedelta(hours=1))


class MemoryStore:
    def __init__(self, record: StoredOAuthToken | None = None) -> None:
        self.record = record
        self.saved: list[StoredOAuthToken] = []

    def load(self) -> StoredOAuthToken | None:
        return self.record

    def on_credential_updated(self, record: StoredOAuthToken) -> None:
        self.saved.append(record)


class DummyOAuthClient:
    def __init__(
        self,
        *,
        refreshed_token: str = "B",
        delay: float = 0,
        fail_refresh: bool = False,
        refresh_payload: dict | None = None,
    ) -> None:
        self.refreshed_token = refreshed_token
        self.delay = delay
        self.fail_refresh = fail_refresh
        self.refresh_payload = refresh_payload
        self.refresh_calls: list[str] = []
        self.codes: list[str] = []

    async def refresh_token(self, refresh_token: str) -> dict:
        self.refresh_calls.append(refresh_token)
        if self.delay:
            await asyncio.sleep(self.delay)
        if self.fail_refresh:
            raise OAuthTokenExchangeError('{"error": "invalid_grant"}')
        if self.refresh_payload is not None:
            return self.refresh_payload
        return {"access_token": self.refreshed_token, "expires_in": 3600, "token_type": "Bearer"}

    async def exchange_authorization_code(self, code: str) -> dict:
        self.codes.append(code)
        if code == "bad-code":
            raise OAuthTokenExchangeError('{"error": "invalid_grant"}')
        return {"access_token": "fresh-access", "refresh_token": "fresh-refresh", "expires_in": 3599}


def _service(oauth_client, store) -> GoogleTokenService:
    return GoogleTokenService(oauth_client=oauth_client, store=store)


@pytest.mark.asyncio
async def test_valid_token_is_returned_without_refresh_or_write() -> None:
    store = MemoryStore(StoredOAuthToken(access_token="A", refresh_token="R", expiry_date=_valid_ms()))
    oauth_client = DummyOAuthClient()
    service = _service(oauth_client, store)

    assert await service.get_access_token() == "A"
    assert await service.get_access_token() == "A"

    assert oauth_client.refresh_calls == []
    assert store.saved == []
    assert service.state is TokenState.AUTHORIZED


@pytest.mark.asyncio
async def test_expired_token_is_refreshed_and_persisted_before_use() -> None:
    store = MemoryStore(StoredOAuthToken(access_token="A", refresh_token="R", expiry_date=_expired_ms()))
    oauth_client = DummyOAuthClient(refreshed_token="B")
    service = _service(oauth_client, store)

    token = await service.get_access_token()

    assert token == "B"
    assert oauth_client.refresh_calls == ["R"]
    assert len(store.saved) == 1
    assert store.saved[0].access_token == "B"
    assert store.saved[0].refresh_token == "R"
    assert not store.saved[0].is_expired()


@pytest.mark.asyncio
async def test_missing_refresh_token_requires_reauthentication_without_network() -> None:
    store = MemoryStore(StoredOAuthToken(access_token="A", expiry_date=_expired_ms()))
    oauth_client = DummyOAuthClient()
    service = _service(oauth_client, store)

    with pytest.raises(ReauthenticationRequiredError):
        await service.get_access_token()

    assert oauth_client.refresh_calls == []
    assert store.saved == []
    assert service.state is TokenState.UNAUTHORIZED


@pytest.mark.asyncio
async def test_no_stored_record_requires_authentication() -> None:
    service = _service(DummyOAuthClient(), MemoryStore())

    assert service.state is TokenState.UNINITIALIZED
    with pytest.raises(ReauthenticationRequiredError):
        await service.get_access_token()


@pytest.mark.asyncio
async def test_concurrent_callers_share_a_single_refresh() -> None:
    store = MemoryStore(StoredOAuthToken(access_token="A", refresh_token="R", expiry_date=_expired_ms()))
    oauth_client = DummyOAuthClient(refreshed_token="B", delay=0.05)
    service = _service(oauth_client, store)

    tokens = await asyncio.gather(*(service.get_access_token() for _ in range(10)))

    assert tokens == ["B"] * 10
    assert oauth_client.refresh_calls == ["R"]
    assert len(store.saved) == 1


@pytest.mark.asyncio
async def test_failed_refresh_marks_service_unauthorized_for_all_waiters() -> None:
    store = MemoryStore(StoredOAuthToken(access_token="A", refresh_token="R", expiry_date=_expired_ms()))
    oauth_client = DummyOAuthClient(delay=0.05, fail_refresh=True)
    service = _service(oauth_client, store)

    results = await asyncio.gather(
        *(service.get_access_token() for _ in range(5)), return_exceptions=True
    )

    assert all(isinstance(result, ReauthenticationRequiredError) for result in results)
    assert isinstance(results[0].__cause__, OAuthTokenExchangeError)
    assert oauth_client.refresh_calls == ["R"]
    assert service.state is TokenState.UNAUTHORIZED
    assert store.saved == []

    with pytest.raises(ReauthenticationRequiredError):
        await service.get_access_token()
    assert oauth_client.refresh_calls == ["R"]


@pytest.mark.asyncio
async def test_exchange_code_authorizes_and_persists() -> None:
    store = MemoryStore()
    oauth_client = DummyOAuthClient()
    service = _service(oauth_client, store)

    record = await service.exchange_code("oauth-code")

    assert oauth_client.codes == ["oauth-code"]
    assert record.access_token == "fresh-access"
    assert record.refresh_token == "fresh-refresh"
    assert service.state is TokenState.AUTHORIZED
    assert store.saved[-1].access_token == "fresh-access"
    assert await service.get_access_token() == "fresh-access"


@pytest.mark.asyncio
async def test_exchange_code_recovers_from_unauthorized_state() -> None:
    store = MemoryStore(StoredOAuthToken(access_token="A", expiry_date=_expired_ms()))
    service = _service(DummyOAuthClient(), store)
    with pytest.raises(ReauthenticationRequiredError):
        await service.get_access_token()

    await service.exchange_code("oauth-code")

    assert service.state is TokenState.AUTHORIZED
    assert await service.get_access_token() == "fresh-access"


@pytest.mark.asyncio
async def test_failed_exchange_leaves_state_unchanged() -> None:
    store = MemoryStore()
    service = _service(DummyOAuthClient(), store)

    with pytest.raises(OAuthTokenExchangeError):
        await service.exchange_code("bad-code")

    assert service.state is TokenState.UNINITIALIZED
    assert store.saved == []


@pytest.mark.asyncio
async def test_handle_unauthorized_skips_refresh_when_token_already_rotated() -> None:
    store = MemoryStore(StoredOAuthToken(access_token="A", refresh_token="R", expiry_date=_valid_ms()))
    oauth_client = DummyOAuthClient(refreshed_token="B")
    service = _service(oauth_client, store)

    assert await service.handle_unauthorized("A") == "B"
    assert await service.handle_unauthorized("A") == "B"

    assert oauth_client.refresh_calls == ["R"]


@pytest.mark.asyncio
async def test_run_with_credentials_refreshes_once_after_401() -> None:
    store = MemoryStore(StoredOAuthToken(access_token="A", refresh_token="R", expiry_date=_valid_ms()))
    oauth_client = DummyOAuthClient(refreshed_token="B")
    service = _service(oauth_client, store)
    seen_tokens: list[str] = []

    def operation(credentials):
        seen_tokens.append(credentials.token)
        if credentials.token == "A":
            raise HttpError(httplib2.Response({"status": "401"}), b"Invalid Credentials")
        return "done"

    result = await service.run_with_credentials(operation)

    assert result == "done"
    assert seen_tokens == ["A", "B"]
    assert oauth_client.refresh_calls == ["R"]


@pytest.mark.asyncio
async def test_run_with_credentials_propagates_other_http_errors() -> None:
    store = MemoryStore(StoredOAuthToken(access_token="A", refresh_token="R", expiry_date=_valid_ms()))
    oauth_client = DummyOAuthClient()
    service = _service(oauth_client, store)

    def operation(credentials):
        raise HttpError(httplib2.Response({"status": "403"}), b"Forbidden")

    with pytest.raises(HttpError):
        await service.run_with_credentials(operation)
    assert oauth_client.refresh_calls == []


@pytest.mark.asyncio
async def test_credentials_snapshot_carries_no_refresh_token() -> None:
    store = MemoryStore(StoredOAuthToken(access_token="A", refresh_token="R", expiry_date=_valid_ms()))
    service = _service(DummyOAuthClient(), store)

    credentials = await service.get_credentials()

    assert credentials.token == "A"
    assert credentials.refresh_token is None


@pytest.mark.asyncio
async def test_expired_token_file_is_refreshed_end_to_end(tmp_path: Path) -> None:
    token_file = tmp_path / "tokens.json"
    token_file.write_text(
        json.dumps({"access_token": "A", "refresh_token": "R", "expiry_date": _expired_ms()}),
        encoding="utf-8",
    )
    oauth_client = DummyOAuthClient(refreshed_token="B")
    service = _service(oauth_client, TokenFileStore(token_file))

    before = datetime.now(timezone.utc)
    token = await service.get_access_token()

    assert token == "B"
    stored = json.loads(token_file.read_text(encoding="utf-8"))
    assert stored["access_token"] == "B"
    assert stored["refresh_token"] == "R"
    expected = _ms(before + timedelta(seconds=3600))
    assert abs(stored["expiry_date"] - expected) < 5000

    restarted = _service(DummyOAuthClient(), TokenFileStore(token_file))
    assert await restarted.get_access_token() == "B"


def test_authorization_url_requests_offline_access() -> None:
    oauth_client = GoogleOAuthClient(
        GoogleSettings(
            GOOGLE_CLIENT_ID="client",
            GOOGLE_CLIENT_SECRET="secret",
            GOOGLE_REDIRECT_URI="https://example.com/callback",
        ),
        OAuthSettings(),
    )
    service = _service(oauth_client, MemoryStore())

    url = service.authorization_url(state="signed-state")

    assert "access_type=offline" in url
    assert "state=signed-state" in url


class FailingStore(MemoryStore):
    def __init__(self, record: StoredOAuthToken | None = None) -> None:
        super().__init__(record)
        self.fail = True

    def on_credential_updated(self, record: StoredOAuthToken) -> None:
        if self.fail:
            raise OSError("disk full")
        super().on_credential_updated(record)


@pytest.mark.asyncio
async def test_malformed_refresh_payload_marks_service_unauthorized() -> None:
    store = MemoryStore(StoredOAuthToken(access_token="A", refresh_token="R", expiry_date=_expired_ms()))
    oauth_client = DummyOAuthClient(refresh_payload={"access_token": "B", "expires_in": "soon"})
    service = _service(oauth_client, store)

    with pytest.raises(ReauthenticationRequiredError) as exc_info:
        await service.get_access_token()

    assert isinstance(exc_info.value.__cause__, ValueError)
    assert service.state is TokenState.UNAUTHORIZED
    assert store.saved == []

    with pytest.raises(ReauthenticationRequiredError):
        await service.get_access_token()
    assert oauth_client.refresh_calls == ["R"]


@pytest.mark.asyncio
async def test_non_json_token_response_marks_service_unauthorized() -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(200, text="<html>oops</html>")

    oauth_client = GoogleOAuthClient(
        GoogleSettings(
            GOOGLE_CLIENT_ID="client",
            GOOGLE_CLIENT_SECRET="secret",
            GOOGLE_REDIRECT_URI="https://example.com/callback",
        ),
        OAuthSettings(),
        transport=httpx.MockTransport(handler),
    )
    store = MemoryStore(StoredOAuthToken(access_token="A", refresh_token="R", expiry_date=_expired_ms()))
    service = _service(oauth_client, store)

    with pytest.raises(ReauthenticationRequiredError) as exc_info:
        await service.get_access_token()

    assert isinstance(exc_info.value.__cause__, OAuthTokenExchangeError)
    assert service.state is TokenState.UNAUTHORIZED
    assert service.is_authorized is False


@pytest.mark.asyncio
async def test_persistence_failure_keeps_previous_record() -> None:
    store = FailingStore(StoredOAuthToken(access_token="A", refresh_token="R", expiry_date=_expired_ms()))
    oauth_client = DummyOAuthClient(refreshed_token="B")
    service = _service(oauth_client, store)

    with pytest.raises(OSError, match="disk full"):
        await service.get_access_token()

    assert service.state is TokenState.AUTHORIZED
    assert service.is_authorized is True
    assert store.saved == []

    store.fail = False
    assert await service.get_access_token() == "B"
    assert oauth_client.refresh_calls == ["R", "R"]
    assert store.saved[-1].access_token == "B"
