"""
Lifecycle management for the single Google OAuth credential.

``GoogleTokenService`` owns the credential record. It loads it from the token
store at construction, hands out access tokens, refreshes expired ones and
reports every new record to the store so a restart resumes from the last
known-good credential.
"""

from __future__ import annotations

import asyncio
import enum
import logging
from datetime import datetime, timedelta, timezone
from http import HTTPStatus
from typing import Callable, Iterable, Protocol, TypeVar

import httpx
from google.auth.exceptions import RefreshError
from google.oauth2.credentials import Credentials
from googleapiclient.errors import HttpError

from social_scheduler.clients.google_auth import (
    GoogleOAuthClient,
    OAuthTokenExchangeError,
    ReauthenticationRequiredError,
)
from social_scheduler.models.oauth import StoredOAuthToken

T = TypeVar("T")

logger = logging.getLogger(__name__)

REAUTHENTICATE_PATH = "/auth/google"


class TokenState(str, enum.Enum):
    UNINITIALIZED = "uninitialized"
    AUTHORIZED = "authorized"
    REFRESHING = "refreshing"
    UNAUTHORIZED = "unauthorized"


class CredentialStore(Protocol):
    def load(self) -> StoredOAuthToken | None: ...

    def on_credential_updated(self, record: StoredOAuthToken) -> None: ...


class GoogleTokenService:
    """Hands out valid Google access tokens, refreshing them when needed."""

    def __init__(
        self,
        oauth_client: GoogleOAuthClient,
        store: CredentialStore,
        *,
        refresh_leeway: timedelta = timedelta(0),
    ) -> None:
        self._oauth = oauth_client
        self._store = store
        self._refresh_leeway = refresh_leeway
        self._refresh_lock = asyncio.Lock()
        self._record = store.load()
        self._state = TokenState.AUTHORIZED if self._record else TokenState.UNINITIALIZED

    @property
    def state(self) -> TokenState:
        return self._state

    @property
    def is_authorized(self) -> bool:
        return self._state is TokenState.AUTHORIZED

    def authorization_url(
        self, scopes: Iterable[str] | None = None, state: str | None = None
    ) -> str:
        """Consent URL requesting offline access for ``scopes``."""
        return self._oauth.build_authorization_url(scopes=scopes, state=state)

    async def exchange_code(self, code: str) -> StoredOAuthToken:
        """Complete the authorization-code flow and persist the credential."""
        payload = await self._oauth.exchange_authorization_code(code)
        async with self._refresh_lock:
            self._commit(self._merge(payload))
        logger.info("Google account authorized")
        return self._record.model_copy()

    async def get_access_token(self) -> str:
        """Return a currently valid access token."""
        record = self._require_record()
        if not self._is_expired(record):
            return record.access_token

        async with self._refresh_lock:
            # Another caller may have refreshed while we waited for the lock.
            record = self._require_record()
            if not self._is_expired(record):
                return record.access_token
            return await self._refresh(record)

    async def handle_unauthorized(self, rejected_token: str) -> str:
        """Refresh after a provider rejected ``rejected_token`` with a 401."""
        async with self._refresh_lock:
            record = self._require_record()
            if record.access_token != rejected_token:
                return record.access_token
            logger.info("Google rejected the access token; refreshing")
            return await self._refresh(record)

    async def get_credentials(self) -> Credentials:
        """Return a read-only credentials snapshot for the Google client libraries."""
        token = await self.get_access_token()
        return Credentials(token=token)

    async def run_with_credentials(self, operation: Callable[[Credentials], T]) -> T:
        """Run a blocking Google API call, refreshing once if it is rejected."""
        credentials = await self.get_credentials()
        try:
            return await asyncio.to_thread(operation, credentials)
        except HttpError as exc:
            if exc.resp.status != HTTPStatus.UNAUTHORIZED:
                raise
            token = await self.handle_unauthorized(credentials.token)
        except RefreshError:
            # The snapshot carries no refresh token, so the transport reports a
            # 401 as a failed refresh.
            token = await self.handle_unauthorized(credentials.token)
        return await asyncio.to_thread(operation, Credentials(token=token))

    def _require_record(self) -> StoredOAuthToken:
        if self._state is TokenState.UNAUTHORIZED:
            raise ReauthenticationRequiredError(
                f"Google authorization was lost. Please re-authenticate via {REAUTHENTICATE_PATH}."
            )
        if self._record is None:
            raise ReauthenticationRequiredError(
                f"No Google credentials stored. Please authenticate via {REAUTHENTICATE_PATH}."
            )
        return self._record

    def _is_expired(self, record: StoredOAuthToken) -> bool:
        return record.is_expired(leeway=self._refresh_leeway)

    async def _refresh(self, record: StoredOAuthToken) -> str:
        if not record.refresh_token:
            self._state = TokenState.UNAUTHORIZED
            logger.error("No refresh token available. Please re-authenticate.")
            raise ReauthenticationRequiredError(
                f"No refresh token available. Please re-authenticate via {REAUTHENTICATE_PATH}."
            )

        self._state = TokenState.REFRESHING
        logger.info("Token expired, refreshing...")
        try:
            payload = await self._oauth.refresh_token(record.refresh_token)
            updated = self._merge(payload)
        except (OAuthTokenExchangeError, httpx.HTTPError, ValueError) as exc:
            self._state = TokenState.UNAUTHORIZED
            logger.error("Error refreshing token: %s", exc)
            raise ReauthenticationRequiredError(
                f"Token refresh failed. Please re-authenticate via {REAUTHENTICATE_PATH}."
            ) from exc

        try:
            self._commit(updated)
        except OSError:
            # The previous record is still the one on disk.
            self._state = TokenState.AUTHORIZED
            logger.error("Could not persist refreshed Google credentials", exc_info=True)
            raise
        return updated.access_token

    def _merge(self, payload: dict) -> StoredOAuthToken:
        return StoredOAuthToken.from_token_response(
            payload, previous=self._record, now=datetime.now(timezone.utc)
        )

    def _commit(self, record: StoredOAuthToken) -> None:
        self._store.on_credential_updated(record)
        self._record = record
        self._state = TokenState.AUTHORIZED


__all__ = ["CredentialStore", "GoogleTokenService", "TokenState"]
