"""Tests for the terminal authorization script."""

from __future__ import annotations

import json
from pathlib import Path

import httpx
import pytest

from scripts import authorize
from social_scheduler.clients import GoogleOAuthClient, TokenFileStore
from social_scheduler.core.config import GoogleSettings, OAuthSettings


def _oauth_client(handler) -> GoogleOAuthClient:
    return GoogleOAuthClient(
        GoogleSettings(
            GOOGLE_CLIENT_ID="client",
            GOOGLE_CLIENT_SECRET="secret",
            GOOGLE_REDIRECT_URI="https://example.com/auth/google/callback",
        ),
        OAuthSettings(),
        transport=httpx.MockTransport(handler),
    )


def _google_handler(*, userinfo_status: int = 200):
    def handler(request: httpx.Request) -> httpx.Response:
        if str(request.url) == GoogleOAuthClient.TOKEN_URL:
            return httpx.Response(
                200,
                json={"access_token": "access", "refresh_token": "refresh", "expires_in": 3599},
            )
        assert request.headers["Authorization"] == "Bearer access"
        return httpx.Response(userinfo_status, json={"email": "owner@example.com"})

    return handler


@pytest.mark.asyncio
async def test_authorize_saves_token_and_reports_account(tmp_path: Path, capsys) -> None:
    token_file = tmp_path / "tokens.json"

    exit_code = await authorize._authorize(
        "auth-code", _oauth_client(_google_handler()), TokenFileStore(token_file)
    )

    assert exit_code == 0
    stored = json.loads(token_file.read_text(encoding="utf-8"))
    assert stored["access_token"] == "access"
    assert stored["refresh_token"] == "refresh"
    assert "Authorized account: owner@example.com" in capsys.readouterr().out


@pytest.mark.asyncio
async def test_authorize_survives_failed_account_lookup(tmp_path: Path, capsys) -> None:
    token_file = tmp_path / "tokens.json"

    exit_code = await authorize._authorize(
        "auth-code",
        _oauth_client(_google_handler(userinfo_status=403)),
        TokenFileStore(token_file),
    )

    assert exit_code == 0
    assert token_file.exists()
    assert "Could not look up the authorized account" in capsys.readouterr().err


@pytest.mark.asyncio
async def test_authorize_reports_rejected_code(tmp_path: Path, capsys) -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(400, json={"error": "invalid_grant"})

    token_file = tmp_path / "tokens.json"

    exit_code = await authorize._authorize(
        "stale-code", _oauth_client(handler), TokenFileStore(token_file)
    )

    assert exit_code == 1
    assert not token_file.exists()
    assert "Authentication failed" in capsys.readouterr().err
