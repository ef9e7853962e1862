"""Authorize the Google account from a terminal.

Prints the consent URL, waits for the ``code`` parameter from the redirect and
writes the resulting credential to the token file, replacing any previous
authorization::

    python -m scripts.authorize
    python -m scripts.authorize --code 4/0Ab...
"""

from __future__ import annotations

import argparse
import asyncio
import sys
from datetime import timedelta

import httpx

from social_scheduler.clients import GoogleOAuthClient, TokenFileStore
from social_scheduler.clients.google_auth import OAuthTokenExchangeError
from social_scheduler.core.config import get_settings
from social_scheduler.core.logging import configure_logging
from social_scheduler.services import GoogleTokenService


async def _authorize(
    code: str | None,
    oauth_client: GoogleOAuthClient,
    store: TokenFileStore,
    *,
    refresh_leeway: timedelta = timedelta(0),
) -> int:
    service = GoogleTokenService(
        oauth_client=oauth_client, store=store, refresh_leeway=refresh_leeway
    )

    if not code:
        print("Open this URL in a browser and approve access:\n")
        print(service.authorization_url())
        code = input("\nPaste the 'code' parameter from the redirect URL: ").strip()
    if not code:
        print("No authorization code given.", file=sys.stderr)
        return 1

    try:
        record = await service.exchange_code(code)
    except OAuthTokenExchangeError as exc:
        print(f"Authentication failed: {exc}", file=sys.stderr)
        return 1

    print(f"Saved credentials to {store.path}.")
    try:
        email = await oauth_client.fetch_user_email(record.access_token)
    except httpx.HTTPError as exc:
        print(f"Could not look up the authorized account: {exc}", file=sys.stderr)
    else:
        print(f"Authorized account: {email or 'unknown'}")
    if not record.refresh_token:
        print(
            "Warning: Google did not return a refresh token; the authorization "
            "will stop working when the access token expires.",
            file=sys.stderr,
        )
    return 0


def main(argv: list[str] | None = None) -> int:
    parser = argparse.ArgumentParser(description="Authorize the scheduler's Google account.")
    parser.add_argument("--code", help="Authorization code, if already obtained.")
    args = parser.parse_args(argv)

    settings = get_settings()
    configure_logging(settings.log_level)
    return asyncio.run(
        _authorize(
            args.code,
            GoogleOAuthClient(settings.google, settings.oauth),
            TokenFileStore(settings.oauth.token_file),
            refresh_leeway=timedelta(seconds=settings.oauth.refresh_leeway_seconds),
        )
    )


if __name__ == "__main__":  # pragma: no cover - script entry point
    sys.exit(main())
