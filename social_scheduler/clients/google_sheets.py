"""Google Sheets clients for reminder and form-response data."""

from __future__ import annotations

import logging
from typing import Any, List, TYPE_CHECKING

import httpx
from googleapiclient.discovery import build

from social_scheduler.utils.http import RetryConfig, request_with_retry

if TYPE_CHECKING:  # pragma: no cover - type hints only
    from social_scheduler.services.google_tokens import GoogleTokenService

logger = logging.getLogger(__name__)


class GoogleSheetsClient:
    """Read spreadsheet metadata and cell values with the managed credential."""

    def __init__(
        self, token_service: "GoogleTokenService", retry_config: RetryConfig | None = None
    ) -> None:
        self._token_service = token_service
        self._retry = retry_config or RetryConfig()

    async def list_sheet_titles(self, spreadsheet_id: str) -> List[str]:
        """Return the titles of every sheet in the spreadsheet."""

        def _execute_get(credentials) -> List[str]:
            service = build("sheets", "v4", credentials=credentials, cache_discovery=False)
            spreadsheet = (
                service.spreadsheets()
                .get(spreadsheetId=spreadsheet_id)
                .execute(num_retries=self._retry.retries)
            )
            titles = [sheet["properties"]["title"] for sheet in spreadsheet.get("sheets", [])]
            logger.info(
                "Spreadsheet %r has %d sheets: %s",
                spreadsheet.get("properties", {}).get("title"),
                len(titles),
                ", ".join(titles),
            )
            return titles

        return await self._token_service.run_with_credentials(_execute_get)

    async def fetch_values(self, spreadsheet_id: str, range_: str) -> List[List[Any]]:
        """Fetch raw row values, header row included."""

        def _execute_fetch(credentials) -> List[List[Any]]:
            service = build("sheets", "v4", credentials=credentials, cache_discovery=False)
            response = (
                service.spreadsheets()
                .values()
                .get(spreadsheetId=spreadsheet_id, range=range_, majorDimension="ROWS")
                .execute(num_retries=self._retry.retries)
            )
            values = response.get("values", [])
            if not values:
                logger.warning("No data found in %s", range_)
            return values

        return await self._token_service.run_with_credentials(_execute_fetch)


class SheetWebAppClient:
    """Read the e-mail list published by a Google Sheets web app."""

    def __init__(
        self,
        retry_config: RetryConfig | None = None,
        *,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self._retry = retry_config or RetryConfig()
        self._transport = transport

    async def fetch_emails(self, sheet_url: str | None) -> List[str]:
        if not sheet_url:
            raise ValueError("Google Sheet URL not configured in environment variables.")

        async with httpx.AsyncClient(transport=self._transport) as client:
            response = await request_with_retry(
                client.request,
                "GET",
                sheet_url,
                timeout=5.0,
                retry_config=self._retry,
            )

        payload = response.json()
        emails = payload.get("emails") if isinstance(payload, dict) else None
        if not isinstance(emails, list):
            raise ValueError("Unexpected response format; 'emails' field should be an array.")
        return emails


__all__ = ["GoogleSheetsClient", "SheetWebAppClient"]
