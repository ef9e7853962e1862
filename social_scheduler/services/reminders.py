"""
Reminder bookkeeping and Google Forms follow-up emails.
"""

from __future__ import annotations

import itertools
import logging
import time
from datetime import date
from typing import Any, Iterable, List

from fastapi import HTTPException, status

from social_scheduler.clients import GoogleSheetsClient, SheetWebAppClient, SMTPMailer
from social_scheduler.core.config import ReminderSettings
from social_scheduler.schemas import FormResponse, Reminder, ReminderCreate

logger = logging.getLogger(__name__)


def _cell(row: List[Any], index: int, default: str = "") -> str:
    if index < len(row) and row[index] not in (None, ""):
        return str(row[index])
    return default


class ReminderStore:
    """Process-local list of reminders shown in the web UI."""

    def __init__(self) -> None:
        self._reminders: list[Reminder] = []
        self._ids = itertools.count(int(time.time() * 1000))

    def next_id(self) -> int:
        return next(self._ids)

    def list_all(self) -> list[Reminder]:
        return list(self._reminders)

    def add(self, reminder: ReminderCreate) -> Reminder:
        stored = Reminder(id=self.next_id(), **reminder.model_dump())
        self._reminders.append(stored)
        return stored

    def remove(self, reminder_id: int) -> None:
        self._reminders = [item for item in self._reminders if item.id != reminder_id]

    def replace_all(self, reminders: Iterable[Reminder]) -> None:
        self._reminders = list(reminders)


class ReminderService:
    """Sync reminders from Sheets and chase missing Google Forms submissions."""

    FORM_REMINDER_SUBJECT = "Reminder: Fill Out Google Form"

    def __init__(
        self,
        *,
        sheets_client: GoogleSheetsClient,
        web_app_client: SheetWebAppClient,
        mailer: SMTPMailer,
        store: ReminderStore,
        settings: ReminderSettings,
    ) -> None:
        self._sheets = sheets_client
        self._web_app = web_app_client
        self._mailer = mailer
        self._store = store
        self._settings = settings

    async def sync_from_sheet(self, spreadsheet_id: str | None = None) -> list[Reminder]:
        """Replace the stored reminders with the rows of the reminder sheet."""
        spreadsheet_id = self._require_spreadsheet_id(spreadsheet_id)
        sheet_title = self._settings.reminder_sheet_title

        titles = await self._sheets.list_sheet_titles(spreadsheet_id)
        if sheet_title not in titles:
            raise HTTPException(
                status_code=status.HTTP_404_NOT_FOUND,
                detail=f"Sheet '{sheet_title}' not found. Available sheets: {', '.join(titles)}",
            )

        values = await self._sheets.fetch_values(spreadsheet_id, self._settings.reminder_range)
        today = date.today().isoformat()
        reminders = [
            Reminder(
                id=self._store.next_id(),
                title=_cell(row, 0, "Untitled"),
                description=_cell(row, 1, "No Description"),
                date=_cell(row, 2, today),
                time=_cell(row, 3, "00:00"),
                platform="Google Forms",
                content=_cell(row, 4),
            )
            for row in values[1:]
        ]
        self._store.replace_all(reminders)
        logger.info("Synced %d reminders from sheet %s", len(reminders), sheet_title)
        return reminders

    async def get_form_responses(
        self, spreadsheet_id: str | None, range_: str | None = None
    ) -> list[FormResponse]:
        """Read Google Forms submissions (timestamp, name, email, response)."""
        range_ = range_ or self._settings.form_range
        if not spreadsheet_id or not range_:
            raise HTTPException(
                status_code=status.HTTP_400_BAD_REQUEST,
                detail="Missing required parameters: spreadsheetId and range",
            )
        values = await self._sheets.fetch_values(spreadsheet_id, range_)
        return [
            FormResponse(
                timestamp=_cell(row, 0),
                name=_cell(row, 1),
                email=_cell(row, 2),
                response=_cell(row, 3),
            )
            for row in values[1:]
        ]

    async def send_form_reminders(self) -> list[str]:
        """Email every configured user who has not submitted the form yet."""
        spreadsheet_id = self._require_spreadsheet_id(None)
        responses = await self.get_form_responses(spreadsheet_id)
        submitted = {entry.email.strip().lower() for entry in responses if entry.email}
        missing = [
            email
            for email in self._settings.user_emails
            if email.strip().lower() not in submitted
        ]

        for email in missing:
            await self._mailer.send(email, self.FORM_REMINDER_SUBJECT, self._form_reminder_body())
            logger.info("Reminder sent to: %s", email)
        return missing

    async def fetch_emails(self) -> list[str]:
        return await self._web_app.fetch_emails(self._settings.sheet_url)

    def _form_reminder_body(self) -> str:
        link = self._settings.form_link or ""
        return (
            "Hi, \n\nYou haven't submitted the form yet. \n\n"
            f"Form Link: {link}\n\nThanks!"
        )

    def _require_spreadsheet_id(self, spreadsheet_id: str | None) -> str:
        spreadsheet_id = spreadsheet_id or self._settings.spreadsheet_id
        if not spreadsheet_id:
            raise HTTPException(
                status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
                detail="Google Spreadsheet ID not configured",
            )
        return spreadsheet_id


__all__ = ["ReminderService", "ReminderStore"]
