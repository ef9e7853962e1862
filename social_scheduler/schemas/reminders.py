"""Schemas for reminders, form responses and notification emails."""

from __future__ import annotations

from typing import Optional

from pydantic import BaseModel, EmailStr, Field


class ReminderCreate(BaseModel):
    """Reminder submitted through the web UI."""

    title: str = Field(..., min_length=1)
    description: Optional[str] = None
    date: str = Field(..., description="Reminder date (YYYY-MM-DD).")
    time: str = Field("00:00", description="Reminder time (HH:MM).")
    platform: str = Field("manual", description="Platform the reminder relates to.")
    content: Optional[str] = None


class Reminder(ReminderCreate):
    """Stored reminder."""

    id: int


class FormResponse(BaseModel):
    """One Google Forms submission read from the responses sheet."""

    timestamp: str = ""
    name: str = ""
    email: str = ""
    response: str = ""


class EmailRequest(BaseModel):
    """Body of the signup/reminder email endpoints."""

    email: EmailStr


class FormReminderResult(BaseModel):
    reminded: list[str] = Field(default_factory=list)


__all__ = [
    "EmailRequest",
    "FormReminderResult",
    "FormResponse",
    "Reminder",
    "ReminderCreate",
]
