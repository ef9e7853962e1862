"""Public schema exports."""

from .auth import AuthStatus, OAuthCallbackResult
from .posts import (
    FacebookScheduleRequest,
    InstagramScheduleRequest,
    YouTubeScheduleRequest,
    YouTubeUploadRequest,
)
from .reminders import (
    EmailRequest,
    FormReminderResult,
    FormResponse,
    Reminder,
    ReminderCreate,
)

__all__ = [
    "AuthStatus",
    "EmailRequest",
    "FacebookScheduleRequest",
    "FormReminderResult",
    "FormResponse",
    "InstagramScheduleRequest",
    "OAuthCallbackResult",
    "Reminder",
    "ReminderCreate",
    "YouTubeScheduleRequest",
    "YouTubeUploadRequest",
]
