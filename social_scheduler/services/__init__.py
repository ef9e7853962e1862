"""Service layer exports."""

from .google_tokens import GoogleTokenService, TokenState
from .post_scheduling import PostSchedulingService
from .reminders import ReminderService, ReminderStore

__all__ = [
    "GoogleTokenService",
    "PostSchedulingService",
    "ReminderService",
    "ReminderStore",
    "TokenState",
]
