"""Expose dependency helpers for FastAPI routers."""

from .clients import (
    get_google_oauth_client,
    get_google_token_service,
    get_graph_client,
    get_mailer,
    get_oauth_state_encoder,
    get_post_scheduling_service,
    get_reminder_service,
    get_reminder_store,
    get_retry_config,
    get_sheet_web_app_client,
    get_sheets_client,
    get_token_store,
    get_youtube_client,
)
from .config import SettingsDependency, get_app_settings

__all__ = [
    "SettingsDependency",
    "get_app_settings",
    "get_google_oauth_client",
    "get_google_token_service",
    "get_graph_client",
    "get_mailer",
    "get_oauth_state_encoder",
    "get_post_scheduling_service",
    "get_reminder_service",
    "get_reminder_store",
    "get_retry_config",
    "get_sheet_web_app_client",
    "get_sheets_client",
    "get_token_store",
    "get_youtube_client",
]
