"""
Factory functions to provide shared clients and services as FastAPI dependencies.

Every factory is cached, so each component is constructed once per process and
shared by reference between request handlers.
"""

from datetime import timedelta
from functools import lru_cache

from social_scheduler.clients import (
    FacebookGraphClient,
    GoogleOAuthClient,
    GoogleSheetsClient,
    OAuthStateEncoder,
    SheetWebAppClient,
    SMTPMailer,
    TokenFileStore,
    YouTubeClient,
)
from social_scheduler.core.config import get_settings
from social_scheduler.services import (
    GoogleTokenService,
    PostSchedulingService,
    ReminderService,
    ReminderStore,
)
from social_scheduler.utils.http import RetryConfig


@lru_cache()
def _settings():
    """Internal helper to cache settings for client factories."""
    return get_settings()


@lru_cache()
def get_retry_config() -> RetryConfig:
    """Provide the bounded retry policy for outbound HTTP calls."""
    return RetryConfig.from_settings(_settings().retry)


@lru_cache()
def get_oauth_state_encoder() -> OAuthStateEncoder:
    """Provide an OAuth state encoder derived from the Google client secret."""
    settings = _settings()
    return OAuthStateEncoder(secret_key=settings.google.client_secret)


@lru_cache()
def get_google_oauth_client() -> GoogleOAuthClient:
    """Create a singleton Google OAuth client."""
    settings = _settings()
    return GoogleOAuthClient(settings.google, settings.oauth)


@lru_cache()
def get_token_store() -> TokenFileStore:
    """Provide the JSON file that persists the Google credential."""
    return TokenFileStore(_settings().oauth.token_file)


@lru_cache()
def get_google_token_service() -> GoogleTokenService:
    """Provide the process-wide Google token lifecycle manager."""
    settings = _settings()
    return GoogleTokenService(
        oauth_client=get_google_oauth_client(),
        store=get_token_store(),
        refresh_leeway=timedelta(seconds=settings.oauth.refresh_leeway_seconds),
    )


@lru_cache()
def get_sheets_client() -> GoogleSheetsClient:
    """Provide Google Sheets client instance."""
    return GoogleSheetsClient(get_google_token_service(), get_retry_config())


@lru_cache()
def get_sheet_web_app_client() -> SheetWebAppClient:
    """Provide the client for the published sheet e-mail list."""
    return SheetWebAppClient(get_retry_config())


@lru_cache()
def get_youtube_client() -> YouTubeClient:
    """Provide YouTube Data API client instance."""
    return YouTubeClient(get_google_token_service(), get_retry_config())


@lru_cache()
def get_graph_client() -> FacebookGraphClient:
    """Provide Facebook/Instagram Graph API client instance."""
    return FacebookGraphClient(_settings().facebook, get_retry_config())


@lru_cache()
def get_mailer() -> SMTPMailer:
    """Provide the SMTP mailer."""
    settings = _settings()
    return SMTPMailer.from_settings(settings.mail, settings.retry)


@lru_cache()
def get_reminder_store() -> ReminderStore:
    """Provide the process-local reminder list."""
    return ReminderStore()


def get_post_scheduling_service() -> PostSchedulingService:
    """Build a post scheduling service using configured clients."""
    return PostSchedulingService(
        youtube_client=get_youtube_client(),
        graph_client=get_graph_client(),
        settings=_settings(),
    )


def get_reminder_service() -> ReminderService:
    """Build a reminder service using configured clients."""
    return ReminderService(
        sheets_client=get_sheets_client(),
        web_app_client=get_sheet_web_app_client(),
        mailer=get_mailer(),
        store=get_reminder_store(),
        settings=_settings().reminders,
    )


__all__ = [
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
