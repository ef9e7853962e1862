"""
Application configuration models and helpers.

Centralizes settings management so the FastAPI app, the platform clients and
the maintenance scripts share a consistent configuration surface.
"""

import json
import os
from functools import lru_cache
from pathlib import Path
from typing import Annotated, Any, Optional

from pydantic import AnyHttpUrl, Field, field_validator, model_validator
from pydantic_settings import BaseSettings, NoDecode, SettingsConfigDict


def _load_env_file(path: str = ".env") -> None:
    """Best-effort load key=value pairs from a .env file without extra deps."""
    env_path = Path(path)
    if not env_path.exists():
        return
    for raw_line in env_path.read_text().splitlines():
        line = raw_line.strip()
        if not line or line.startswith("#"):
            continue
        key, sep, value = line.partition("=")
        if not sep:
            continue
        key = key.strip()
        if not key or key in os.environ:
            continue
        cleaned = value.strip().strip('"').strip("'")
        os.environ[key] = cleaned


_load_env_file()


def _split_csv(value: Any) -> tuple[str, ...]:
    if value is None:
        return ()
    if isinstance(value, (tuple, list)):
        return tuple(str(item).strip() for item in value if str(item).strip())
    return tuple(item.strip() for item in str(value).split(",") if item.strip())


def _read_client_secrets(path: Path) -> dict[str, Any]:
    """Return the ``web`` (or ``installed``) section of a Google client secrets file."""
    if not path.exists():
        raise ValueError(f"Google credentials file not found at: {path}")
    try:
        payload = json.loads(path.read_text(encoding="utf-8"))
    except json.JSONDecodeError as exc:
        raise ValueError(f"Google credentials file {path} is not valid JSON.") from exc
    section = payload.get("web") or payload.get("installed")
    if not isinstance(section, dict):
        raise ValueError("Invalid credentials format - missing web property")
    return section


class _Settings(BaseSettings):
    model_config = SettingsConfigDict(extra="ignore")


class GoogleSettings(_Settings):
    """Configuration required for interacting with Google APIs.

    Client credentials come from environment variables, or from a client
    secrets JSON file downloaded from the Google Cloud console.
    """

    client_id: Optional[str] = Field(None, validation_alias="GOOGLE_CLIENT_ID")
    client_secret: Optional[str] = Field(None, validation_alias="GOOGLE_CLIENT_SECRET")
    redirect_uri: Optional[AnyHttpUrl] = Field(None, validation_alias="GOOGLE_REDIRECT_URI")
    credentials_file: Optional[Path] = Field(
        None,
        validation_alias="GOOGLE_CREDENTIALS_FILE",
        description="Optional client secrets file with a 'web' or 'installed' section.",
    )

    @model_validator(mode="after")
    def _resolve_client_credentials(self) -> "GoogleSettings":
        if self.credentials_file and not (
            self.client_id and self.client_secret and self.redirect_uri
        ):
            section = _read_client_secrets(self.credentials_file)
            redirect_uris = section.get("redirect_uris") or []
            self.client_id = self.client_id or section.get("client_id")
            self.client_secret = self.client_secret or section.get("client_secret")
            if not self.redirect_uri and redirect_uris:
                self.redirect_uri = redirect_uris[0]

        missing = [
            name
            for name, value in (
                ("GOOGLE_CLIENT_ID", self.client_id),
                ("GOOGLE_CLIENT_SECRET", self.client_secret),
                ("GOOGLE_REDIRECT_URI", self.redirect_uri),
            )
            if not value
        ]
        if missing:
            raise ValueError(f"Missing required credentials properties: {', '.join(missing)}")
        return self


class OAuthSettings(_Settings):
    """OAuth flow and token persistence configuration."""

    state_ttl_seconds: int = Field(900, validation_alias="OAUTH_STATE_TTL")
    token_file: Path = Field(Path("tokens.json"), validation_alias="GOOGLE_TOKEN_FILE")
    refresh_leeway_seconds: int = Field(
        0,
        ge=0,
        validation_alias="OAUTH_REFRESH_LEEWAY",
        description="Treat tokens as expired this many seconds before their expiry.",
    )
    scopes: Annotated[tuple[str, ...], NoDecode] = Field(
        (
            "https://www.googleapis.com/auth/youtube.upload",
            "https://www.googleapis.com/auth/youtube",
            "https://www.googleapis.com/auth/youtube.force-ssl",
            "https://www.googleapis.com/auth/spreadsheets",
            "https://www.googleapis.com/auth/drive",
            "https://www.googleapis.com/auth/userinfo.email",
        ),
        validation_alias="OAUTH_SCOPES",
    )

    @field_validator("scopes", mode="before")
    @classmethod
    def _split_scopes(cls, value: str | tuple[str, ...] | list[str]) -> tuple[str, ...]:
        """Support providing scopes as a comma-separated string."""
        return _split_csv(value)


class RetrySettings(_Settings):
    """Bounded retry policy for outbound HTTP and SMTP calls."""

    http_retries: int = Field(3, ge=0, validation_alias="HTTP_RETRY_COUNT")
    http_delay_ms: int = Field(1000, ge=0, validation_alias="HTTP_RETRY_DELAY_MS")
    mail_retries: int = Field(2, ge=0, validation_alias="MAIL_RETRY_COUNT")
    mail_delay_ms: int = Field(2000, ge=0, validation_alias="MAIL_RETRY_DELAY_MS")


class FacebookSettings(_Settings):
    """Facebook Graph API configuration."""

    page_id: Optional[str] = Field(None, validation_alias="FACEBOOK_PAGE_ID")
    access_token: Optional[str] = Field(None, validation_alias="FACEBOOK_ACCESS_TOKEN")
    graph_api_version: str = Field("v18.0", validation_alias="FACEBOOK_GRAPH_API_VERSION")
    graph_base_url: str = Field(
        "https://graph.facebook.com", validation_alias="FACEBOOK_GRAPH_BASE_URL"
    )
    request_timeout_seconds: float = Field(10.0, validation_alias="FACEBOOK_REQUEST_TIMEOUT")


class InstagramSettings(_Settings):
    """Instagram Business account configuration (published through the Graph API)."""

    business_id: Optional[str] = Field(None, validation_alias="INSTAGRAM_BUSINESS_ID")
    access_token: Optional[str] = Field(None, validation_alias="INSTAGRAM_ACCESS_TOKEN")


class MailSettings(_Settings):
    """SMTP delivery settings for notification emails."""

    smtp_host: str = Field("smtp.gmail.com", validation_alias="SMTP_HOST")
    smtp_port: int = Field(587, validation_alias="SMTP_PORT")
    use_starttls: bool = Field(True, validation_alias="SMTP_STARTTLS")
    sender: Optional[str] = Field(None, validation_alias="EMAIL_SENDER")
    password: Optional[str] = Field(None, validation_alias="EMAIL_PASSWORD")
    username: Optional[str] = Field(
        None,
        validation_alias="SMTP_USERNAME",
        description="Login name when it differs from EMAIL_SENDER.",
    )
    sender_name: str = Field("Reminder Bot", validation_alias="EMAIL_SENDER_NAME")
    timeout_seconds: float = Field(30.0, validation_alias="SMTP_TIMEOUT")


class ReminderSettings(_Settings):
    """Google Sheets/Forms sources used for reminders."""

    spreadsheet_id: Optional[str] = Field(None, validation_alias="GOOGLE_SPREADSHEET_ID")
    reminder_sheet_title: str = Field("Sheet1", validation_alias="REMINDER_SHEET_TITLE")
    reminder_range: str = Field("Sheet1!A1:E", validation_alias="REMINDER_RANGE")
    form_range: str = Field("A:D", validation_alias="FORM_RESPONSES_RANGE")
    form_link: Optional[str] = Field(None, validation_alias="GOOGLE_FORM_LINK")
    sheet_url: Optional[str] = Field(
        None,
        validation_alias="GOOGLE_SHEET_URL",
        description="Published web-app URL returning {'emails': [...]}.",
    )
    user_emails: Annotated[tuple[str, ...], NoDecode] = Field(
        (), validation_alias="USER_EMAILS"
    )

    @field_validator("user_emails", mode="before")
    @classmethod
    def _split_emails(cls, value: str | tuple[str, ...] | list[str]) -> tuple[str, ...]:
        return _split_csv(value)


class AppSettings(_Settings):
    """Root settings object for the FastAPI application."""

    environment: str = Field("development", validation_alias="APP_ENV")
    log_level: str = Field("INFO", validation_alias="APP_LOG_LEVEL")
    default_timezone: str = Field("UTC", validation_alias="DEFAULT_TIMEZONE")
    oauth: OAuthSettings = Field(default_factory=OAuthSettings)
    google: GoogleSettings = Field(default_factory=GoogleSettings)
    retry: RetrySettings = Field(default_factory=RetrySettings)
    facebook: FacebookSettings = Field(default_factory=FacebookSettings)
    instagram: InstagramSettings = Field(default_factory=InstagramSettings)
    mail: MailSettings = Field(default_factory=MailSettings)
    reminders: ReminderSettings = Field(default_factory=ReminderSettings)


@lru_cache()
def get_settings() -> AppSettings:
    """Return a cached settings object."""
    return AppSettings()  # type: ignore[call-arg]


__all__ = [
    "AppSettings",
    "FacebookSettings",
    "GoogleSettings",
    "InstagramSettings",
    "MailSettings",
    "OAuthSettings",
    "ReminderSettings",
    "RetrySettings",
    "get_settings",
]
