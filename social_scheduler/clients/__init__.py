"""Expose constructed client wrappers."""

from .facebook_graph import FacebookGraphClient, GraphAPIError
from .google_auth import GoogleOAuthClient, OAuthStateEncoder
from .google_sheets import GoogleSheetsClient, SheetWebAppClient
from .mailer import SMTPMailer
from .token_store import TokenFileStore
from .youtube import YouTubeClient

__all__ = [
    "FacebookGraphClient",
    "GoogleOAuthClient",
    "GoogleSheetsClient",
    "GraphAPIError",
    "OAuthStateEncoder",
    "SMTPMailer",
    "SheetWebAppClient",
    "TokenFileStore",
    "YouTubeClient",
]
