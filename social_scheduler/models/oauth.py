"""
Domain models for OAuth token persistence.
"""

from __future__ import annotations

from datetime import datetime, timedelta, timezone
from typing import Any, Mapping, Optional

from pydantic import BaseModel, ConfigDict, Field


def _to_epoch_ms(moment: datetime) -> int:
    return int(moment.timestamp() * 1000)


class StoredOAuthToken(BaseModel):
    """Represents the credential record stored in the token file.

    ``expiry_date`` is kept in epoch milliseconds, the layout Google's client
    libraries use for ``tokens.json``.
    """

    model_config = ConfigDict(extra="allow")

    access_token: str
    refresh_token: Optional[str] = None
    expiry_date: Optional[int] = Field(
        None, description="Absolute expiry instant in epoch milliseconds."
    )
    token_type: str = "Bearer"
    scope: Optional[str] = None

    @classmethod
    def from_token_response(
        cls,
        payload: Mapping[str, Any],
        *,
        previous: "StoredOAuthToken | None" = None,
        now: datetime | None = None,
    ) -> "StoredOAuthToken":
        """Merge a token endpoint response into the previous record."""
        now = now or datetime.now(timezone.utc)
        merged: dict[str, Any] = previous.model_dump() if previous else {}
        merged.update({key: value for key, value in payload.items() if value is not None})

        expires_in = merged.pop("expires_in", None)
        if expires_in is not None:
            merged["expiry_date"] = _to_epoch_ms(now + timedelta(seconds=int(expires_in)))

        if not payload.get("refresh_token") and previous is not None:
            merged["refresh_token"] = previous.refresh_token

        return cls.model_validate(merged)

    @property
    def expires_at(self) -> datetime | None:
        if self.expiry_date is None:
            return None
        return datetime.fromtimestamp(self.expiry_date / 1000, tz=timezone.utc)

    def is_expired(
        self, now: datetime | None = None, leeway: timedelta = timedelta(0)
    ) -> bool:
        expires_at = self.expires_at
        if expires_at is None:
            return False
        now = now or datetime.now(timezone.utc)
        return expires_at <= now + leeway


__all__ = ["StoredOAuthToken"]
