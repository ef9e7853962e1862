"""Schemas related to OAuth flows."""

from __future__ import annotations

from typing import Optional

from pydantic import BaseModel, Field


class OAuthCallbackResult(BaseModel):
    """JSON payload returned by the OAuth callback endpoint."""

    success: bool
    message: Optional[str] = None
    error: Optional[str] = None
    details: Optional[str] = None


class AuthStatus(BaseModel):
    """Current state of the managed Google credential."""

    state: str = Field(..., description="Token lifecycle state.")
    authorized: bool


__all__ = ["AuthStatus", "OAuthCallbackResult"]
