"""
FastAPI routes for the social scheduler.

``auth_router`` serves the Google OAuth redirect flow at the root; ``router``
holds the JSON API mounted under ``/api``.
"""

from __future__ import annotations

import logging
import smtplib
import uuid
from datetime import datetime, timedelta, timezone
from http import HTTPStatus
from typing import Annotated, Any

import httpx
from fastapi import APIRouter, Depends, HTTPException, Query, Response
from fastapi.responses import JSONResponse, RedirectResponse

from social_scheduler.clients.google_auth import OAuthTokenExchangeError
from social_scheduler.dependencies import (
    get_app_settings,
    get_google_token_service,
    get_mailer,
    get_oauth_state_encoder,
    get_post_scheduling_service,
    get_reminder_service,
    get_reminder_store,
)
from social_scheduler.schemas import (
    AuthStatus,
    EmailRequest,
    FacebookScheduleRequest,
    FormReminderResult,
    InstagramScheduleRequest,
    OAuthCallbackResult,
    Reminder,
    ReminderCreate,
    YouTubeScheduleRequest,
    YouTubeUploadRequest,
)
from social_scheduler.services.post_scheduling import PLATFORMS

router = APIRouter()
auth_router = APIRouter(tags=["auth"])
logger = logging.getLogger(__name__)

_MAIL_ERRORS = (ValueError, smtplib.SMTPException, OSError)


def _callback_failure(status_code: int, error: str, details: str | None = None) -> JSONResponse:
    body = OAuthCallbackResult(success=False, error=error, details=details)
    return JSONResponse(status_code=status_code, content=body.model_dump(exclude_none=True))


@auth_router.get("/auth/google", status_code=HTTPStatus.FOUND)
async def start_google_oauth_flow(
    token_service: Annotated[Any, Depends(get_google_token_service)],
    state_encoder: Annotated[Any, Depends(get_oauth_state_encoder)],
) -> RedirectResponse:
    """Redirect the browser to Google's consent screen."""
    state = state_encoder.encode(
        {
            "nonce": uuid.uuid4().hex,
            "issued_at": datetime.now(timezone.utc).isoformat(),
        }
    )
    authorization_url = token_service.authorization_url(state=state)
    return RedirectResponse(url=authorization_url, status_code=HTTPStatus.FOUND)


@auth_router.get("/auth/google/callback", response_model=OAuthCallbackResult)
async def handle_google_oauth_callback(
    token_service: Annotated[Any, Depends(get_google_token_service)],
    state_encoder: Annotated[Any, Depends(get_oauth_state_encoder)],
    settings: Annotated[Any, Depends(get_app_settings)],
    code: str | None = Query(default=None, description="Authorization code returned by Google."),
    state: str | None = Query(default=None, description="OAuth state token."),
    error: str | None = Query(default=None, description="Error reported by Google."),
) -> Any:
    """Exchange the authorization code and persist the resulting credential."""
    if error:
        return _callback_failure(HTTPStatus.BAD_REQUEST, "Authentication failed", error)
    if not code:
        return _callback_failure(HTTPStatus.BAD_REQUEST, "Authorization code is required")
    if not state:
        return _callback_failure(HTTPStatus.BAD_REQUEST, "Missing OAuth state")

    try:
        state_data = state_encoder.decode(state)
    except HTTPException as exc:
        return _callback_failure(HTTPStatus.BAD_REQUEST, "Invalid OAuth state", exc.detail)
    try:
        issued_at = datetime.fromisoformat(state_data["issued_at"])
    except (KeyError, TypeError, ValueError):
        return _callback_failure(HTTPStatus.BAD_REQUEST, "Invalid issued_at in state token.")
    if issued_at.tzinfo is None:
        issued_at = issued_at.replace(tzinfo=timezone.utc)
    if datetime.now(timezone.utc) - issued_at > timedelta(seconds=settings.oauth.state_ttl_seconds):
        return _callback_failure(HTTPStatus.BAD_REQUEST, "OAuth state token has expired.")

    try:
        await token_service.exchange_code(code)
    except (OAuthTokenExchangeError, httpx.HTTPError) as exc:
        logger.error("Error retrieving access token: %s", exc)
        return _callback_failure(HTTPStatus.BAD_REQUEST, "Authentication failed", str(exc))

    return OAuthCallbackResult(
        success=True,
        message="Authentication successful! You can now use Google APIs.",
    )


@auth_router.get("/auth/google/status", response_model=AuthStatus)
async def google_auth_status(
    token_service: Annotated[Any, Depends(get_google_token_service)],
) -> AuthStatus:
    return AuthStatus(state=token_service.state.value, authorized=token_service.is_authorized)


@router.get("/health", status_code=HTTPStatus.OK)
async def healthcheck() -> dict:
    """Simple health endpoint for monitoring."""
    return {"status": "ok"}


@router.post("/schedule-youtube")
async def schedule_youtube(
    payload: YouTubeScheduleRequest,
    service: Annotated[Any, Depends(get_post_scheduling_service)],
) -> dict:
    """Upload a private video that YouTube publishes at the requested time."""
    return await service.schedule_youtube(payload)


@router.post("/upload-video")
async def upload_video(
    payload: YouTubeUploadRequest,
    service: Annotated[Any, Depends(get_post_scheduling_service)],
) -> dict:
    """Upload a public video to YouTube right away."""
    return await service.upload_youtube(payload)


@router.post("/schedule-facebook")
async def schedule_facebook(
    payload: FacebookScheduleRequest,
    service: Annotated[Any, Depends(get_post_scheduling_service)],
) -> dict:
    return await service.schedule_facebook(payload)


@router.post("/schedule-instagram")
async def schedule_instagram(
    payload: InstagramScheduleRequest,
    service: Annotated[Any, Depends(get_post_scheduling_service)],
) -> dict:
    return await service.schedule_instagram(payload)


@router.get("/{platform}/scheduled")
async def list_scheduled_posts(
    platform: str,
    service: Annotated[Any, Depends(get_post_scheduling_service)],
) -> list:
    """List upcoming posts for one of the supported platforms."""
    if platform not in PLATFORMS:
        raise HTTPException(status_code=HTTPStatus.NOT_FOUND, detail="Unknown platform.")
    return await service.list_scheduled(platform)


@router.get("/fetch-google-forms", response_model=list[Reminder])
async def fetch_google_forms(
    service: Annotated[Any, Depends(get_reminder_service)],
) -> list[Reminder]:
    """Reload reminders from the configured spreadsheet."""
    return await service.sync_from_sheet()


@router.get("/reminders", response_model=list[Reminder])
async def list_reminders(
    store: Annotated[Any, Depends(get_reminder_store)],
) -> list[Reminder]:
    return store.list_all()


@router.post("/reminders", response_model=Reminder)
async def create_reminder(
    payload: ReminderCreate,
    store: Annotated[Any, Depends(get_reminder_store)],
) -> Reminder:
    return store.add(payload)


@router.delete("/reminders/{reminder_id}", status_code=HTTPStatus.NO_CONTENT)
async def delete_reminder(
    reminder_id: int,
    store: Annotated[Any, Depends(get_reminder_store)],
) -> Response:
    store.remove(reminder_id)
    return Response(status_code=HTTPStatus.NO_CONTENT)


@router.post("/reminders/form/send", response_model=FormReminderResult)
async def send_form_reminders(
    service: Annotated[Any, Depends(get_reminder_service)],
) -> FormReminderResult:
    """Email every configured user who has not submitted the Google Form."""
    try:
        reminded = await service.send_form_reminders()
    except _MAIL_ERRORS as exc:
        logger.error("Failed to send reminders: %s", exc)
        raise HTTPException(
            status_code=HTTPStatus.INTERNAL_SERVER_ERROR,
            detail=f"Failed to send reminders: {exc}",
        ) from exc
    return FormReminderResult(reminded=reminded)


@router.get("/sheet-emails")
async def fetch_sheet_emails(
    service: Annotated[Any, Depends(get_reminder_service)],
) -> dict:
    try:
        emails = await service.fetch_emails()
    except ValueError as exc:
        raise HTTPException(status_code=HTTPStatus.BAD_GATEWAY, detail=str(exc)) from exc
    return {"emails": emails}


@router.post("/signup")
async def signup(
    payload: EmailRequest,
    mailer: Annotated[Any, Depends(get_mailer)],
) -> JSONResponse:
    """Send the signup confirmation email."""
    try:
        await mailer.send(payload.email, "Signup Successful", "You have successfully signed in!")
    except _MAIL_ERRORS as exc:
        return JSONResponse(
            status_code=HTTPStatus.INTERNAL_SERVER_ERROR,
            content={"message": "Failed to send confirmation email", "error": str(exc)},
        )
    return JSONResponse(content={"message": "Signup successful"})


@router.post("/send-google-form-reminder")
async def send_google_form_reminder(
    payload: EmailRequest,
    mailer: Annotated[Any, Depends(get_mailer)],
) -> JSONResponse:
    """Send a single form reminder to the given address."""
    try:
        await mailer.send(
            payload.email,
            "Google Form Reminder",
            "This is a reminder to submit your Google Form.",
        )
    except _MAIL_ERRORS as exc:
        return JSONResponse(
            status_code=HTTPStatus.INTERNAL_SERVER_ERROR,
            content={"message": "Failed to send reminder", "error": str(exc)},
        )
    return JSONResponse(content={"message": "Reminder sent"})


__all__ = ["auth_router", "router"]
