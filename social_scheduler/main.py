"""
FastAPI application entrypoint for the social scheduler.
"""

from __future__ import annotations

import logging
from http import HTTPStatus

import httpx
from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse
from googleapiclient.errors import HttpError

from social_scheduler.api.routes import auth_router, router as api_router
from social_scheduler.clients.facebook_graph import GraphAPIError
from social_scheduler.clients.google_auth import ReauthenticationRequiredError
from social_scheduler.clients.token_store import TokenStoreError
from social_scheduler.core.config import get_settings
from social_scheduler.core.logging import configure_logging
from social_scheduler.services.google_tokens import REAUTHENTICATE_PATH

logger = logging.getLogger(__name__)


async def _reauthentication_required(request: Request, exc: Exception) -> JSONResponse:
    return JSONResponse(
        status_code=HTTPStatus.UNAUTHORIZED,
        content={"detail": str(exc), "reauthenticate": REAUTHENTICATE_PATH},
    )


async def _upstream_failure(request: Request, exc: Exception) -> JSONResponse:
    logger.error("Upstream call for %s failed: %s", request.url.path, exc)
    return JSONResponse(status_code=HTTPStatus.BAD_GATEWAY, content={"detail": str(exc)})


async def _token_store_failure(request: Request, exc: Exception) -> JSONResponse:
    logger.error("Token store error: %s", exc)
    return JSONResponse(status_code=HTTPStatus.INTERNAL_SERVER_ERROR, content={"detail": str(exc)})


def create_app() -> FastAPI:
    """Factory for the FastAPI application."""
    settings = get_settings()
    configure_logging(settings.log_level)

    app = FastAPI(
        title="Social Scheduler",
        version="0.1.0",
        description="Schedule YouTube, Facebook and Instagram posts and send reminders.",
    )
    app.include_router(auth_router)
    app.include_router(api_router, prefix="/api")

    app.add_exception_handler(ReauthenticationRequiredError, _reauthentication_required)
    app.add_exception_handler(TokenStoreError, _token_store_failure)
    for upstream_error in (httpx.HTTPError, GraphAPIError, HttpError):
        app.add_exception_handler(upstream_error, _upstream_failure)
    return app


app = create_app()

__all__ = ["app", "create_app"]
