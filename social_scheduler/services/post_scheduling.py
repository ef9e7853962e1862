"""
Business logic for scheduling posts on YouTube, Facebook and Instagram.

The service only validates and normalizes the publish instant; each platform
enforces the actual publication time itself.
"""

from __future__ import annotations

import logging
from datetime import datetime, timezone
from typing import Any, Dict, List
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

from fastapi import HTTPException, status

from social_scheduler.clients import FacebookGraphClient, YouTubeClient
from social_scheduler.core.config import AppSettings
from social_scheduler.schemas import (
    FacebookScheduleRequest,
    InstagramScheduleRequest,
    YouTubeScheduleRequest,
    YouTubeUploadRequest,
)

logger = logging.getLogger(__name__)

PLATFORMS = ("youtube", "facebook", "instagram")


def _bad_request(detail: str) -> HTTPException:
    return HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=detail)


def _not_configured(detail: str) -> HTTPException:
    return HTTPException(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail=detail)


def parse_schedule_time(scheduled_time: str, tz_name: str = "UTC") -> datetime:
    """Parse an ISO 8601 timestamp and return it in UTC.

    Naive timestamps are interpreted in ``tz_name``.
    """
    try:
        zone = ZoneInfo(tz_name)
    except (ZoneInfoNotFoundError, ValueError) as exc:
        raise _bad_request(f"Unknown timezone: {tz_name}") from exc

    try:
        parsed = datetime.fromisoformat(scheduled_time.strip())
    except ValueError as exc:
        raise _bad_request(
            "Invalid scheduled time format. Please use ISO8601."
        ) from exc

    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=zone)
    return parsed.astimezone(timezone.utc)


def combine_date_time(date: str, time: str, tz_name: str = "UTC") -> datetime:
    """Combine the web form's separate date and time fields."""
    return parse_schedule_time(f"{date.strip()}T{time.strip()}", tz_name)


class PostSchedulingService:
    """Validate scheduling requests and hand them to the platform clients."""

    def __init__(
        self,
        youtube_client: YouTubeClient,
        graph_client: FacebookGraphClient,
        settings: AppSettings,
    ) -> None:
        self._youtube = youtube_client
        self._graph = graph_client
        self._settings = settings

    def resolve_publish_time(
        self,
        *,
        scheduled_time: str | None,
        date: str | None = None,
        time: str | None = None,
        tz_name: str | None = None,
        now: datetime | None = None,
    ) -> datetime:
        """Return the UTC publish instant, rejecting instants that are not in the future."""
        tz_name = tz_name or self._settings.default_timezone
        if scheduled_time:
            publish_at = parse_schedule_time(scheduled_time, tz_name)
        elif date and time:
            publish_at = combine_date_time(date, time, tz_name)
        else:
            raise _bad_request("All fields are required")

        now = now or datetime.now(timezone.utc)
        if publish_at <= now:
            raise _bad_request("Scheduled time must be in the future.")
        return publish_at

    async def schedule_youtube(self, request: YouTubeScheduleRequest) -> Dict[str, Any]:
        publish_at = self.resolve_publish_time(
            scheduled_time=request.scheduled_time,
            date=request.date,
            time=request.time,
            tz_name=request.timezone,
        )
        try:
            return await self._youtube.schedule_video(
                video_path=request.video_path,
                title=request.title,
                description=request.description,
                publish_at=publish_at,
                category_id=request.category_id,
            )
        except FileNotFoundError as exc:
            raise _bad_request(str(exc)) from exc

    async def upload_youtube(self, request: YouTubeUploadRequest) -> Dict[str, Any]:
        """Publish a video immediately instead of scheduling it."""
        try:
            return await self._youtube.upload_video(
                video_path=request.video_path,
                title=request.title,
                description=request.description,
            )
        except FileNotFoundError as exc:
            raise _bad_request(str(exc)) from exc

    async def schedule_facebook(self, request: FacebookScheduleRequest) -> Dict[str, Any]:
        publish_at = self.resolve_publish_time(
            scheduled_time=request.scheduled_time,
            date=request.date,
            time=request.time,
            tz_name=request.timezone,
        )
        page_id, access_token = self._facebook_credentials(
            request.page_id, request.access_token
        )
        logger.info("Scheduling Facebook post for page %s at %s", page_id, publish_at.isoformat())
        return await self._graph.schedule_page_post(
            page_id=page_id,
            access_token=access_token,
            message=request.content,
            publish_at=publish_at,
        )

    async def schedule_instagram(self, request: InstagramScheduleRequest) -> Dict[str, Any]:
        publish_at = self.resolve_publish_time(
            scheduled_time=request.scheduled_time,
            date=request.date,
            time=request.time,
            tz_name=request.timezone,
        )
        business_id, access_token = self._instagram_credentials(
            request.business_id, request.access_token
        )
        logger.info("Attempting to schedule Instagram post for business ID %s", business_id)
        creation_id = await self._graph.create_media_container(
            business_id=business_id,
            access_token=access_token,
            image_url=request.image_url,
            caption=request.caption,
        )
        return await self._graph.publish_media(
            business_id=business_id,
            access_token=access_token,
            creation_id=creation_id,
            publish_at=publish_at,
        )

    async def list_scheduled(self, platform: str) -> List[Dict[str, Any]]:
        if platform == "youtube":
            return await self._youtube.list_scheduled_videos()
        if platform == "facebook":
            page_id, access_token = self._facebook_credentials(None, None)
            return await self._graph.list_scheduled_page_posts(
                page_id=page_id, access_token=access_token
            )
        if platform == "instagram":
            business_id, access_token = self._instagram_credentials(None, None)
            return await self._graph.list_media(
                business_id=business_id, access_token=access_token
            )
        raise _bad_request(f"Unsupported platform {platform!r}; expected one of {', '.join(PLATFORMS)}.")

    def _facebook_credentials(
        self, page_id: str | None, access_token: str | None
    ) -> tuple[str, str]:
        page_id = page_id or self._settings.facebook.page_id
        access_token = access_token or self._settings.facebook.access_token
        if not page_id:
            raise _not_configured("Facebook Page ID not configured")
        if not access_token:
            raise _not_configured("Facebook access token not configured")
        return page_id, access_token

    def _instagram_credentials(
        self, business_id: str | None, access_token: str | None
    ) -> tuple[str, str]:
        business_id = business_id or self._settings.instagram.business_id
        access_token = access_token or self._settings.instagram.access_token
        if not business_id:
            raise _not_configured("Instagram Business ID not configured")
        if not access_token:
            raise _not_configured("Instagram access token not configured")
        return business_id, access_token


__all__ = [
    "PLATFORMS",
    "PostSchedulingService",
    "combine_date_time",
    "parse_schedule_time",
]
