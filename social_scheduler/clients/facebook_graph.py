"""
Facebook Graph API helper for scheduling Page and Instagram Business posts.

Page posts are created unpublished with a ``scheduled_publish_time``; Instagram
posts go through the two-step media container / ``media_publish`` flow.
"""

from __future__ import annotations

import logging
from datetime import datetime
from typing import Any, Dict, List

import httpx

from social_scheduler.core.config import FacebookSettings
from social_scheduler.utils.http import RetryConfig, request_with_retry

logger = logging.getLogger(__name__)


class GraphAPIError(Exception):
    """Raised when the Graph API answers with an unusable payload."""


class FacebookGraphClient:
    """Thin async wrapper around the Graph API endpoints we publish through."""

    def __init__(
        self,
        settings: FacebookSettings,
        retry_config: RetryConfig | None = None,
        *,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self._settings = settings
        self._retry = retry_config or RetryConfig()
        self._transport = transport

    def _graph_url(self, path: str) -> str:
        base = self._settings.graph_base_url.rstrip("/")
        return f"{base}/{self._settings.graph_api_version}/{path}"

    async def _request(
        self,
        method: str,
        path: str,
        *,
        params: Dict[str, Any] | None = None,
        data: Dict[str, Any] | None = None,
    ) -> Dict[str, Any]:
        async with httpx.AsyncClient(transport=self._transport) as client:
            response = await request_with_retry(
                client.request,
                method,
                self._graph_url(path),
                params=params,
                json=data,
                timeout=self._settings.request_timeout_seconds,
                retry_config=self._retry,
            )
        return response.json()

    async def schedule_page_post(
        self,
        *,
        page_id: str,
        access_token: str,
        message: str,
        publish_at: datetime,
    ) -> Dict[str, Any]:
        """Create an unpublished Page post that Facebook publishes at ``publish_at``."""
        result = await self._request(
            "POST",
            f"{page_id}/feed",
            data={
                "message": message,
                "published": False,
                "scheduled_publish_time": int(publish_at.timestamp()),
                "access_token": access_token,
            },
        )
        logger.info("Facebook post scheduled: %s", result.get("id"))
        return result

    async def list_scheduled_page_posts(
        self, *, page_id: str, access_token: str
    ) -> List[Dict[str, Any]]:
        result = await self._request(
            "GET", f"{page_id}/scheduled_posts", params={"access_token": access_token}
        )
        posts = result.get("data") or []
        logger.info("Retrieved %d scheduled Facebook posts", len(posts))
        return posts

    async def create_media_container(
        self,
        *,
        business_id: str,
        access_token: str,
        image_url: str,
        caption: str,
    ) -> str:
        """Upload an image into an Instagram media container and return its id."""
        result = await self._request(
            "POST",
            f"{business_id}/media",
            data={"image_url": image_url, "caption": caption, "access_token": access_token},
        )
        creation_id = result.get("id")
        if not creation_id:
            raise GraphAPIError("Failed to create media container")
        return creation_id

    async def publish_media(
        self,
        *,
        business_id: str,
        access_token: str,
        creation_id: str,
        publish_at: datetime | None = None,
    ) -> Dict[str, Any]:
        data: Dict[str, Any] = {"creation_id": creation_id, "access_token": access_token}
        if publish_at is not None:
            data["scheduled_publish_time"] = int(publish_at.timestamp())
        return await self._request("POST", f"{business_id}/media_publish", data=data)

    async def list_media(
        self, *, business_id: str, access_token: str
    ) -> List[Dict[str, Any]]:
        result = await self._request(
            "GET",
            f"{business_id}/media",
            params={
                "access_token": access_token,
                "fields": "id,caption,media_url,timestamp",
            },
        )
        media = result.get("data")
        if not media:
            logger.warning("No scheduled posts found or empty response")
            return []
        logger.info("Found %d Instagram media items", len(media))
        return media


__all__ = ["FacebookGraphClient", "GraphAPIError"]
