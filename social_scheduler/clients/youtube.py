"""YouTube Data API client for scheduled and immediate uploads."""

from __future__ import annotations

import logging
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Dict, List, TYPE_CHECKING

from googleapiclient.discovery import build
from googleapiclient.http import MediaFileUpload

from social_scheduler.utils.http import RetryConfig

if TYPE_CHECKING:  # pragma: no cover - type hints only
    from social_scheduler.services.google_tokens import GoogleTokenService

logger = logging.getLogger(__name__)

DEFAULT_CATEGORY_ID = "22"


def to_rfc3339(moment: datetime) -> str:
    """Format an aware datetime the way YouTube expects ``publishAt``."""
    return moment.astimezone(timezone.utc).strftime("%Y-%m-%dT%H:%M:%S.000Z")


class YouTubeClient:
    """Upload videos to the authorized channel."""

    def __init__(
        self, token_service: "GoogleTokenService", retry_config: RetryConfig | None = None
    ) -> None:
        self._token_service = token_service
        self._retry = retry_config or RetryConfig()

    async def schedule_video(
        self,
        *,
        video_path: str,
        title: str,
        description: str,
        publish_at: datetime,
        category_id: str = DEFAULT_CATEGORY_ID,
    ) -> Dict[str, Any]:
        """Upload a private video that YouTube publishes at ``publish_at``."""
        body = {
            "snippet": {
                "title": title,
                "description": description,
                "categoryId": category_id,
            },
            "status": {
                "privacyStatus": "private",
                "publishAt": to_rfc3339(publish_at),
            },
        }
        result = await self._insert_video(video_path, body)
        logger.info("Video scheduled for %s: %s", body["status"]["publishAt"], result.get("id"))
        return result

    async def upload_video(
        self, *, video_path: str, title: str, description: str
    ) -> Dict[str, Any]:
        """Upload and publish a video immediately."""
        body = {
            "snippet": {"title": title, "description": description},
            "status": {"privacyStatus": "public"},
        }
        result = await self._insert_video(video_path, body)
        logger.info("Video uploaded: %s", result.get("id"))
        return result

    async def list_scheduled_videos(self, *, max_results: int = 10) -> List[Dict[str, Any]]:
        """List upcoming videos on the authorized channel."""

        def _execute_search(credentials) -> List[Dict[str, Any]]:
            service = build("youtube", "v3", credentials=credentials, cache_discovery=False)
            response = (
                service.search()
                .list(
                    part="snippet",
                    forMine=True,
                    type="video",
                    order="date",
                    maxResults=max_results,
                    eventType="upcoming",
                )
                .execute(num_retries=self._retry.retries)
            )
            return response.get("items", [])

        return await self._token_service.run_with_credentials(_execute_search)

    async def _insert_video(self, video_path: str, body: Dict[str, Any]) -> Dict[str, Any]:
        path = Path(video_path)
        if not path.is_file():
            raise FileNotFoundError(f"Video file not found: {video_path}")

        def _execute_upload(credentials) -> Dict[str, Any]:
            service = build("youtube", "v3", credentials=credentials, cache_discovery=False)
            media = MediaFileUpload(str(path), chunksize=-1, resumable=True)
            request = service.videos().insert(
                part="snippet,status", body=body, media_body=media
            )
            response = None
            while response is None:
                upload_status, response = request.next_chunk(num_retries=self._retry.retries)
                if upload_status:
                    logger.info("%d%% uploaded", int(upload_status.progress() * 100))
            return response

        return await self._token_service.run_with_credentials(_execute_upload)


__all__ = ["YouTubeClient", "to_rfc3339"]
