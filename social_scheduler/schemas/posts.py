"""
Pydantic models for post scheduling requests.

Each request accepts either an ISO 8601 ``scheduled_time`` or the separate
``date``/``time`` fields submitted by the web form.
"""

from typing import Optional

from pydantic import BaseModel, Field, model_validator


class _ScheduleFields(BaseModel):
    scheduled_time: Optional[str] = Field(
        None, description="ISO 8601 publish instant, e.g. 2025-03-01T09:30:00."
    )
    date: Optional[str] = Field(None, description="Publish date (YYYY-MM-DD).")
    time: Optional[str] = Field(None, description="Publish time (HH:MM).")
    timezone: Optional[str] = Field(
        None, description="IANA timezone for naive times; defaults to DEFAULT_TIMEZONE."
    )

    @model_validator(mode="after")
    def _require_schedule(self):
        if not self.scheduled_time and not (self.date and self.time):
            raise ValueError("Either scheduled_time or both date and time are required.")
        return self


class YouTubeScheduleRequest(_ScheduleFields):
    """Schedule a private upload that YouTube publishes later."""

    title: str = Field(..., min_length=1, max_length=100)
    description: str = Field(..., min_length=1)
    video_path: str = Field(..., description="Path of the video file on the server.")
    category_id: str = Field("22", description="YouTube video category.")


class YouTubeUploadRequest(BaseModel):
    """Upload a video and publish it right away."""

    title: str = Field(..., min_length=1, max_length=100)
    description: str = Field(..., min_length=1)
    video_path: str = Field(..., description="Path of the video file on the server.")


class FacebookScheduleRequest(_ScheduleFields):
    """Schedule a Facebook Page feed post."""

    content: str = Field(..., min_length=1, description="Message body of the post.")
    page_id: Optional[str] = Field(None, description="Overrides FACEBOOK_PAGE_ID.")
    access_token: Optional[str] = Field(None, description="Overrides FACEBOOK_ACCESS_TOKEN.")


class InstagramScheduleRequest(_ScheduleFields):
    """Schedule an Instagram image post."""

    image_url: str = Field(..., min_length=1)
    caption: str = Field("", description="Post caption.")
    business_id: Optional[str] = Field(None, description="Overrides INSTAGRAM_BUSINESS_ID.")
    access_token: Optional[str] = Field(None, description="Overrides INSTAGRAM_ACCESS_TOKEN.")


__all__ = [
    "FacebookScheduleRequest",
    "InstagramScheduleRequest",
    "YouTubeScheduleRequest",
    "YouTubeUploadRequest",
]
