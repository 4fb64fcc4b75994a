"""Data models for YouTube channel ingestion."""

import math
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Union

DEFAULT_MAX_VIDEOS = 10
MAX_VIDEOS_HARD_CAP = 100

DESCRIPTION_MAX_CHARS = 1000
TRANSCRIPT_MAX_CHARS = 5000

WATCH_URL_TEMPLATE = "https://www.youtube.com/watch?v={video_id}"


def watch_url(video_id: str) -> str:
    """Build the canonical watch URL for a video id."""
    return WATCH_URL_TEMPLATE.format(video_id=video_id)


def clamp_max_videos(value: Any) -> int:
    """Resolve a requested item count to the effective ingestion limit.

    Missing, zero or non-numeric values fall back to the default before the
    result is clamped into [1, MAX_VIDEOS_HARD_CAP].
    """
    try:
        number = float(value)
    except (TypeError, ValueError):
        number = 0.0
    if math.isnan(number):
        number = 0.0
    if math.isinf(number):
        return MAX_VIDEOS_HARD_CAP if number > 0 else 1
    requested = int(number) if number else DEFAULT_MAX_VIDEOS
    return min(MAX_VIDEOS_HARD_CAP, max(1, requested))


@dataclass(frozen=True)
class ChannelIngestionRequest:
    """A single channel ingestion run, created per HTTP request."""

    url: str
    max_videos: Any = DEFAULT_MAX_VIDEOS

    @property
    def effective_limit(self) -> int:
        return clamp_max_videos(self.max_videos)


@dataclass
class RawPageDocument:
    """HTML of a fetched channel page plus the status that produced it."""

    html: str
    status: int


@dataclass
class VideoEntryDescriptor:
    """Display fields available directly on the channel listing page."""

    video_id: Optional[str] = None
    title: str = ""
    thumbnail_url: str = ""
    duration: str = ""
    published_time_text: str = ""
    view_count_text: str = ""


@dataclass
class VideoDetails:
    """Normalized response of a per-video info lookup."""

    title: str = ""
    short_description: str = ""
    publish_date: str = ""
    view_count: Optional[int] = None
    likes: Optional[int] = None
    thumbnails: List[Dict[str, Any]] = field(default_factory=list)
    comment_count: Optional[int] = None
    # Raw engagement panel objects, scanned for a formatted comment count
    engagement_panels: List[Dict[str, Any]] = field(default_factory=list)


@dataclass
class EnrichedVideoRecord:
    """Final per-video record emitted in the ``done`` event."""

    video_id: str
    title: str
    video_url: str
    thumbnail: str = ""
    duration: str = ""
    published_time_text: str = ""
    view_count_text: str = ""
    description: str = ""
    release_date: str = ""
    view_count: Optional[int] = None
    like_count: Optional[int] = None
    comment_count: Optional[int] = None
    transcript: str = ""

    @classmethod
    def from_descriptor(cls, descriptor: VideoEntryDescriptor) -> "EnrichedVideoRecord":
        """Seed a record from listing-page fields only."""
        video_id = descriptor.video_id or ""
        return cls(
            video_id=video_id,
            title=descriptor.title,
            video_url=watch_url(video_id),
            thumbnail=descriptor.thumbnail_url,
            duration=descriptor.duration,
            published_time_text=descriptor.published_time_text,
            view_count_text=descriptor.view_count_text,
        )

    def to_dict(self) -> dict:
        return {
            "video_id": self.video_id,
            "title": self.title,
            "video_url": self.video_url,
            "thumbnail": self.thumbnail,
            "duration": self.duration,
            "published_time_text": self.published_time_text,
            "view_count_text": self.view_count_text,
            "description": self.description,
            "release_date": self.release_date,
            "view_count": self.view_count,
            "like_count": self.like_count,
            "comment_count": self.comment_count,
            "transcript": self.transcript,
        }


@dataclass
class TranscriptResult:
    """Outcome of a best-effort transcript fetch.

    ``error`` is informational only; callers use ``text`` and ignore the rest.
    """

    text: str = ""
    error: Optional[str] = None

    @property
    def ok(self) -> bool:
        return self.error is None and bool(self.text)


@dataclass
class ProgressEvent:
    """Emitted right before an item's enrichment starts."""

    current: int
    total: int
    percent: int

    @classmethod
    def for_item(cls, current: int, total: int) -> "ProgressEvent":
        # Half-up rounding, matching what the frontend expects (2/3 -> 67)
        percent = int(current * 100 / total + 0.5) if total else 0
        return cls(current=current, total=total, percent=percent)

    def to_dict(self) -> dict:
        return {
            "type": "progress",
            "current": self.current,
            "total": self.total,
            "percent": self.percent,
        }


@dataclass
class DoneEvent:
    """Terminal event carrying every record of the run, in page order."""

    videos: List[EnrichedVideoRecord] = field(default_factory=list)

    def to_dict(self) -> dict:
        return {"type": "done", "videos": [v.to_dict() for v in self.videos]}


@dataclass
class ErrorEvent:
    """Terminal event for an unrecoverable ingestion failure."""

    message: str

    def to_dict(self) -> dict:
        return {"type": "error", "message": self.message}


IngestionEvent = Union[ProgressEvent, DoneEvent, ErrorEvent]
