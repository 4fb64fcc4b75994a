"""Per-video enrichment: secondary metadata lookup plus transcript.

Enrichment is best-effort per item. A failed metadata lookup keeps the
listing-page fields and leaves counts as None; a failed transcript leaves it
empty. Neither ever aborts the ingestion run.
"""

import asyncio
import logging
import re
from typing import Any, Dict, List, Optional, Protocol

import yt_dlp

from models.channel import (
    DESCRIPTION_MAX_CHARS,
    EnrichedVideoRecord,
    VideoDetails,
    VideoEntryDescriptor,
    watch_url,
)
from services.transcript_fetcher import TranscriptFetcher
from services.video_list_navigator import safe_get, safe_get_str

logger = logging.getLogger(__name__)

# Suppress yt-dlp's verbose logging
logging.getLogger("yt_dlp").setLevel(logging.CRITICAL)

_LEADING_INT_RE = re.compile(r"\s*([+-]?\d+)")


def parse_count(value: Any) -> Optional[int]:
    """Parse a count as a base-10 integer.

    Thousands separators are stripped. Absent or unparseable values give
    None, never 0, so "unknown" stays distinguishable from a real zero.
    """
    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, int):
        return value
    if isinstance(value, float):
        if value != value or value in (float("inf"), float("-inf")):
            return None
        return int(value)
    if isinstance(value, str):
        match = _LEADING_INT_RE.match(value.replace(",", ""))
        return int(match.group(1)) if match else None
    return None


def comment_count_from_panels(panels: List[Dict[str, Any]]) -> Optional[int]:
    """Scan engagement panels for a header carrying a formatted comment count."""
    for panel in panels or []:
        count_text = safe_get_str(
            panel,
            "engagementPanelSectionListRenderer",
            "header",
            "engagementPanelTitleHeaderRenderer",
            "contextualInfo",
            "runs",
            0,
            "text",
        )
        if not count_text:
            continue
        count = parse_count(count_text)
        if count is not None:
            return count
    return None


def normalize_upload_date(value: Optional[str]) -> str:
    """Convert yt-dlp's YYYYMMDD upload date to ISO YYYY-MM-DD."""
    if not value:
        return ""
    if len(value) == 8 and value.isdigit():
        return f"{value[:4]}-{value[4:6]}-{value[6:]}"
    return value


class VideoInfoSource(Protocol):
    """Looks up secondary metadata for a single video."""

    async def get_details(self, video_id: str) -> VideoDetails: ...


class YtDlpInfoSource:
    """VideoInfoSource backed by yt-dlp metadata extraction."""

    def __init__(self, user_agent: Optional[str] = None):
        self.ydl_opts: Dict[str, Any] = {
            "quiet": True,
            "no_warnings": True,
            "skip_download": True,
        }
        if user_agent:
            self.ydl_opts["http_headers"] = {"User-Agent": user_agent}

    def _extract(self, video_id: str) -> Dict[str, Any]:
        with yt_dlp.YoutubeDL(self.ydl_opts) as ydl:
            info = ydl.extract_info(watch_url(video_id), download=False)
        if not info:
            raise ValueError(f"yt-dlp returned no info for {video_id}")
        return ydl.sanitize_info(info)

    async def get_details(self, video_id: str) -> VideoDetails:
        info = await asyncio.to_thread(self._extract, video_id)
        return details_from_ytdlp_info(info)


def details_from_ytdlp_info(info: Dict[str, Any]) -> VideoDetails:
    """Map a yt-dlp info dict onto VideoDetails."""
    thumbnails = [t for t in info.get("thumbnails") or [] if isinstance(t, dict) and t.get("url")]
    if not thumbnails and info.get("thumbnail"):
        thumbnails = [{"url": info["thumbnail"]}]

    return VideoDetails(
        title=info.get("title") or "",
        short_description=info.get("description") or "",
        publish_date=normalize_upload_date(info.get("upload_date")),
        view_count=parse_count(info.get("view_count")),
        likes=parse_count(info.get("like_count")),
        thumbnails=thumbnails,
        comment_count=parse_count(info.get("comment_count")),
    )


class VideoEnricher:
    """Turns a listing-page descriptor into an EnrichedVideoRecord."""

    def __init__(
        self,
        info_source: Optional[VideoInfoSource] = None,
        transcript_fetcher: Optional[TranscriptFetcher] = None,
        fetch_transcripts: bool = True,
    ):
        self.info_source = info_source or YtDlpInfoSource()
        self.transcript_fetcher = transcript_fetcher or TranscriptFetcher()
        self.fetch_transcripts = fetch_transcripts

    async def enrich(self, descriptor: VideoEntryDescriptor) -> EnrichedVideoRecord:
        """Enrich one video. Never raises for lookup or transcript failures."""
        if not descriptor.video_id:
            raise ValueError("Cannot enrich a video entry without an id")

        record = EnrichedVideoRecord.from_descriptor(descriptor)

        try:
            details = await self.info_source.get_details(descriptor.video_id)
        except Exception as e:
            logger.warning(f"Info lookup failed for {descriptor.video_id}: {e}")
        else:
            apply_details(record, details)

        if self.fetch_transcripts:
            result = await self.transcript_fetcher.fetch(descriptor.video_id)
            if result.error:
                logger.debug(
                    f"No transcript for {descriptor.video_id}: {result.error}"
                )
            record.transcript = result.text

        return record


def apply_details(record: EnrichedVideoRecord, details: VideoDetails) -> None:
    """Overwrite listing-page fields with the richer lookup values."""
    record.title = details.title or record.title
    record.description = (details.short_description or "")[:DESCRIPTION_MAX_CHARS]
    record.release_date = details.publish_date or ""
    record.view_count = parse_count(details.view_count)
    record.like_count = parse_count(details.likes)

    best_thumbnail = safe_get(details.thumbnails, -1, "url") if details.thumbnails else None
    record.thumbnail = best_thumbnail or record.thumbnail

    comment_count = parse_count(details.comment_count)
    if comment_count is None:
        comment_count = comment_count_from_panels(details.engagement_panels)
    record.comment_count = comment_count
