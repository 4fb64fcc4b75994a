"""Locate the list of video renderers inside a channel's ytInitialData.

YouTube ships more than one structurally incompatible layout for the same
channel listing. Each known layout is a probe: given a tab's content node it
returns a non-empty list of renderer sub-trees or nothing. Probes are tried
in order for every tab and the first non-empty result wins. Supporting a new
layout means appending a probe.
"""

import logging
from typing import Any, Callable, Dict, List, Optional, Sequence

from models.channel import VideoEntryDescriptor
from services.ingestion_errors import NoVideosFoundError

logger = logging.getLogger(__name__)

JsonDict = Dict[str, Any]
LayoutProbe = Callable[[JsonDict], Optional[List[JsonDict]]]

NO_VIDEOS_MESSAGE = (
    "No videos found. Make sure the URL points to a public YouTube channel "
    "(e.g. https://www.youtube.com/@channelname)."
)


def safe_get(data: Any, *keys: Any) -> Any:
    """Walk nested dicts/lists, returning None on any missing or mistyped node."""
    current = data
    for key in keys:
        if isinstance(key, int):
            if not isinstance(current, list) or not -len(current) <= key < len(current):
                return None
            current = current[key]
        else:
            if not isinstance(current, dict):
                return None
            current = current.get(key)
        if current is None:
            return None
    return current


def safe_get_list(data: Any, *keys: Any) -> list:
    value = safe_get(data, *keys)
    return value if isinstance(value, list) else []


def safe_get_str(data: Any, *keys: Any) -> str:
    value = safe_get(data, *keys)
    return value if isinstance(value, str) else ""


def rich_grid_probe(tab_content: JsonDict) -> Optional[List[JsonDict]]:
    """Modern layout: richGridRenderer -> richItemRenderer -> videoRenderer."""
    renderers = []
    for item in safe_get_list(tab_content, "richGridRenderer", "contents"):
        renderer = safe_get(item, "richItemRenderer", "content", "videoRenderer")
        if isinstance(renderer, dict):
            renderers.append(renderer)
    return renderers or None


def section_list_probe(tab_content: JsonDict) -> Optional[List[JsonDict]]:
    """Legacy layout: sectionListRenderer -> gridRenderer -> gridVideoRenderer."""
    for section in safe_get_list(tab_content, "sectionListRenderer", "contents"):
        items = safe_get_list(
            section, "itemSectionRenderer", "contents", 0, "gridRenderer", "items"
        )
        renderers = [
            item["gridVideoRenderer"]
            for item in items
            if isinstance(item, dict) and isinstance(item.get("gridVideoRenderer"), dict)
        ]
        if renderers:
            return renderers
    return None


DEFAULT_PROBES: Sequence[LayoutProbe] = (rich_grid_probe, section_list_probe)


class VideoListNavigator:
    """Finds video renderers in a parsed ytInitialData tree."""

    def __init__(self, probes: Sequence[LayoutProbe] = DEFAULT_PROBES):
        self.probes = tuple(probes)

    def find_video_renderers(self, initial_data: JsonDict) -> List[JsonDict]:
        """Return video renderer sub-trees in page display order.

        Raises:
            NoVideosFoundError: No tab/probe combination yielded any entries
        """
        tabs = safe_get_list(
            initial_data, "contents", "twoColumnBrowseResultsRenderer", "tabs"
        )

        for index, tab in enumerate(tabs):
            tab_renderer = safe_get(tab, "tabRenderer")
            if not isinstance(tab_renderer, dict):
                continue
            content = tab_renderer.get("content")
            if not isinstance(content, dict):
                continue

            for probe in self.probes:
                renderers = probe(content)
                if renderers:
                    logger.debug(
                        f"Tab {index}: {probe.__name__} found {len(renderers)} videos"
                    )
                    return renderers

        raise NoVideosFoundError(NO_VIDEOS_MESSAGE)


def descriptor_from_renderer(renderer: JsonDict) -> VideoEntryDescriptor:
    """Pull the display fields available on the listing page. Never fails."""
    video_id = safe_get(renderer, "videoId")
    thumbnails = safe_get_list(renderer, "thumbnail", "thumbnails")

    return VideoEntryDescriptor(
        video_id=video_id if isinstance(video_id, str) and video_id else None,
        title=(
            safe_get_str(renderer, "title", "runs", 0, "text")
            or safe_get_str(renderer, "title", "simpleText")
        ),
        thumbnail_url=safe_get_str(thumbnails, -1, "url") if thumbnails else "",
        duration=safe_get_str(renderer, "lengthText", "simpleText"),
        published_time_text=safe_get_str(renderer, "publishedTimeText", "simpleText"),
        view_count_text=(
            safe_get_str(renderer, "viewCountText", "simpleText")
            or safe_get_str(renderer, "shortViewCountText", "simpleText")
        ),
    )
