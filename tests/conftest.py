"""Shared pytest fixtures for channelchat tests."""

import json
import sys
from pathlib import Path
from typing import Callable, Dict, List, Optional

import httpx
import pytest

# Add src directory to path for imports
src_path = Path(__file__).parent.parent / "src"
if str(src_path) not in sys.path:
    sys.path.insert(0, str(src_path))

from models.channel import TranscriptResult, VideoDetails
from services.channel_page import ChannelPageFetcher


def make_video_renderer(video_id: Optional[str], title: str = "") -> Dict:
    """Minimal videoRenderer sub-tree as it appears on a channel listing page."""
    renderer = {
        "title": {"runs": [{"text": title or f"Video {video_id}"}]},
        "thumbnail": {
            "thumbnails": [
                {"url": f"https://i.ytimg.com/vi/{video_id}/default.jpg"},
                {"url": f"https://i.ytimg.com/vi/{video_id}/hqdefault.jpg"},
            ]
        },
        "lengthText": {"simpleText": "10:01"},
        "publishedTimeText": {"simpleText": "2 days ago"},
        "viewCountText": {"simpleText": "1,234 views"},
    }
    if video_id is not None:
        renderer["videoId"] = video_id
    return renderer


def rich_grid_data(renderers: List[Dict]) -> Dict:
    """ytInitialData using the modern rich grid layout."""
    return {
        "contents": {
            "twoColumnBrowseResultsRenderer": {
                "tabs": [
                    {"tabRenderer": {"title": "Home"}},
                    {
                        "tabRenderer": {
                            "title": "Videos",
                            "content": {
                                "richGridRenderer": {
                                    "contents": [
                                        {"richItemRenderer": {"content": {"videoRenderer": r}}}
                                        for r in renderers
                                    ]
                                }
                            },
                        }
                    },
                ]
            }
        }
    }


def section_list_data(renderers: List[Dict]) -> Dict:
    """ytInitialData using the legacy section list layout."""
    return {
        "contents": {
            "twoColumnBrowseResultsRenderer": {
                "tabs": [
                    {
                        "tabRenderer": {
                            "content": {
                                "sectionListRenderer": {
                                    "contents": [
                                        {
                                            "itemSectionRenderer": {
                                                "contents": [
                                                    {
                                                        "gridRenderer": {
                                                            "items": [
                                                                {"gridVideoRenderer": r}
                                                                for r in renderers
                                                            ]
                                                        }
                                                    }
                                                ]
                                            }
                                        }
                                    ]
                                }
                            }
                        }
                    }
                ]
            }
        }
    }


def channel_html(initial_data: Dict, closed_by_script: bool = True) -> str:
    """Wrap ytInitialData in page markup.

    ``closed_by_script`` picks between the two assignment forms seen in the wild.
    """
    blob = json.dumps(initial_data)
    if closed_by_script:
        script = f"<script>var ytInitialData = {blob};</script>"
    else:
        script = f"<script>window.ytInitialData = {blob}; var ytcfg = {{}};</script>"
    return f"<html><head><title>Channel</title></head><body>{script}</body></html>"


class FakeInfoSource:
    """VideoInfoSource returning canned details and recording lookups."""

    def __init__(self, details: Optional[Dict[str, VideoDetails]] = None, failing: tuple = ()):
        self.details = details or {}
        self.failing = set(failing)
        self.calls: List[str] = []

    async def get_details(self, video_id: str) -> VideoDetails:
        self.calls.append(video_id)
        if video_id in self.failing:
            raise RuntimeError(f"lookup blocked for {video_id}")
        return self.details.get(
            video_id,
            VideoDetails(
                title=f"Full title {video_id}",
                short_description=f"Description of {video_id}",
                publish_date="2024-05-01",
                view_count="1,234",
                likes="56",
                thumbnails=[{"url": f"https://img/{video_id}/max.jpg"}],
                comment_count="7",
            ),
        )


class FakeTranscriptFetcher:
    """TranscriptFetcher stand-in with per-video canned results."""

    def __init__(self, texts: Optional[Dict[str, str]] = None):
        self.texts = texts or {}
        self.calls: List[str] = []

    async def fetch(self, video_id: str) -> TranscriptResult:
        self.calls.append(video_id)
        if video_id in self.texts:
            return TranscriptResult(text=self.texts[video_id])
        return TranscriptResult(text="", error="TranscriptUnavailable: no captions")


@pytest.fixture
def fake_info_source() -> FakeInfoSource:
    return FakeInfoSource()


@pytest.fixture
def fake_transcript_fetcher() -> FakeTranscriptFetcher:
    return FakeTranscriptFetcher()


@pytest.fixture
def make_page_fetcher() -> Callable[..., ChannelPageFetcher]:
    """Build a ChannelPageFetcher whose HTTP layer is an httpx.MockTransport.

    Requested URLs are appended to ``fetcher.requested``.
    """

    def factory(html: str = "", status: int = 200) -> ChannelPageFetcher:
        requested: List[str] = []

        def handler(request: httpx.Request) -> httpx.Response:
            requested.append(str(request.url))
            return httpx.Response(status, text=html)

        fetcher = ChannelPageFetcher(
            client=httpx.AsyncClient(transport=httpx.MockTransport(handler))
        )
        fetcher.requested = requested
        return fetcher

    return factory


@pytest.fixture
def sample_videos() -> List[Dict]:
    """Enriched records as the chat endpoint receives them."""
    return [
        {
            "video_id": "aaa",
            "title": "How black holes evaporate",
            "video_url": "https://www.youtube.com/watch?v=aaa",
            "thumbnail": "https://img/aaa.jpg",
            "duration": "12:00",
            "release_date": "2024-03-01",
            "view_count": 1000,
            "like_count": 100,
            "comment_count": 10,
        },
        {
            "video_id": "bbb",
            "title": "The surprising physics of bicycles",
            "video_url": "https://www.youtube.com/watch?v=bbb",
            "thumbnail": "https://img/bbb.jpg",
            "duration": "18:30",
            "release_date": "2024-01-15",
            "view_count": 5000,
            "like_count": 300,
            "comment_count": 40,
        },
        {
            "video_id": "ccc",
            "title": "Why clocks tick",
            "video_url": "https://www.youtube.com/watch?v=ccc",
            "thumbnail": "https://img/ccc.jpg",
            "duration": "9:45",
            "release_date": "2024-05-20",
            "view_count": 3000,
            "like_count": None,
            "comment_count": 25,
        },
    ]
