"""Unit tests for the channel ingestion pipeline."""

import pytest
from conftest import (
    FakeInfoSource,
    FakeTranscriptFetcher,
    channel_html,
    make_video_renderer,
    rich_grid_data,
)
from models.channel import ChannelIngestionRequest, DoneEvent, ErrorEvent, ProgressEvent
from services.channel_ingestion import ChannelIngestionService
from services.channel_page import EXTRACTION_FAILED_MESSAGE
from services.video_enricher import VideoEnricher
from services.video_list_navigator import NO_VIDEOS_MESSAGE


async def _collect(service, url="https://www.youtube.com/@chan", max_videos=10):
    request = ChannelIngestionRequest(url=url, max_videos=max_videos)
    events = [event async for event in service.run(request)]
    await service.close()
    return events


def _service(fetcher, info=None, transcripts=None):
    return ChannelIngestionService(
        page_fetcher=fetcher,
        enricher=VideoEnricher(
            info_source=info or FakeInfoSource(),
            transcript_fetcher=transcripts or FakeTranscriptFetcher(),
        ),
    )


@pytest.mark.unit
@pytest.mark.asyncio
async def test_five_entries_max_three(make_page_fetcher):
    """Only the first three entries are enriched, in page order."""
    html = channel_html(rich_grid_data([make_video_renderer(f"v{i}") for i in range(1, 6)]))
    info = FakeInfoSource()
    service = _service(make_page_fetcher(html), info=info)

    events = await _collect(service, max_videos=3)

    progress = [e for e in events if isinstance(e, ProgressEvent)]
    assert [(e.current, e.total, e.percent) for e in progress] == [
        (1, 3, 33),
        (2, 3, 67),
        (3, 3, 100),
    ]
    assert isinstance(events[-1], DoneEvent)
    assert [v.video_id for v in events[-1].videos] == ["v1", "v2", "v3"]
    assert info.calls == ["v1", "v2", "v3"]


@pytest.mark.unit
@pytest.mark.asyncio
async def test_exactly_one_terminal_event_at_end(make_page_fetcher):
    html = channel_html(rich_grid_data([make_video_renderer("a"), make_video_renderer("b")]))

    events = await _collect(_service(make_page_fetcher(html)))

    terminals = [e for e in events if isinstance(e, (DoneEvent, ErrorEvent))]
    assert len(terminals) == 1
    assert events[-1] is terminals[0]
    percents = [e.percent for e in events if isinstance(e, ProgressEvent)]
    assert percents == sorted(percents)


@pytest.mark.unit
@pytest.mark.asyncio
async def test_requests_listing_url(make_page_fetcher):
    html = channel_html(rich_grid_data([make_video_renderer("a")]))
    fetcher = make_page_fetcher(html)

    await _collect(_service(fetcher), url="https://www.youtube.com/@chan/")

    assert fetcher.requested == ["https://www.youtube.com/@chan/videos"]


@pytest.mark.unit
@pytest.mark.asyncio
async def test_http_404_yields_single_error(make_page_fetcher):
    events = await _collect(_service(make_page_fetcher("gone", status=404)))

    assert len(events) == 1
    assert isinstance(events[0], ErrorEvent)
    assert "404" in events[0].message


@pytest.mark.unit
@pytest.mark.asyncio
async def test_missing_blob_yields_single_error(make_page_fetcher):
    events = await _collect(_service(make_page_fetcher("<html>consent</html>")))

    assert len(events) == 1
    assert isinstance(events[0], ErrorEvent)
    assert events[0].message == EXTRACTION_FAILED_MESSAGE


@pytest.mark.unit
@pytest.mark.asyncio
async def test_no_videos_is_distinct_from_missing_blob(make_page_fetcher):
    html = channel_html(rich_grid_data([]))

    events = await _collect(_service(make_page_fetcher(html)))

    assert len(events) == 1
    assert events[0].message == NO_VIDEOS_MESSAGE
    assert events[0].message != EXTRACTION_FAILED_MESSAGE


@pytest.mark.unit
@pytest.mark.asyncio
async def test_failing_item_does_not_abort_run(make_page_fetcher):
    html = channel_html(rich_grid_data([make_video_renderer(v) for v in ("a", "b", "c")]))
    info = FakeInfoSource(failing=("b",))

    events = await _collect(_service(make_page_fetcher(html), info=info))

    done = events[-1]
    assert isinstance(done, DoneEvent)
    assert [v.video_id for v in done.videos] == ["a", "b", "c"]
    assert done.videos[1].view_count is None
    assert done.videos[0].view_count == 1234


@pytest.mark.unit
@pytest.mark.asyncio
async def test_entries_without_id_are_skipped(make_page_fetcher):
    renderers = [make_video_renderer("a"), make_video_renderer(None, "ad slot"), make_video_renderer("c")]
    html = channel_html(rich_grid_data(renderers))

    events = await _collect(_service(make_page_fetcher(html)))

    progress = [e for e in events if isinstance(e, ProgressEvent)]
    assert [(e.current, e.total) for e in progress] == [(1, 3), (3, 3)]
    assert [v.video_id for v in events[-1].videos] == ["a", "c"]


@pytest.mark.unit
@pytest.mark.asyncio
async def test_unexpected_error_becomes_error_event(make_page_fetcher):
    class ExplodingNavigator:
        def find_video_renderers(self, initial_data):
            raise RuntimeError("layout exploded")

    html = channel_html(rich_grid_data([make_video_renderer("a")]))
    service = ChannelIngestionService(
        page_fetcher=make_page_fetcher(html),
        navigator=ExplodingNavigator(),
        enricher=VideoEnricher(
            info_source=FakeInfoSource(), transcript_fetcher=FakeTranscriptFetcher()
        ),
    )

    events = await _collect(service)

    assert len(events) == 1
    assert events[0].message == "layout exploded"


@pytest.mark.unit
@pytest.mark.asyncio
async def test_demo_scenario_two_failed_lookups(make_page_fetcher):
    """Five grid entries, maxVideos 3, two secondary lookups failing."""
    html = channel_html(rich_grid_data([make_video_renderer(f"d{i}") for i in range(1, 6)]))
    info = FakeInfoSource(failing=("d1", "d3"))

    events = await _collect(
        _service(make_page_fetcher(html), info=info),
        url="https://example.com/@demo",
        max_videos=3,
    )

    progress = [e for e in events if isinstance(e, ProgressEvent)]
    assert [e.current for e in progress] == [1, 2, 3]
    assert [e.percent for e in progress] == [33, 67, 100]
    assert len(events) == 4
    done = events[-1]
    assert isinstance(done, DoneEvent)
    assert len(done.videos) == 3

    failed = [v for v in done.videos if v.video_id in ("d1", "d3")]
    assert len(failed) == 2
    for video in failed:
        assert video.comment_count is None
        assert video.like_count is None
        assert video.title == "Video " + video.video_id
        assert video.thumbnail.endswith("hqdefault.jpg")
