"""Channel ingestion: fetch -> extract -> navigate -> bounded per-item enrich.

A run is an async generator of progress events terminated by exactly one
``done`` or ``error`` event. Steps are strictly sequential so that progress
events stay ordered and percent-monotonic for the caller.
"""

import logging
import uuid
from typing import AsyncIterator, List, Optional

from models.channel import (
    ChannelIngestionRequest,
    DoneEvent,
    EnrichedVideoRecord,
    ErrorEvent,
    IngestionEvent,
    ProgressEvent,
)
from services.channel_page import ChannelPageFetcher, extract_initial_data
from services.ingestion_errors import IngestionError
from services.video_enricher import VideoEnricher
from services.video_list_navigator import VideoListNavigator, descriptor_from_renderer
from utils.logging import clear_run_context, set_run_context

logger = logging.getLogger(__name__)


class ChannelIngestionService:
    """Sequences the ingestion pipeline for one channel at a time.

    The service holds only collaborators; every run owns its own
    accumulators, so one instance can serve concurrent requests.
    """

    def __init__(
        self,
        page_fetcher: Optional[ChannelPageFetcher] = None,
        navigator: Optional[VideoListNavigator] = None,
        enricher: Optional[VideoEnricher] = None,
    ):
        self.page_fetcher = page_fetcher or ChannelPageFetcher()
        self.navigator = navigator or VideoListNavigator()
        self.enricher = enricher or VideoEnricher()

    async def run(self, request: ChannelIngestionRequest) -> AsyncIterator[IngestionEvent]:
        """Run one ingestion, yielding progress and one terminal event."""
        run_id = uuid.uuid4().hex[:12]
        set_run_context(run_id)
        logger.info(f"Ingestion run {run_id} started for {request.url}")

        try:
            try:
                renderers = await self._load_renderers(request.url)
            except IngestionError as e:
                logger.warning(f"Ingestion run {run_id} failed: {e}")
                yield ErrorEvent(message=str(e))
                return
            except Exception as e:
                logger.exception(f"Ingestion run {run_id} crashed: {e}")
                yield ErrorEvent(message=str(e) or type(e).__name__)
                return

            total = min(len(renderers), request.effective_limit)
            videos: List[EnrichedVideoRecord] = []

            for index in range(total):
                descriptor = descriptor_from_renderer(renderers[index])
                if not descriptor.video_id:
                    logger.debug(f"Skipping entry {index} without a video id")
                    continue

                yield ProgressEvent.for_item(index + 1, total)
                videos.append(await self.enricher.enrich(descriptor))

            logger.info(f"Ingestion run {run_id} done: {len(videos)} videos")
            yield DoneEvent(videos=videos)
        finally:
            clear_run_context()

    async def _load_renderers(self, url: str) -> list:
        page = await self.page_fetcher.fetch(url)
        initial_data = extract_initial_data(page.html)
        renderers = self.navigator.find_video_renderers(initial_data)
        logger.info(f"Found {len(renderers)} video entries on channel page")
        return renderers

    async def close(self) -> None:
        await self.page_fetcher.close()
