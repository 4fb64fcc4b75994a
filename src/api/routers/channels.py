"""Channel ingestion routes: streams progress as server-sent events."""

import json
import logging
from typing import AsyncIterator

from api.dependencies import get_ingestion_service
from api.schemas import ChannelIngestRequestBody
from fastapi import APIRouter, HTTPException, Request
from fastapi.responses import StreamingResponse
from models.channel import ChannelIngestionRequest, IngestionEvent

logger = logging.getLogger(__name__)

router = APIRouter(tags=["Channels"])

SSE_HEADERS = {
    "Cache-Control": "no-cache",
    "Connection": "keep-alive",
    "X-Accel-Buffering": "no",
}


def format_sse(event: IngestionEvent) -> str:
    """Serialize one event as a ``data:`` frame."""
    return f"data: {json.dumps(event.to_dict())}\n\n"


async def _event_stream(
    request: Request, ingestion: ChannelIngestionRequest
) -> AsyncIterator[str]:
    events = get_ingestion_service().run(ingestion)
    try:
        async for event in events:
            if await request.is_disconnected():
                logger.info(f"Client disconnected, stopping ingestion for {ingestion.url}")
                break
            yield format_sse(event)
    finally:
        await events.aclose()


@router.post("/api/youtube/channel")
async def ingest_channel(body: ChannelIngestRequestBody, request: Request) -> StreamingResponse:
    """Ingest a channel's recent videos, streaming progress then the result."""
    if not body.url:
        raise HTTPException(status_code=400, detail="url required")

    ingestion = ChannelIngestionRequest(url=body.url, max_videos=body.maxVideos)
    logger.info(
        f"Streaming ingestion for {ingestion.url} (limit {ingestion.effective_limit})"
    )
    return StreamingResponse(
        _event_stream(request, ingestion),
        media_type="text/event-stream",
        headers=SSE_HEADERS,
    )
