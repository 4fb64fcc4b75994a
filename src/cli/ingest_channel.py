#!/usr/bin/env python3
"""CLI for ingesting a YouTube channel's recent videos into a JSON file.

Usage:
    # Ingest the 10 most recent videos
    python -m cli.ingest_channel https://www.youtube.com/@veritasium

    # Ingest 25 videos without transcripts
    python -m cli.ingest_channel @veritasium --max-videos 25 --no-transcripts -o videos.json
"""

import argparse
import asyncio
import json
import sys
from pathlib import Path

# Add src to path for imports
src_path = Path(__file__).parent.parent
if str(src_path) not in sys.path:
    sys.path.insert(0, str(src_path))

from rich.console import Console
from rich.progress import BarColumn, Progress, SpinnerColumn, TaskProgressColumn, TextColumn
from rich.table import Table

from models.channel import (
    DEFAULT_MAX_VIDEOS,
    ChannelIngestionRequest,
    DoneEvent,
    ErrorEvent,
    ProgressEvent,
)
from services.channel_ingestion import ChannelIngestionService
from services.channel_page import ChannelPageFetcher
from services.transcript_fetcher import TranscriptFetcher
from services.video_enricher import VideoEnricher
from utils.config import load_config, setup_logging

console = Console()

YOUTUBE_BASE_URL = "https://www.youtube.com"


def channel_url_from_arg(value: str) -> str:
    """Accept a full channel URL or a bare @handle."""
    value = value.strip()
    if value.startswith("@"):
        return f"{YOUTUBE_BASE_URL}/{value}"
    return value


def build_service(config: dict, fetch_transcripts: bool) -> ChannelIngestionService:
    """Wire the ingestion service from config."""
    return ChannelIngestionService(
        page_fetcher=ChannelPageFetcher(timeout=config["page_timeout_seconds"]),
        enricher=VideoEnricher(
            transcript_fetcher=TranscriptFetcher(
                binary=config["ytdlp_binary"],
                timeout=config["transcript_timeout_seconds"],
            ),
            fetch_transcripts=fetch_transcripts,
        ),
    )


async def ingest(service: ChannelIngestionService, request: ChannelIngestionRequest) -> DoneEvent | ErrorEvent:
    """Run one ingestion with a progress bar; returns the terminal event."""
    terminal: DoneEvent | ErrorEvent = ErrorEvent(message="Ingestion produced no result")

    with Progress(
        SpinnerColumn(),
        TextColumn("[progress.description]{task.description}"),
        BarColumn(),
        TaskProgressColumn(),
        console=console,
    ) as progress:
        task = progress.add_task("Fetching channel page...", total=None)
        try:
            async for event in service.run(request):
                if isinstance(event, ProgressEvent):
                    progress.update(
                        task,
                        description=f"Enriching video {event.current}/{event.total}",
                        completed=event.current,
                        total=event.total,
                    )
                else:
                    terminal = event
        finally:
            await service.close()

    return terminal


def show_videos(videos: list) -> None:
    """Display a summary table of ingested videos."""
    table = Table(title="Ingested Videos")
    table.add_column("Released", style="dim")
    table.add_column("Title")
    table.add_column("Views", justify="right")
    table.add_column("Likes", justify="right")
    table.add_column("Transcript", justify="center")

    for video in videos:
        table.add_row(
            video.release_date or "-",
            video.title,
            f"{video.view_count:,}" if video.view_count is not None else "-",
            f"{video.like_count:,}" if video.like_count is not None else "-",
            "✓" if video.transcript else "",
        )

    console.print(table)


def main() -> None:
    """Main CLI entry point."""
    parser = argparse.ArgumentParser(
        description="Ingest a YouTube channel's recent videos into JSON",
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )
    parser.add_argument("url", help="Channel URL or @handle, e.g. https://www.youtube.com/@name")
    parser.add_argument(
        "--max-videos",
        type=int,
        default=DEFAULT_MAX_VIDEOS,
        help=f"Number of recent videos to ingest (default: {DEFAULT_MAX_VIDEOS}, max 100)",
    )
    parser.add_argument(
        "-o",
        "--output",
        type=Path,
        default=Path("channel_videos.json"),
        help="Output JSON file (default: channel_videos.json)",
    )
    parser.add_argument(
        "--no-transcripts",
        action="store_true",
        help="Skip transcript download",
    )
    parser.add_argument(
        "-v",
        "--verbose",
        action="store_true",
        help="Enable verbose logging",
    )

    args = parser.parse_args()

    setup_logging("DEBUG" if args.verbose else "WARNING")
    config = load_config()

    service = build_service(
        config, fetch_transcripts=config["fetch_transcripts"] and not args.no_transcripts
    )
    request = ChannelIngestionRequest(
        url=channel_url_from_arg(args.url), max_videos=args.max_videos
    )

    console.print(f"\n[bold blue]Ingesting channel: {request.url}[/bold blue]")
    result = asyncio.run(ingest(service, request))

    if isinstance(result, ErrorEvent):
        console.print(f"[red]✗ {result.message}[/red]")
        sys.exit(1)

    args.output.write_text(
        json.dumps(result.to_dict()["videos"], indent=2, ensure_ascii=False),
        encoding="utf-8",
    )
    show_videos(result.videos)
    console.print(f"[green]✓ Wrote {len(result.videos)} videos to {args.output}[/green]")


if __name__ == "__main__":
    main()
