"""Best-effort transcript fetching via the yt-dlp command line.

Auto-generated English captions are requested in YouTube's json3 format,
which keeps caption segments structured instead of flattening them into
plain text. Any failure yields an empty transcript.
"""

import asyncio
import json
import logging
import re
import tempfile
from pathlib import Path
from typing import List

from models.channel import TRANSCRIPT_MAX_CHARS, TranscriptResult, watch_url

logger = logging.getLogger(__name__)

DEFAULT_TRANSCRIPT_TIMEOUT = 20.0
SUBTITLE_LANGUAGE = "en"
SUBTITLE_FORMAT = "json3"

_WHITESPACE_RE = re.compile(r"\s+")


class TranscriptUnavailable(Exception):
    """Raised internally when no transcript could be produced."""


def build_subtitle_command(
    binary: str, video_id: str, output_base: Path
) -> List[str]:
    """Build the yt-dlp argument vector for a captions-only download."""
    return [
        binary,
        "--skip-download",
        "--write-auto-sub",
        "--sub-lang",
        SUBTITLE_LANGUAGE,
        "--sub-format",
        SUBTITLE_FORMAT,
        "-o",
        str(output_base),
        watch_url(video_id),
    ]


def parse_json3_captions(payload: dict, max_chars: int = TRANSCRIPT_MAX_CHARS) -> str:
    """Concatenate caption segment texts in order and collapse whitespace."""
    pieces = []
    for event in payload.get("events") or []:
        if not isinstance(event, dict):
            continue
        for seg in event.get("segs") or []:
            text = seg.get("utf8") if isinstance(seg, dict) else None
            if text:
                pieces.append(text)

    text = _WHITESPACE_RE.sub(" ", " ".join(pieces)).strip()
    return text[:max_chars]


class TranscriptFetcher:
    """Runs yt-dlp with a hard timeout and reads the resulting json3 file."""

    def __init__(
        self,
        binary: str = "yt-dlp",
        timeout: float = DEFAULT_TRANSCRIPT_TIMEOUT,
        max_chars: int = TRANSCRIPT_MAX_CHARS,
    ):
        self.binary = binary
        self.timeout = timeout
        self.max_chars = max_chars

    async def fetch(self, video_id: str) -> TranscriptResult:
        """Fetch a transcript for one video. Never raises."""
        try:
            text = await self._download_and_parse(video_id)
        except Exception as e:
            return TranscriptResult(text="", error=f"{type(e).__name__}: {e}")
        return TranscriptResult(text=text)

    async def _download_and_parse(self, video_id: str) -> str:
        with tempfile.TemporaryDirectory(prefix="yt_sub_") as tmpdir:
            output_base = Path(tmpdir) / f"yt_sub_{video_id}"
            subtitle_file = output_base.with_name(
                f"{output_base.name}.{SUBTITLE_LANGUAGE}.{SUBTITLE_FORMAT}"
            )
            try:
                await self._run_command(
                    build_subtitle_command(self.binary, video_id, output_base)
                )
                if not subtitle_file.exists():
                    raise TranscriptUnavailable("no auto-generated English captions")
                payload = json.loads(subtitle_file.read_text(encoding="utf-8"))
                return parse_json3_captions(payload, self.max_chars)
            finally:
                subtitle_file.unlink(missing_ok=True)

    async def _run_command(self, cmd: List[str]) -> None:
        process = await asyncio.create_subprocess_exec(
            *cmd,
            stdout=asyncio.subprocess.DEVNULL,
            stderr=asyncio.subprocess.PIPE,
        )
        try:
            _, stderr = await asyncio.wait_for(
                process.communicate(), timeout=self.timeout
            )
        except asyncio.TimeoutError:
            raise TranscriptUnavailable(
                f"yt-dlp timed out after {self.timeout:.0f}s"
            )
        finally:
            # Timeout or cancellation: the child must be gone before the temp dir is
            if process.returncode is None:
                try:
                    process.kill()
                except ProcessLookupError:
                    pass
                await process.wait()

        if process.returncode != 0:
            # yt-dlp may still have written the subtitle file; let the caller look
            logger.debug(
                f"yt-dlp exited with {process.returncode}: "
                f"{stderr.decode(errors='replace').strip()[-300:]}"
            )
