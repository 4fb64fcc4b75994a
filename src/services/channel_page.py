"""Channel page fetching and embedded ytInitialData extraction.

YouTube renders channel listings client-side from a JSON blob assigned to a
global variable in an inline script. The markup around that assignment is
not stable: sometimes the statement is closed by ``</script>``, sometimes it
is followed directly by another ``var`` statement. Both forms are tried in
order and the first match wins.
"""

import json
import logging
import re
from typing import Optional

import httpx

from models.channel import RawPageDocument
from services.ingestion_errors import ExtractionError, FetchError, ParseError

logger = logging.getLogger(__name__)

LISTING_PATH_SUFFIX = "/videos"

BROWSER_HEADERS = {
    "User-Agent": (
        "Mozilla/5.0 (Windows NT 10.0; Win64; x64) AppleWebKit/537.36 "
        "(KHTML, like Gecko) Chrome/124.0.0.0 Safari/537.36"
    ),
    "Accept-Language": "en-US,en;q=0.9",
    "Accept": "text/html,application/xhtml+xml,application/xml;q=0.9,*/*;q=0.8",
}

INITIAL_DATA_VARIABLE = "ytInitialData"

EXTRACTION_FAILED_MESSAGE = (
    "Could not extract ytInitialData. The channel may not exist or YouTube "
    "blocked the request."
)


def normalize_channel_url(url: str) -> str:
    """Strip trailing slashes and point the URL at the channel's video listing."""
    base = url.strip().rstrip("/")
    if base.endswith(LISTING_PATH_SUFFIX):
        return base
    return f"{base}{LISTING_PATH_SUFFIX}"


def _assignment_patterns(variable: str) -> list[re.Pattern]:
    name = re.escape(variable)
    return [
        re.compile(rf"var {name}\s*=\s*(\{{.+?\}});\s*</script>", re.DOTALL),
        re.compile(rf"{name}\s*=\s*(\{{.+?\}});\s*(?:var |</script>)", re.DOTALL),
    ]


def extract_embedded_json(
    html: str,
    variable: str = INITIAL_DATA_VARIABLE,
    not_found_message: Optional[str] = None,
) -> dict:
    """Extract and parse the JSON object assigned to ``variable`` in ``html``.

    Raises:
        ExtractionError: No recognized assignment was found.
        ParseError: The assignment was found but the object is not valid JSON.
    """
    match = None
    for pattern in _assignment_patterns(variable):
        match = pattern.search(html)
        if match:
            break

    if not match:
        raise ExtractionError(
            not_found_message
            or f"Could not extract {variable}. The channel may not exist or "
            "YouTube blocked the request."
        )

    try:
        data = json.loads(match.group(1))
    except json.JSONDecodeError as e:
        logger.debug(f"{variable} JSON decode failed at pos {e.pos}: {e.msg}")
        raise ParseError(f"Failed to parse {variable} JSON.") from e

    if not isinstance(data, dict):
        raise ParseError(f"Failed to parse {variable} JSON.")
    return data


def extract_initial_data(html: str) -> dict:
    """Extract the ytInitialData blob from a channel page."""
    return extract_embedded_json(
        html, INITIAL_DATA_VARIABLE, not_found_message=EXTRACTION_FAILED_MESSAGE
    )


class ChannelPageFetcher:
    """Fetches channel listing pages with browser-like headers.

    There is deliberately no retry: a blocked or missing channel page aborts
    the whole run.
    """

    def __init__(
        self,
        timeout: float = 30.0,
        client: Optional[httpx.AsyncClient] = None,
    ):
        """Initialize the fetcher.

        Args:
            timeout: Request timeout in seconds
            client: Optional preconfigured client (tests inject a mock transport)
        """
        self._owns_client = client is None
        self.client = client or httpx.AsyncClient(
            timeout=timeout, follow_redirects=True
        )

    async def fetch(self, url: str) -> RawPageDocument:
        """Fetch the video listing page for a channel URL.

        Args:
            url: Channel URL, e.g. https://www.youtube.com/@name

        Returns:
            RawPageDocument with decoded HTML

        Raises:
            FetchError: Non-2xx response or transport failure
        """
        channel_url = normalize_channel_url(url)
        logger.info(f"Fetching channel page: {channel_url}")

        try:
            response = await self.client.get(channel_url, headers=BROWSER_HEADERS)
        except httpx.HTTPError as e:
            raise FetchError(
                None, f"Failed to fetch channel page: {type(e).__name__}: {e}"
            ) from e

        if not response.is_success:
            logger.warning(
                f"Channel page returned HTTP {response.status_code}: {channel_url}"
            )
            raise FetchError(response.status_code)

        return RawPageDocument(html=response.text, status=response.status_code)

    async def close(self) -> None:
        """Close the HTTP client if this fetcher created it."""
        if self._owns_client:
            await self.client.aclose()
