"""Errors that abort a channel ingestion run."""

from typing import Optional


class IngestionError(Exception):
    """Base class for fatal ingestion failures.

    The message is user-facing: it is sent verbatim in the terminal
    ``error`` event.
    """


class FetchError(IngestionError):
    """The channel page could not be fetched (non-2xx or transport failure)."""

    def __init__(self, status: Optional[int], message: Optional[str] = None):
        self.status = status
        if message is None:
            message = f"Failed to fetch channel page: HTTP {status}"
        super().__init__(message)


class ExtractionError(IngestionError):
    """The embedded ytInitialData blob was not found on the page."""


class ParseError(ExtractionError):
    """The embedded blob was found but is not valid JSON."""


class NoVideosFoundError(IngestionError):
    """No known layout yielded any video entries."""
