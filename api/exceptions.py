"""
Exception hierarchy shared by the scraper, the upstream API client and
the REST layer.

The REST layer maps :class:`NotFoundError` to HTTP 404 and every other
error to HTTP 500.
"""

from typing import Optional


class ScraperError(Exception):
    """Base class for all errors raised while scraping or proxying."""


class UpstreamError(ScraperError):
    """The site or mobile API answered with an error (or not at all)."""

    def __init__(self, message: str, status_code: Optional[int] = None):
        super().__init__(message)
        self.status_code = status_code


class NotFoundError(ScraperError):
    """A movie, an episode or a history entry does not exist."""


class VideoNotFoundError(NotFoundError):
    """Every strategy for locating the episode's video stream failed."""


class SignatureError(ScraperError):
    """The signatures file could not be written."""
