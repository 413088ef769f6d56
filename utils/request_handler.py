"""
Request Handler for the DramaboxDB scraper

This module provides a unified HTTP request handler that supports:
- Page requests with browser-like headers (the website)
- JSON POST requests with caller-supplied headers (the mobile API)
- Uniform error reporting through ``UpstreamError``

Usage:
    from utils.request_handler import RequestHandler

    handler = RequestHandler(config=RequestConfig(base_url=settings.base_url))
    html = handler.get_page(url)
"""

import json
import logging
from dataclasses import dataclass
from typing import Any, Dict, Optional

import requests

from api.exceptions import UpstreamError

logger = logging.getLogger(__name__)


@dataclass
class RequestConfig:
    """Configuration for request handler"""
    base_url: str = 'https://www.dramaboxdb.com'
    timeout: int = 20
    accept_language: str = 'id-ID,id;q=0.9,en-US;q=0.8,en;q=0.7'


class RequestHandler:
    """
    Thin wrapper around a shared ``requests.Session``.

    Every failure (transport error, non-2xx status, undecodable JSON) is
    raised as ``UpstreamError`` so callers only need one ``except``.
    """

    # Browser-like headers for page requests to the website
    BROWSER_HEADERS = {
        'User-Agent': 'Mozilla/5.0 (Windows NT 10.0; Win64; x64) AppleWebKit/537.36 (KHTML, like Gecko) Chrome/120.0.0.0 Safari/537.36',
        'Accept': 'text/html,application/xhtml+xml,application/xml;q=0.9,image/avif,image/webp,*/*;q=0.8',
    }

    def __init__(self, config: Optional[RequestConfig] = None, session: Optional[requests.Session] = None):
        """
        Initialize request handler.

        Args:
            config: RequestConfig instance with configuration settings
            session: Optional pre-built session (tests inject a mock here)
        """
        self.config = config or RequestConfig()
        self.session = session or requests.Session()

    def build_page_headers(self) -> Dict[str, str]:
        """Headers for a page request: browser headers plus language and referer."""
        headers = dict(self.BROWSER_HEADERS)
        headers['Accept-Language'] = self.config.accept_language
        headers['Referer'] = self.config.base_url
        return headers

    def get_page(self, url: str) -> str:
        """
        Fetch a page and return its HTML.

        Raises:
            UpstreamError: on transport errors or a non-2xx status
        """
        logger.debug(f"Fetching HTML: {url}")
        try:
            response = self.session.get(url, headers=self.build_page_headers(), timeout=self.config.timeout)
        except requests.RequestException as e:
            logger.error(f"Request failed for {url}: {e}")
            raise UpstreamError(f"Request failed: {e}") from e

        logger.debug(f"Response Status: {response.status_code} for {url}")
        if not response.ok:
            raise UpstreamError(
                f"HTTP Error {response.status_code}: {response.reason}",
                status_code=response.status_code,
            )
        return response.text

    def post_json(self, url: str, body: Optional[Dict[str, Any]] = None,
                  headers: Optional[Dict[str, str]] = None) -> Any:
        """
        POST a JSON body and return the decoded JSON response.

        The body is serialised here (not via ``json=``) so that the
        caller's ``Content-Type`` header is sent untouched.

        Raises:
            UpstreamError: on transport errors, a non-2xx status or a
                non-JSON response body
        """
        logger.debug(f"POST {url}")
        try:
            response = self.session.post(
                url,
                data=json.dumps(body or {}),
                headers=headers or {},
                timeout=self.config.timeout,
            )
        except requests.RequestException as e:
            logger.error(f"Request failed for {url}: {e}")
            raise UpstreamError(f"Request failed: {e}") from e

        logger.info(f"Response Status: {response.status_code}")
        if not response.ok:
            logger.error(f"Error Response: {response.text[:500]}")
            raise UpstreamError(
                f"HTTP {response.status_code}: {response.reason}",
                status_code=response.status_code,
            )

        try:
            return response.json()
        except ValueError as e:
            raise UpstreamError(f"Invalid JSON response from {url}") from e

    def close(self):
        """Close the underlying session."""
        self.session.close()


def create_request_handler_from_config(settings) -> RequestHandler:
    """
    Create a RequestHandler from a ``Settings`` instance.

    Args:
        settings: ``utils.settings.Settings``

    Returns:
        Configured RequestHandler instance
    """
    config = RequestConfig(
        base_url=settings.base_url,
        timeout=settings.request_timeout,
    )
    return RequestHandler(config=config)
