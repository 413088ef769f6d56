"""
Scraper service for dramaboxdb.com.

Glues the HTTP layer (``utils.request_handler``), the pure parsers
(``api.parsers``) and the shared headless browser (``utils.browser``)
together.  Every public method either returns model objects or raises a
``ScraperError`` subclass; turning those into HTTP responses is the REST
layer's job.

Video lookup walks a fallback chain:

1. ``__NEXT_DATA__`` JSON embedded in the episode page
2. Network sniffing in the shared headless browser
"""

from __future__ import annotations

import logging
from typing import List, Optional
from urllib.parse import quote

from api.exceptions import NotFoundError, VideoNotFoundError
from api.models import HomeSection, MovieDetail, MovieSummary, PlayResult
from api.parsers import (
    get_url,
    has_next_data,
    parse_detail_page,
    parse_episode_page,
    parse_home_page,
    parse_search_page,
)
from utils.browser import pick_video_url

logger = logging.getLogger(__name__)


class DramaboxScraper:
    """High-level operations behind the ``/api/home|search|detail|play`` endpoints."""

    def __init__(self, settings, request_handler, browser=None):
        """
        Args:
            settings: ``utils.settings.Settings``
            request_handler: ``RequestHandler`` used for all page fetches
            browser: ``SharedBrowser`` for the sniffing fallback (optional;
                     without one, the JSON strategy is the only one tried)
        """
        self.settings = settings
        self.request_handler = request_handler
        self.browser = browser

    @property
    def base_url(self) -> str:
        return self.settings.base_url

    def _lang(self, lang: Optional[str]) -> str:
        return lang or self.settings.default_lang

    # ------------------------------------------------------------------
    # Listing pages
    # ------------------------------------------------------------------

    def get_home_page(self, lang: Optional[str] = None) -> List[HomeSection]:
        """Return the home page sections (featured, trending, must-sees …)."""
        lang = self._lang(lang)
        html = self.request_handler.get_page(get_url(self.base_url, '', lang))
        sections = parse_home_page(html, self.base_url, lang, self.settings.home_section_limit)
        logger.info(f"Home page ({lang}): {len(sections)} sections")
        return sections

    def search_movies(self, query: str, lang: Optional[str] = None) -> List[MovieSummary]:
        """Search movies by keyword."""
        lang = self._lang(lang)
        url = f"{get_url(self.base_url, '/search', lang)}?keyword={quote(query, safe='')}"
        html = self.request_handler.get_page(url)
        results = parse_search_page(html, self.base_url, lang)
        logger.info(f"Search '{query}' ({lang}): {len(results)} results")
        return results

    # ------------------------------------------------------------------
    # Detail / play
    # ------------------------------------------------------------------

    def get_movie_detail(self, movie_id: str, lang: Optional[str] = None) -> MovieDetail:
        """Return the movie's metadata and episode list.

        Raises:
            NotFoundError: when the page holds nothing recognisable
        """
        lang = self._lang(lang)
        url = get_url(self.base_url, f'/movie/{movie_id}', lang)
        logger.debug(f"getMovieDetail fetching: {url}")
        html = self.request_handler.get_page(url)

        detail = parse_detail_page(html, movie_id, self.base_url, lang)
        if detail is None:
            raise NotFoundError('Detail not found in JSON or DOM')
        return detail

    def get_video_url(self, movie_id: str, episode_id: str, lang: Optional[str] = None) -> PlayResult:
        """Resolve the stream URL of one episode.

        Raises:
            NotFoundError: unknown movie or episode
            VideoNotFoundError: neither strategy produced a stream URL
        """
        try:
            detail = self.get_movie_detail(movie_id, lang)
        except NotFoundError as e:
            raise NotFoundError('Movie not found') from e

        episode = detail.find_episode(episode_id)
        if episode is None:
            raise NotFoundError('Episode not found')

        title = f"{detail.title} - Episode {episode.number}"
        logger.info(f"Fetching episode metadata: {episode.url}")
        html = self.request_handler.get_page(episode.url)

        if has_next_data(html):
            video_url = parse_episode_page(html)
            if video_url:
                logger.info(f"Found video URL in page JSON: {video_url}")
                return PlayResult(
                    movie_id=str(movie_id),
                    episode_id=episode.id,
                    episode_number=episode.number,
                    title=title,
                    video_url=video_url,
                    all_video_urls=[video_url],
                    source='next_data',
                )
            logger.info("Video not found in page JSON, using browser fallback...")
        else:
            logger.info("No __NEXT_DATA__ found, using browser fallback...")

        if self.browser is None:
            raise VideoNotFoundError('Video not found and no browser fallback configured')

        urls = self.browser.sniff_video_urls(episode.url)
        video_url = pick_video_url(urls)
        if not video_url:
            raise VideoNotFoundError('Video not found in fallback')

        return PlayResult(
            movie_id=str(movie_id),
            episode_id=episode.id,
            episode_number=episode.number,
            title=title,
            video_url=video_url,
            all_video_urls=urls,
            source='browser',
        )
