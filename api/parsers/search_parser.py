"""
Search-results parser (``/search?keyword=...``).
"""

from __future__ import annotations

import logging
from typing import List, Optional

from bs4 import BeautifulSoup

from api.models import MovieSummary
from api.parsers.common import (
    extract_next_data,
    get_page_props,
    movie_from_json,
    movies_from_anchors,
)

logger = logging.getLogger(__name__)


def parse_search_page(html_content: str, base_url: str, lang: Optional[str] = 'in') -> List[MovieSummary]:
    """Return every movie in the search results, JSON first then DOM."""
    soup = BeautifulSoup(html_content, 'html.parser')

    search_data = get_page_props(extract_next_data(soup)).get('searchData') or {}
    items = search_data.get('list') if isinstance(search_data, dict) else None
    if items:
        movies = [m for m in (movie_from_json(item, base_url, lang) for item in items) if m]
        if movies:
            logger.debug('Search: %d results from __NEXT_DATA__', len(movies))
            return movies

    movies = movies_from_anchors(soup, base_url)
    logger.debug('Search: %d results from DOM anchors', len(movies))
    return movies
