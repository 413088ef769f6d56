"""
Home-page parser.

Prefers the embedded ``__NEXT_DATA__`` payload (``bigList`` for the
featured row, ``smallData`` for every other row) and falls back to
collecting ``/movie/<id>`` anchors from the DOM.
"""

from __future__ import annotations

import logging
from typing import List, Optional

from bs4 import BeautifulSoup

from api.models import HomeSection, MovieSummary
from api.parsers.common import (
    extract_next_data,
    get_page_props,
    movie_from_json,
    movies_from_anchors,
)

logger = logging.getLogger(__name__)

DOM_SECTION_TITLE = 'Drama'


def _featured_title(lang: Optional[str]) -> str:
    return 'Drama Unggulan' if lang == 'in' else 'Featured Drama'


def _map_items(items, base_url: str, lang: Optional[str]) -> List[MovieSummary]:
    movies = []
    for item in items or []:
        movie = movie_from_json(item, base_url, lang)
        if movie is not None:
            movies.append(movie)
    return movies


def _sections_from_page_props(page_props: dict, base_url: str, lang: Optional[str],
                              section_limit: int) -> List[HomeSection]:
    sections: List[HomeSection] = []

    featured = _map_items(page_props.get('bigList'), base_url, lang)
    if featured:
        sections.append(HomeSection(title=_featured_title(lang), movies=featured))

    small_data = page_props.get('smallData')
    if isinstance(small_data, dict):
        entries = list(small_data.values())
    elif isinstance(small_data, list):
        entries = small_data
    else:
        entries = []

    for entry in entries:
        if not isinstance(entry, dict):
            continue
        items = entry.get('items') or entry.get('list') or []
        movies = _map_items(items, base_url, lang)[:section_limit]
        if movies:
            title = entry.get('name') or entry.get('title') or 'Untitled'
            sections.append(HomeSection(title=title, movies=movies))

    return sections


def parse_home_page(html_content: str, base_url: str, lang: Optional[str] = 'in',
                    section_limit: int = 20) -> List[HomeSection]:
    """Parse the home page into titled sections.

    Returns an empty list when neither the JSON payload nor the DOM
    contains any movie.
    """
    soup = BeautifulSoup(html_content, 'html.parser')

    page_props = get_page_props(extract_next_data(soup))
    if page_props:
        sections = _sections_from_page_props(page_props, base_url, lang, section_limit)
        if sections:
            logger.debug('Home page: %d sections from __NEXT_DATA__', len(sections))
            return sections

    logger.debug('Home page: no usable __NEXT_DATA__, parsing DOM anchors')
    movies = movies_from_anchors(soup, base_url)
    if not movies:
        return []
    return [HomeSection(title=DOM_SECTION_TITLE, movies=movies)]
