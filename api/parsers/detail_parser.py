"""
Detail-page parser.

Extracts title, description, poster, genres and the full episode list
from a movie's detail page.  The embedded ``bookDetail`` JSON is used
when present; otherwise the DOM is scraped with CSS selectors.

No network access happens here – the caller fetches the HTML.
"""

from __future__ import annotations

import logging
from typing import List, Optional

from bs4 import BeautifulSoup
from bs4.element import Tag

from api.models import Episode, MovieDetail
from api.parsers.common import (
    build_episode_url,
    clean_title_from_slug,
    dedupe_preserve_order,
    extract_episode_id,
    extract_next_data,
    get_page_props,
    get_url,
    normalize_url,
    parse_episode_number,
)

logger = logging.getLogger(__name__)


# ---------------------------------------------------------------------------
# JSON path
# ---------------------------------------------------------------------------

def _detail_from_json(detail: dict, movie_id: str, base_url: str, lang: Optional[str]) -> MovieDetail:
    book_id = str(detail.get('bookId') or detail.get('action') or movie_id)
    slug = detail.get('bookNameLower') or detail.get('bookNameEn')

    episodes: List[Episode] = []
    for index, chapter in enumerate(detail.get('chapters') or [], start=1):
        if not isinstance(chapter, dict):
            continue
        chapter_id = chapter.get('chapterId') or chapter.get('action')
        if not chapter_id:
            continue
        number = chapter.get('sort')
        try:
            number = int(number)
        except (TypeError, ValueError):
            number = index
        episodes.append(Episode(
            id=str(chapter_id),
            number=number,
            url=build_episode_url(base_url, lang, book_id, slug, chapter_id, number),
        ))

    genres = detail.get('typeTwoNames') or detail.get('tags') or []
    return MovieDetail(
        id=book_id,
        title=detail.get('bookName') or detail.get('name') or '',
        description=detail.get('introduction') or '',
        poster=detail.get('cover'),
        genres=[str(g) for g in genres if g],
        episodes=episodes,
    )


# ---------------------------------------------------------------------------
# DOM fallback
# ---------------------------------------------------------------------------

def _meta_content(soup: BeautifulSoup, **attrs) -> str:
    tag = soup.find('meta', attrs=attrs)
    if tag and isinstance(tag, Tag):
        return (tag.get('content') or '').strip()
    return ''


def _extract_title(soup: BeautifulSoup, page_url: str) -> str:
    h1 = soup.find('h1')
    title = h1.get_text(strip=True) if h1 else ''
    if not title:
        title = _meta_content(soup, property='og:title')
    if not title or title.lower() == 'unknown':
        title = clean_title_from_slug(page_url) or 'Unknown'
    return title


def _extract_episodes(soup: BeautifulSoup, base_url: str) -> List[Episode]:
    episodes: List[Episode] = []
    seen = set()
    for a in soup.select('a[href*="/ep/"]'):
        href = a.get('href', '')
        episode_id = extract_episode_id(href)
        if not episode_id or episode_id in seen:
            continue
        seen.add(episode_id)
        number = parse_episode_number(a.get_text(strip=True), len(episodes) + 1)
        episodes.append(Episode(
            id=episode_id,
            number=number,
            url=normalize_url(href, base_url),
        ))
    episodes.sort(key=lambda e: e.number)
    return episodes


def _detail_from_dom(soup: BeautifulSoup, movie_id: str, page_url: str, base_url: str) -> MovieDetail:
    description = (_meta_content(soup, property='og:description')
                   or _meta_content(soup, name='description'))

    poster = _meta_content(soup, property='og:image') or None
    if not poster:
        img = soup.select_one('img[class*="poster"]')
        if img:
            poster = normalize_url(img.get('src'), base_url)

    genres = [a.get_text(strip=True) for a in soup.select('a[href*="/genres/"]')]
    genres = dedupe_preserve_order(g for g in genres if g)

    return MovieDetail(
        id=movie_id,
        title=_extract_title(soup, page_url),
        description=description,
        poster=poster,
        genres=genres,
        episodes=_extract_episodes(soup, base_url),
    )


# ---------------------------------------------------------------------------
# Public API
# ---------------------------------------------------------------------------

def parse_detail_page(html_content: str, movie_id: str, base_url: str,
                      lang: Optional[str] = 'in') -> Optional[MovieDetail]:
    """Parse a movie detail page.

    Returns *None* when the page holds neither a ``bookDetail`` payload
    nor anything recognisable in the DOM (no heading and no episodes).
    """
    movie_id = str(movie_id)
    soup = BeautifulSoup(html_content, 'html.parser')

    book_detail = get_page_props(extract_next_data(soup)).get('bookDetail')
    if isinstance(book_detail, dict) and book_detail:
        logger.debug('Found JSON detail for %s', movie_id)
        return _detail_from_json(book_detail, movie_id, base_url, lang)

    logger.debug('No JSON detail, parsing HTML DOM for %s', movie_id)
    page_url = get_url(base_url, f'/movie/{movie_id}', lang)
    detail = _detail_from_dom(soup, movie_id, page_url, base_url)

    has_heading = bool(soup.find('h1') or _meta_content(soup, property='og:title'))
    if not detail.episodes and not has_heading:
        logger.warning('Detail not found in JSON or DOM for %s', movie_id)
        return None
    return detail
