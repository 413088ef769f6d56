"""
Shared parsing utilities used by the home, search, detail and episode
parsers.
"""

from __future__ import annotations

import re
import json
import logging
from typing import Any, Iterable, List, Optional, Union

from bs4 import BeautifulSoup
from bs4.element import Tag

from api.models import MovieSummary

logger = logging.getLogger(__name__)


# ---------------------------------------------------------------------------
# URL helpers
# ---------------------------------------------------------------------------

def lang_prefix(lang: Optional[str]) -> str:
    """Return the path prefix for *lang* (``'/in'``), or ``''`` for English."""
    if not lang or lang == 'en':
        return ''
    return f'/{lang}'


def get_url(base_url: str, path: str = '', lang: Optional[str] = 'in') -> str:
    """Build a site URL, inserting the language prefix when needed."""
    return f'{base_url}{lang_prefix(lang)}{path}'


def build_movie_url(base_url: str, lang: Optional[str], book_id: str, slug: Optional[str]) -> str:
    return f'{base_url}{lang_prefix(lang)}/movie/{book_id}/{slug or ""}'


def build_episode_url(base_url: str, lang: Optional[str], book_id: str, slug: Optional[str],
                      chapter_id: str, number: Any) -> str:
    return f'{base_url}{lang_prefix(lang)}/ep/{book_id}_{slug or ""}/{chapter_id}_Episode-{number}'


def normalize_url(url: Optional[str], base_url: str) -> Optional[str]:
    """Make protocol-relative and root-relative URLs absolute."""
    if not url:
        return url
    url = url.strip()
    if url.startswith('//'):
        return 'https:' + url
    if url.startswith('/'):
        return base_url + url
    return url


def clean_title_from_slug(url: Optional[str]) -> str:
    """Derive a display title from the last URL path segment.

    ``/movie/123/my-lovely-boss`` → ``My Lovely Boss``.  Numeric segments
    and the literal ``movie`` give an empty string.
    """
    if not url:
        return ''
    slug = url.rstrip('/').split('/')[-1]
    if not slug or slug.isdigit() or slug == 'movie':
        return ''
    return ' '.join(word[:1].upper() + word[1:] for word in slug.split('-'))


# ---------------------------------------------------------------------------
# ID extraction
# ---------------------------------------------------------------------------

_MOVIE_ID_RE = re.compile(r'/(?:in/)?movie/(\d+)')
_EPISODE_ID_RE = re.compile(r'/(?:in/)?ep/\d+_[^/]+/(\d+)_')


def extract_movie_id(href: Optional[str]) -> Optional[str]:
    """``/in/movie/41000119532/slug`` → ``'41000119532'``."""
    if not href:
        return None
    match = _MOVIE_ID_RE.search(href)
    return match.group(1) if match else None


def extract_episode_id(href: Optional[str]) -> Optional[str]:
    """``/in/ep/41000119532_slug/700001_Episode-1`` → ``'700001'``."""
    if not href:
        return None
    match = _EPISODE_ID_RE.search(href)
    return match.group(1) if match else None


_EPISODE_NUMBER_RE = re.compile(r'[Ee][Pp]\.?\s*(\d+)|[Ee]pisode\s*(\d+)|^(\d+)$')


def parse_episode_number(text: Optional[str], fallback: int) -> int:
    """Read an episode number from link text (``EP 3``, ``Episode 3``, ``3``)."""
    match = _EPISODE_NUMBER_RE.search((text or '').strip())
    if not match:
        return fallback
    return int(next(g for g in match.groups() if g))


# ---------------------------------------------------------------------------
# Embedded JSON payload (__NEXT_DATA__)
# ---------------------------------------------------------------------------

def _to_soup(html_or_soup: Union[str, BeautifulSoup]) -> BeautifulSoup:
    if isinstance(html_or_soup, BeautifulSoup):
        return html_or_soup
    return BeautifulSoup(html_or_soup or '', 'html.parser')


def extract_next_data(html_or_soup: Union[str, BeautifulSoup]) -> Optional[dict]:
    """Return the decoded ``<script id="__NEXT_DATA__">`` payload, or None."""
    soup = _to_soup(html_or_soup)
    script = soup.find('script', id='__NEXT_DATA__')
    if not script or not script.string:
        return None
    try:
        data = json.loads(script.string)
    except (ValueError, TypeError):
        logger.debug('Malformed __NEXT_DATA__ payload')
        return None
    return data if isinstance(data, dict) else None


def get_page_props(next_data: Optional[dict]) -> dict:
    """``next_data['props']['pageProps']`` or an empty dict."""
    if not next_data:
        return {}
    props = next_data.get('props') or {}
    page_props = props.get('pageProps') if isinstance(props, dict) else None
    return page_props if isinstance(page_props, dict) else {}


_M3U8_RE = re.compile(r'(?:https?:)?\\?/\\?/[^"]+\.m3u8[^"]*')
_MP4_RE = re.compile(r'(?:https?:)?\\?/\\?/[^"]+\.mp4[^"]*')


def find_video_url_in_json(data: Any) -> Optional[str]:
    """Find the first HLS (preferred) or MP4 URL anywhere in a JSON payload."""
    if not data:
        return None
    try:
        json_str = json.dumps(data, ensure_ascii=False)
    except (TypeError, ValueError):
        return None

    for pattern in (_M3U8_RE, _MP4_RE):
        match = pattern.search(json_str)
        if match:
            return match.group(0).replace('\\/', '/')
    return None


# ---------------------------------------------------------------------------
# Movie records
# ---------------------------------------------------------------------------

def _as_int(value: Any) -> Optional[int]:
    try:
        return int(value)
    except (TypeError, ValueError):
        return None


def movie_from_json(item: dict, base_url: str, lang: Optional[str]) -> Optional[MovieSummary]:
    """Map one upstream "book" item to a ``MovieSummary``."""
    if not isinstance(item, dict):
        return None
    book_id = item.get('bookId') or item.get('action')
    if not book_id:
        return None
    book_id = str(book_id)
    slug = item.get('bookNameLower') or item.get('bookNameEn')
    genres = item.get('typeTwoNames') or item.get('tags') or []
    return MovieSummary(
        id=book_id,
        title=item.get('bookName') or item.get('name') or '',
        poster=item.get('cover'),
        description=item.get('introduction') or '',
        episode_count=_as_int(item.get('chapterCount')),
        url=build_movie_url(base_url, lang, book_id, slug),
        genres=[str(g) for g in genres if g],
    )


def movies_from_anchors(soup: BeautifulSoup, base_url: str) -> List[MovieSummary]:
    """DOM fallback: one ``MovieSummary`` per distinct ``/movie/<id>`` anchor."""
    movies: List[MovieSummary] = []
    seen = set()
    for a in soup.select('a[href*="/movie/"]'):
        if not isinstance(a, Tag):
            continue
        href = a.get('href', '')
        movie_id = extract_movie_id(href)
        if not movie_id or movie_id in seen:
            continue
        seen.add(movie_id)

        img = a.find('img')
        poster = None
        alt = ''
        if img:
            poster = normalize_url(img.get('src') or img.get('data-src'), base_url)
            alt = (img.get('alt') or '').strip()

        title = a.get_text(strip=True) or alt or (a.get('title') or '').strip() or clean_title_from_slug(href)
        movies.append(MovieSummary(
            id=movie_id,
            title=title,
            poster=poster,
            url=normalize_url(href, base_url),
        ))
    return movies


def dedupe_preserve_order(items: Iterable[str]) -> List[str]:
    return list(dict.fromkeys(items))
