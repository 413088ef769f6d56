"""
DramaboxDB Scraper – API Layer.

This package scrapes dramaboxdb.com, proxies the HippoReels mobile API
and exposes both through a thin FastAPI REST interface for the web
front end.

Quick start (Python)::

    from api.parsers import parse_home_page, parse_detail_page
    from api.models import MovieSummary, MovieDetail

Quick start (REST)::

    uvicorn api.server:app --reload --port 3001
"""

from api.models import (
    MovieSummary,
    HomeSection,
    Episode,
    MovieDetail,
    PlayResult,
    HistoryEntry,
)
from api.parsers import (
    parse_home_page,
    parse_search_page,
    parse_detail_page,
    parse_episode_page,
)

__all__ = [
    # Models
    'MovieSummary',
    'HomeSection',
    'Episode',
    'MovieDetail',
    'PlayResult',
    'HistoryEntry',
    # Parsers
    'parse_home_page',
    'parse_search_page',
    'parse_detail_page',
    'parse_episode_page',
]
