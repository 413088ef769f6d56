"""
DramaboxDB HTML parsers – public API.

Usage::

    from api.parsers import parse_home_page, parse_detail_page
    from api.parsers import parse_search_page, parse_episode_page

Every parser tries the embedded ``__NEXT_DATA__`` JSON first and falls
back to DOM heuristics.
"""

from api.parsers.common import (
    get_url,
    extract_next_data,
    find_video_url_in_json,
)
from api.parsers.home_parser import parse_home_page
from api.parsers.search_parser import parse_search_page
from api.parsers.detail_parser import parse_detail_page
from api.parsers.episode_parser import parse_episode_page, has_next_data

__all__ = [
    'get_url',
    'extract_next_data',
    'find_video_url_in_json',
    'parse_home_page',
    'parse_search_page',
    'parse_detail_page',
    'parse_episode_page',
    'has_next_data',
]
