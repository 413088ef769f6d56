"""
Episode (player) page parser.

Only the embedded JSON payload is inspected here; sniffing the network
traffic of a rendered page is the browser's job (``utils.browser``).
"""

from __future__ import annotations

from typing import Optional

from api.parsers.common import extract_next_data, find_video_url_in_json


def has_next_data(html_content: str) -> bool:
    return extract_next_data(html_content) is not None


def parse_episode_page(html_content: str) -> Optional[str]:
    """Return the episode's video URL from ``__NEXT_DATA__``, or None."""
    video_url = find_video_url_in_json(extract_next_data(html_content))
    if video_url and video_url.startswith('//'):
        video_url = 'https:' + video_url
    return video_url
