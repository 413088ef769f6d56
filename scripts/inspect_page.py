#!/usr/bin/env python3
"""
Page Inspector for dramaboxdb.com

Debug helper for when the parsers stop finding things after a site
change.

Subcommands:
- next-data: fetch the home page and summarise the ``__NEXT_DATA__``
  payload (``bigList`` / ``smallData``)
- anchors:   fetch the home page and show every link whose href contains
  a movie id, walking up to 5 ancestors and dumping image attributes

Usage:
    python3 scripts/inspect_page.py next-data --lang in
    python3 scripts/inspect_page.py anchors 41000119532
"""

import os
import sys
import json
import argparse
import logging
from typing import List

# Add project root to path for imports
project_root = os.path.dirname(os.path.dirname(os.path.abspath(__file__)))
sys.path.insert(0, project_root)

from bs4 import BeautifulSoup

from api.exceptions import ScraperError
from api.parsers.common import extract_next_data, get_page_props, get_url
from utils.logging_config import setup_logging
from utils.request_handler import create_request_handler_from_config
from utils.settings import get_settings

logger = logging.getLogger(__name__)

MAX_DEPTH = 5


def summarize_next_data(html: str) -> List[str]:
    """Human-readable summary lines for the home page's JSON payload."""
    next_data = extract_next_data(html)
    if next_data is None:
        return ['__NEXT_DATA__ script not found']

    page_props = get_page_props(next_data)
    lines = ['--- NEXT DATA ANALYSIS ---']

    big_list = page_props.get('bigList') or []
    if isinstance(big_list, list) and big_list:
        lines.append(f'FEATURED (bigList): {len(big_list)}')
        for item in big_list[:2]:
            if not isinstance(item, dict):
                continue
            lines.append(f"  - {item.get('bookName')} ({item.get('bookId')}) -> {item.get('cover')}")

    small_data = page_props.get('smallData')
    if small_data:
        lines.append('SECTIONS (smallData):')
        entries = small_data.items() if isinstance(small_data, dict) else enumerate(small_data)
        for key, section in entries:
            if not isinstance(section, dict):
                continue
            items = section.get('items') or section.get('list') or []
            if not isinstance(items, list):
                items = []
            title = section.get('name') or section.get('title') or 'Untitled'
            lines.append(f'  - Key {key}: [{title}] Items: {len(items)}')
            if items and isinstance(items[0], dict):
                sample = items[0]
                lines.append(f"    Sample: {sample.get('bookName')} ({sample.get('bookId')}) -> {sample.get('cover')}")
    return lines


def inspect_anchors(html: str, target_id: str) -> List[str]:
    """Describe each anchor linking to *target_id* and its image-bearing ancestors."""
    soup = BeautifulSoup(html, 'html.parser')
    lines = [f'--- INSPECTING ID: {target_id} ---']

    for i, link in enumerate(soup.select(f'a[href*="{target_id}"]')):
        lines.append(f'Match {i} link text: [{link.get_text(strip=True)}]')
        lines.append(f"Link href: {link.get('href')}")

        current = link
        for depth in range(1, MAX_DEPTH + 1):
            current = current.parent
            if current is None or current.name == '[document]':
                break
            classes = ' '.join(current.get('class') or [])
            lines.append(f'Depth {depth} tag: {current.name}, class: {classes or None}')
            images = current.find_all('img')
            if images:
                lines.append(f'  Found {len(images)} images at this depth:')
                for j, img in enumerate(images):
                    lines.append(f'    Img {j} attrs: {json.dumps(img.attrs, ensure_ascii=False)}')
    return lines


def parse_arguments(argv=None):
    parser = argparse.ArgumentParser(description='Inspect dramaboxdb.com pages for parser debugging')
    parser.add_argument('--log-level', default='INFO', help='Logging level')
    subparsers = parser.add_subparsers(dest='command', required=True)

    next_data = subparsers.add_parser('next-data', help='Summarise the home page __NEXT_DATA__ payload')
    next_data.add_argument('--lang', default=None, help='Language prefix (default from settings)')

    anchors = subparsers.add_parser('anchors', help='Show links and images around a movie id')
    anchors.add_argument('movie_id', help='Movie id to look for in hrefs')
    anchors.add_argument('--lang', default=None, help='Language prefix (default from settings)')
    return parser.parse_args(argv)


def main(argv=None) -> int:
    args = parse_arguments(argv)
    setup_logging(log_level=args.log_level)

    settings = get_settings()
    handler = create_request_handler_from_config(settings)
    url = get_url(settings.base_url, '', args.lang or settings.default_lang)

    try:
        html = handler.get_page(url)
    except ScraperError as e:
        logger.error(f'Failed to fetch {url}: {e}')
        return 1
    finally:
        handler.close()

    if args.command == 'next-data':
        lines = summarize_next_data(html)
    else:
        lines = inspect_anchors(html, args.movie_id)

    for line in lines:
        print(line)
    return 0


if __name__ == '__main__':
    sys.exit(main())
