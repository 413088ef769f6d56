#!/usr/bin/env python3
"""
DEX String Search for the HippoReels APK

Greps decompiled binaries (``*.dex`` by default) for header / signing
related strings.  Bytes are decoded as latin-1 so offsets match the file,
and non-printable characters are shown as ``.`` in context snippets.

Modes:
- summary: list which patterns occur in each file (case-insensitive)
- context: print every occurrence with surrounding bytes (case-sensitive)
- limited: print at most N occurrences per pattern (case-insensitive)

Usage:
    python3 scripts/dex_search.py apk_extracted
    python3 scripts/dex_search.py apk_extracted --mode context --patterns headers
    python3 scripts/dex_search.py apk_extracted --mode limited --max-hits 3 -p getSignHeader -p xhel

Exit codes:
    0: Search completed (with or without hits)
    1: Directory not found or no matching files
"""

import os
import re
import sys
import glob
import argparse
import logging
from dataclasses import dataclass
from typing import Dict, Iterator, List

# Add project root to path for imports
project_root = os.path.dirname(os.path.dirname(os.path.abspath(__file__)))
sys.path.insert(0, project_root)

from utils.logging_config import setup_logging

logger = logging.getLogger(__name__)

PATTERN_SETS: Dict[str, List[str]] = {
    'basic': [
        'xhel', 'xss', 'ft', 'sign', 'hmac', 'sha256', 'encrypt', 'decrypt',
        'secret', 'token', 'beast/portal',
    ],
    'headers': [
        'xhel', 'xss', '"ft"', 'ft:', 'datas', 'signData', 'signHeader', 'getSign',
        'createSign', 'encryptData', 'RequestSign', 'OkHttp', 'Interceptor',
        'beast', 'hipporeels', 'dramabox',
    ],
    'signing': [
        'getSignHeader', 'signHeader', 'signData', 'encryptHeader', 'RequestInterceptor',
        'dny.hipporeels', 'xhel', 'ft"', 'xss"', 'datas"', 'HmacSHA256', 'Base64',
        'secretKey', 'apiKey', 'appSecret',
    ],
    'context': ['xhel', 'xss', 'beast/portal', 'HmacSHA', 'addHeader'],
}

_NON_PRINTABLE_RE = re.compile(r'[^\x20-\x7E]')


@dataclass
class Hit:
    """One pattern occurrence inside one file."""
    file_name: str
    pattern: str
    offset: int
    context: str


def read_latin1(path: str) -> str:
    """Read a binary file as a latin-1 string (one char per byte)."""
    with open(path, 'rb') as f:
        return f.read().decode('latin-1')


def printable(text: str) -> str:
    return _NON_PRINTABLE_RE.sub('.', text)


def find_offsets(content: str, pattern: str, ignore_case: bool = True, limit: int = 0) -> List[int]:
    """Offsets of *pattern* in *content* (all of them when *limit* is 0)."""
    haystack = content.lower() if ignore_case else content
    needle = pattern.lower() if ignore_case else pattern
    offsets = []
    idx = haystack.find(needle)
    while idx != -1:
        offsets.append(idx)
        if limit and len(offsets) >= limit:
            break
        idx = haystack.find(needle, idx + 1)
    return offsets


def extract_context(content: str, offset: int, pattern_len: int, before: int = 50, after: int = 100) -> str:
    start = max(0, offset - before)
    end = min(len(content), offset + pattern_len + after)
    return printable(content[start:end])


def list_files(directory: str, file_glob: str = '*.dex') -> List[str]:
    return sorted(glob.glob(os.path.join(directory, file_glob)))


def summarize_file(content: str, patterns: List[str]) -> List[str]:
    """Patterns (case-insensitive) that occur at least once in *content*."""
    lowered = content.lower()
    return [p for p in patterns if p.lower() in lowered]


def search_file(path: str, patterns: List[str], ignore_case: bool, limit: int,
                before: int, after: int) -> Iterator[Hit]:
    content = read_latin1(path)
    file_name = os.path.basename(path)
    for pattern in patterns:
        for offset in find_offsets(content, pattern, ignore_case=ignore_case, limit=limit):
            yield Hit(
                file_name=file_name,
                pattern=pattern,
                offset=offset,
                context=extract_context(content, offset, len(pattern), before, after),
            )


def resolve_patterns(pattern_set: str, extra: List[str]) -> List[str]:
    patterns = list(PATTERN_SETS.get(pattern_set, [])) if pattern_set else []
    for p in extra or []:
        if p not in patterns:
            patterns.append(p)
    return patterns


def run(args) -> int:
    if not os.path.isdir(args.directory):
        logger.error(f"Directory not found: {args.directory}")
        return 1

    files = list_files(args.directory, args.glob)
    if not files:
        logger.error(f"No files matching {args.glob} in {args.directory}")
        return 1

    default_set = {'summary': 'basic', 'context': 'context', 'limited': 'signing'}[args.mode]
    patterns = resolve_patterns(args.patterns or (None if args.pattern else default_set), args.pattern)

    print(f"Found {len(files)} files")
    print(f"Searching for strings: {', '.join(patterns)}")
    print('---')

    if args.mode == 'summary':
        for path in files:
            found = summarize_file(read_latin1(path), patterns)
            if found:
                print(f"{os.path.basename(path)}: Found [{', '.join(found)}]")
    else:
        ignore_case = args.mode == 'limited'
        limit = args.max_hits if args.mode == 'limited' else 0
        for path in files:
            for hit in search_file(path, patterns, ignore_case, limit, args.before, args.after):
                print(f'[{hit.file_name}] "{hit.pattern}" @ {hit.offset}:')
                print(f'  {hit.context}')
                print('')

    print('---')
    print('Done!')
    return 0


def parse_arguments(argv=None):
    parser = argparse.ArgumentParser(description='Search decompiled DEX files for signing-related strings')
    parser.add_argument('directory', help='Directory containing the extracted DEX files')
    parser.add_argument('--mode', choices=['summary', 'context', 'limited'], default='summary',
                        help='summary: patterns per file; context: every hit; limited: first N hits per pattern')
    parser.add_argument('--patterns', choices=sorted(PATTERN_SETS), default=None,
                        help='Built-in pattern set (default depends on --mode)')
    parser.add_argument('-p', '--pattern', action='append', default=[],
                        help='Extra pattern to search for (repeatable)')
    parser.add_argument('--glob', default='*.dex', help='File glob inside the directory (default: *.dex)')
    parser.add_argument('--max-hits', type=int, default=3, help='Occurrences per pattern in limited mode')
    parser.add_argument('--before', type=int, default=50, help='Context bytes before a hit')
    parser.add_argument('--after', type=int, default=100, help='Context bytes after a hit')
    parser.add_argument('--log-level', default='INFO', help='Logging level')
    return parser.parse_args(argv)


def main(argv=None) -> int:
    args = parse_arguments(argv)
    setup_logging(log_level=args.log_level)
    return run(args)


if __name__ == '__main__':
    sys.exit(main())
