"""
Pytest configuration and fixtures for the DramaboxDB Scraper tests.
"""
import os
import sys
import json

# Add project root to path for imports
project_root = os.path.dirname(os.path.dirname(os.path.abspath(__file__)))
sys.path.insert(0, project_root)

import pytest
import tempfile
import shutil

from utils.settings import Settings

BASE_URL = 'https://www.dramaboxdb.com'


def next_data_page(page_props, body=''):
    """Wrap *page_props* in a minimal Next.js page."""
    payload = json.dumps({'props': {'pageProps': page_props}, 'buildId': 'test-build'})
    return f'''
    <html>
    <head><title>DramaBox</title></head>
    <body>
        {body}
        <script id="__NEXT_DATA__" type="application/json">{payload}</script>
    </body>
    </html>
    '''


@pytest.fixture
def temp_dir():
    """Create a temporary directory for test files."""
    temp_path = tempfile.mkdtemp()
    yield temp_path
    shutil.rmtree(temp_path, ignore_errors=True)


@pytest.fixture
def settings(temp_dir):
    """Settings pointing every file at the temp directory."""
    return Settings(
        base_url=BASE_URL,
        default_lang='in',
        signatures_file=os.path.join(temp_dir, 'signatures.json'),
        history_file=os.path.join(temp_dir, 'watch_history.csv'),
        browser_poll_attempts=3,
        browser_poll_interval=0.01,
    )


@pytest.fixture
def sample_book_items():
    return [
        {
            'bookId': '41000119532',
            'bookName': 'Istri Rahasia CEO',
            'bookNameLower': 'istri-rahasia-ceo',
            'cover': 'https://cdn.example.com/cover/1.jpg',
            'introduction': 'Sebuah kisah cinta.',
            'chapterCount': 80,
            'typeTwoNames': ['Romance', 'CEO'],
        },
        {
            'action': '41000120001',
            'name': 'Balas Dendam Sang Pewaris',
            'bookNameEn': 'revenge-of-the-heir',
            'cover': 'https://cdn.example.com/cover/2.jpg',
            'chapterCount': '65',
        },
    ]


@pytest.fixture
def sample_home_html(sample_book_items):
    """Home page with a featured list and three smallData rows (one empty)."""
    return next_data_page({
        'bigList': sample_book_items,
        'smallData': {
            '1': {'name': 'Trending', 'items': sample_book_items[:1]},
            '2': {'name': 'Empty Row', 'items': []},
            '3': {'title': 'Must-sees', 'list': sample_book_items[1:]},
        },
    })


@pytest.fixture
def sample_home_dom_html():
    """Home page without a JSON payload; movie cards are plain anchors."""
    return '''
    <html>
    <body>
        <div class="grid">
            <a href="/in/movie/41000119532/istri-rahasia-ceo">
                <img src="//cdn.example.com/cover/1.jpg" alt="Istri Rahasia CEO">
            </a>
            <a href="/in/movie/41000119532/istri-rahasia-ceo">Istri Rahasia CEO</a>
            <a href="/in/movie/41000120001/revenge-of-the-heir" title="Balas Dendam">
                <img data-src="/images/2.jpg">
            </a>
            <a href="/in/genres/romance">Romance</a>
        </div>
    </body>
    </html>
    '''


@pytest.fixture
def sample_search_html(sample_book_items):
    return next_data_page({'searchData': {'list': sample_book_items, 'total': 2}})


@pytest.fixture
def sample_detail_json_html():
    """Detail page with a bookDetail payload and three chapters."""
    return next_data_page({
        'bookDetail': {
            'bookId': '41000119532',
            'bookName': 'Istri Rahasia CEO',
            'bookNameLower': 'istri-rahasia-ceo',
            'introduction': 'Sebuah kisah cinta.',
            'cover': 'https://cdn.example.com/cover/1.jpg',
            'typeTwoNames': ['Romance'],
            'chapters': [
                {'chapterId': '700001', 'sort': 1},
                {'chapterId': '700002', 'sort': 2},
                {'chapterId': '700003', 'sort': 3},
            ],
        },
    })


@pytest.fixture
def sample_detail_dom_html():
    """Detail page without JSON; episodes out of order, one duplicated."""
    return '''
    <html>
    <head>
        <meta property="og:title" content="Istri Rahasia CEO (OG)">
        <meta property="og:description" content="Sebuah kisah cinta.">
        <meta property="og:image" content="https://cdn.example.com/cover/1.jpg">
    </head>
    <body>
        <h1>Istri Rahasia CEO</h1>
        <a href="/in/genres/romance">Romance</a>
        <a href="/in/genres/ceo">CEO</a>
        <a href="/in/genres/romance">Romance</a>
        <ul>
            <li><a href="/in/ep/41000119532_istri-rahasia-ceo/700002_Episode-2">EP 2</a></li>
            <li><a href="/in/ep/41000119532_istri-rahasia-ceo/700001_Episode-1">Episode 1</a></li>
            <li><a href="/in/ep/41000119532_istri-rahasia-ceo/700001_Episode-1">Episode 1</a></li>
            <li><a href="https://www.dramaboxdb.com/in/ep/41000119532_istri-rahasia-ceo/700003_Episode-3">3</a></li>
        </ul>
    </body>
    </html>
    '''


@pytest.fixture
def sample_episode_html():
    """Episode page whose JSON payload carries an HLS URL."""
    return next_data_page({
        'chapterInfo': {
            'chapterId': '700001',
            'cover': 'https://cdn.example.com/ep/1.jpg',
            'videoPath': 'https://video.example.com/hls/700001/index.m3u8?sign=abc',
        },
    })
