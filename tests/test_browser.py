"""
Unit tests for utils/browser.py

Playwright is replaced by a MagicMock factory; ``page.goto`` replays a
list of response URLs through the registered ``response`` listener.
"""
import os
import sys
import time
import pytest
from unittest.mock import MagicMock

# Add project root to path
project_root = os.path.dirname(os.path.dirname(os.path.abspath(__file__)))
sys.path.insert(0, project_root)

from playwright.sync_api import Error as PlaywrightError
from playwright.sync_api import TimeoutError as PlaywrightTimeoutError

from api.exceptions import ScraperError
from utils.browser import (
    BLOCKED_RESOURCE_TYPES,
    LAUNCH_ARGS,
    SharedBrowser,
    create_browser_from_config,
    is_video_url,
    pick_video_url,
)


def _fake_playwright(responses=None, goto_error=None):
    """Build a fake ``sync_playwright`` factory.

    Returns (factory, playwright, browser, page).
    """
    page = MagicMock()
    page.is_closed.return_value = False
    listeners = []

    def on(event, callback):
        if event == 'response':
            listeners.append(callback)

    def goto(url, **kwargs):
        for response_url in responses or []:
            for callback in listeners:
                callback(MagicMock(url=response_url))
        if goto_error is not None:
            raise goto_error

    page.on.side_effect = on
    page.goto.side_effect = goto

    browser = MagicMock()
    browser.is_connected.return_value = True
    browser.new_page.return_value = page

    playwright = MagicMock()
    playwright.chromium.launch.return_value = browser

    factory = MagicMock()
    factory.return_value.start.return_value = playwright
    return factory, playwright, browser, page


@pytest.fixture
def make_browser():
    created = []

    def _make(factory, **kwargs):
        options = {'idle_timeout': 60, 'poll_attempts': 3, 'poll_interval': 0.01}
        options.update(kwargs)
        shared = SharedBrowser(playwright_factory=factory, **options)
        created.append(shared)
        return shared

    yield _make
    for shared in created:
        shared.close()


class TestVideoUrlHelpers:
    def test_is_video_url(self):
        assert is_video_url('https://v.example.com/a.m3u8')
        assert is_video_url('https://v.example.com/a.mp4?sign=1')
        assert not is_video_url('blob:https://v.example.com/a.mp4')
        assert not is_video_url('https://v.example.com/a.jpg')

    def test_pick_prefers_hls(self):
        urls = ['https://v/a.mp4', 'https://v/b.m3u8']
        assert pick_video_url(urls) == 'https://v/b.m3u8'

    def test_pick_skips_image_playlists(self):
        urls = ['https://v/cover.jpg.m3u8', 'https://v/a.mp4']
        assert pick_video_url(urls) == 'https://v/a.mp4'

    def test_pick_nothing(self):
        assert pick_video_url([]) is None
        assert pick_video_url(['https://v/cover.jpg.m3u8']) is None


class TestSharedBrowser:
    def test_sniff_collects_video_urls(self, make_browser):
        factory, playwright, browser, page = _fake_playwright(responses=[
            'https://site/app.js',
            'https://v/a.mp4',
            'https://v/a.mp4',
            'blob:https://v/b.m3u8',
            'https://v/b.m3u8',
        ])
        shared = make_browser(factory)

        urls = shared.sniff_video_urls('https://site/ep/1')

        assert urls == ['https://v/a.mp4', 'https://v/a.mp4', 'https://v/b.m3u8']
        playwright.chromium.launch.assert_called_once_with(headless=True, args=LAUNCH_ARGS)
        page.goto.assert_called_once_with('https://site/ep/1', wait_until='domcontentloaded', timeout=30000)
        page.close.assert_called_once()
        assert shared.is_running

    def test_blocks_heavy_resources(self, make_browser):
        factory, _, _, page = _fake_playwright()
        shared = make_browser(factory)
        shared.sniff_video_urls('https://site/ep/1')

        pattern, handle_route = page.route.call_args.args
        assert pattern == '**/*'

        for resource_type in BLOCKED_RESOURCE_TYPES:
            route = MagicMock()
            route.request.resource_type = resource_type
            handle_route(route)
            route.abort.assert_called_once()
            route.continue_.assert_not_called()

        route = MagicMock()
        route.request.resource_type = 'document'
        handle_route(route)
        route.continue_.assert_called_once()
        route.abort.assert_not_called()

    def test_polls_until_budget_exhausted(self, make_browser):
        factory, _, _, page = _fake_playwright(responses=['https://v/a.mp4'])
        shared = make_browser(factory, poll_attempts=4)

        shared.sniff_video_urls('https://site/ep/1')

        assert page.wait_for_timeout.call_count == 4

    def test_stops_polling_once_hls_seen(self, make_browser):
        factory, _, _, page = _fake_playwright(responses=['https://v/a.m3u8'])
        shared = make_browser(factory)

        shared.sniff_video_urls('https://site/ep/1')

        page.wait_for_timeout.assert_not_called()

    def test_navigation_timeout_keeps_captured_urls(self, make_browser):
        factory, _, _, page = _fake_playwright(
            responses=['https://v/a.m3u8'],
            goto_error=PlaywrightTimeoutError('Timeout 30000ms exceeded'),
        )
        shared = make_browser(factory)

        assert shared.sniff_video_urls('https://site/ep/1') == ['https://v/a.m3u8']
        page.close.assert_called_once()

    def test_reuses_browser(self, make_browser):
        factory, playwright, browser, _ = _fake_playwright()
        shared = make_browser(factory)

        shared.sniff_video_urls('https://site/ep/1')
        shared.sniff_video_urls('https://site/ep/2')

        assert playwright.chromium.launch.call_count == 1
        assert browser.new_page.call_count == 2

    def test_relaunches_disconnected_browser(self, make_browser):
        factory, playwright, browser, _ = _fake_playwright()
        shared = make_browser(factory)
        shared.sniff_video_urls('https://site/ep/1')

        browser.is_connected.return_value = False
        shared.sniff_video_urls('https://site/ep/2')

        assert playwright.chromium.launch.call_count == 2
        browser.close.assert_called()

    def test_playwright_error_becomes_scraper_error(self, make_browser):
        factory, _, browser, _ = _fake_playwright()
        browser.new_page.side_effect = PlaywrightError('Target closed')
        shared = make_browser(factory)

        with pytest.raises(ScraperError, match='Browser error'):
            shared.sniff_video_urls('https://site/ep/1')

    def test_idle_timer_closes_browser(self, make_browser):
        factory, playwright, browser, _ = _fake_playwright()
        shared = make_browser(factory, idle_timeout=0.05)
        shared.sniff_video_urls('https://site/ep/1')

        deadline = time.monotonic() + 5
        while shared.is_running and time.monotonic() < deadline:
            time.sleep(0.02)

        assert not shared.is_running
        browser.close.assert_called_once()
        playwright.stop.assert_called_once()

    def test_close(self, make_browser):
        factory, playwright, browser, _ = _fake_playwright()
        shared = make_browser(factory)
        shared.sniff_video_urls('https://site/ep/1')

        shared.close()
        shared.close()

        browser.close.assert_called_once()
        playwright.stop.assert_called_once()
        with pytest.raises(ScraperError):
            shared.sniff_video_urls('https://site/ep/1')

    def test_create_from_config(self, settings):
        shared = create_browser_from_config(settings)
        try:
            assert shared.idle_timeout == settings.browser_idle_timeout
            assert shared.nav_timeout == settings.browser_nav_timeout
            assert shared.poll_attempts == 3
            assert not shared.is_running
        finally:
            shared.close()
