"""
Shared headless browser used as the last-resort video locator.

A single Chromium instance is launched lazily and reused across requests.
It is closed again after ``idle_timeout`` seconds without use, and
relaunched transparently when it has crashed or disconnected.

Playwright's sync API is bound to the thread that started it, so every
browser call is funnelled through one dedicated worker thread.

Usage:
    from utils.browser import SharedBrowser, pick_video_url

    browser = SharedBrowser(idle_timeout=120)
    urls = browser.sniff_video_urls('https://www.dramaboxdb.com/in/ep/...')
    video_url = pick_video_url(urls)
    browser.close()
"""

import logging
import threading
import time
from concurrent.futures import ThreadPoolExecutor
from typing import Callable, List, Optional

from playwright.sync_api import Error as PlaywrightError
from playwright.sync_api import TimeoutError as PlaywrightTimeoutError
from playwright.sync_api import sync_playwright

from api.exceptions import ScraperError

logger = logging.getLogger(__name__)

LAUNCH_ARGS = [
    '--no-sandbox',
    '--disable-setuid-sandbox',
    '--disable-dev-shm-usage',
    '--disable-accelerated-2d-canvas',
    '--disable-gpu',
    '--disable-extensions',
    '--disable-component-extensions-with-background-pages',
    '--disable-default-apps',
    '--mute-audio',
    '--no-default-browser-check',
    '--autoplay-policy=user-gesture-required',
    '--disable-background-timer-throttling',
    '--disable-backgrounding-occluded-windows',
    '--disable-notifications',
    '--disable-background-networking',
    '--disable-breakpad',
    '--disable-component-update',
    '--disable-domain-reliability',
    '--disable-sync',
]

# Resource types that never carry the stream URL; aborting them keeps pages light
BLOCKED_RESOURCE_TYPES = ('image', 'stylesheet', 'font', 'media')


def is_video_url(url: str) -> bool:
    return ('.mp4' in url or '.m3u8' in url) and not url.startswith('blob:')


def _is_hls(url: str) -> bool:
    return '.m3u8' in url and '.jpg' not in url


def pick_video_url(urls: List[str]) -> Optional[str]:
    """Prefer an HLS playlist; fall back to the first MP4."""
    for url in urls:
        if _is_hls(url):
            return url
    for url in urls:
        if '.mp4' in url:
            return url
    return None


class SharedBrowser:
    """
    Lazily launched, idle-closing Chromium wrapper.

    Features:
    - One browser process shared by all requests
    - Relaunch when the process has disconnected
    - Idle shutdown after ``idle_timeout`` seconds
    - Network sniffing for video URLs with a fixed polling budget
    """

    def __init__(self, idle_timeout: float = 120, nav_timeout: int = 30000,
                 poll_attempts: int = 10, poll_interval: float = 1.0,
                 playwright_factory: Callable = sync_playwright):
        """
        Args:
            idle_timeout: Seconds without use before the browser is closed
            nav_timeout: Milliseconds allowed for ``page.goto``
            poll_attempts: How many times to check for a captured stream URL
            poll_interval: Seconds between two checks
            playwright_factory: Callable returning a Playwright context manager
        """
        self.idle_timeout = idle_timeout
        self.nav_timeout = nav_timeout
        self.poll_attempts = poll_attempts
        self.poll_interval = poll_interval
        self._playwright_factory = playwright_factory

        self._executor = ThreadPoolExecutor(max_workers=1, thread_name_prefix='shared-browser')
        self._playwright = None
        self._browser = None
        self._last_used = 0.0
        self._idle_timer: Optional[threading.Timer] = None
        self._timer_lock = threading.Lock()
        self._closed = False

    # ------------------------------------------------------------------
    # Worker-thread internals
    # ------------------------------------------------------------------

    def _get_browser(self):
        if self._browser is not None:
            if self._idle_expired():
                logger.info('Shared browser idle for too long, relaunching')
                self._close_browser()
            elif self._browser.is_connected():
                return self._browser
            else:
                logger.warning('Shared browser disconnected, relaunching')
                self._close_browser()

        logger.info('Launching new shared browser instance...')
        if self._playwright is None:
            self._playwright = self._playwright_factory().start()
        self._browser = self._playwright.chromium.launch(headless=True, args=LAUNCH_ARGS)
        return self._browser

    def _idle_expired(self) -> bool:
        return bool(self._last_used) and time.monotonic() - self._last_used >= self.idle_timeout

    def _close_browser(self):
        if self._browser is not None:
            try:
                self._browser.close()
            except PlaywrightError as e:
                logger.debug(f'Ignoring error while closing browser: {e}')
            self._browser = None
        if self._playwright is not None:
            try:
                self._playwright.stop()
            except PlaywrightError as e:
                logger.debug(f'Ignoring error while stopping Playwright: {e}')
            self._playwright = None

    def _close_if_idle(self):
        if self._browser is not None and self._idle_expired():
            logger.info(f'Closing shared browser after {self.idle_timeout}s idle')
            self._close_browser()

    def _sniff(self, url: str) -> List[str]:
        browser = self._get_browser()
        page = browser.new_page()
        video_urls: List[str] = []

        def handle_route(route):
            if route.request.resource_type in BLOCKED_RESOURCE_TYPES:
                route.abort()
            else:
                route.continue_()

        def handle_response(response):
            if is_video_url(response.url):
                video_urls.append(response.url)

        try:
            page.route('**/*', handle_route)
            page.on('response', handle_response)
            try:
                page.goto(url, wait_until='domcontentloaded', timeout=self.nav_timeout)
            except PlaywrightTimeoutError:
                logger.warning(f'Navigation timed out for {url}, still polling captured traffic')

            for _ in range(self.poll_attempts):
                if any(_is_hls(u) for u in video_urls):
                    break
                page.wait_for_timeout(self.poll_interval * 1000)
        finally:
            try:
                if not page.is_closed():
                    page.close()
            except PlaywrightError as e:
                logger.debug(f'Ignoring error while closing page: {e}')
            self._last_used = time.monotonic()

        return video_urls

    # ------------------------------------------------------------------
    # Idle timer
    # ------------------------------------------------------------------

    def _schedule_idle_close(self):
        with self._timer_lock:
            if self._closed:
                return
            if self._idle_timer is not None:
                self._idle_timer.cancel()
            self._idle_timer = threading.Timer(self.idle_timeout, self._on_idle_timer)
            self._idle_timer.daemon = True
            self._idle_timer.start()

    def _on_idle_timer(self):
        with self._timer_lock:
            if self._closed:
                return
            self._executor.submit(self._close_if_idle)

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------

    def sniff_video_urls(self, url: str) -> List[str]:
        """
        Open *url* in the shared browser and capture video stream URLs.

        Returns:
            Every ``.m3u8`` / ``.mp4`` response URL seen, in capture order (repeats included)

        Raises:
            ScraperError: when the browser fails or has been closed
        """
        if self._closed:
            raise ScraperError('Browser has been shut down')
        logger.info(f'[Browser fallback] Sniffing video URLs: {url}')
        try:
            urls = self._executor.submit(self._sniff, url).result()
        except PlaywrightError as e:
            raise ScraperError(f'Browser error: {e}') from e
        finally:
            self._schedule_idle_close()
        logger.info(f'[Browser fallback] Captured {len(urls)} video URL(s)')
        return urls

    @property
    def is_running(self) -> bool:
        return self._browser is not None

    def close(self):
        """Shut down the browser, Playwright and the worker thread."""
        with self._timer_lock:
            if self._closed:
                return
            self._closed = True
            if self._idle_timer is not None:
                self._idle_timer.cancel()
                self._idle_timer = None
        self._executor.submit(self._close_browser).result()
        self._executor.shutdown(wait=True)
        logger.info('Shared browser closed')


def create_browser_from_config(settings) -> SharedBrowser:
    """Create a ``SharedBrowser`` from a ``Settings`` instance."""
    return SharedBrowser(
        idle_timeout=settings.browser_idle_timeout,
        nav_timeout=settings.browser_nav_timeout,
        poll_attempts=settings.browser_poll_attempts,
        poll_interval=settings.browser_poll_interval,
    )
