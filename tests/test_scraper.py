"""
Unit tests for api/scraper.py
"""
import os
import sys
import pytest
from unittest.mock import MagicMock

# Add project root to path
project_root = os.path.dirname(os.path.dirname(os.path.abspath(__file__)))
sys.path.insert(0, project_root)

from api.exceptions import NotFoundError, UpstreamError, VideoNotFoundError
from api.scraper import DramaboxScraper
from conftest import BASE_URL, next_data_page

EPISODE_1_URL = f'{BASE_URL}/in/ep/41000119532_istri-rahasia-ceo/700001_Episode-1'


def _handler(pages):
    """Mock request handler serving *pages* (url -> html)."""
    handler = MagicMock()

    def get_page(url):
        if url not in pages:
            raise UpstreamError('HTTP Error 404: Not Found', status_code=404)
        return pages[url]

    handler.get_page.side_effect = get_page
    return handler


class TestListingPages:
    def test_get_home_page(self, settings, sample_home_html):
        handler = _handler({f'{BASE_URL}/in': sample_home_html})
        scraper = DramaboxScraper(settings, handler)

        sections = scraper.get_home_page()

        assert sections[0].title == 'Drama Unggulan'
        handler.get_page.assert_called_once_with(f'{BASE_URL}/in')

    def test_get_home_page_english(self, settings, sample_home_html):
        handler = _handler({BASE_URL: sample_home_html})
        scraper = DramaboxScraper(settings, handler)

        assert scraper.get_home_page('en')[0].title == 'Featured Drama'

    def test_search_encodes_keyword(self, settings, sample_search_html):
        url = f'{BASE_URL}/in/search?keyword=istri%20rahasia%2Fceo'
        handler = _handler({url: sample_search_html})
        scraper = DramaboxScraper(settings, handler)

        movies = scraper.search_movies('istri rahasia/ceo')

        assert len(movies) == 2
        handler.get_page.assert_called_once_with(url)

    def test_upstream_error_propagates(self, settings):
        scraper = DramaboxScraper(settings, _handler({}))

        with pytest.raises(UpstreamError):
            scraper.get_home_page()


class TestGetMovieDetail:
    def test_detail(self, settings, sample_detail_json_html):
        handler = _handler({f'{BASE_URL}/in/movie/41000119532': sample_detail_json_html})
        scraper = DramaboxScraper(settings, handler)

        detail = scraper.get_movie_detail('41000119532')

        assert detail.episode_count == 3

    def test_detail_not_found(self, settings):
        handler = _handler({f'{BASE_URL}/in/movie/1': '<html><body></body></html>'})
        scraper = DramaboxScraper(settings, handler)

        with pytest.raises(NotFoundError, match='Detail not found'):
            scraper.get_movie_detail('1')


class TestGetVideoUrl:
    DETAIL_URL = f'{BASE_URL}/in/movie/41000119532'

    def test_video_from_page_json(self, settings, sample_detail_json_html, sample_episode_html):
        browser = MagicMock()
        handler = _handler({
            self.DETAIL_URL: sample_detail_json_html,
            EPISODE_1_URL: sample_episode_html,
        })
        scraper = DramaboxScraper(settings, handler, browser)

        result = scraper.get_video_url('41000119532', '700001')

        assert result.source == 'next_data'
        assert result.video_url == 'https://video.example.com/hls/700001/index.m3u8?sign=abc'
        assert result.all_video_urls == [result.video_url]
        assert result.title == 'Istri Rahasia CEO - Episode 1'
        assert result.episode_number == 1
        browser.sniff_video_urls.assert_not_called()

    def test_browser_fallback_without_payload(self, settings, sample_detail_json_html):
        browser = MagicMock()
        browser.sniff_video_urls.return_value = [
            'https://video.example.com/1.mp4',
            'https://video.example.com/thumb.jpg.m3u8',
            'https://video.example.com/1.m3u8',
        ]
        handler = _handler({
            self.DETAIL_URL: sample_detail_json_html,
            EPISODE_1_URL: '<html><body><video></video></body></html>',
        })
        scraper = DramaboxScraper(settings, handler, browser)

        result = scraper.get_video_url('41000119532', '700001')

        assert result.source == 'browser'
        assert result.video_url == 'https://video.example.com/1.m3u8'
        assert len(result.all_video_urls) == 3
        browser.sniff_video_urls.assert_called_once_with(EPISODE_1_URL)

    def test_browser_fallback_when_payload_has_no_video(self, settings, sample_detail_json_html):
        browser = MagicMock()
        browser.sniff_video_urls.return_value = ['https://video.example.com/1.mp4']
        handler = _handler({
            self.DETAIL_URL: sample_detail_json_html,
            EPISODE_1_URL: next_data_page({'chapterInfo': {}}),
        })
        scraper = DramaboxScraper(settings, handler, browser)

        result = scraper.get_video_url('41000119532', '700001')

        assert result.video_url == 'https://video.example.com/1.mp4'

    def test_browser_finds_nothing(self, settings, sample_detail_json_html):
        browser = MagicMock()
        browser.sniff_video_urls.return_value = []
        handler = _handler({
            self.DETAIL_URL: sample_detail_json_html,
            EPISODE_1_URL: '<html></html>',
        })
        scraper = DramaboxScraper(settings, handler, browser)

        with pytest.raises(VideoNotFoundError, match='Video not found in fallback'):
            scraper.get_video_url('41000119532', '700001')

    def test_no_browser_configured(self, settings, sample_detail_json_html):
        handler = _handler({
            self.DETAIL_URL: sample_detail_json_html,
            EPISODE_1_URL: '<html></html>',
        })
        scraper = DramaboxScraper(settings, handler)

        with pytest.raises(VideoNotFoundError):
            scraper.get_video_url('41000119532', '700001')

    def test_movie_not_found(self, settings):
        handler = _handler({self.DETAIL_URL: '<html><body></body></html>'})
        scraper = DramaboxScraper(settings, handler)

        with pytest.raises(NotFoundError, match='Movie not found'):
            scraper.get_video_url('41000119532', '700001')

    def test_episode_not_found(self, settings, sample_detail_json_html):
        handler = _handler({self.DETAIL_URL: sample_detail_json_html})
        scraper = DramaboxScraper(settings, handler)

        with pytest.raises(NotFoundError, match='Episode not found'):
            scraper.get_video_url('41000119532', '999999')
