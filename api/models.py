"""
Data models for the DramaboxDB scraping API layer.

All models are dataclasses for lightweight internal usage.  ``to_dict()``
produces the JSON shape the browser client expects (camelCase keys).
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, List, Optional


# ---------------------------------------------------------------------------
# Movie / drama records
# ---------------------------------------------------------------------------

@dataclass
class MovieSummary:
    """One movie card as it appears on the home page or in search results."""
    id: str
    title: str = ''
    poster: Optional[str] = None
    description: str = ''
    episode_count: Optional[int] = None
    url: str = ''
    genres: List[str] = field(default_factory=list)

    def to_dict(self) -> dict:
        return {
            'id': self.id,
            'title': self.title,
            'poster': self.poster,
            'description': self.description,
            'episodeCount': self.episode_count,
            'url': self.url,
            'genres': list(self.genres),
        }


@dataclass
class HomeSection:
    """A titled row of movies on the home page (featured, trending …)."""
    title: str
    movies: List[MovieSummary] = field(default_factory=list)

    def to_dict(self) -> dict:
        return {
            'title': self.title,
            'movies': [m.to_dict() for m in self.movies],
        }


@dataclass
class Episode:
    """A single episode link from a detail page."""
    id: str
    number: int
    title: str = ''
    url: str = ''

    def __post_init__(self):
        if not self.title:
            self.title = f'Episode {self.number}'

    def to_dict(self) -> dict:
        return {
            'id': self.id,
            'number': self.number,
            'title': self.title,
            'url': self.url,
        }


@dataclass
class MovieDetail:
    """Everything the detail page tells us about one movie."""
    id: str
    title: str = ''
    description: str = ''
    poster: Optional[str] = None
    genres: List[str] = field(default_factory=list)
    episodes: List[Episode] = field(default_factory=list)

    @property
    def episode_count(self) -> int:
        return len(self.episodes)

    def find_episode(self, episode_id: str) -> Optional[Episode]:
        """Look up an episode by its id (ids are compared as strings)."""
        for episode in self.episodes:
            if episode.id == str(episode_id):
                return episode
        return None

    def to_dict(self) -> dict:
        return {
            'id': self.id,
            'title': self.title,
            'description': self.description,
            'poster': self.poster,
            'genres': list(self.genres),
            'episodes': [e.to_dict() for e in self.episodes],
            'episodeCount': self.episode_count,
        }


@dataclass
class PlayResult:
    """A resolved video stream for one episode."""
    movie_id: str
    episode_id: str
    episode_number: int
    title: str
    video_url: str
    all_video_urls: List[str] = field(default_factory=list)
    source: str = 'next_data'
    """Which strategy found the URL: ``'next_data'`` or ``'browser'``."""

    def to_dict(self) -> dict:
        return {
            'movieId': self.movie_id,
            'episodeId': self.episode_id,
            'episodeNumber': self.episode_number,
            'title': self.title,
            'videoUrl': self.video_url,
            'allVideoUrls': list(self.all_video_urls),
            'source': self.source,
        }


# ---------------------------------------------------------------------------
# Watch history
# ---------------------------------------------------------------------------

@dataclass
class HistoryEntry:
    """One row of the watch history (one per movie)."""
    movie_id: str
    title: str = ''
    poster: str = ''
    episode: int = 1
    progress: float = 0
    last_watched: str = ''

    def to_dict(self) -> dict:
        return {
            'movieId': self.movie_id,
            'title': self.title,
            'poster': self.poster,
            'episode': self.episode,
            'progress': self.progress,
            'lastWatched': self.last_watched,
        }


# ---------------------------------------------------------------------------
# Response envelope
# ---------------------------------------------------------------------------

def ok(data: Any) -> dict:
    """Success envelope: ``{"success": true, "data": ...}``."""
    return {'success': True, 'data': data}


def fail(error: str, data: Any = None) -> dict:
    """Failure envelope: ``{"success": false, "error": ..., "data": ...}``.

    List endpoints pass ``data=[]`` so clients can iterate unconditionally.
    """
    return {'success': False, 'error': error, 'data': data}
