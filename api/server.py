"""
Thin FastAPI REST layer over the scraper, the HippoReels client and the
watch history.

Every response uses the same envelope::

    {"success": true,  "data": ...}
    {"success": false, "error": "...", "data": null | []}

Run with::

    uvicorn api.server:app --reload --port 3001
    python -m api.server
"""

from __future__ import annotations

import logging
from contextlib import asynccontextmanager
from datetime import datetime, timezone
from functools import lru_cache
from typing import Any, Dict, Optional

from fastapi import Body, Depends, FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from pydantic import BaseModel

from api.exceptions import NotFoundError
from api.hipporeels import HippoClient, SignatureStore
from api.models import HistoryEntry, fail, ok
from api.scraper import DramaboxScraper
from utils.browser import create_browser_from_config
from utils.history_manager import WatchHistory
from utils.logging_config import setup_logging
from utils.masking import mask_signatures
from utils.request_handler import create_request_handler_from_config
from utils.settings import get_settings

logger = logging.getLogger(__name__)

AVAILABLE_ENDPOINTS = [
    'GET /api/health',
    'GET /api/home',
    'GET /api/search?q={query}',
    'GET /api/detail/:movieId',
    'GET /api/play/:movieId/:episodeId',
    'GET /api/hippo/home',
    'GET|POST /api/hippo/portal/:portalId',
    'GET /api/hippo/signatures',
    'POST /api/hippo/update-signatures',
    'POST /api/hippo/device-data',
    'GET|POST|DELETE /api/history',
    'PATCH|DELETE /api/history/:movieId',
]


# ---------------------------------------------------------------------------
# Service factories (cached singletons, overridable in tests)
# ---------------------------------------------------------------------------

@lru_cache(maxsize=1)
def _build_request_handler():
    return create_request_handler_from_config(get_settings())


@lru_cache(maxsize=1)
def _build_browser():
    return create_browser_from_config(get_settings())


def get_scraper() -> DramaboxScraper:
    return DramaboxScraper(get_settings(), _build_request_handler(), _build_browser())


@lru_cache(maxsize=1)
def get_hippo_client() -> HippoClient:
    settings = get_settings()
    return HippoClient(settings, _build_request_handler(), SignatureStore(settings.signatures_file))


@lru_cache(maxsize=1)
def get_history() -> WatchHistory:
    settings = get_settings()
    return WatchHistory(settings.history_file, settings.history_max_items)


def shutdown_services():
    """Close the shared browser and HTTP session if they were ever built."""
    if _build_browser.cache_info().currsize:
        _build_browser().close()
        _build_browser.cache_clear()
    if _build_request_handler.cache_info().currsize:
        _build_request_handler().close()
        _build_request_handler.cache_clear()


# ---------------------------------------------------------------------------
# App
# ---------------------------------------------------------------------------

settings = get_settings()


@asynccontextmanager
async def lifespan(app: FastAPI):
    setup_logging(log_file=settings.log_file, log_level=settings.log_level)
    logger.info(f"DramaboxDB Scraper API started (port {settings.port}, base {settings.base_url})")
    yield
    shutdown_services()


app = FastAPI(
    title='DramaboxDB Scraper API',
    version='2.1.0',
    description='Scraper and proxy API for DramaboxDB / HippoReels content.',
    lifespan=lifespan,
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_methods=['GET', 'POST', 'PATCH', 'DELETE', 'OPTIONS'],
    allow_headers=['*'],
    allow_credentials=True,
)


@app.middleware('http')
async def log_requests(request: Request, call_next):
    logger.info(f"{request.method} {request.url.path}{'?' + request.url.query if request.url.query else ''}")
    return await call_next(request)


@app.exception_handler(404)
async def not_found_handler(request: Request, exc):
    return JSONResponse(
        status_code=404,
        content={'success': False, 'error': 'Not found', 'availableEndpoints': AVAILABLE_ENDPOINTS},
    )


@app.exception_handler(RequestValidationError)
async def validation_error_handler(request: Request, exc: RequestValidationError):
    problems = [
        f"{'.'.join(str(part) for part in error.get('loc', ()))}: {error.get('msg', 'invalid')}"
        for error in exc.errors()
    ]
    logger.warning(f"Invalid request {request.method} {request.url.path}: {problems}")
    return JSONResponse(status_code=422, content=fail('Invalid request: ' + '; '.join(problems)))


@app.exception_handler(Exception)
async def unhandled_error_handler(request: Request, exc: Exception):
    logger.exception(f"Unhandled error on {request.method} {request.url.path}: {exc}")
    return JSONResponse(status_code=500, content={'success': False, 'error': 'Internal server error'})


def _error_response(exc: Exception, where: str, empty: Any = None) -> JSONResponse:
    """Map a service exception onto the error envelope (404 or 500)."""
    if isinstance(exc, NotFoundError):
        logger.warning(f"{where}: {exc}")
        return JSONResponse(status_code=404, content=fail(str(exc), empty))
    logger.error(f"Error in {where}: {exc}")
    return JSONResponse(status_code=500, content=fail(str(exc), empty))


# ---------------------------------------------------------------------------
# Request bodies
# ---------------------------------------------------------------------------

class SignaturesPayload(BaseModel):
    ft: str
    xhel: str
    xss: str


class HistoryPayload(BaseModel):
    movieId: str
    title: str = ''
    poster: str = ''
    episode: int = 1
    progress: float = 0


class ProgressPayload(BaseModel):
    progress: float
    episode: int


# ---------------------------------------------------------------------------
# Scraper endpoints
# ---------------------------------------------------------------------------

@app.get('/api/health')
def health_check():
    """Simple liveness probe."""
    return {'status': 'ok', 'timestamp': datetime.now(timezone.utc).isoformat()}


@app.get('/api/home')
def api_home(lang: Optional[str] = None, scraper: DramaboxScraper = Depends(get_scraper)):
    """Home page sections (featured, trending, must-sees …)."""
    try:
        sections = scraper.get_home_page(lang)
        return ok([s.to_dict() for s in sections])
    except Exception as exc:
        return _error_response(exc, '/api/home', empty=[])


@app.get('/api/search')
def api_search(
    q: Optional[str] = None,
    query: Optional[str] = None,
    lang: Optional[str] = None,
    scraper: DramaboxScraper = Depends(get_scraper),
):
    """Search movies by keyword (``?q=`` or ``?query=``)."""
    keyword = (q or query or '').strip()
    if not keyword:
        return JSONResponse(status_code=400, content=fail('Query required', []))
    try:
        movies = scraper.search_movies(keyword, lang)
        return ok([m.to_dict() for m in movies])
    except Exception as exc:
        return _error_response(exc, '/api/search', empty=[])


@app.get('/api/detail/{movie_id}')
def api_detail(movie_id: str, lang: Optional[str] = None, scraper: DramaboxScraper = Depends(get_scraper)):
    """Movie details and episode list."""
    try:
        return ok(scraper.get_movie_detail(movie_id, lang).to_dict())
    except Exception as exc:
        return _error_response(exc, '/api/detail')


@app.get('/api/play/{movie_id}/{episode_id}')
def api_play(movie_id: str, episode_id: str, lang: Optional[str] = None,
             scraper: DramaboxScraper = Depends(get_scraper)):
    """Video URL for one episode (page JSON first, headless browser second)."""
    logger.info(f"Fetching video for movie {movie_id}, episode {episode_id} (lang: {lang or settings.default_lang})...")
    try:
        return ok(scraper.get_video_url(movie_id, episode_id, lang).to_dict())
    except Exception as exc:
        return _error_response(exc, '/api/play')


# ---------------------------------------------------------------------------
# HippoReels proxy endpoints
# ---------------------------------------------------------------------------

@app.get('/api/hippo/home')
def api_hippo_home(client: HippoClient = Depends(get_hippo_client)):
    """Home / config bundle (portal 1000)."""
    try:
        return ok(client.get_home_config())
    except Exception as exc:
        return _error_response(exc, '/api/hippo/home')


@app.get('/api/hippo/portal/{portal_id}')
def api_hippo_portal(portal_id: int, client: HippoClient = Depends(get_hippo_client)):
    """Any numbered portal with an empty body."""
    try:
        return ok(client.get_portal(portal_id))
    except Exception as exc:
        return _error_response(exc, f'/api/hippo/portal/{portal_id}')


@app.post('/api/hippo/portal/{portal_id}')
def api_hippo_portal_post(
    portal_id: int,
    body: Optional[Dict[str, Any]] = Body(default=None),
    client: HippoClient = Depends(get_hippo_client),
):
    """Any numbered portal, forwarding the JSON body as-is."""
    try:
        return ok(client.get_portal(portal_id, body or {}))
    except Exception as exc:
        return _error_response(exc, f'/api/hippo/portal/{portal_id}')


@app.get('/api/hippo/signatures')
def api_hippo_signatures(client: HippoClient = Depends(get_hippo_client)):
    """Masked view of the current signatures."""
    data = mask_signatures(client.get_signatures())
    data['lastUpdated'] = client.signature_store.last_updated()
    return ok(data)


@app.post('/api/hippo/update-signatures')
def api_hippo_update_signatures(payload: SignaturesPayload, client: HippoClient = Depends(get_hippo_client)):
    """Store freshly captured ``ft``/``xhel``/``xss`` values."""
    try:
        saved = client.update_signatures(payload.ft, payload.xhel, payload.xss)
        return ok(mask_signatures(saved))
    except Exception as exc:
        return _error_response(exc, '/api/hippo/update-signatures')


@app.post('/api/hippo/device-data')
def api_hippo_device_data(
    body: Dict[str, Any] = Body(...),
    client: HippoClient = Depends(get_hippo_client),
):
    """Merge fields into the device profile sent in the ``datas`` header."""
    return ok(client.update_device_data(body))


# ---------------------------------------------------------------------------
# Watch history endpoints
# ---------------------------------------------------------------------------

@app.get('/api/history')
def api_history_list(history: WatchHistory = Depends(get_history)):
    return ok([h.to_dict() for h in history.get_history()])


@app.post('/api/history')
def api_history_add(payload: HistoryPayload, history: WatchHistory = Depends(get_history)):
    try:
        entry = history.add_to_history(HistoryEntry(
            movie_id=payload.movieId,
            title=payload.title,
            poster=payload.poster,
            episode=payload.episode,
            progress=payload.progress,
        ))
        return ok(entry.to_dict())
    except Exception as exc:
        return _error_response(exc, '/api/history')


@app.patch('/api/history/{movie_id}')
def api_history_progress(movie_id: str, payload: ProgressPayload,
                         history: WatchHistory = Depends(get_history)):
    try:
        if not history.update_progress(movie_id, payload.progress, payload.episode):
            raise NotFoundError(f'Movie {movie_id} not in history')
        return ok({'movieId': movie_id, 'progress': payload.progress, 'episode': payload.episode})
    except Exception as exc:
        return _error_response(exc, '/api/history')


@app.delete('/api/history/{movie_id}')
def api_history_remove(movie_id: str, history: WatchHistory = Depends(get_history)):
    try:
        if not history.remove_from_history(movie_id):
            raise NotFoundError(f'Movie {movie_id} not in history')
        return ok({'movieId': movie_id})
    except Exception as exc:
        return _error_response(exc, '/api/history')


@app.delete('/api/history')
def api_history_clear(history: WatchHistory = Depends(get_history)):
    try:
        history.clear_history()
        return ok([])
    except Exception as exc:
        return _error_response(exc, '/api/history', empty=[])


def main():
    import uvicorn

    setup_logging(log_file=settings.log_file, log_level=settings.log_level)
    uvicorn.run('api.server:app', host=settings.host, port=settings.port)


if __name__ == '__main__':
    main()
