"""
Direct client for the HippoReels / DramaBox mobile API.

The API authenticates each request with three opaque headers (``ft``,
``xhel``, ``xss``).  They are captured from a real device with an HTTP
proxy and pasted into ``signatures.json``; nothing is derived locally.
The file is re-read whenever its modification time changes, so a fresh
capture takes effect without restarting the server.

Usage:
    from api.hipporeels import HippoClient, SignatureStore

    client = HippoClient(settings, request_handler, SignatureStore('signatures.json'))
    bundle = client.get_portal(1003)
"""

from __future__ import annotations

import json
import logging
import os
import threading
import uuid
from datetime import datetime, timezone
from typing import Any, Dict, Optional
from urllib.parse import urlparse

from api.exceptions import SignatureError
from utils.masking import mask_signatures

logger = logging.getLogger(__name__)

SIGNATURE_NOTE = (
    'Update these values from a fresh HTTP Toolkit capture when they expire. '
    'Endpoint: POST /api/hippo/update-signatures'
)

# Captured device profile sent in the ``datas`` header
DEFAULT_DEVICE_DATA = {
    'tdid': 'A7125321766828146836NWBzj2Lz',
    'did': '823bc4f6-0d5e-4837-9d9e-7ea917c03c06',
    'userId': 'A2046740',
    'country': 'ID',
    'tz': 'Asia/Shanghai',
    'tzOffset': '+0800',
    'sysLan': 'in',
    'appLan': 'in',
    'pname': 'com.miniframe.hippo',
    'os': '0',
    'brand': 'samsung',
    'model': 'SM-G965N',
    'osVer': '9',
    'ins': '1766828117833',
    'nowCh': 'RLA20250818',
    'nowChTime': '1766828147',
    'appVer': '2.4.5',
    'p': '1',
    'dm': '',
    'platform': 'android',
    'pline': '9',
    'apn': '0',
    'androidId': '000000006d6100a96d6100a900000000',
    'afid': '1766828145912-2067282912057206710',
    'pushEnable': '1',
}

EMPTY_SIGNATURES = {'ft': '', 'xhel': '', 'xss': ''}


class SignatureStore:
    """File-backed ``ft``/``xhel``/``xss`` values, reloaded on change."""

    def __init__(self, path: str):
        self.path = path
        self._lock = threading.Lock()
        self._mtime: Optional[float] = None
        self._loaded = False
        self._data: Dict[str, str] = dict(EMPTY_SIGNATURES)
        self._reload_if_changed()

    def _current_mtime(self) -> Optional[float]:
        try:
            return os.path.getmtime(self.path)
        except OSError:
            return None

    def _reload_if_changed(self):
        mtime = self._current_mtime()
        if self._loaded and mtime == self._mtime:
            return
        if self._loaded:
            logger.info(f'{self.path} changed, reloading signatures...')
        self._mtime = mtime
        self._data = self._load()
        self._loaded = True

    def _load(self) -> Dict[str, str]:
        try:
            with open(self.path, 'r', encoding='utf-8') as f:
                parsed = json.load(f)
        except (OSError, ValueError) as e:
            logger.error(f'Error loading {self.path}: {e}')
            return dict(EMPTY_SIGNATURES)

        if not isinstance(parsed, dict):
            logger.error(f'Error loading {self.path}: expected a JSON object')
            return dict(EMPTY_SIGNATURES)

        logger.info(f"Loaded signatures from file (last updated: {parsed.get('lastUpdated') or 'unknown'})")
        data = {key: str(parsed.get(key) or '') for key in EMPTY_SIGNATURES}
        data['lastUpdated'] = parsed.get('lastUpdated') or ''
        return data

    def current(self) -> Dict[str, str]:
        """Return ``{ft, xhel, xss}`` as of the file's latest version."""
        with self._lock:
            self._reload_if_changed()
            return {key: self._data.get(key, '') for key in EMPTY_SIGNATURES}

    def last_updated(self) -> str:
        with self._lock:
            self._reload_if_changed()
            return self._data.get('lastUpdated', '')

    def save(self, ft: str, xhel: str, xss: str) -> Dict[str, str]:
        """Persist new signatures and make them current immediately."""
        data = {
            'ft': ft,
            'xhel': xhel,
            'xss': xss,
            'lastUpdated': datetime.now(timezone.utc).isoformat(),
            'note': SIGNATURE_NOTE,
        }
        with self._lock:
            try:
                directory = os.path.dirname(self.path)
                if directory:
                    os.makedirs(directory, exist_ok=True)
                with open(self.path, 'w', encoding='utf-8') as f:
                    json.dump(data, f, indent=4)
            except OSError as e:
                raise SignatureError(f'Could not write {self.path}: {e}') from e

            self._mtime = self._current_mtime()
            self._data = {key: data[key] for key in ('ft', 'xhel', 'xss', 'lastUpdated')}
        logger.info(f'Signatures saved to {self.path}: {mask_signatures(self._data)}')
        return dict(self._data)


class HippoClient:
    """Signed POST requests against ``/beast/portal/<id>`` endpoints."""

    USER_AGENT = 'okhttp/4.10.0'

    def __init__(self, settings, request_handler, signature_store: SignatureStore,
                 device_data: Optional[Dict[str, str]] = None):
        self.base_url = settings.hippo_base_url
        self.request_handler = request_handler
        self.signature_store = signature_store
        self.device_data = dict(device_data if device_data is not None else DEFAULT_DEVICE_DATA)

    def build_headers(self) -> Dict[str, str]:
        """Headers for one request; ``X-Request-ID`` is fresh every call."""
        signatures = self.signature_store.current()
        return {
            'Accept-Encoding': 'gzip',
            'Connection': 'Keep-Alive',
            'Content-Type': 'application/json; charset=utf-8',
            'User-Agent': self.USER_AGENT,
            'Host': urlparse(self.base_url).netloc,
            'X-Request-ID': str(uuid.uuid4()),
            'datas': json.dumps(self.device_data, separators=(',', ':')),
            'ft': signatures['ft'],
            'xhel': signatures['xhel'],
            'xss': signatures['xss'],
        }

    def request(self, endpoint: str, body: Optional[Dict[str, Any]] = None) -> Any:
        """POST *body* to *endpoint* and return the decoded JSON.

        Raises:
            UpstreamError: on transport errors or a non-2xx status
        """
        url = f'{self.base_url}{endpoint}'
        logger.info(f'[HippoReels] POST {url}')
        return self.request_handler.post_json(url, body or {}, headers=self.build_headers())

    # ============== Portal endpoints ==============

    def get_portal(self, portal_id: int, body: Optional[Dict[str, Any]] = None) -> Any:
        """Generic portal request (1000, 1001, 1003, …)."""
        return self.request(f'/beast/portal/{portal_id}', body)

    def get_home_config(self) -> Any:
        """Home / config bundle (portal 1000)."""
        return self.get_portal(1000)

    def get_portal_1001(self) -> Any:
        return self.get_portal(1001)

    def get_portal_1003(self) -> Any:
        return self.get_portal(1003)

    def get_portal_1025(self) -> Any:
        return self.get_portal(1025)

    def get_portal_1030(self) -> Any:
        return self.get_portal(1030)

    # ============== Credentials ==============

    def update_signatures(self, ft: str, xhel: str, xss: str) -> Dict[str, str]:
        """Save newly captured signatures (file + memory)."""
        saved = self.signature_store.save(ft, xhel, xss)
        logger.info('[HippoReels] Signatures updated and saved')
        return saved

    def get_signatures(self) -> Dict[str, str]:
        return dict(self.signature_store.current())

    def update_device_data(self, new_data: Dict[str, Any]) -> Dict[str, str]:
        """Merge *new_data* into the device profile sent with each request."""
        self.device_data.update({k: str(v) for k, v in new_data.items()})
        logger.info(f'[HippoReels] Device data updated: {sorted(new_data)}')
        return dict(self.device_data)
