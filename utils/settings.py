"""
Runtime settings for the DramaboxDB Scraper API.

Values are resolved in this order (last wins):

1. Built-in defaults (see ``Settings``)
2. Module-level constants in an optional ``config.py`` at the project root
   (copy ``config.example.py`` to get started)
3. Environment variables, with or without a ``VAR_`` prefix

Usage:
    from utils.settings import get_settings

    settings = get_settings()
    print(settings.base_url, settings.port)
"""

import os
import importlib
from dataclasses import dataclass, field
from functools import lru_cache
from typing import List, Optional


# =============================================================================
# Environment Variable Helpers
# =============================================================================

# Placeholder values that represent "empty"
EMPTY_PLACEHOLDERS = ('__EMPTY__', '__NULL__', 'null', 'none', 'NULL', 'NONE')


def get_env(name: str, default: str = '') -> str:
    """Get environment variable with default value.

    Supports VAR_ prefix for CI compatibility.
    Use __EMPTY__ or __NULL__ to represent an empty string.
    """
    val = os.environ.get(f'VAR_{name}', None)
    if val is None:
        val = os.environ.get(name, default)

    if val in EMPTY_PLACEHOLDERS:
        return ''
    return val or default


def is_env_placeholder(name: str) -> bool:
    """True when *name* (or VAR_*name*) is set to one of the empty placeholders."""
    val = os.environ.get(f'VAR_{name}', None)
    if val is None:
        val = os.environ.get(name, None)
    return val in EMPTY_PLACEHOLDERS


def get_env_int(name: str, default: int) -> int:
    """Get environment variable as integer, falling back to *default*."""
    val = get_env(name, str(default))
    if val == '':
        return default
    try:
        return int(val)
    except (ValueError, TypeError):
        return default


def get_env_float(name: str, default: float) -> float:
    """Get environment variable as float, falling back to *default*."""
    val = get_env(name, str(default))
    if val == '':
        return default
    try:
        return float(val)
    except (ValueError, TypeError):
        return default


def get_env_list(name: str, default: List[str]) -> List[str]:
    """Get a comma separated environment variable as a list of strings."""
    val = get_env(name, '')
    if not val.strip():
        return list(default)
    return [item.strip() for item in val.split(',') if item.strip()]


# =============================================================================
# Settings
# =============================================================================

DEFAULT_CORS_ORIGINS = [
    'http://localhost:5173',
    'http://localhost:3000',
    'http://127.0.0.1:5173',
]


@dataclass
class Settings:
    """Resolved configuration for the API server and its services."""
    base_url: str = 'https://www.dramaboxdb.com'
    default_lang: str = 'in'
    host: str = '0.0.0.0'
    port: int = 3001
    cors_origins: List[str] = field(default_factory=lambda: list(DEFAULT_CORS_ORIGINS))
    log_level: str = 'INFO'
    log_file: Optional[str] = None
    request_timeout: int = 20
    home_section_limit: int = 20
    hippo_base_url: str = 'https://dny.hipporeels.com'
    signatures_file: str = 'signatures.json'
    browser_idle_timeout: int = 120
    browser_nav_timeout: int = 30000
    browser_poll_attempts: int = 10
    browser_poll_interval: float = 1.0
    history_file: str = 'reports/watch_history.csv'
    history_max_items: int = 50


# (Settings attribute, config.py constant / env var name)
_CONFIG_MAP = [
    ('base_url', 'DRAMABOX_BASE_URL'),
    ('default_lang', 'DEFAULT_LANG'),
    ('host', 'HOST'),
    ('port', 'PORT'),
    ('cors_origins', 'CORS_ORIGINS'),
    ('log_level', 'LOG_LEVEL'),
    ('log_file', 'API_LOG_FILE'),
    ('request_timeout', 'REQUEST_TIMEOUT'),
    ('home_section_limit', 'HOME_SECTION_LIMIT'),
    ('hippo_base_url', 'HIPPO_BASE_URL'),
    ('signatures_file', 'SIGNATURES_FILE'),
    ('browser_idle_timeout', 'BROWSER_IDLE_TIMEOUT'),
    ('browser_nav_timeout', 'BROWSER_NAV_TIMEOUT'),
    ('browser_poll_attempts', 'BROWSER_POLL_ATTEMPTS'),
    ('browser_poll_interval', 'BROWSER_POLL_INTERVAL'),
    ('history_file', 'HISTORY_FILE'),
    ('history_max_items', 'HISTORY_MAX_ITEMS'),
]

# String settings that placeholders clear to None instead of ''
_OPTIONAL_ATTRS = ('log_file',)


def _load_config_module(module_name: str = 'config'):
    """Import the optional ``config.py``; returns None when it doesn't exist."""
    try:
        return importlib.import_module(module_name)
    except ImportError:
        return None


def load_settings(config_module=None) -> Settings:
    """Build a ``Settings`` from defaults, ``config.py`` and the environment.

    Args:
        config_module: Module (or any object) with upper-case constants.
                       Defaults to importing ``config``.
    """
    settings = Settings()
    module = config_module if config_module is not None else _load_config_module()

    for attr, name in _CONFIG_MAP:
        if module is not None and hasattr(module, name):
            setattr(settings, attr, getattr(module, name))

        current = getattr(settings, attr)
        if isinstance(current, bool):
            continue
        if isinstance(current, int):
            setattr(settings, attr, get_env_int(name, current))
        elif isinstance(current, float):
            setattr(settings, attr, get_env_float(name, current))
        elif isinstance(current, list):
            setattr(settings, attr, get_env_list(name, current))
        elif is_env_placeholder(name):
            setattr(settings, attr, None if attr in _OPTIONAL_ATTRS else '')
        else:
            value = get_env(name, current or '')
            setattr(settings, attr, value if value != '' else current)

    settings.base_url = settings.base_url.rstrip('/')
    settings.hippo_base_url = settings.hippo_base_url.rstrip('/')
    return settings


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    """Process-wide settings, resolved once."""
    return load_settings()
