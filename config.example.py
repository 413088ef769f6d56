"""
Example configuration file for the DramaboxDB Scraper API
Copy this file to config.py and fill in your actual values.
Environment variables (with or without a VAR_ prefix) override these.
"""

# === Site Configuration ===
DRAMABOX_BASE_URL = 'https://www.dramaboxdb.com'
DEFAULT_LANG = 'in'  # 'en' means no language prefix in URLs
REQUEST_TIMEOUT = 20  # Seconds per upstream HTTP request
HOME_SECTION_LIMIT = 20  # Max movies per home section

# === Server Configuration ===
HOST = '0.0.0.0'
PORT = 3001
CORS_ORIGINS = [
    'http://localhost:5173',
    'http://localhost:3000',
    'http://127.0.0.1:5173',
]

# === Logging Configuration ===
LOG_LEVEL = 'INFO'  # Options: DEBUG, INFO, WARNING, ERROR, CRITICAL
API_LOG_FILE = None  # e.g. 'logs/api_server.log'

# === HippoReels Mobile API ===
HIPPO_BASE_URL = 'https://dny.hipporeels.com'
# JSON file holding the captured ft / xhel / xss header values.
# Edit it by hand or POST /api/hippo/update-signatures; it is reloaded on change.
SIGNATURES_FILE = 'signatures.json'

# === Headless Browser (video sniffing fallback) ===
BROWSER_IDLE_TIMEOUT = 120  # Seconds before an unused browser is closed
BROWSER_NAV_TIMEOUT = 30000  # Milliseconds for page.goto
BROWSER_POLL_ATTEMPTS = 10
BROWSER_POLL_INTERVAL = 1.0  # Seconds between polls

# === Watch History ===
HISTORY_FILE = 'reports/watch_history.csv'
HISTORY_MAX_ITEMS = 50
