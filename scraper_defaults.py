"""
Default settings for the workflow scraper.

Values here apply when neither the step nor the scraper document sets them.
A few can be overridden through environment variables.
"""

import os

# Retry / error handling
# Number of retries after the first attempt (3 retries = 4 attempts)
DEFAULT_RETRIES = 3

# Delay before the first retry, in milliseconds
DEFAULT_RETRY_DELAY = 1000

# Each further retry waits retry_delay * multiplier ** attempt
DEFAULT_BACKOFF_MULTIPLIER = 2

# Upper bound for a single retry delay, in milliseconds
DEFAULT_MAX_RETRY_DELAY = 30000

DEFAULT_CONTINUE_ON_ERROR = False

DEFAULT_SCREENSHOT_ON_ERROR = True

# Where failure screenshots are written
SCREENSHOT_DIR = os.environ.get("SCRAPER_SCREENSHOT_DIR", "./screenshots")

# Browser
# False = browser window visible (useful for debugging selectors)
HEADLESS = os.environ.get("SCRAPER_HEADLESS", "true").lower() not in ("0", "false", "no")

BROWSER_TYPE = "chromium"

BROWSER_ARGS = [
    "--disable-blink-features=AutomationControlled",
    "--disable-dev-shm-usage",
    "--no-sandbox",
    "--disable-setuid-sandbox",
]

ANTI_DETECT_SCRIPT = """
Object.defineProperty(navigator, 'webdriver', {get: () => undefined});
"""

USER_AGENT = (
    "Mozilla/5.0 (Windows NT 10.0; Win64; x64) AppleWebKit/537.36 "
    "(KHTML, like Gecko) Chrome/120.0.0.0 Safari/537.36"
)

VIEWPORT = {"width": 1920, "height": 1080}

# Default navigation / action timeout in milliseconds
DEFAULT_TIMEOUT = 30000

# Idle pages kept open for reuse
MAX_POOL_SIZE = 5

# Resource types blocked when resource blocking is enabled without a type list
BLOCKED_RESOURCE_TYPES = ["image", "font", "media"]

# Sessions (cookies + storage snapshots)
SESSION_DIR = os.environ.get("SCRAPER_SESSION_DIR", "./sessions")

# Sessions older than this are removed by clean_expired_sessions (7 days)
SESSION_MAX_AGE_SECONDS = 7 * 24 * 60 * 60
