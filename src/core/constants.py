"""Core application constants."""

# Time constants
MILLISECONDS_PER_SECOND = 1000
SECONDS_PER_DAY = 60 * 60 * 24

# Favicon defaults
DEFAULT_ICON_PATH = "public/favicon.ico"
DEFAULT_MAX_CACHE_DAYS = 365
