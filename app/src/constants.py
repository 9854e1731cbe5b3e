"""
Application configuration and constants for the Freight Order API.

This module centralizes environment-based configuration, cache lifetimes,
pagination limits, coordinate bounds, and other constants.

Configuration values can be overridden via environment variables.
"""

from os import environ


# ---------------------------------------------------------------------------
# Application metadata
# ---------------------------------------------------------------------------
API_TITLE = "Freight Order API Server"
API_VERSION = "1.0.0"
LOG_LEVEL = environ.get("LOG_LEVEL", "INFO").upper()


# ---------------------------------------------------------------------------
# PostgreSQL configuration
# ---------------------------------------------------------------------------
PSQL_DB_DRIVER = environ.get("PSQL_DB_DRIVER", "postgresql")
PSQL_DB_USERNAME = environ.get("PSQL_DB_USERNAME", "postgres")
PSQL_DB_PORT = environ.get("PSQL_DB_PORT", "5432")
PSQL_DB_PASSWORD = environ.get("PSQL_DB_PASSWORD", "password")
PSQL_DB_HOST = environ.get("PSQL_DB_HOST", "localhost")
PSQL_DB_NAME = environ.get("PSQL_DB_NAME", "postgres")

# A complete URL takes precedence over the individual PSQL_* parts
DATABASE_URL = environ.get(
    "DATABASE_URL",
    f"{PSQL_DB_DRIVER}://{PSQL_DB_USERNAME}:{PSQL_DB_PASSWORD}@{PSQL_DB_HOST}:{PSQL_DB_PORT}/{PSQL_DB_NAME}",
)


# ---------------------------------------------------------------------------
# OpenObserve configuration
# ---------------------------------------------------------------------------
OPENOBSERVE_ENABLED = environ.get("OPENOBSERVE_ENABLED", "false").lower() in (
    "1",
    "true",
    "yes",
)
OPENOBSERVE_PROTOCOL = environ.get("OPENOBSERVE_PROTOCOL", "http")
OPENOBSERVE_HOST = environ.get("OPENOBSERVE_HOST", "localhost")
OPENOBSERVE_PORT = environ.get("OPENOBSERVE_PORT", "5080")
OPENOBSERVE_USERNAME = environ.get("OPENOBSERVE_USERNAME", "admin@freight.local")
OPENOBSERVE_PASSWORD = environ.get("OPENOBSERVE_PASSWORD", "password")
OPENOBSERVE_ORG = environ.get("OPENOBSERVE_ORG", "freight")
OPENOBSERVE_STREAM = environ.get("OPENOBSERVE_STREAM", "freight-order-server")
OPENOBSERVE_TIMEOUT = 5  # Request timeout (in seconds)


# ---------------------------------------------------------------------------
# Redis configuration
# ---------------------------------------------------------------------------
CACHE_ENABLED = environ.get("CACHE_ENABLED", "true").lower() in ("1", "true", "yes")
REDIS_HOST = environ.get("REDIS_HOST", "localhost")
REDIS_PORT = int(environ.get("REDIS_PORT", "6379"))
REDIS_PASSWORD = environ.get("REDIS_PASSWORD") or None
REDIS_DB = int(environ.get("REDIS_DB", "0"))
CACHE_SOCKET_TIMEOUT = float(environ.get("CACHE_SOCKET_TIMEOUT", "2"))  # In seconds
CACHE_RETRY_INTERVAL = float(environ.get("CACHE_RETRY_INTERVAL", "5"))  # In seconds
CACHE_SCAN_BATCH = 500  # Keys fetched per SCAN round trip


# ---------------------------------------------------------------------------
# Cache lifetimes (in seconds)
# ---------------------------------------------------------------------------
ORDER_DETAIL_TTL = 10 * 60
ORDER_LIST_TTL = 5 * 60
ORDER_COUNTS_TTL = 60


# ---------------------------------------------------------------------------
# Pagination
# ---------------------------------------------------------------------------
DEFAULT_PAGE_LIMIT = 10
MAX_PAGE_LIMIT = 100


# ---------------------------------------------------------------------------
# Coordinate bounds (WGS 84)
# ---------------------------------------------------------------------------
MIN_LATITUDE = -90
MAX_LATITUDE = 90
MIN_LONGITUDE = -180
MAX_LONGITUDE = 180


# ---------------------------------------------------------------------------
# Presentation defaults
# ---------------------------------------------------------------------------
REFERENCE_PREFIX = "ORD-"
REFERENCE_DIGITS = 6
UNKNOWN_LOCATION = "Unknown"
DEFAULT_EQUIPMENT_TYPE = "Not Specified"
DEFAULT_COMMODITY = "General Freight"
