"""Configuration: API access, palette settings, safety list and logging."""

import logging
import os


def _float_env(name, default):
    raw = os.environ.get(name)
    if not raw:
        return default
    try:
        return float(raw)
    except ValueError:
        return default


def _list_env(name, default):
    raw = os.environ.get(name)
    if not raw:
        return default
    return tuple(term.strip().lower() for term in raw.split(",") if term.strip())


# TMDB API
TMDB_API_KEY = os.environ.get("TMDB_API_KEY", "")
REQUEST_TIMEOUT = _float_env("MOOD_MOVIES_TIMEOUT", 10.0)
FEATURED_COUNT = 8

# Palette extraction
PALETTE_SIZE = 5
MAX_WORKING_PIXELS = 40_000  # quantizer strides larger rasters down to this
MAX_ARTWORK_DIM = 500        # matches the w500 image size

# Content filter
DEFAULT_BANNED_TERMS = (
    "erotic",
    "erotik",
    "porno",
    "porn",
    "fetish",
    "sensual",
    "sex",
    "naked",
    "nudity",
    "adults only",
    "desire",
)
BANNED_TERMS = _list_env("MOOD_MOVIES_BANNED_TERMS", DEFAULT_BANNED_TERMS)

# Logging
LOG_LEVEL = os.environ.get("MOOD_MOVIES_LOG_LEVEL", "INFO").upper()
LOG_FORMAT = "%(asctime)s %(levelname)s %(name)s: %(message)s"


def configure_logging(level=None):
    """Install a stream handler on the app logger (idempotent)."""
    logger = logging.getLogger("mood_movies")
    logger.setLevel(level or LOG_LEVEL)
    if not logger.handlers:
        handler = logging.StreamHandler()
        handler.setFormatter(logging.Formatter(LOG_FORMAT))
        logger.addHandler(handler)
    return logger
