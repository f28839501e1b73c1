import os
from pathlib import Path

from dotenv import load_dotenv


load_dotenv(Path.cwd() / ".env")


def _bool_env(name: str, default: bool) -> bool:
    raw = os.getenv(name)
    if raw is None:
        return default
    return raw.strip().lower() in {"1", "true", "yes", "y", "on"}


def _positive_float_env(name: str, default: str) -> float:
    value = float(os.getenv(name, default))
    if value <= 0:
        raise ValueError(f"{name} must be > 0")
    return value


def _positive_int_env(name: str, default: str) -> int:
    value = int(os.getenv(name, default))
    if value <= 0:
        raise ValueError(f"{name} must be > 0")
    return value


def _optional_env(name: str) -> str | None:
    value = os.getenv(name)
    if value is None:
        return None
    value = value.strip()
    return value or None


LASTFM_API_URL = os.getenv("LASTFM_API_URL", "https://ws.audioscrobbler.com/2.0/")
LASTFM_API_KEY = _optional_env("LASTFM_API_KEY")
LASTFM_SECRET = _optional_env("LASTFM_SECRET")
LASTFM_USER = os.getenv("LASTFM_USER", "TinyGuy")
LASTFM_TRACK_LIMIT = _positive_int_env("LASTFM_TRACK_LIMIT", "5")

GOODREADS_API_URL = os.getenv("GOODREADS_API_URL", "https://www.goodreads.com")
GOODREADS_API_KEY = _optional_env("GOODREADS_API_KEY")
GOODREADS_SECRET = _optional_env("GOODREADS_SECRET")
GOODREADS_USER = os.getenv("GOODREADS_USER", "27549920")

GITHUB_API_URL = os.getenv("GITHUB_API_URL", "https://api.github.com")
GITHUB_USER = os.getenv("GITHUB_USER", "urdh")
GITHUB_TOKEN = _optional_env("GITHUB_TOKEN")
GITHUB_MAX_HEAD_LOOKUPS = _positive_int_env("GITHUB_MAX_HEAD_LOOKUPS", "5")

PHOTOS_URL = os.getenv("PHOTOS_URL", "https://photography.sigurdhsson.org/photos.json")

TRACKS_TTL_S = _positive_float_env("TRACKS_TTL_S", "150")
BOOKS_TTL_S = _positive_float_env("BOOKS_TTL_S", "86400")
COMMITS_TTL_S = _positive_float_env("COMMITS_TTL_S", "300")
PHOTOS_TTL_S = _positive_float_env("PHOTOS_TTL_S", "3600")

UPSTREAM_TIMEOUT_S = _positive_float_env("UPSTREAM_TIMEOUT_S", "5")
USER_AGENT = os.getenv("USER_AGENT", "sitefeeds/0.1 (+https://sigurdhsson.org)")

STATIC_DIR = _optional_env("STATIC_DIR")
LEGACY_ROUTES_ENABLED = _bool_env("LEGACY_ROUTES_ENABLED", True)

HOST = os.getenv("HOST", "0.0.0.0")
PORT = int(os.getenv("PORT", "5000"))

LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO")
LOG_SLOW_REQUEST_MS = float(os.getenv("LOG_SLOW_REQUEST_MS", "500"))
