import json
from pathlib import Path
from typing import Any

from async_lru import alru_cache
from loguru import logger

from homeshelf.core.config import settings


def extract_tvdb_api_key(config: Any) -> str:
    """
    Pull the TVDB API key out of a jellyfin-web style config.json payload.

    Accepts either a top-level ``tvdbApiKey`` string or a nested ``tvdb.apiKey`` string.
    Anything else yields an empty string.
    """
    if not isinstance(config, dict):
        return ""

    key = config.get("tvdbApiKey")
    if isinstance(key, str):
        return key.strip()

    nested = config.get("tvdb")
    if isinstance(nested, dict) and isinstance(nested.get("apiKey"), str):
        return nested["apiKey"].strip()

    return ""


def load_web_config(path: str | Path) -> dict[str, Any]:
    """Read config.json from disk; unreadable or malformed files give an empty dict."""
    try:
        data = json.loads(Path(path).read_text(encoding="utf-8"))
    except (OSError, ValueError) as e:
        logger.warning(f"Cannot read web config from {path}: {e}")
        return {}
    return data if isinstance(data, dict) else {}


def read_tvdb_api_key() -> str:
    """
    TVDB_API_KEY wins; otherwise the web client's config.json at WEB_CONFIG_PATH is consulted.
    Returns an empty string when no key is configured; callers treat that as an auth failure.
    """
    if settings.TVDB_API_KEY and settings.TVDB_API_KEY.strip():
        return settings.TVDB_API_KEY.strip()

    if not settings.WEB_CONFIG_PATH:
        return ""

    return extract_tvdb_api_key(load_web_config(settings.WEB_CONFIG_PATH))


@alru_cache(maxsize=1)
async def resolve_tvdb_api_key() -> str:
    """Resolve the TVDB API key once per process."""
    key = read_tvdb_api_key()
    if not key:
        logger.warning("No TVDB API key configured; TVDB candidates will be empty")
    return key
