import httpx

from homeshelf.core.base_client import BaseClient
from homeshelf.core.config import settings
from homeshelf.core.version import __version__


class JellyfinClient(BaseClient):
    """
    Client for the Jellyfin server REST API.
    """

    def __init__(
        self,
        base_url: str | None = None,
        api_key: str | None = None,
        timeout: float | None = None,
        max_retries: int = 2,
        transport: httpx.AsyncBaseTransport | None = None,
    ):
        api_key = api_key if api_key is not None else settings.JELLYFIN_API_KEY
        headers = {
            "User-Agent": f"Homeshelf/{__version__}",
            "Accept": "application/json",
        }
        if api_key:
            headers["X-Emby-Token"] = api_key
        super().__init__(
            base_url=(base_url or settings.JELLYFIN_URL).rstrip("/"),
            timeout=timeout or settings.JELLYFIN_TIMEOUT_SECONDS,
            max_retries=max_retries,
            headers=headers,
            transport=transport,
        )
