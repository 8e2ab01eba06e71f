import asyncio
import time
from collections.abc import Awaitable, Callable

from loguru import logger

from homeshelf.core.config import settings
from homeshelf.core.exceptions import TVDBAuthError, TVDBHTTPError
from homeshelf.core.security import redact_token
from homeshelf.core.web_config import resolve_tvdb_api_key
from homeshelf.models.tvdb import TokenEntry
from homeshelf.services.tvdb.client import TVDBClient


class TVDBTokenBroker:
    """
    Hands out TVDB bearer tokens.

    A token is cached until shortly before TVDB would expire it. While a login is in
    flight every caller awaits that same login, so at most one ``/login`` request is
    outstanding. Failed logins are not cached.
    """

    def __init__(
        self,
        client: TVDBClient,
        api_key_resolver: Callable[[], Awaitable[str]] = resolve_tvdb_api_key,
        ttl_seconds: float | None = None,
        clock: Callable[[], float] = time.monotonic,
    ):
        self.client = client
        self._resolve_api_key = api_key_resolver
        self.ttl_seconds = ttl_seconds if ttl_seconds is not None else settings.TVDB_TOKEN_TTL_SECONDS
        self._clock = clock
        self._entry: TokenEntry | None = None
        self._pending: asyncio.Task | None = None
        self._generation = 0

    def reset(self) -> None:
        """Forget the cached token (e.g. after the API key changed). A login already in flight is not cached."""
        self._generation += 1
        self._entry = None
        self._pending = None

    async def get_token(self) -> str:
        entry = self._entry
        if entry is not None and self._clock() < entry.expires_at:
            return entry.value

        # Check and claim happen in one step; no await between them.
        if self._pending is None:
            self._pending = asyncio.ensure_future(self._login(self._generation))
            self._pending.add_done_callback(self._clear_pending)

        return await asyncio.shield(self._pending)

    def _clear_pending(self, task: asyncio.Task) -> None:
        if self._pending is task:
            self._pending = None

    async def _login(self, generation: int) -> str:
        api_key = await self._resolve_api_key()
        if not api_key:
            raise TVDBAuthError("TVDB API key is not configured (TVDB_API_KEY or tvdbApiKey in config.json)")

        try:
            response = await self.client.login(api_key)
        except TVDBHTTPError as e:
            raise TVDBAuthError(f"TVDB rejected login for key {redact_token(api_key)} ({e.status_code})") from e

        token = None
        if isinstance(response, dict) and isinstance(response.get("data"), dict):
            token = response["data"].get("token")
        if not token:
            raise TVDBAuthError("TVDB auth token was not returned")

        if generation == self._generation:
            self._entry = TokenEntry(value=token, expires_at=self._clock() + self.ttl_seconds)
        logger.info(f"Obtained TVDB token {redact_token(token)}")
        return token
