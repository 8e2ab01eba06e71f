import asyncio
from typing import Any

import httpx

from homeshelf.core.base_client import BaseClient
from homeshelf.core.config import settings
from homeshelf.core.exceptions import TVDBError, TVDBHTTPError, TVDBTimeoutError
from homeshelf.core.security import bearer_headers
from homeshelf.core.version import __version__


class TVDBClient(BaseClient):
    """
    Client for the TheTVDB v4 API.

    Every call carries a hard deadline. When it passes, the in-flight request is
    cancelled and ``TVDBTimeoutError`` is raised; there are no retries.
    """

    def __init__(
        self,
        base_url: str | None = None,
        request_timeout: float | None = None,
        login_timeout: float | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
    ):
        headers = {
            "User-Agent": f"Homeshelf/{__version__}",
            "Accept": "application/json",
        }
        super().__init__(
            base_url=base_url or settings.TVDB_BASE_URL,
            timeout=request_timeout or settings.TVDB_REQUEST_TIMEOUT_SECONDS,
            max_retries=1,
            headers=headers,
            transport=transport,
        )
        self.login_timeout = login_timeout or settings.TVDB_LOGIN_TIMEOUT_SECONDS

    async def request(
        self,
        path: str,
        method: str = "GET",
        json: dict[str, Any] | None = None,
        params: dict[str, Any] | None = None,
        token: str | None = None,
        timeout: float | None = None,
    ) -> Any:
        """Perform a deadline-bounded call and return the parsed JSON body."""
        deadline = timeout or self.timeout
        query = {key: value for key, value in (params or {}).items() if value is not None}

        try:
            response = await asyncio.wait_for(
                self._request(
                    method,
                    path,
                    json=json,
                    params=query or None,
                    headers=bearer_headers(token),
                    timeout=deadline,
                ),
                timeout=deadline,
            )
        except (asyncio.TimeoutError, httpx.TimeoutException) as e:
            raise TVDBTimeoutError(path, deadline) from e
        except httpx.HTTPStatusError as e:
            raise TVDBHTTPError(e.response.status_code, path) from e
        except httpx.RequestError as e:
            raise TVDBError(f"TVDB request failed ({path}): {e}") from e

        try:
            return response.json()
        except ValueError as e:
            raise TVDBError(f"TVDB returned invalid JSON ({path})") from e

    async def login(self, api_key: str) -> Any:
        """POST /login. Sent without an Authorization header."""
        return await self.request("/login", method="POST", json={"apikey": api_key}, timeout=self.login_timeout)

    async def filter_titles(self, kind: str, sort: str, token: str, year: int | None = None) -> Any:
        """GET /movies/filter or /series/filter, newest or highest scored first."""
        params = {
            "lang": settings.TVDB_LANGUAGE,
            "country": settings.TVDB_COUNTRY,
            "sort": sort,
            "sortType": "desc",
            "year": year,
        }
        return await self.request(f"/{kind}/filter", params=params, token=token)
