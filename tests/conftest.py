"""Shared fixtures and fakes for the test suite."""

import asyncio
from datetime import datetime, timedelta, timezone

import httpx
import pytest

from homeshelf.models.library import LibraryItem
from homeshelf.services.tvdb.auth import TVDBTokenBroker
from homeshelf.services.tvdb.client import TVDBClient
from homeshelf.services.tvdb.service import TVDBService


def days_ago(days: int) -> str:
    return (datetime.now(timezone.utc) - timedelta(days=days)).strftime("%Y-%m-%dT%H:%M:%S.0000000Z")


def make_item(item_id, name, item_type="Movie", **fields) -> LibraryItem:
    data = {"Id": str(item_id), "Name": name, "Type": item_type}
    data.update(fields)
    return LibraryItem.model_validate(data)


class FakeTVDB:
    """
    In-memory TheTVDB v4. Routes are keyed by (path, sort, year) and hold either a
    list of records or an int status code to fail with. ``delay`` adds latency to every
    request.
    """

    def __init__(self, token="tvdb-token"):
        self.token = token
        self.login_status = 200
        self.routes = {}
        self.calls = []
        self.delay = 0.0

    def set_titles(self, path, sort, year=None, records=None, status=None):
        self.routes[(path, sort, year)] = status if status is not None else (records or [])

    def login_count(self):
        return sum(1 for call in self.calls if call.url.path.endswith("/login"))

    def filter_count(self):
        return sum(1 for call in self.calls if call.url.path.endswith("/filter"))

    async def handler(self, request: httpx.Request) -> httpx.Response:
        self.calls.append(request)
        if self.delay:
            await asyncio.sleep(self.delay)
        path = request.url.path.removeprefix("/v4")

        if path == "/login":
            if self.login_status != 200:
                return httpx.Response(self.login_status, json={"status": "failure"})
            return httpx.Response(200, json={"status": "success", "data": {"token": self.token}})

        if request.headers.get("Authorization") != f"Bearer {self.token}":
            return httpx.Response(401, json={"status": "failure"})

        year = request.url.params.get("year")
        route = self.routes.get((path, request.url.params.get("sort"), int(year) if year else None), [])
        if isinstance(route, int):
            return httpx.Response(route, json={"status": "failure"})
        return httpx.Response(200, json={"status": "success", "data": route})

    def transport(self) -> httpx.MockTransport:
        return httpx.MockTransport(self.handler)


async def static_api_key() -> str:
    return "test-api-key"


def build_tvdb_service(fake: FakeTVDB, **kwargs) -> TVDBService:
    client = TVDBClient(base_url="https://tvdb.test/v4", transport=fake.transport())
    broker = TVDBTokenBroker(client, api_key_resolver=static_api_key)
    return TVDBService(client=client, token_broker=broker, **kwargs)


@pytest.fixture
def fake_tvdb():
    return FakeTVDB()
