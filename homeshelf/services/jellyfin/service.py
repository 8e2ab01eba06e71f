from typing import Any

from loguru import logger

from homeshelf.core.constants import LIBRARY_ITEMS_LIMIT, WATCHED_ITEMS_LIMIT
from homeshelf.models.library import LibraryItem
from homeshelf.services.jellyfin.client import JellyfinClient

LIBRARY_FIELDS = "Genres,CommunityRating,ProductionYear,UserData,Path,PremiereDate,DateCreated"
WATCHED_FIELDS = "Genres,DatePlayed,UserData"


class JellyfinService:
    """Read-only access to a user's Jellyfin library."""

    def __init__(self, client: JellyfinClient | None = None):
        self.client = client or JellyfinClient()

    async def close(self):
        await self.client.close()

    async def get_items(self, user_id: str, **filters: Any) -> list[LibraryItem]:
        """
        Query ``/Users/{user_id}/Items``.

        ``filters`` are passed through as Jellyfin query parameters (Recursive,
        IncludeItemTypes, Filters, SortBy, SortOrder, Fields, Limit, ...). None values
        are dropped.
        """
        params = {key: value for key, value in filters.items() if value is not None}
        data = await self.client.get(f"/Users/{user_id}/Items", params=params)
        raw_items = (data or {}).get("Items") or []
        return [LibraryItem.model_validate(item) for item in raw_items if isinstance(item, dict)]

    async def get_library_items(self, user_id: str) -> list[LibraryItem]:
        """Movies and series, most recently added first."""
        items = await self.get_items(
            user_id,
            Recursive=True,
            IncludeItemTypes="Movie,Series",
            Limit=LIBRARY_ITEMS_LIMIT,
            Fields=LIBRARY_FIELDS,
            SortBy="DateCreated",
            SortOrder="Descending",
            EnableTotalRecordCount=False,
        )
        logger.debug(f"Fetched {len(items)} library items for user {user_id}")
        return items

    async def get_watched_items(self, user_id: str) -> list[LibraryItem]:
        """Played movies and series, most recently played first."""
        return await self.get_items(
            user_id,
            Recursive=True,
            IncludeItemTypes="Movie,Series",
            Filters="IsPlayed",
            Limit=WATCHED_ITEMS_LIMIT,
            Fields=WATCHED_FIELDS,
            SortBy="DatePlayed",
            SortOrder="Descending",
            EnableTotalRecordCount=False,
        )

    async def get_user_views(self, user_id: str) -> list[LibraryItem]:
        data = await self.client.get(f"/Users/{user_id}/Views")
        return [LibraryItem.model_validate(item) for item in (data or {}).get("Items") or [] if isinstance(item, dict)]

    async def get_user(self, user_id: str) -> dict[str, Any]:
        return await self.client.get(f"/Users/{user_id}") or {}


_jellyfin_service: JellyfinService | None = None


def get_jellyfin_service() -> JellyfinService:
    global _jellyfin_service
    if _jellyfin_service is None:
        _jellyfin_service = JellyfinService()
    return _jellyfin_service
