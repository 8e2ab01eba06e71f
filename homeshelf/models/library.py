from typing import Any

from pydantic import BaseModel, ConfigDict, Field, field_validator


class UserItemData(BaseModel):
    """Per-user play state Jellyfin attaches to an item."""

    model_config = ConfigDict(extra="allow", populate_by_name=True)

    played: bool = Field(default=False, alias="Played")

    @field_validator("played", mode="before")
    @classmethod
    def _null_played(cls, value: Any) -> Any:
        return False if value is None else value


class LibraryItem(BaseModel):
    """
    Subset of Jellyfin's BaseItemDto used by the home rows.

    Field aliases follow Jellyfin's PascalCase JSON. Unknown fields are kept so the
    item can be handed back to card renderers untouched.
    """

    model_config = ConfigDict(extra="allow", populate_by_name=True)

    id: str | None = Field(default=None, alias="Id")
    name: str | None = Field(default=None, alias="Name")
    type: str | None = Field(default=None, alias="Type")
    collection_type: str | None = Field(default=None, alias="CollectionType")
    genres: list[str] = Field(default_factory=list, alias="Genres")
    community_rating: float | None = Field(default=None, alias="CommunityRating")
    production_year: int | None = Field(default=None, alias="ProductionYear")
    premiere_date: str | None = Field(default=None, alias="PremiereDate")
    date_created: str | None = Field(default=None, alias="DateCreated")
    user_data: UserItemData | None = Field(default=None, alias="UserData")
    is_recent_new_badge: bool | None = Field(default=None, alias="IsRecentNewBadge")

    @field_validator("genres", mode="before")
    @classmethod
    def _null_genres(cls, value: Any) -> Any:
        return [] if value is None else value

    @property
    def is_played(self) -> bool:
        return bool(self.user_data and self.user_data.played)

    @property
    def rating(self) -> float:
        return self.community_rating or 0.0

    def to_api(self) -> dict[str, Any]:
        """Serialize back to Jellyfin's field names."""
        return self.model_dump(by_alias=True, exclude_none=True)
