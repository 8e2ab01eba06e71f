from collections.abc import Iterable

from homeshelf.core.constants import HOME_SECTION_LIMIT, NEW_AND_POPULAR_TITLE, TOP_PICKS_TITLE
from homeshelf.models.library import LibraryItem
from homeshelf.models.sections import HomeSection

EXCLUDED_COLLECTION_TYPES = frozenset({"playlists", "livetv", "boxsets", "channels", "folders"})


def view_sort_key(view: LibraryItem) -> tuple[int, str]:
    """Movies, then TV (not anime), then anything named anime, then the rest; ties by name."""
    name = (view.name or "").lower()
    is_anime = "anime" in name
    if view.collection_type == "movies":
        rank = 0
    elif view.collection_type == "tvshows" and not is_anime:
        rank = 1
    elif is_anime:
        rank = 2
    else:
        rank = 3
    return rank, (view.name or "").casefold()


def latest_items_limit(collection_type: str | None, enable_overflow: bool) -> int:
    if enable_overflow:
        return 30 if collection_type == "music" else 16
    if collection_type == "tvshows":
        return 5
    if collection_type == "music":
        return 9
    return 8


def plan_home_sections(
    user_views: Iterable[LibraryItem],
    excluded_view_ids: Iterable[str] = (),
    enable_overflow: bool = True,
) -> list[HomeSection]:
    """
    Order the "recently added" rows and slot the discovery rows in front of the first
    movie library.
    """
    excluded = set(excluded_view_ids)
    sections: list[HomeSection] = []
    inserted_discovery = False

    for view in sorted(user_views, key=view_sort_key):
        if not view.id or view.id in excluded:
            continue
        if view.collection_type in EXCLUDED_COLLECTION_TYPES:
            continue

        if not inserted_discovery and view.collection_type == "movies":
            sections.append(HomeSection(kind="new_and_popular", title=NEW_AND_POPULAR_TITLE, limit=HOME_SECTION_LIMIT))
            sections.append(HomeSection(kind="top_picks", title=TOP_PICKS_TITLE, limit=HOME_SECTION_LIMIT))
            inserted_discovery = True

        sections.append(
            HomeSection(
                kind="latest",
                title=f"Recently Added in {view.name or ''}".rstrip(),
                view_id=view.id,
                collection_type=view.collection_type,
                limit=latest_items_limit(view.collection_type, enable_overflow),
            )
        )

    return sections
