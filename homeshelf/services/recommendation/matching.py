import re
from collections.abc import Iterable

from homeshelf.models.library import LibraryItem
from homeshelf.models.tvdb import Candidate, RecordType

_PARENTHETICAL = re.compile(r"\([^)]*\)")
_NON_ALNUM = re.compile(r"[^a-z0-9]+")

_ITEM_TYPE_FOR_RECORD = {
    RecordType.MOVIE: "Movie",
    RecordType.SERIES: "Series",
}


def normalize_title(title: str | None) -> str:
    """
    Title key shared by library items and TVDB candidates.

    Lowercases, drops anything in parentheses (years, country tags), collapses every
    run of non-alphanumerics to one space and trims. "The Matrix (1999)" -> "the matrix".
    """
    text = (title or "").lower()
    text = _PARENTHETICAL.sub(" ", text)
    text = _NON_ALNUM.sub(" ", text)
    return text.strip()


def index_by_title(library_items: Iterable[LibraryItem]) -> dict[str, list[LibraryItem]]:
    index: dict[str, list[LibraryItem]] = {}
    for item in library_items:
        key = normalize_title(item.name)
        if not key:
            continue
        index.setdefault(key, []).append(item)
    return index


def pick_item_for_candidate(
    items: list[LibraryItem], candidate: Candidate, used_ids: set[str]
) -> LibraryItem | None:
    wanted_type = _ITEM_TYPE_FOR_RECORD[candidate.record_type]
    available = [item for item in items if item.type == wanted_type and not (item.id and item.id in used_ids)]
    if not available:
        return None

    if candidate.year:
        for item in available:
            if item.production_year == candidate.year:
                return item

    return available[0]


def match_candidates(library_items: list[LibraryItem], candidates: Iterable[Candidate]) -> list[LibraryItem]:
    """
    Map TVDB candidates onto library items by normalized title.

    Candidates are handled in order; each library item is claimed at most once per call.
    Candidates with nothing left to claim are skipped.
    """
    index = index_by_title(library_items)
    used_ids: set[str] = set()
    matched: list[LibraryItem] = []

    for candidate in candidates:
        key = normalize_title(candidate.title)
        if not key:
            continue

        item = pick_item_for_candidate(index.get(key, []), candidate, used_ids)
        if item is None:
            continue

        if item.id:
            used_ids.add(item.id)
        matched.append(item)

    return matched
