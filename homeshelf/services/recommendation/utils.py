import re
from datetime import datetime, timedelta, timezone

from homeshelf.models.library import LibraryItem

_FRACTION = re.compile(r"\.(\d+)")


def parse_jellyfin_date(value: str | None) -> datetime | None:
    """
    Parse a Jellyfin timestamp such as ``2024-05-01T12:00:00.0000000Z``.

    Jellyfin writes seven fractional digits and other sources fewer; older
    ``fromisoformat`` only takes three or six, so the fraction is padded or cut to six.
    Naive values are taken as UTC.
    """
    if not value:
        return None
    text = _FRACTION.sub(lambda m: "." + m.group(1)[:6].ljust(6, "0"), value.strip())
    if text.endswith(("Z", "z")):
        text = text[:-1] + "+00:00"
    try:
        parsed = datetime.fromisoformat(text)
    except ValueError:
        return None
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed


def reference_date(item: LibraryItem) -> datetime | None:
    """Premiere date when known, else the date the item was added to the library."""
    return parse_jellyfin_date(item.premiere_date or item.date_created)


def months_ago(now: datetime, months: int) -> datetime:
    """
    Step back ``months`` calendar months.

    Days that do not exist in the target month roll over into the next one
    (March 31 minus one month is March 3 in a non-leap year).
    """
    total = now.year * 12 + (now.month - 1) - months
    year, month = divmod(total, 12)
    return now.replace(year=year, month=month + 1, day=1) + timedelta(days=now.day - 1)


def is_within_last_months(item: LibraryItem, months: int, now: datetime | None = None) -> bool:
    ref = reference_date(item)
    if ref is None:
        return False
    now = now or datetime.now(timezone.utc)
    return ref >= months_ago(now, months)


def sort_by_most_recent(items: list[LibraryItem]) -> list[LibraryItem]:
    def key(item: LibraryItem) -> float:
        ref = reference_date(item)
        return ref.timestamp() if ref else 0.0

    return sorted(items, key=key, reverse=True)


def sort_by_rating(items: list[LibraryItem]) -> list[LibraryItem]:
    return sorted(items, key=lambda item: item.rating, reverse=True)
