"""
Core constants used across the application. Keep these simple and documented.
"""

from typing import Final

# Home rows
HOME_SECTION_LIMIT: Final[int] = 24
NEW_AND_POPULAR_TITLE: Final[str] = "New and Popular"
TOP_PICKS_TITLE: Final[str] = "Top picks for you"

# How many TVDB candidates the home rows ask for (per new/popular list)
TVDB_HOME_CANDIDATE_LIMIT: Final[int] = 80
TVDB_DEFAULT_CANDIDATE_LIMIT: Final[int] = 60

# Recency windows, in calendar months
NEW_WINDOW_MONTHS: Final[int] = 2
POPULAR_WINDOW_MONTHS: Final[int] = 6

# Jellyfin query sizes
LIBRARY_ITEMS_LIMIT: Final[int] = 1000
WATCHED_ITEMS_LIMIT: Final[int] = 200

# Genre taste: weight = max(TASTE_MIN_WEIGHT, TASTE_MAX_WEIGHT - index // TASTE_DECAY_STEP)
TASTE_MAX_WEIGHT: Final[int] = 12
TASTE_MIN_WEIGHT: Final[int] = 1
TASTE_DECAY_STEP: Final[int] = 20
TOP_PICKS_RATING_MULTIPLIER: Final[float] = 2.0
