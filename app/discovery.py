"""Discovery query construction and default content-pool selection."""

from __future__ import annotations

from datetime import date
from typing import Iterable, Mapping, Sequence

from .genre_tables import GenreTables
from .genres import unified_genres_to_pool_ids
from .models import (
    ContentChoice,
    DiscoveryParams,
    MediaItem,
    PoolType,
    UnifiedGenre,
    UserPreferences,
)
from .providers import ALL_PLATFORMS, provider_ids_for_platform
from .utils import shift_months

EARLIEST_RELEASE = date(1900, 1, 1)

# Months to look back for each recency bucket; unknown buckets mean "any".
RECENCY_MONTHS: Mapping[str, int] = {
    "brand-new": 1,
    "very-recent": 3,
    "recent": 6,
    "contemporary": 24,
}


def choose_initial_content_type(
    genre_keys: Iterable[str], tables: GenreTables
) -> ContentChoice:
    """Pick the default pool filter for the selected genres.

    Some genres are so lopsided between pools that showing the other pool by
    default yields near-empty results. The ladder is evaluated top to bottom
    and the first rung with a selected key wins, regardless of how many
    genres are selected. The choice is only a default.
    """

    selected = {str(key).strip().lower() for key in genre_keys}
    if not selected:
        return "all"
    for rule in tables.content_type_ladder:
        if selected & rule.keys:
            return rule.content_type
    return "all"


def date_window(recency: str, today: date | None = None) -> tuple[date, date]:
    """Return the inclusive release-date window for a recency bucket."""

    end = today or date.today()
    months = RECENCY_MONTHS.get(recency)
    if months is None:
        return EARLIEST_RELEASE, end
    return shift_months(end, -months), end


def build_discovery_params(
    preferences: UserPreferences,
    unified: Sequence[UnifiedGenre],
    pool: PoolType,
    *,
    platform: str = ALL_PLATFORMS,
    today: date | None = None,
) -> DiscoveryParams:
    """Assemble one pool's discovery parameters from the user's preferences."""

    date_from, date_to = date_window(preferences.recency, today)
    genre_ids: list[int] = []
    if not preferences.surprise_me:
        genre_ids = unified_genres_to_pool_ids(preferences.genre_keys, unified, pool)

    provider_ids: tuple[int, ...] | None = None
    if platform and platform.lower() != ALL_PLATFORMS:
        provider_ids = provider_ids_for_platform(platform)

    return DiscoveryParams(
        pool=pool,
        pool_genre_ids=tuple(genre_ids),
        date_from=date_from,
        date_to=date_to,
        region=preferences.region,
        watch_provider_ids=provider_ids,
    )


def pools_for(content_type: ContentChoice) -> tuple[PoolType, ...]:
    """Return the pools that must be queried for a content-type filter."""

    if content_type == "movie":
        return ("movie",)
    if content_type == "series":
        return ("series",)
    return ("movie", "series")


def merge_results(
    movies: Sequence[MediaItem],
    series: Sequence[MediaItem],
    content_type: ContentChoice,
) -> list[MediaItem]:
    """Concatenate both pools (series first) keeping only the active pool(s)."""

    merged: list[MediaItem] = []
    if content_type != "movie":
        merged.extend(series)
    if content_type != "series":
        merged.extend(movies)
    return merged
