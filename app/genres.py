"""Genre unification across the movie and series taxonomies.

The functions here are pure: every table they consult is passed in as a
:class:`~app.genre_tables.GenreTables` value, so the merge behaviour can be
exercised independently from the table contents.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Iterable, Sequence

from .genre_tables import GenreTables
from .models import POOLS, PoolType, RawGenre, UnifiedGenre

logger = logging.getLogger(__name__)

_STRIPPED_CHARACTERS = (" ", "-", "&")


def normalize_genre_name(name: str | None) -> str:
    """Return the canonical comparison key for a genre label."""

    value = (name or "").lower()
    for character in _STRIPPED_CHARACTERS:
        value = value.replace(character, "")
    value = value.replace("fiction", "fi")
    return value.replace("scifi", "fi")


def are_genres_similar(first: str, second: str, tables: GenreTables) -> bool:
    """Decide whether two differently labelled genres denote one concept."""

    left = normalize_genre_name(first)
    right = normalize_genre_name(second)
    if left == right:
        return True
    if not left or not right:
        return False
    if tables.is_excluded(left, right):
        return False
    if left in right or right in left:
        return True
    raw_left = (first or "").strip().lower()
    raw_right = (second or "").strip().lower()
    return tables.is_synonym(left, right) or tables.is_synonym(raw_left, raw_right)


def pick_emoji(key: str, tables: GenreTables) -> str:
    """Return the emoji of the longest keyword contained in ``key``."""

    best = ""
    for keyword in tables.emoji_keywords:
        if keyword in key and len(keyword) > len(best):
            best = keyword
    if not best:
        return tables.default_emoji
    return tables.emoji_keywords[best]


@dataclass
class _Draft:
    key: str
    display_name: str
    emoji: str
    source_ids: dict[str, list[int]] = field(
        default_factory=lambda: {pool: [] for pool in POOLS}
    )
    pool_ids: dict[str, list[int]] = field(
        default_factory=lambda: {pool: [] for pool in POOLS}
    )

    def absorb(self, pool: PoolType, genre_id: int) -> None:
        if genre_id not in self.source_ids[pool]:
            self.source_ids[pool].append(genre_id)
        if genre_id not in self.pool_ids[pool]:
            self.pool_ids[pool].append(genre_id)

    def freeze(self) -> UnifiedGenre:
        return UnifiedGenre(
            key=self.key,
            display_name=self.display_name,
            emoji=self.emoji,
            movie_pool_ids=tuple(self.pool_ids["movie"]),
            series_pool_ids=tuple(self.pool_ids["series"]),
            movie_source_ids=tuple(self.source_ids["movie"]),
            series_source_ids=tuple(self.source_ids["series"]),
        )


def _merge_pool(
    drafts: list[_Draft],
    genres: Iterable[RawGenre],
    pool: PoolType,
    tables: GenreTables,
) -> None:
    for genre in genres:
        match = next(
            (
                draft
                for draft in drafts
                if are_genres_similar(genre.name, draft.display_name, tables)
            ),
            None,
        )
        if match is None:
            key = normalize_genre_name(genre.name)
            match = _Draft(
                key=key, display_name=genre.name, emoji=pick_emoji(key, tables)
            )
            drafts.append(match)
        elif pool == "series":
            # Series labels are the broader vendor label (e.g. "War & Politics").
            match.display_name = genre.name
        match.absorb(pool, genre.id)


def _apply_fallbacks(
    drafts: list[_Draft],
    available: dict[str, set[int]],
    tables: GenreTables,
) -> None:
    for draft in drafts:
        for pool in POOLS:
            if draft.pool_ids[pool] or not available[pool]:
                continue
            stand_ins = [
                genre_id
                for genre_id in tables.fallbacks_for(pool, draft.key)
                if genre_id in available[pool]
            ]
            if not stand_ins:
                default_id = tables.default_id_for(pool)
                if default_id is not None and default_id in available[pool]:
                    stand_ins = [default_id]
                else:
                    # Any ID keeps the entry queryable on this pool.
                    stand_ins = [min(available[pool])]
            draft.pool_ids[pool].extend(stand_ins)


def build_unified_genres(
    movie_genres: Sequence[RawGenre],
    series_genres: Sequence[RawGenre],
    tables: GenreTables,
) -> list[UnifiedGenre]:
    """Merge both pool taxonomies into one sorted list of unified genres."""

    drafts: list[_Draft] = []
    _merge_pool(drafts, movie_genres, "movie", tables)
    _merge_pool(drafts, series_genres, "series", tables)
    available = {
        "movie": {genre.id for genre in movie_genres},
        "series": {genre.id for genre in series_genres},
    }
    _apply_fallbacks(drafts, available, tables)

    unified = sorted(
        (draft.freeze() for draft in drafts),
        key=lambda genre: genre.display_name.casefold(),
    )
    violations = check_pool_coverage(unified, movie_genres, series_genres)
    for violation in violations:
        logger.warning("Unified genre integrity violation: %s", violation)
    return unified


def check_pool_coverage(
    unified: Sequence[UnifiedGenre],
    movie_genres: Sequence[RawGenre],
    series_genres: Sequence[RawGenre],
) -> list[str]:
    """Return human readable violations of the ownership invariants."""

    violations: list[str] = []
    keys = [genre.key for genre in unified]
    duplicates = sorted({key for key in keys if keys.count(key) > 1})
    if duplicates:
        violations.append(f"duplicate keys: {', '.join(duplicates)}")

    inputs = {"movie": movie_genres, "series": series_genres}
    for pool in POOLS:
        expected = {genre.id for genre in inputs[pool]}
        owners: dict[int, int] = {}
        for genre in unified:
            for genre_id in genre.source_ids(pool):
                owners[genre_id] = owners.get(genre_id, 0) + 1
        missing = expected - owners.keys()
        if missing:
            violations.append(f"{pool} ids without owner: {sorted(missing)}")
        shared = sorted(genre_id for genre_id, count in owners.items() if count > 1)
        if shared:
            violations.append(f"{pool} ids owned more than once: {shared}")
        unknown = {
            genre_id for genre in unified for genre_id in genre.pool_ids(pool)
        } - expected
        if unknown:
            violations.append(f"{pool} ids not in taxonomy: {sorted(unknown)}")
        if expected:
            empty = [genre.key for genre in unified if not genre.pool_ids(pool)]
            if empty:
                violations.append(f"{pool} side empty for: {', '.join(empty)}")
    return violations


def unified_genres_to_pool_ids(
    keys: Sequence[str],
    unified: Sequence[UnifiedGenre],
    pool: PoolType,
) -> list[int]:
    """Translate selected unified keys into de-duplicated pool IDs."""

    by_key = {genre.key: genre for genre in unified}
    ids: list[int] = []
    for key in keys:
        genre = by_key.get(key)
        if genre is None:
            continue
        for genre_id in genre.pool_ids(pool):
            if genre_id not in ids:
                ids.append(genre_id)
    return ids


def matches_unified_genres(
    item_genre_ids: Iterable[int],
    keys: Sequence[str],
    unified: Sequence[UnifiedGenre],
    pool: PoolType,
) -> bool:
    """Return whether an item carries any genre of the selected keys."""

    if not keys:
        return True
    required = set(unified_genres_to_pool_ids(keys, unified, pool))
    return any(genre_id in required for genre_id in item_genre_ids)
