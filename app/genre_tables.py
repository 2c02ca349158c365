"""Versioned mapping tables driving genre unification."""

from __future__ import annotations

import json
from functools import lru_cache
from importlib import resources
from pathlib import Path
from typing import Literal

from pydantic import BaseModel, ConfigDict, Field, field_validator

BUNDLED_TABLES = "genre_tables.json"


class ContentTypeRule(BaseModel):
    """One rung of the default content-type ladder."""

    model_config = ConfigDict(frozen=True)

    keys: frozenset[str]
    content_type: Literal["movie", "series"]

    @field_validator("keys", mode="before")
    @classmethod
    def _lowercase_keys(cls, value: object) -> object:
        if isinstance(value, (list, tuple, set, frozenset)):
            return frozenset(str(key).strip().lower() for key in value)
        return value


class GenreTables(BaseModel):
    """Pure data consumed by the genre and discovery functions."""

    model_config = ConfigDict(frozen=True)

    version: str = "unversioned"
    exclusions: tuple[tuple[str, str], ...] = ()
    synonyms: tuple[tuple[str, str], ...] = ()
    series_fallbacks: dict[str, tuple[int, ...]] = Field(default_factory=dict)
    movie_fallbacks: dict[str, tuple[int, ...]] = Field(default_factory=dict)
    default_movie_id: int | None = 18
    default_series_id: int | None = 18
    emoji_keywords: dict[str, str] = Field(default_factory=dict)
    default_emoji: str = "🎬"
    content_type_ladder: tuple[ContentTypeRule, ...] = ()

    def is_excluded(self, first: str, second: str) -> bool:
        """Return whether two normalised names must never be merged."""

        pair = {first, second}
        return any(pair == {left, right} for left, right in self.exclusions)

    def is_synonym(self, first: str, second: str) -> bool:
        pair = {first, second}
        return any(pair == {left, right} for left, right in self.synonyms)

    def fallbacks_for(self, pool: str, key: str) -> tuple[int, ...]:
        """Return the stand-in IDs for ``key`` on the given pool side."""

        table = self.movie_fallbacks if pool == "movie" else self.series_fallbacks
        return table.get(key, ())

    def default_id_for(self, pool: str) -> int | None:
        return self.default_movie_id if pool == "movie" else self.default_series_id


def parse_genre_tables(payload: str | bytes) -> GenreTables:
    """Validate a JSON document into :class:`GenreTables`."""

    return GenreTables.model_validate(json.loads(payload))


@lru_cache
def load_genre_tables(path: str | None = None) -> GenreTables:
    """Load the tables from ``path`` or from the copy bundled with the package."""

    if path:
        return parse_genre_tables(Path(path).read_bytes())
    bundled = resources.files("app.data").joinpath(BUNDLED_TABLES)
    return parse_genre_tables(bundled.read_bytes())
