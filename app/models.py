"""Pydantic models describing genres, preferences and media payloads."""

from __future__ import annotations

from datetime import date
from typing import Any, ClassVar, Literal

from pydantic import AliasChoices, BaseModel, ConfigDict, Field, field_validator
from pydantic.alias_generators import to_camel

PoolType = Literal["movie", "series"]
ContentChoice = Literal["movie", "series", "all"]

POOLS: tuple[PoolType, ...] = ("movie", "series")
RECENCY_BUCKETS: tuple[str, ...] = (
    "brand-new",
    "very-recent",
    "recent",
    "contemporary",
    "any",
)
DATE_FIELDS: dict[str, str] = {
    "movie": "primary_release_date",
    "series": "first_air_date",
}


class CamelModel(BaseModel):
    """Base model accepting snake_case or camelCase and emitting camelCase."""

    model_config = ConfigDict(
        alias_generator=to_camel, populate_by_name=True, frozen=True
    )

    def to_payload(self) -> dict[str, Any]:
        return self.model_dump(mode="json", by_alias=True)


class RawGenre(BaseModel):
    """A vendor genre as listed for one pool."""

    id: int
    name: str


class GenreList(BaseModel):
    genres: list[RawGenre] = Field(default_factory=list)


class UnifiedGenre(CamelModel):
    """A cross-pool genre concept.

    ``movie_pool_ids``/``series_pool_ids`` are the IDs used for querying,
    fallback stand-ins included. ``movie_source_ids``/``series_source_ids``
    are the raw IDs this entry owns.
    """

    key: str
    display_name: str
    emoji: str
    movie_pool_ids: tuple[int, ...] = ()
    series_pool_ids: tuple[int, ...] = ()
    movie_source_ids: tuple[int, ...] = ()
    series_source_ids: tuple[int, ...] = ()

    def pool_ids(self, pool: PoolType) -> tuple[int, ...]:
        return self.movie_pool_ids if pool == "movie" else self.series_pool_ids

    def source_ids(self, pool: PoolType) -> tuple[int, ...]:
        return self.movie_source_ids if pool == "movie" else self.series_source_ids


class UserPreferences(CamelModel):
    """Preferences collected by the wizard; immutable once discovery starts."""

    region: str = Field(default="US", pattern=r"^[A-Za-z]{2}$")
    genre_keys: tuple[str, ...] = Field(
        default=(),
        validation_alias=AliasChoices("genre_keys", "genreKeys", "genres"),
    )
    recency: str = "any"

    @field_validator("region")
    @classmethod
    def _upper_region(cls, value: str) -> str:
        return value.upper()

    @field_validator("genre_keys", mode="before")
    @classmethod
    def _clean_genre_keys(cls, value: object) -> object:
        if value is None:
            return ()
        if isinstance(value, str):
            value = value.split(",")
        if isinstance(value, (list, tuple)):
            cleaned: list[str] = []
            for entry in value:
                key = str(entry).strip().lower()
                if key and key not in cleaned:
                    cleaned.append(key)
            return tuple(cleaned)
        return value

    @field_validator("recency", mode="before")
    @classmethod
    def _normalise_recency(cls, value: object) -> str:
        text = str(value or "").strip().lower()
        return text if text in RECENCY_BUCKETS else "any"

    @property
    def surprise_me(self) -> bool:
        """No genre selected: broaden to every genre."""

        return not self.genre_keys


class DiscoveryParams(CamelModel):
    """Pool-specific discovery query derived from preferences."""

    pool: PoolType
    pool_genre_ids: tuple[int, ...] = ()
    date_from: date
    date_to: date
    sort_order: str = "popularity.desc"
    region: str
    watch_provider_ids: tuple[int, ...] | None = None
    monetization_types: tuple[str, ...] = ("flatrate", "rent", "buy")

    def to_query(self) -> dict[str, str]:
        """Return the vendor query parameters for the discover endpoint."""

        date_field = DATE_FIELDS[self.pool]
        query: dict[str, str] = {}
        if self.pool_genre_ids:
            query["with_genres"] = "|".join(str(i) for i in self.pool_genre_ids)
        query[f"{date_field}.gte"] = self.date_from.isoformat()
        query[f"{date_field}.lte"] = self.date_to.isoformat()
        query["sort_by"] = self.sort_order
        query["watch_region"] = self.region
        if self.watch_provider_ids:
            query["with_watch_providers"] = "|".join(
                str(i) for i in self.watch_provider_ids
            )
            query["with_watch_monetization_types"] = "|".join(self.monetization_types)
        return query


class MediaItem(CamelModel):
    """Normalised movie or series record."""

    id: str
    source_id: int
    title: str | None = None
    pool_type: PoolType
    overview: str | None = None
    release_date: str | None = None
    poster_path: str | None = None
    backdrop_path: str | None = None
    rating: float | None = None
    vote_count: int | None = None
    popularity: float | None = None
    genre_ids: tuple[int, ...] = ()
    language: str | None = None
    adult: bool | None = None
    runtime: int | None = None
    episode_runtimes: tuple[int, ...] | None = None
    season_count: int | None = None
    episode_count: int | None = None

    POOL_SPECIFIC_FIELDS: ClassVar[tuple[str, ...]] = (
        "adult",
        "runtime",
        "episodeRuntimes",
        "seasonCount",
        "episodeCount",
    )

    def to_payload(self) -> dict[str, Any]:
        payload = super().to_payload()
        for field in self.POOL_SPECIFIC_FIELDS:
            if payload.get(field) is None:
                payload.pop(field, None)
        return payload


class PagedResults(CamelModel):
    results: tuple[MediaItem, ...] = ()
    page: int | None = None
    total_pages: int | None = None
    total_results: int | None = None

    def to_payload(self) -> dict[str, Any]:
        return {
            "results": [item.to_payload() for item in self.results],
            "page": self.page,
            "totalPages": self.total_pages,
            "totalResults": self.total_results,
        }


class RecommendationRequest(UserPreferences):
    """Body of the recommendation endpoint."""

    platform: str = "all"
    content_type: ContentChoice | None = None

    @field_validator("platform", mode="before")
    @classmethod
    def _normalise_platform(cls, value: object) -> str:
        return str(value or "all").strip().lower() or "all"

    def to_preferences(self) -> UserPreferences:
        return UserPreferences(
            region=self.region, genre_keys=self.genre_keys, recency=self.recency
        )


class Recommendations(CamelModel):
    content_type: ContentChoice
    results: tuple[MediaItem, ...] = ()
    movie_count: int = 0
    series_count: int = 0
    includes_rental_content: bool = False
    surprise_me: bool = False
    preferences: UserPreferences

    def to_payload(self) -> dict[str, Any]:
        return {
            "contentType": self.content_type,
            "results": [item.to_payload() for item in self.results],
            "movieCount": self.movie_count,
            "seriesCount": self.series_count,
            "includesRentalContent": self.includes_rental_content,
            "surpriseMe": self.surprise_me,
            "preferences": self.preferences.to_payload(),
        }
