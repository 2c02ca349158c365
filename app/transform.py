"""Mapping of raw vendor payloads into the internal media shape."""

from __future__ import annotations

import re
from typing import Any, Mapping

from .errors import UpstreamError
from .models import MediaItem, PagedResults, PoolType
from .utils import build_image_url, coerce_int

DEFAULT_IMAGE_BASE_URL = "https://image.tmdb.org/t/p"
POSTER_SIZE = "w500"
BACKDROP_SIZE = "original"

_MOVIE_DETAIL_RE = re.compile(r"^movie/\d+$")
_TV_DETAIL_RE = re.compile(r"^tv/\d+$")


def pool_from_media_type(media_type: object) -> PoolType:
    """Trending items carry ``media_type``; anything but ``movie`` is a series."""

    return "movie" if media_type == "movie" else "series"


def _int_list(values: object) -> tuple[int, ...]:
    if not isinstance(values, (list, tuple)):
        return ()
    return tuple(
        number for number in (coerce_int(value) for value in values) if number is not None
    )


def transform_media_item(
    item: Mapping[str, Any],
    pool: PoolType,
    *,
    image_base_url: str = DEFAULT_IMAGE_BASE_URL,
) -> MediaItem:
    """Map a single vendor movie or tv object to a :class:`MediaItem`."""

    source_id = coerce_int(item.get("id"))
    if source_id is None:
        raise UpstreamError("TMDB returned an item without an id", status=502)
    is_movie = pool == "movie"
    episode_runtimes = item.get("episode_run_time")
    return MediaItem(
        id=f"tmdb-{pool}-{source_id}",
        source_id=source_id,
        title=item.get("title") if is_movie else item.get("name"),
        pool_type=pool,
        overview=item.get("overview"),
        release_date=item.get("release_date") if is_movie else item.get("first_air_date"),
        poster_path=build_image_url(item.get("poster_path"), image_base_url, POSTER_SIZE),
        backdrop_path=build_image_url(
            item.get("backdrop_path"), image_base_url, BACKDROP_SIZE
        ),
        rating=item.get("vote_average"),
        vote_count=item.get("vote_count"),
        popularity=item.get("popularity"),
        genre_ids=_int_list(item.get("genre_ids")),
        language=item.get("original_language"),
        adult=item.get("adult") if is_movie else None,
        runtime=item.get("runtime") if is_movie else None,
        episode_runtimes=(
            _int_list(episode_runtimes)
            if not is_movie and episode_runtimes is not None
            else None
        ),
        season_count=None if is_movie else item.get("number_of_seasons"),
        episode_count=None if is_movie else item.get("number_of_episodes"),
    )


def _paged(
    data: Mapping[str, Any],
    items: list[MediaItem],
) -> dict[str, Any]:
    return PagedResults(
        results=tuple(items),
        page=data.get("page"),
        total_pages=data.get("total_pages"),
        total_results=data.get("total_results"),
    ).to_payload()


def media_entries(data: Mapping[str, Any]) -> list[Mapping[str, Any]]:
    """Return the usable entries of a result list; id-less entries are skipped."""

    results = data.get("results") or []
    return [
        entry
        for entry in results
        if isinstance(entry, Mapping) and coerce_int(entry.get("id")) is not None
    ]


def transform_search_results(
    data: Mapping[str, Any], *, image_base_url: str = DEFAULT_IMAGE_BASE_URL
) -> dict[str, Any]:
    """Keep movies then series from a multi-search; people are dropped."""

    results = media_entries(data)
    movies = [
        transform_media_item(entry, "movie", image_base_url=image_base_url)
        for entry in results
        if entry.get("media_type") == "movie"
    ]
    series = [
        transform_media_item(entry, "series", image_base_url=image_base_url)
        for entry in results
        if entry.get("media_type") == "tv"
    ]
    return _paged(data, movies + series)


def transform_trending_results(
    data: Mapping[str, Any], *, image_base_url: str = DEFAULT_IMAGE_BASE_URL
) -> dict[str, Any]:
    items = [
        transform_media_item(
            entry,
            pool_from_media_type(entry.get("media_type")),
            image_base_url=image_base_url,
        )
        for entry in media_entries(data)
    ]
    return _paged(data, items)


def transform_discover_results(
    data: Mapping[str, Any],
    pool: PoolType,
    *,
    image_base_url: str = DEFAULT_IMAGE_BASE_URL,
) -> dict[str, Any]:
    items = [
        transform_media_item(entry, pool, image_base_url=image_base_url)
        for entry in media_entries(data)
    ]
    return _paged(data, items)


def transform_genres(data: Mapping[str, Any]) -> dict[str, Any]:
    return {"genres": list(data.get("genres") or [])}


def transform_response(
    path: str,
    data: Any,
    *,
    image_base_url: str = DEFAULT_IMAGE_BASE_URL,
) -> Any:
    """Return the payload shape callers expect for a vendor endpoint path."""

    if not isinstance(data, Mapping):
        return data
    path = path.strip("/")

    if "search/multi" in path:
        return transform_search_results(data, image_base_url=image_base_url)
    if "trending/" in path:
        return transform_trending_results(data, image_base_url=image_base_url)
    if "discover/movie" in path:
        return transform_discover_results(data, "movie", image_base_url=image_base_url)
    if "discover/tv" in path:
        return transform_discover_results(data, "series", image_base_url=image_base_url)
    if "genre/" in path:
        return transform_genres(data)
    # Detail payloads only on exact matches; sub-resources pass through.
    if _MOVIE_DETAIL_RE.match(path):
        return transform_media_item(data, "movie", image_base_url=image_base_url).to_payload()
    if _TV_DETAIL_RE.match(path):
        return transform_media_item(data, "series", image_base_url=image_base_url).to_payload()
    return data
