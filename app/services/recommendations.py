"""Recommendation assembly from user preferences."""

from __future__ import annotations

import asyncio
import logging
from datetime import date

from ..discovery import (
    build_discovery_params,
    choose_initial_content_type,
    merge_results,
    pools_for,
)
from ..genre_tables import GenreTables
from ..genres import matches_unified_genres
from ..models import MediaItem, RecommendationRequest, Recommendations, UnifiedGenre
from ..providers import includes_rental_content
from .genre_catalog import GenreCatalog
from .tmdb import TMDBProxy

logger = logging.getLogger(__name__)


class RecommendationService:
    """Turn a preference set into one merged list of movies and series."""

    def __init__(self, proxy: TMDBProxy, catalog: GenreCatalog, tables: GenreTables):
        self._proxy = proxy
        self._catalog = catalog
        self._tables = tables

    async def recommend(
        self, request: RecommendationRequest, *, today: date | None = None
    ) -> Recommendations:
        preferences = request.to_preferences()
        content_type = request.content_type or choose_initial_content_type(
            preferences.genre_keys, self._tables
        )

        unified: list[UnifiedGenre] = []
        if not preferences.surprise_me:
            unified = await self._catalog.unified_genres()

        pools = pools_for(content_type)
        params = [
            build_discovery_params(
                preferences, unified, pool, platform=request.platform, today=today
            )
            for pool in pools
        ]
        batches = await asyncio.gather(*(self._proxy.discover(entry) for entry in params))
        by_pool: dict[str, list[MediaItem]] = {}
        for entry, items in zip(params, batches):
            if entry.pool_genre_ids:
                items = [
                    item
                    for item in items
                    if matches_unified_genres(
                        item.genre_ids, preferences.genre_keys, unified, entry.pool
                    )
                ]
            by_pool[entry.pool] = items

        movies = by_pool.get("movie", [])
        series = by_pool.get("series", [])
        results = merge_results(movies, series, content_type)
        logger.debug(
            "Recommendations for %s: %d movies, %d series (%s)",
            preferences.region,
            len(movies),
            len(series),
            content_type,
        )
        return Recommendations(
            content_type=content_type,
            results=tuple(results),
            movie_count=len(movies),
            series_count=len(series),
            includes_rental_content=includes_rental_content(request.platform),
            surprise_me=preferences.surprise_me,
            preferences=preferences,
        )
