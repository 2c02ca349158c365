"""Cached access to the raw and unified genre taxonomies."""

from __future__ import annotations

import asyncio
import logging
from datetime import datetime, timedelta, timezone
from typing import Callable

from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from ..db_models import GenreListRecord
from ..errors import ServiceError
from ..genre_tables import GenreTables
from ..genres import build_unified_genres
from ..models import POOLS, PoolType, RawGenre, UnifiedGenre
from .tmdb import TMDBProxy

logger = logging.getLogger(__name__)

# How long a stale list is served before another refetch is attempted.
STALE_RETRY = timedelta(minutes=5)


def _utcnow() -> datetime:
    return datetime.now(timezone.utc).replace(tzinfo=None)


class GenreCatalog:
    """Fetch both genre lists, persist them and memoise the unified set."""

    def __init__(
        self,
        proxy: TMDBProxy,
        session_factory: async_sessionmaker[AsyncSession],
        tables: GenreTables,
        *,
        cache_seconds: int = 86_400,
        clock: Callable[[], datetime] = _utcnow,
    ):
        self._proxy = proxy
        self._session_factory = session_factory
        self._tables = tables
        self._cache_ttl = timedelta(seconds=cache_seconds)
        self._clock = clock
        self._lock = asyncio.Lock()
        self._unified: list[UnifiedGenre] | None = None
        self._valid_until: datetime | None = None

    async def unified_genres(self) -> list[UnifiedGenre]:
        """Return the unified genre list, rebuilding it when a raw list expired."""

        async with self._lock:
            now = self._clock()
            if (
                self._unified is not None
                and self._valid_until is not None
                and now < self._valid_until
            ):
                return self._unified

            raw: dict[str, list[RawGenre]] = {}
            valid_until: datetime | None = None
            for pool in POOLS:
                genres, expires_at = await self._load_pool(pool, now)
                raw[pool] = genres
                if valid_until is None or expires_at < valid_until:
                    valid_until = expires_at

            self._unified = build_unified_genres(raw["movie"], raw["series"], self._tables)
            self._valid_until = valid_until
            logger.info(
                "Unified %d movie and %d series genres into %d entries",
                len(raw["movie"]),
                len(raw["series"]),
                len(self._unified),
            )
            return self._unified

    async def raw_genres(self, pool: PoolType) -> list[RawGenre]:
        """Return one pool's raw list, from the cache when it is still fresh."""

        genres, _ = await self._load_pool(pool, self._clock())
        return genres

    async def _load_pool(
        self, pool: PoolType, now: datetime
    ) -> tuple[list[RawGenre], datetime]:
        async with self._session_factory() as session:
            record = await session.get(GenreListRecord, pool)
            if record is not None and record.is_fresh(now):
                return _parse_payload(record.payload), record.expires_at

            try:
                genres = await self._proxy.fetch_genres(pool)
            except ServiceError as exc:
                if record is None:
                    raise
                logger.warning(
                    "Serving stale %s genres fetched at %s: %s",
                    pool,
                    record.fetched_at.isoformat(),
                    exc,
                )
                return _parse_payload(record.payload), now + STALE_RETRY

            expires_at = now + self._cache_ttl
            payload = [genre.model_dump() for genre in genres]
            if record is None:
                session.add(
                    GenreListRecord(
                        pool=pool,
                        payload=payload,
                        fetched_at=now,
                        expires_at=expires_at,
                    )
                )
            else:
                record.payload = payload
                record.fetched_at = now
                record.expires_at = expires_at
            await session.commit()
            return genres, expires_at


def _parse_payload(payload: object) -> list[RawGenre]:
    if not isinstance(payload, list):
        return []
    return [RawGenre.model_validate(entry) for entry in payload]
