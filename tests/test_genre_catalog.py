"""Tests for the persisted genre catalog."""

from __future__ import annotations

import asyncio
from datetime import datetime, timedelta

import httpx
import pytest

from app.config import Settings
from app.database import Database
from app.errors import UpstreamUnavailable
from app.services.genre_catalog import GenreCatalog
from app.services.tmdb import TMDBProxy

from conftest import MOVIE_GENRES, SERIES_GENRES

START = datetime(2024, 6, 1, 12, 0, 0)


class Clock:
    def __init__(self, now: datetime) -> None:
        self.now = now

    def __call__(self) -> datetime:
        return self.now


class GenreUpstream:
    """Fake TMDB genre endpoints that can be switched into failure mode."""

    def __init__(self) -> None:
        self.calls: list[str] = []
        self.failing = False

    def __call__(self, request: httpx.Request) -> httpx.Response:
        self.calls.append(request.url.path)
        if self.failing:
            return httpx.Response(503, text="maintenance")
        source = MOVIE_GENRES if request.url.path.endswith("/movie/list") else SERIES_GENRES
        return httpx.Response(
            200,
            json={"genres": [{"id": genre_id, "name": name} for genre_id, name in source]},
        )


def _catalog(
    database: Database,
    http_client: httpx.AsyncClient,
    genre_tables,
    clock: Clock,
) -> GenreCatalog:
    settings = Settings(_env_file=None, TMDB_READ_ACCESS_TOKEN="token")
    proxy = TMDBProxy(settings, http_client)
    return GenreCatalog(
        proxy,
        database.session_factory,
        genre_tables,
        cache_seconds=3_600,
        clock=clock,
    )


def test_unified_genres_are_fetched_once_and_memoised(tmp_path, genre_tables) -> None:
    async def runner() -> None:
        database = Database(f"sqlite+aiosqlite:///{tmp_path / 'genres.db'}")
        await database.create_all()
        upstream = GenreUpstream()
        clock = Clock(START)

        async with httpx.AsyncClient(transport=httpx.MockTransport(upstream)) as client:
            catalog = _catalog(database, client, genre_tables, clock)
            first, second, third = await asyncio.gather(
                catalog.unified_genres(),
                catalog.unified_genres(),
                catalog.unified_genres(),
            )

        assert len(upstream.calls) == 2
        assert first is second is third
        assert "sciencefi" in {genre.key for genre in first}

        await database.dispose()

    asyncio.run(runner())


def test_cached_rows_survive_restart(tmp_path, genre_tables) -> None:
    async def runner() -> None:
        database = Database(f"sqlite+aiosqlite:///{tmp_path / 'restart.db'}")
        await database.create_all()
        upstream = GenreUpstream()
        clock = Clock(START)

        async with httpx.AsyncClient(transport=httpx.MockTransport(upstream)) as client:
            await _catalog(database, client, genre_tables, clock).unified_genres()
            clock.now = START + timedelta(minutes=30)
            fresh_catalog = _catalog(database, client, genre_tables, clock)
            series = await fresh_catalog.raw_genres("series")

        assert len(upstream.calls) == 2
        assert [genre.id for genre in series] == [genre_id for genre_id, _ in SERIES_GENRES]

        await database.dispose()

    asyncio.run(runner())


def test_expired_rows_are_refetched(tmp_path, genre_tables) -> None:
    async def runner() -> None:
        database = Database(f"sqlite+aiosqlite:///{tmp_path / 'expired.db'}")
        await database.create_all()
        upstream = GenreUpstream()
        clock = Clock(START)

        async with httpx.AsyncClient(transport=httpx.MockTransport(upstream)) as client:
            catalog = _catalog(database, client, genre_tables, clock)
            await catalog.unified_genres()
            clock.now = START + timedelta(hours=2)
            await catalog.unified_genres()

        assert len(upstream.calls) == 4

        await database.dispose()

    asyncio.run(runner())


def test_stale_rows_are_served_when_refetch_fails(
    tmp_path, genre_tables, caplog: pytest.LogCaptureFixture
) -> None:
    async def runner() -> None:
        database = Database(f"sqlite+aiosqlite:///{tmp_path / 'stale.db'}")
        await database.create_all()
        upstream = GenreUpstream()
        clock = Clock(START)

        async with httpx.AsyncClient(transport=httpx.MockTransport(upstream)) as client:
            catalog = _catalog(database, client, genre_tables, clock)
            original = await catalog.unified_genres()
            upstream.failing = True
            clock.now = START + timedelta(days=2)
            stale = await catalog.unified_genres()

        assert [genre.key for genre in stale] == [genre.key for genre in original]
        assert any("Serving stale" in record.getMessage() for record in caplog.records)

        await database.dispose()

    asyncio.run(runner())


def test_missing_rows_propagate_upstream_failure(tmp_path, genre_tables) -> None:
    async def runner() -> None:
        database = Database(f"sqlite+aiosqlite:///{tmp_path / 'empty.db'}")
        await database.create_all()
        upstream = GenreUpstream()
        upstream.failing = True

        async with httpx.AsyncClient(transport=httpx.MockTransport(upstream)) as client:
            catalog = _catalog(database, client, genre_tables, Clock(START))
            with pytest.raises(UpstreamUnavailable):
                await catalog.unified_genres()

        await database.dispose()

    asyncio.run(runner())
