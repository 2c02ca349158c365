"""Entry point for the FastAPI-powered WatchNext backend."""

from __future__ import annotations

import logging
import math
import re
from contextlib import AsyncExitStack, asynccontextmanager
from typing import Any

import httpx
from fastapi import FastAPI, HTTPException, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from pydantic import ValidationError

from .config import settings
from .database import Database
from .errors import GeocodingError, InputValidationError, ServiceError
from .models import RecommendationRequest
from .providers import platforms_for_region
from .services.genre_catalog import GenreCatalog
from .services.geocoding import ReverseGeocoder
from .services.recommendations import RecommendationService
from .services.tmdb import TMDBProxy

logging.basicConfig(level=logging.INFO)
logger = logging.getLogger(__name__)

app: FastAPI

_REGION_RE = re.compile(r"^[A-Za-z]{2}$")


@asynccontextmanager
async def lifespan(fastapi_app: FastAPI):
    exit_stack = AsyncExitStack()
    tmdb_http_client = await exit_stack.enter_async_context(
        httpx.AsyncClient(timeout=httpx.Timeout(15.0, connect=5.0))
    )
    geocoder_http_client = await exit_stack.enter_async_context(
        httpx.AsyncClient(timeout=httpx.Timeout(10.0, connect=5.0))
    )
    database = Database(settings.database_url)
    await database.create_all()

    tables = settings.genre_tables
    logger.info("Loaded genre tables version %s", tables.version)
    proxy = TMDBProxy(settings, tmdb_http_client)
    catalog = GenreCatalog(
        proxy,
        database.session_factory,
        tables,
        cache_seconds=settings.genre_cache_seconds,
    )

    fastapi_app.state.database = database
    fastapi_app.state.tmdb_proxy = proxy
    fastapi_app.state.genre_catalog = catalog
    fastapi_app.state.recommendation_service = RecommendationService(
        proxy, catalog, tables
    )
    fastapi_app.state.geocoder = ReverseGeocoder(settings, geocoder_http_client)

    try:
        yield
    finally:  # pragma: no cover - teardown path exercised at runtime
        await database.dispose()
        await exit_stack.aclose()


def create_app() -> FastAPI:
    fastapi_app = FastAPI(
        title=settings.app_name,
        description="Unified movie and series discovery backed by TMDB",
        version="1.0.0",
        lifespan=lifespan,
    )

    fastapi_app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_methods=["GET", "POST"],
        allow_headers=["*"],
    )

    register_routes(fastapi_app)
    return fastapi_app


def _service(fastapi_app: FastAPI, name: str) -> Any:
    service = getattr(fastapi_app.state, name, None)
    if service is None:
        raise RuntimeError(f"{name} not initialised")
    return service


def _validate_coordinate(value: Any, name: str, limit: int) -> float:
    if (
        isinstance(value, bool)
        or not isinstance(value, (int, float))
        or not math.isfinite(value)
    ):
        raise InputValidationError(f"Invalid {name}: must be a number")
    if value < -limit or value > limit:
        raise InputValidationError(
            f"Invalid {name}: must be between -{limit} and {limit}"
        )
    return float(value)


async def _json_body(request: Request, *, required: bool = False) -> Any:
    raw = await request.body()
    if not raw:
        if required:
            raise InputValidationError("Invalid JSON in request body")
        return None
    try:
        return await request.json()
    except ValueError as exc:
        raise InputValidationError("Invalid JSON in request body") from exc


def register_routes(fastapi_app: FastAPI) -> None:
    @fastapi_app.exception_handler(ServiceError)
    async def service_error_handler(_: Request, exc: ServiceError) -> JSONResponse:
        return JSONResponse(exc.to_payload(), status_code=exc.status_code)

    @fastapi_app.get("/healthz")
    async def healthcheck() -> dict[str, str]:
        return {"status": "ok"}

    @fastapi_app.get("/api/tmdb/{path:path}")
    async def tmdb_proxy_get(path: str, request: Request) -> JSONResponse:
        proxy: TMDBProxy = _service(fastapi_app, "tmdb_proxy")
        data = await proxy.forward(path, request.url.query)
        return JSONResponse(data)

    @fastapi_app.post("/api/tmdb/{path:path}")
    async def tmdb_proxy_post(path: str, request: Request) -> JSONResponse:
        proxy: TMDBProxy = _service(fastapi_app, "tmdb_proxy")
        body = await _json_body(request)
        data = await proxy.forward(path, request.url.query, method="POST", body=body)
        return JSONResponse(data)

    @fastapi_app.post("/api/geocode")
    async def geocode(request: Request) -> JSONResponse:
        geocoder: ReverseGeocoder = _service(fastapi_app, "geocoder")
        body = await _json_body(request, required=True)
        if not isinstance(body, dict):
            body = {}
        latitude = _validate_coordinate(body.get("latitude"), "latitude", 90)
        longitude = _validate_coordinate(body.get("longitude"), "longitude", 180)
        try:
            country_code = await geocoder.country_code(latitude, longitude)
        except Exception as exc:
            logger.exception("Geocoding failed")
            raise GeocodingError() from exc
        return JSONResponse({"countryCode": country_code})

    @fastapi_app.api_route(
        "/api/geocode", methods=["GET", "PUT", "PATCH", "DELETE"], include_in_schema=False
    )
    async def geocode_method_not_allowed() -> JSONResponse:
        return JSONResponse({"error": "Method not allowed"}, status_code=405)

    @fastapi_app.get("/api/genres")
    async def list_genres() -> dict[str, Any]:
        catalog: GenreCatalog = _service(fastapi_app, "genre_catalog")
        unified = await catalog.unified_genres()
        return {"genres": [genre.to_payload() for genre in unified]}

    @fastapi_app.get("/api/platforms")
    async def list_platforms(region: str | None = None) -> dict[str, Any]:
        region = (region or settings.default_country).strip()
        if not _REGION_RE.match(region):
            raise InputValidationError(
                "Invalid region: must be a two-letter country code"
            )
        region = region.upper()
        return {"region": region, "platforms": platforms_for_region(region)}

    @fastapi_app.post("/api/recommendations")
    async def recommendations(request: Request) -> JSONResponse:
        service: RecommendationService = _service(
            fastapi_app, "recommendation_service"
        )
        body = await _json_body(request)
        try:
            payload = RecommendationRequest.model_validate(body or {})
        except ValidationError as exc:
            raise HTTPException(
                status_code=400, detail=exc.errors(include_url=False)
            ) from exc
        result = await service.recommend(payload)
        return JSONResponse(result.to_payload())


app = create_app()


if __name__ == "__main__":  # pragma: no cover - manual execution
    import uvicorn

    uvicorn.run(
        "app.main:app",
        host=settings.server_host,
        port=settings.server_port,
        reload=settings.environment == "development",
    )
