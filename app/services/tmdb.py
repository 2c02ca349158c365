"""Authenticated proxy for The Movie Database (TMDB) API."""

from __future__ import annotations

import logging
from typing import Any

import httpx

from ..config import Settings
from ..errors import (
    ConfigurationError,
    UpstreamError,
    UpstreamNotFound,
    UpstreamRateLimited,
    UpstreamUnavailable,
)
from ..models import DiscoveryParams, MediaItem, PoolType, RawGenre
from ..transform import media_entries, transform_media_item, transform_response
from ..utils import media_id_from_path

logger = logging.getLogger(__name__)

JSON_CONTENT_TYPE = "application/json;charset=utf-8"

GENRE_ENDPOINTS: dict[str, str] = {
    "movie": "genre/movie/list",
    "series": "genre/tv/list",
}
DISCOVER_ENDPOINTS: dict[str, str] = {
    "movie": "discover/movie",
    "series": "discover/tv",
}


def _missing_resource_payload(path: str) -> dict[str, Any] | None:
    """Return the empty body for sub-resources whose absence is expected."""

    media_id = media_id_from_path(path)
    if "/videos" in path:
        return {"id": media_id, "results": []}
    if "/watch/providers" in path:
        return {"id": media_id, "results": {}}
    return None


def _upstream_message(response: httpx.Response) -> str | None:
    """Prefer TMDB's own ``status_message`` over the raw response text."""

    try:
        data = response.json()
    except ValueError:
        data = None
    if isinstance(data, dict) and isinstance(data.get("status_message"), str):
        return data["status_message"] or None
    return response.text.strip() or None


class TMDBProxy:
    """Forward requests to TMDB with the server-side bearer credential."""

    def __init__(self, settings: Settings, http_client: httpx.AsyncClient):
        self._settings = settings
        self._client = http_client

    @property
    def image_base_url(self) -> str:
        return self._settings.image_base_url

    def _headers(self) -> dict[str, str]:
        token = self._settings.tmdb_read_access_token
        if not token:
            raise ConfigurationError()
        return {
            "Authorization": f"Bearer {token}",
            "Content-Type": JSON_CONTENT_TYPE,
        }

    def _url(self, path: str, query_string: str = "") -> str:
        url = f"{self._settings.tmdb_base_url}/{path.strip('/')}"
        if query_string:
            url = f"{url}?{query_string}"
        return url

    async def request_json(
        self,
        path: str,
        *,
        query_string: str = "",
        params: dict[str, str] | None = None,
        method: str = "GET",
        body: Any = None,
    ) -> Any:
        """Perform one upstream call and return its decoded JSON body.

        The query string is appended verbatim so callers see exactly the
        vendor semantics they asked for.
        """

        headers = self._headers()
        path = path.strip("/")
        try:
            response = await self._client.request(
                method,
                self._url(path, query_string),
                params=params,
                headers=headers,
                json=body,
            )
        except httpx.HTTPError as exc:
            logger.warning("TMDB request to %s failed: %s", path, exc)
            raise UpstreamUnavailable(str(exc) or exc.__class__.__name__) from exc

        if response.status_code >= 400:
            return self._handle_failure(path, response)
        try:
            return response.json()
        except ValueError as exc:
            logger.warning("TMDB returned invalid JSON for %s", path)
            raise UpstreamError(
                "Invalid JSON in upstream response", status=502
            ) from exc

    def _handle_failure(self, path: str, response: httpx.Response) -> Any:
        status = response.status_code
        message = _upstream_message(response)
        if status == 404:
            empty = _missing_resource_payload(path)
            if empty is not None:
                logger.debug("TMDB has no %s; returning empty payload", path)
                return empty
            raise UpstreamNotFound(message)
        logger.warning("TMDB %s responded with %s: %s", path, status, response.text)
        if status == 429:
            raise UpstreamRateLimited(message)
        if 500 <= status < 600:
            raise UpstreamUnavailable(message, status=status)
        raise UpstreamError(message, status=status)

    async def forward(
        self,
        path: str,
        query_string: str = "",
        *,
        method: str = "GET",
        body: Any = None,
    ) -> Any:
        """Proxy a caller request; GET bodies are normalised on the way back."""

        data = await self.request_json(
            path, query_string=query_string, method=method, body=body
        )
        if method.upper() != "GET":
            return data
        return transform_response(path, data, image_base_url=self.image_base_url)

    async def fetch_genres(self, pool: PoolType) -> list[RawGenre]:
        """Return the raw genre list of one pool."""

        data = await self.request_json(
            GENRE_ENDPOINTS[pool], params={"language": "en-US"}
        )
        genres = data.get("genres") if isinstance(data, dict) else None
        return [RawGenre.model_validate(entry) for entry in genres or []]

    async def discover(self, params: DiscoveryParams) -> list[MediaItem]:
        """Run one discovery query and return its first page of items."""

        data = await self.request_json(
            DISCOVER_ENDPOINTS[params.pool], params=params.to_query()
        )
        if not isinstance(data, dict):
            return []
        return [
            transform_media_item(entry, params.pool, image_base_url=self.image_base_url)
            for entry in media_entries(data)
        ]
