"""Reverse geocoding of browser coordinates to a country code."""

from __future__ import annotations

import logging

import httpx

from ..config import Settings

logger = logging.getLogger(__name__)


class ReverseGeocoder:
    """Resolve coordinates to an ISO country code through Nominatim.

    Only the country code leaves this class; coordinates are never logged or
    returned to the caller.
    """

    def __init__(self, settings: Settings, http_client: httpx.AsyncClient):
        self._settings = settings
        self._client = http_client

    @property
    def default_country(self) -> str:
        return self._settings.default_country

    async def country_code(self, latitude: float, longitude: float) -> str:
        """Return the upper-cased country code, or the default on any failure."""

        url = f"{str(self._settings.nominatim_url).rstrip('/')}/reverse"
        params = {
            "format": "json",
            "lat": str(latitude),
            "lon": str(longitude),
            "zoom": "3",
            "addressdetails": "1",
        }
        headers = {"User-Agent": self._settings.geocoder_user_agent}
        try:
            response = await self._client.get(url, params=params, headers=headers)
        except httpx.HTTPError as exc:
            logger.warning("Reverse geocoding request failed: %s", exc)
            return self.default_country
        if response.status_code >= 400:
            logger.warning("Reverse geocoding responded with %s", response.status_code)
            return self.default_country
        try:
            data = response.json()
        except ValueError:
            logger.warning("Reverse geocoding returned invalid JSON")
            return self.default_country

        address = data.get("address") if isinstance(data, dict) else None
        code = address.get("country_code") if isinstance(address, dict) else None
        if not isinstance(code, str) or not code.strip():
            return self.default_country
        return code.strip().upper()
