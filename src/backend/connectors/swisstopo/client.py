from __future__ import annotations

import asyncio
import http.client
import json
import logging
from typing import Any
from urllib.error import HTTPError, URLError
from urllib.parse import urlencode
from urllib.request import Request, urlopen

from common.rules_engine.context import GeocodeResult

from .config import SwisstopoConfig, get_swisstopo_config

logger = logging.getLogger(__name__)


class SwisstopoGeocoder:
    """Address lookup against the api3.geo.admin.ch SearchServer.

    Best effort: every failure is logged and reported as "no result".
    """

    def __init__(self, config: SwisstopoConfig | None = None):
        self._config = config or get_swisstopo_config()

    async def geocode(
        self,
        street: str,
        house_number: str,
        postal_code: str,
        city: str,
    ) -> GeocodeResult | None:
        return await asyncio.to_thread(self.geocode_sync, street, house_number, postal_code, city)

    def geocode_sync(
        self,
        street: str,
        house_number: str,
        postal_code: str,
        city: str,
    ) -> GeocodeResult | None:
        search_text = f"{street} {house_number}, {postal_code} {city}".strip()
        url = build_search_url(self._config.search_url, search_text)
        req = Request(url, method="GET")
        req.add_header("Accept", "application/json")
        try:
            with urlopen(req, timeout=self._config.timeout_seconds) as resp:
                payload = json.loads(resp.read().decode("utf-8"))
        except HTTPError as exc:
            logger.warning("Swisstopo geocoding failed (HTTP %s) for '%s'", exc.code, search_text)
            return None
        except (URLError, OSError, ValueError, http.client.HTTPException) as exc:
            logger.warning("Swisstopo geocoding failed for '%s': %s", search_text, exc)
            return None
        return parse_search_response(payload)


def build_search_url(search_url: str, search_text: str) -> str:
    query = urlencode(
        {
            "searchText": search_text,
            "type": "locations",
            "origins": "address",
            "limit": "1",
            "sr": "4326",
        }
    )
    return f"{search_url}?{query}"


def parse_search_response(payload: Any) -> GeocodeResult | None:
    if not isinstance(payload, dict):
        return None
    results = payload.get("results")
    if not isinstance(results, list) or not results:
        return None
    attrs = results[0].get("attrs") if isinstance(results[0], dict) else None
    if not isinstance(attrs, dict):
        return None
    try:
        lat = float(attrs["lat"])
        lng = float(attrs["lon"])
    except (KeyError, TypeError, ValueError):
        return None
    return GeocodeResult(lat=lat, lng=lng, label=str(attrs.get("label") or ""))
