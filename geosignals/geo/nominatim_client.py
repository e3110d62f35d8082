"""City geocoding through OSM Nominatim."""

from __future__ import annotations

import logging
from typing import Optional

import requests

from geosignals.config.settings import DEFAULT_FETCH_TIMEOUT, DEFAULT_NOMINATIM_URL, USER_AGENT
from geosignals.shared.models import GeoPoint

logger = logging.getLogger(__name__)


def geocode_city(
    query: str,
    base_url: str = DEFAULT_NOMINATIM_URL,
    timeout: float = DEFAULT_FETCH_TIMEOUT,
) -> Optional[GeoPoint]:
    if not query or not query.strip():
        return None

    params = {
        "format": "jsonv2",
        "q": query.strip(),
        "limit": "1",
        "countrycodes": "br",
    }
    try:
        response = requests.get(
            base_url, params=params, headers={"User-Agent": USER_AGENT}, timeout=timeout
        )
    except requests.RequestException as exc:
        logger.warning("Geocoding %r failed: %s", query, exc)
        return None
    if not response.ok:
        logger.warning("Geocoding %r returned HTTP %s", query, response.status_code)
        return None

    try:
        payload = response.json()
    except ValueError:
        return None
    if not isinstance(payload, list) or not payload:
        logger.info("Geocoding %r found no match", query)
        return None

    item = payload[0]
    try:
        lat = float(item.get("lat"))
        lng = float(item.get("lon"))
    except (AttributeError, TypeError, ValueError):
        return None
    return GeoPoint(lat=lat, lng=lng)
