from __future__ import annotations

import logging
from typing import Any, Dict, Optional

import requests

from geosignals.config.settings import DEFAULT_FETCH_TIMEOUT, USER_AGENT

logger = logging.getLogger(__name__)


def is_feature_collection(payload: Any) -> bool:
    return (
        isinstance(payload, dict)
        and payload.get("type") == "FeatureCollection"
        and isinstance(payload.get("features"), list)
    )


class IbgeGeometryClient:
    """Fetches IBGE boundary and census-sector FeatureCollections.

    Every failure (network, non-2xx, malformed payload) is logged and returned
    as None so the caller can treat the layer as absent.
    """

    def __init__(self, base_url: str, timeout: float = DEFAULT_FETCH_TIMEOUT) -> None:
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout

    def fetch_states(self) -> Optional[Dict[str, Any]]:
        return self._get_collection("/api/ibge/admin", {"level": "state"}, "states")

    def fetch_municipalities(self) -> Optional[Dict[str, Any]]:
        return self._get_collection("/api/ibge/admin", {"level": "municipio"}, "municipalities")

    def fetch_sectors(self, municipio_id: Optional[str]) -> Optional[Dict[str, Any]]:
        if not municipio_id:
            return None
        return self._get_collection(
            "/api/ibge/sectors",
            {"municipioId": municipio_id, "format": "geojson"},
            f"sectors {municipio_id}",
        )

    def _get_collection(
        self, path: str, params: Dict[str, str], label: str
    ) -> Optional[Dict[str, Any]]:
        url = f"{self.base_url}{path}"
        try:
            response = requests.get(
                url,
                params=params,
                headers={"User-Agent": USER_AGENT},
                timeout=self.timeout,
            )
        except requests.RequestException as exc:
            logger.warning("[IBGE] %s fetch failed: %s", label, exc)
            return None
        if not response.ok:
            logger.warning("[IBGE] %s unavailable: HTTP %s", label, response.status_code)
            return None
        try:
            payload = response.json()
        except ValueError:
            logger.warning("[IBGE] %s returned a non-JSON payload", label)
            return None
        if not is_feature_collection(payload):
            logger.warning("[IBGE] %s payload is not a FeatureCollection", label)
            return None
        return payload
