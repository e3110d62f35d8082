"""Ordered hotspot strategies; the orchestrator keeps the first non-empty result."""

from __future__ import annotations

import logging
import math
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Tuple

import requests
from pydantic import ValidationError

from geosignals.config.settings import DEFAULT_FETCH_TIMEOUT, RealOnlyPolicy, ScanSettings
from geosignals.intelligence.hotspot_ranker import MAX_HOTSPOTS, rank_hotspots
from geosignals.observability.provenance import derived_provenance
from geosignals.shared.models import (
    Briefing,
    GeoPoint,
    GeoSignalHotspot,
    GeoSignalPolygon,
    HotspotProperties,
    Provenance,
)
from geosignals.shared.numbers import pick_number, to_number
from geosignals.shared.utils import clamp

logger = logging.getLogger(__name__)

HOTSPOT_KINDS = {"MEETING_POINT", "HIGH_INTENT", "MOBILITY_NODE", "COMMERCIAL_CLUSTER", "CUSTOM_PIN"}

RADIAL_COUNT = 20
RADIAL_RADIUS_DEG = 0.02


@dataclass
class HotspotContext:
    briefing: Briefing
    policy: RealOnlyPolicy
    center: Optional[GeoPoint] = None
    municipio_id: Optional[str] = None
    polygons: List[GeoSignalPolygon] = field(default_factory=list)


class HotspotProvider:
    name = "base"

    def provide(self, context: HotspotContext) -> List[GeoSignalHotspot]:
        raise NotImplementedError


class RankedPolygonProvider(HotspotProvider):
    name = "ranked-polygons"

    def provide(self, context: HotspotContext) -> List[GeoSignalHotspot]:
        return rank_hotspots(context.polygons, context.briefing, context.policy)


class RemoteHotspotProvider(HotspotProvider):
    """Secondary backend returning precomputed hotspots as JSON."""

    name = "remote-backend"

    def __init__(self, url: str, timeout: float = DEFAULT_FETCH_TIMEOUT) -> None:
        self.url = url
        self.timeout = timeout

    def provide(self, context: HotspotContext) -> List[GeoSignalHotspot]:
        body = {
            "briefing": context.briefing.model_dump(by_alias=True, mode="json"),
            "center": [context.center.lat, context.center.lng] if context.center else None,
            "municipioId": context.municipio_id,
            "isRealOnly": context.policy.enabled,
        }
        try:
            response = requests.post(self.url, json=body, timeout=self.timeout)
        except requests.RequestException as exc:
            logger.warning("Hotspot backend call failed: %s", exc)
            return []
        if not response.ok:
            logger.warning("Hotspot backend returned HTTP %s", response.status_code)
            return []
        try:
            payload = response.json()
        except ValueError:
            logger.warning("Hotspot backend returned a non-JSON payload")
            return []
        return normalize_remote_hotspots(extract_hotspot_items(payload), context.policy)


class RadialHotspotProvider(HotspotProvider):
    """Evenly spaced points on a ring around the center. Never real data."""

    name = "radial-fallback"

    def __init__(self, count: int = RADIAL_COUNT, radius_deg: float = RADIAL_RADIUS_DEG) -> None:
        self.count = count
        self.radius_deg = radius_deg

    def provide(self, context: HotspotContext) -> List[GeoSignalHotspot]:
        if context.policy.enabled or context.center is None:
            return []
        hotspots: List[GeoSignalHotspot] = []
        for i in range(self.count):
            angle = (i / self.count) * math.pi * 2
            hotspot_id = f"radial-{i + 1}"
            hotspots.append(
                GeoSignalHotspot(
                    id=hotspot_id,
                    point=GeoPoint(
                        lat=context.center.lat + math.cos(angle) * self.radius_deg,
                        lng=context.center.lng + math.sin(angle) * self.radius_deg,
                    ),
                    properties=HotspotProperties(
                        id=hotspot_id,
                        kind="CUSTOM_PIN",
                        rank=i + 1,
                        name=f"Ponto radial {i + 1}",
                        score=max(1, 85 - i * 2),
                    ),
                    provenance=derived_provenance(
                        "radial-placement",
                        notes="Posicionamento matemático ao redor do centro; sem dados de origem.",
                    ),
                )
            )
        return hotspots


def build_hotspot_providers(
    policy: RealOnlyPolicy, settings: ScanSettings
) -> List[HotspotProvider]:
    """Strategy list for a scan; the derived strategies are left out under real-only."""
    providers: List[HotspotProvider] = []
    if policy.allows_derived:
        providers.append(RankedPolygonProvider())
    if settings.hotspots_url:
        providers.append(RemoteHotspotProvider(settings.hotspots_url, timeout=settings.fetch_timeout))
    if policy.allows_derived:
        providers.append(RadialHotspotProvider())
    return providers


def extract_hotspot_items(payload: Any) -> List[Dict[str, Any]]:
    if isinstance(payload, list):
        items = payload
    elif isinstance(payload, dict) and isinstance(payload.get("hotspots"), list):
        items = payload["hotspots"]
    elif (
        isinstance(payload, dict)
        and isinstance(payload.get("data"), dict)
        and isinstance(payload["data"].get("hotspots"), list)
    ):
        items = payload["data"]["hotspots"]
    else:
        return []
    return [item for item in items if isinstance(item, dict)]


def _item_point(item: Dict[str, Any]) -> Optional[GeoPoint]:
    source = item.get("point") if isinstance(item.get("point"), dict) else item
    lat = to_number(source.get("lat"))
    lng = to_number(source.get("lng"))
    if lat is None or lng is None:
        return None
    return GeoPoint(lat=lat, lng=lng)


def _item_provenance(item: Dict[str, Any]) -> Optional[Provenance]:
    raw = item.get("provenance")
    if not isinstance(raw, dict):
        return None
    try:
        return Provenance.model_validate(raw)
    except ValidationError:
        return None


def normalize_remote_hotspots(
    items: List[Dict[str, Any]], policy: RealOnlyPolicy
) -> List[GeoSignalHotspot]:
    """Validate backend records, drop non-REAL ones under real-only, re-rank densely."""
    candidates: List[Tuple[float, int, Dict[str, Any], GeoPoint, Provenance]] = []
    for index, item in enumerate(items):
        point = _item_point(item)
        if point is None:
            continue
        provenance = _item_provenance(item)
        if policy.enabled:
            if provenance is None or provenance.label != "REAL":
                continue
        elif provenance is None:
            provenance = derived_provenance("remote-unlabelled", source="HOTSPOTS_BACKEND")
        order = to_number(item.get("rank"))
        candidates.append((order if order is not None else math.inf, index, item, point, provenance))

    candidates.sort(key=lambda entry: (entry[0], entry[1]))
    hotspots: List[GeoSignalHotspot] = []
    for rank, (_, index, item, point, provenance) in enumerate(candidates[:MAX_HOTSPOTS], start=1):
        props = item.get("properties") if isinstance(item.get("properties"), dict) else item
        raw_score = to_number(props.get("score"))
        audience = pick_number(props, ["targetAudienceEstimate", "audience_total"])
        kind = props.get("kind") if props.get("kind") in HOTSPOT_KINDS else "COMMERCIAL_CLUSTER"
        hotspot_id = str(item.get("id") or f"remote-{index + 1}")
        hotspots.append(
            GeoSignalHotspot(
                id=hotspot_id,
                point=point,
                properties=HotspotProperties(
                    id=hotspot_id,
                    kind=kind,
                    rank=rank,
                    name=str(props["name"]) if props.get("name") is not None else None,
                    score=int(clamp(round(raw_score), 1, 100)) if raw_score is not None else None,
                    target_audience_estimate=int(round(audience)) if audience is not None else None,
                ),
                provenance=provenance,
            )
        )
    return hotspots
