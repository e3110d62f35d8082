from __future__ import annotations

from typing import List, Tuple

from geosignals.config.settings import RealOnlyPolicy
from geosignals.geo.geometry import ring_centroid
from geosignals.intelligence.weighting import briefing_weight
from geosignals.observability.provenance import derived_provenance
from geosignals.shared.models import (
    Briefing,
    GeoPoint,
    GeoSignalHotspot,
    GeoSignalPolygon,
    HotspotProperties,
)
from geosignals.shared.utils import build_seed, clamp, seeded_jitter


MAX_HOTSPOTS = 20
BEHAVIOR_JITTER_MIN = 0.85
BEHAVIOR_JITTER_MAX = 1.06


def behavior_seed(polygon_id: str, briefing: Briefing) -> str:
    return build_seed("behavior", polygon_id, briefing.product_description, briefing.objective)


def ranking_score(polygon: GeoSignalPolygon, briefing: Briefing) -> float:
    props = polygon.properties
    if props.target_audience_estimate is not None:
        base = float(props.target_audience_estimate)
    elif props.population is not None:
        base = float(props.population)
    else:
        base = 0.0
    behavior = seeded_jitter(
        behavior_seed(props.id, briefing), BEHAVIOR_JITTER_MIN, BEHAVIOR_JITTER_MAX
    )
    return base * briefing_weight(briefing) * behavior


def normalize_score(value: float, top: float) -> int:
    if top <= 0:
        return 1
    return int(clamp(round(value / top * 100), 1, 100))


def rank_hotspots(
    polygons: List[GeoSignalPolygon],
    briefing: Briefing,
    policy: RealOnlyPolicy,
    limit: int = MAX_HOTSPOTS,
) -> List[GeoSignalHotspot]:
    """Rank polygons by weighted audience and emit the top ones as point hotspots.

    Ranking is a derived computation, so nothing is emitted under real-only.
    """
    if policy.enabled or not polygons:
        return []

    scored: List[Tuple[float, GeoSignalPolygon, GeoPoint]] = []
    for polygon in polygons:
        point = ring_centroid(polygon.geometry)
        if point is None:
            continue
        scored.append((ranking_score(polygon, briefing), polygon, point))

    # sorted() is stable, so ties keep polygon insertion order.
    ranked = sorted(scored, key=lambda item: item[0], reverse=True)[: max(0, limit)]
    if not ranked:
        return []
    top = ranked[0][0]

    hotspots: List[GeoSignalHotspot] = []
    for rank, (value, polygon, point) in enumerate(ranked, start=1):
        hotspot_id = f"hotspot-{polygon.properties.id}"
        hotspots.append(
            GeoSignalHotspot(
                id=hotspot_id,
                point=point,
                properties=HotspotProperties(
                    id=hotspot_id,
                    kind="HIGH_INTENT",
                    rank=rank,
                    name=polygon.properties.name or polygon.properties.id,
                    score=normalize_score(value, top),
                    target_audience_estimate=polygon.properties.target_audience_estimate,
                ),
                provenance=derived_provenance(
                    "weighted-audience-ranking",
                    notes=f"Ranked from polygon {polygon.properties.id}.",
                ),
            )
        )
    return hotspots
