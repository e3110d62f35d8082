from __future__ import annotations

from typing import Any, List, Optional, Sequence

from geosignals.shared.models import GeoJSONGeometry, GeoPoint

# Approximate bounding box of the Brazilian territory.
BR_BBOX = {
    "min_lat": -33.75,
    "max_lat": 5.27,
    "min_lng": -73.98,
    "max_lng": -28.84,
}

AREA_GEOMETRY_TYPES = {"Polygon", "MultiPolygon"}


def is_inside_brazil(lat: float, lng: float) -> bool:
    return (
        BR_BBOX["min_lat"] <= lat <= BR_BBOX["max_lat"]
        and BR_BBOX["min_lng"] <= lng <= BR_BBOX["max_lng"]
    )


def outer_ring(geometry: GeoJSONGeometry) -> List[Sequence[Any]]:
    """First ring of a Polygon, or of the first polygon of a MultiPolygon."""
    coords = geometry.coordinates
    try:
        if geometry.type == "Polygon":
            ring = coords[0]
        elif geometry.type == "MultiPolygon":
            ring = coords[0][0]
        else:
            return []
    except (IndexError, KeyError, TypeError):
        return []
    return list(ring) if isinstance(ring, (list, tuple)) else []


def ring_centroid(geometry: GeoJSONGeometry, fallback: Optional[GeoPoint] = None) -> Optional[GeoPoint]:
    """Arithmetic mean of the outer ring vertices (not area weighted).

    Good enough for labelling the small, compact polygons this engine handles.
    """
    ring = outer_ring(geometry)
    sum_lng = 0.0
    sum_lat = 0.0
    count = 0
    for vertex in ring:
        if not isinstance(vertex, (list, tuple)) or len(vertex) < 2:
            continue
        try:
            lng = float(vertex[0])
            lat = float(vertex[1])
        except (TypeError, ValueError):
            continue
        sum_lng += lng
        sum_lat += lat
        count += 1
    if count == 0:
        return fallback
    return GeoPoint(lat=sum_lat / count, lng=sum_lng / count)


def parse_area_geometry(raw: Any) -> Optional[GeoJSONGeometry]:
    if not isinstance(raw, dict):
        return None
    if raw.get("type") not in AREA_GEOMETRY_TYPES:
        return None
    coordinates = raw.get("coordinates")
    if not isinstance(coordinates, list) or not coordinates:
        return None
    return GeoJSONGeometry(type=raw["type"], coordinates=coordinates)
