from __future__ import annotations

from typing import List, Optional, Tuple

from geosignals.config.settings import RealOnlyPolicy
from geosignals.intelligence.weighting import flow_weight
from geosignals.observability.provenance import derived_provenance
from geosignals.shared.models import (
    Briefing,
    FlowProperties,
    GeoJSONGeometry,
    GeoPoint,
    GeoSignalFlow,
)
from geosignals.shared.utils import clamp


DEFAULT_LINES_PER_AXIS = 6
DEFAULT_EXTENT_DEG = 0.06

# Repeating classification pattern: (class, base intensity, label).
FLOW_PATTERN: Tuple[Tuple[str, float, str], ...] = (
    ("ALTO", 0.9, "Fluxo alto"),
    ("MEDIO", 0.6, "Fluxo médio"),
    ("BAIXO", 0.3, "Fluxo baixo"),
)


def _offsets(count: int, extent: float) -> List[float]:
    if count == 1:
        return [0.0]
    step = extent / (count - 1)
    return [-extent / 2 + i * step for i in range(count)]


def synthesize_flows(
    center: Optional[GeoPoint],
    briefing: Briefing,
    policy: RealOnlyPolicy,
    lines_per_axis: int = DEFAULT_LINES_PER_AXIS,
    extent_deg: float = DEFAULT_EXTENT_DEG,
) -> List[GeoSignalFlow]:
    """Synthetic grid of street-flow segments around ``center``.

    Flows have no real data source, so real-only mode always yields nothing.
    """
    if policy.enabled or center is None or lines_per_axis <= 0:
        return []

    half = extent_deg / 2
    modifier = flow_weight(briefing)
    segments: List[Tuple[str, List[List[float]]]] = []
    for offset in _offsets(lines_per_axis, extent_deg):
        lat = center.lat + offset
        segments.append(("h", [[center.lng - half, lat], [center.lng + half, lat]]))
    for offset in _offsets(lines_per_axis, extent_deg):
        lng = center.lng + offset
        segments.append(("v", [[lng, center.lat - half], [lng, center.lat + half]]))

    flows: List[GeoSignalFlow] = []
    for index, (axis, coordinates) in enumerate(segments):
        flow_class, base, label = FLOW_PATTERN[index % len(FLOW_PATTERN)]
        intensity = round(clamp(base * modifier, 0.0, 1.0), 3)
        flows.append(
            GeoSignalFlow(
                geometry=GeoJSONGeometry(type="LineString", coordinates=coordinates),
                properties=FlowProperties(
                    id=f"flow-{axis}-{index + 1}",
                    kind="STREET_FLOW",
                    intensity=intensity,
                    label=label,
                ),
                provenance=derived_provenance(
                    "synthetic-grid",
                    notes=f"Classe {flow_class}; grade sintética para visualização.",
                ),
            )
        )
    return flows
