from __future__ import annotations

import logging
from datetime import datetime, timezone
from typing import List, Optional

from pydantic import BaseModel, Field

from geosignals.shared.models import GeoSignalsEnvelope, Provenance

logger = logging.getLogger(__name__)

SOURCE_IBGE = "IBGE"
SOURCE_INTERNAL = "INTERNAL"


def _now_iso() -> str:
    return datetime.now(timezone.utc).isoformat()


def real_provenance(
    source: str,
    method: Optional[str] = None,
    source_url: Optional[str] = None,
    notes: Optional[str] = None,
) -> Provenance:
    return Provenance(
        label="REAL",
        source=source,
        method=method,
        source_url=source_url,
        notes=notes,
        fetched_at=_now_iso(),
    )


def derived_provenance(
    method: str,
    source: str = SOURCE_INTERNAL,
    notes: Optional[str] = None,
) -> Provenance:
    return Provenance(label="DERIVED", source=source, method=method, notes=notes)


def unavailable_provenance(source: str, notes: Optional[str] = None) -> Provenance:
    return Provenance(label="UNAVAILABLE", source=source, notes=notes)


class AuditResult(BaseModel):
    passed: bool
    violations: List[str] = Field(default_factory=list)


def audit_envelope(envelope: GeoSignalsEnvelope) -> AuditResult:
    """Check an envelope against the real-only and ranking invariants."""
    violations: List[str] = []

    if envelope.real_only:
        for hotspot in envelope.hotspots:
            if hotspot.provenance.label != "REAL":
                violations.append(
                    f"Hotspot {hotspot.id} is {hotspot.provenance.label} but mode is REAL_ONLY."
                )
        if envelope.flows:
            violations.append(f"{len(envelope.flows)} flow(s) emitted in REAL_ONLY mode.")
        for polygon in envelope.polygons:
            if polygon.properties.target_audience_estimate is not None:
                violations.append(
                    f"Polygon {polygon.properties.id} carries a derived audience estimate in REAL_ONLY mode."
                )

    ranks = [hotspot.properties.rank for hotspot in envelope.hotspots]
    if ranks != list(range(1, len(ranks) + 1)):
        violations.append(f"Hotspot ranks are not a dense 1..N sequence: {ranks}")

    polygon_ids = [polygon.properties.id for polygon in envelope.polygons]
    if len(set(polygon_ids)) != len(polygon_ids):
        violations.append("Polygon ids are not unique within the scan.")

    passed = not violations
    if not passed:
        logger.error("Envelope audit failed: %s", violations)
    return AuditResult(passed=passed, violations=violations)
