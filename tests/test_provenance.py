import pytest
from pydantic import ValidationError

from geosignals.observability.provenance import (
    audit_envelope,
    derived_provenance,
    real_provenance,
    unavailable_provenance,
)
from geosignals.shared.models import (
    EnvelopeBriefing,
    GeoJSONGeometry,
    GeoPoint,
    GeoSignalFlow,
    GeoSignalHotspot,
    GeoSignalPolygon,
    GeoSignalsEnvelope,
    FlowProperties,
    HotspotProperties,
    PolygonProperties,
    Provenance,
)

SQUARE = GeoJSONGeometry(type="Polygon", coordinates=[[[0, 0], [1, 0], [1, 1], [0, 0]]])


def _polygon(polygon_id, audience=None):
    return GeoSignalPolygon(
        geometry=SQUARE,
        properties=PolygonProperties(
            id=polygon_id,
            kind="census-sector",
            admin_level="setor",
            target_audience_estimate=audience,
        ),
        provenance=real_provenance("IBGE"),
    )


def _hotspot(rank, provenance):
    return GeoSignalHotspot(
        id=f"h-{rank}",
        point=GeoPoint(lat=-23.5, lng=-46.6),
        properties=HotspotProperties(id=f"h-{rank}", kind="HIGH_INTENT", rank=rank),
        provenance=provenance,
    )


def _envelope(real_only, **kwargs):
    return GeoSignalsEnvelope(
        created_at="2026-01-01T00:00:00+00:00",
        real_only=real_only,
        briefing=EnvelopeBriefing(primary_city="São Paulo"),
        **kwargs,
    )


def test_real_provenance_requires_source():
    with pytest.raises(ValidationError):
        Provenance(label="REAL", source="  ")
    assert real_provenance("IBGE").fetched_at is not None
    assert derived_provenance("grid").source == "INTERNAL"
    assert unavailable_provenance("HOTSPOTS_BACKEND").label == "UNAVAILABLE"


def test_provenance_serializes_camel_case():
    payload = real_provenance("IBGE", source_url="http://ibge.local").model_dump(by_alias=True)
    assert payload["sourceUrl"] == "http://ibge.local"
    assert "fetchedAt" in payload


def test_clean_real_only_envelope_passes():
    envelope = _envelope(
        True,
        polygons=[_polygon("a"), _polygon("b")],
        hotspots=[_hotspot(1, real_provenance("PLACES"))],
    )
    result = audit_envelope(envelope)
    assert result.passed
    assert result.violations == []


def test_real_only_violations_are_reported():
    flow = GeoSignalFlow(
        geometry=GeoJSONGeometry(type="LineString", coordinates=[[0, 0], [1, 1]]),
        properties=FlowProperties(id="f", kind="STREET_FLOW", intensity=0.5),
        provenance=derived_provenance("grid"),
    )
    envelope = _envelope(
        True,
        polygons=[_polygon("a", audience=10)],
        hotspots=[_hotspot(1, derived_provenance("ranking"))],
        flows=[flow],
    )
    result = audit_envelope(envelope)
    assert not result.passed
    assert len(result.violations) == 3


def test_rank_gaps_and_duplicate_ids_fail_in_any_mode():
    envelope = _envelope(
        False,
        polygons=[_polygon("a"), _polygon("a")],
        hotspots=[_hotspot(1, derived_provenance("r")), _hotspot(3, derived_provenance("r"))],
    )
    result = audit_envelope(envelope)
    assert not result.passed
    assert len(result.violations) == 2


def test_envelope_payload_keys():
    payload = _envelope(False).to_payload()
    assert set(payload) == {
        "version",
        "createdAt",
        "realOnly",
        "briefing",
        "polygons",
        "hotspots",
        "flows",
        "timeseries168h",
        "warnings",
    }
    assert payload["briefing"]["primaryCity"] == "São Paulo"
