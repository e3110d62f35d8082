from __future__ import annotations

from typing import Any, Dict, List, Literal, Optional

from pydantic import BaseModel, ConfigDict, Field, model_validator
from pydantic.alias_generators import to_camel


ProvenanceLabel = Literal["REAL", "DERIVED", "PARTIAL_REAL", "NOT_CONFIGURED", "UNAVAILABLE"]
PolygonKind = Literal[
    "administrative-state",
    "administrative-municipality",
    "census-sector",
    "custom",
]
AdminLevel = Literal["estado", "municipio", "setor", "custom"]
HotspotKind = Literal[
    "MEETING_POINT",
    "HIGH_INTENT",
    "MOBILITY_NODE",
    "COMMERCIAL_CLUSTER",
    "CUSTOM_PIN",
]
FlowKind = Literal["STREET_FLOW", "COMMUTE_FLOW", "FOOTFALL_FLOW"]
GeometryType = Literal["Polygon", "MultiPolygon", "LineString", "MultiLineString"]


class SignalModel(BaseModel):
    """Base for records serialized with camelCase keys."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class Provenance(SignalModel):
    label: ProvenanceLabel
    source: str = ""
    method: Optional[str] = None
    notes: Optional[str] = None
    source_url: Optional[str] = None
    fetched_at: Optional[str] = None

    @model_validator(mode="after")
    def _real_needs_source(self) -> "Provenance":
        if self.label == "REAL" and not self.source.strip():
            raise ValueError("REAL provenance requires a source identifier")
        return self


class GeoPoint(SignalModel):
    lat: float
    lng: float


class GeoJSONGeometry(SignalModel):
    type: GeometryType
    coordinates: Any


# ---------------------------------------------------------------------------
# Polygons
# ---------------------------------------------------------------------------


class PolygonProperties(SignalModel):
    id: str
    kind: PolygonKind
    admin_level: AdminLevel
    name: Optional[str] = None
    jurisdiction_code: Optional[str] = None
    population: Optional[float] = None
    income: Optional[float] = None
    target_audience_estimate: Optional[int] = None
    score: Optional[int] = Field(default=None, ge=1, le=100)


class GeoSignalPolygon(SignalModel):
    type: Literal["Feature"] = "Feature"
    geometry: GeoJSONGeometry
    properties: PolygonProperties
    provenance: Provenance


# ---------------------------------------------------------------------------
# Hotspots
# ---------------------------------------------------------------------------


class HotspotProperties(SignalModel):
    id: str
    kind: HotspotKind
    rank: int = Field(ge=1)
    name: Optional[str] = None
    score: Optional[int] = Field(default=None, ge=1, le=100)
    target_audience_estimate: Optional[int] = None
    note: Optional[str] = None


class GeoSignalHotspot(SignalModel):
    id: str
    point: GeoPoint
    properties: HotspotProperties
    provenance: Provenance


# ---------------------------------------------------------------------------
# Flows and timeseries
# ---------------------------------------------------------------------------


class FlowProperties(SignalModel):
    id: str
    kind: FlowKind
    intensity: float = Field(ge=0, le=1)
    label: Optional[str] = None


class GeoSignalFlow(SignalModel):
    type: Literal["Feature"] = "Feature"
    geometry: GeoJSONGeometry
    properties: FlowProperties
    provenance: Provenance


class Timeseries168h(SignalModel):
    metric: Literal["DIGITAL_INTENT", "FOOTFALL_ESTIMATE", "AD_ACTIVITY", "CUSTOM"]
    values: List[float] = Field(min_length=168, max_length=168)
    unit: Literal["INDEX_0_100", "COUNT", "RATE", "UNKNOWN"] = "UNKNOWN"
    timezone: str = "America/Sao_Paulo"
    provenance: Provenance


class ChoroplethBreak(SignalModel):
    min: float
    max: float
    color: str


# ---------------------------------------------------------------------------
# Briefing
# ---------------------------------------------------------------------------


class ConnectorConfig(SignalModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, extra="allow")

    connected: bool = False
    status: Optional[str] = None
    notes: Optional[str] = None


class DataSourcesConfig(SignalModel):
    google_ads: ConnectorConfig = Field(default_factory=ConnectorConfig)
    meta_ads: ConnectorConfig = Field(default_factory=ConnectorConfig)
    rfb: ConnectorConfig = Field(default_factory=ConnectorConfig)
    ibge: ConnectorConfig = Field(default_factory=ConnectorConfig)
    osm: ConnectorConfig = Field(default_factory=ConnectorConfig)


class BriefingGeography(SignalModel):
    city: str = ""
    state: List[str] = Field(default_factory=list)
    country: str = "BR"
    level: Optional[str] = None
    coords: Optional[GeoPoint] = None
    lat: Optional[float] = None
    lng: Optional[float] = None
    municipio_id: Optional[str] = None


class Briefing(SignalModel):
    product_description: str = ""
    contact_method: Optional[str] = None
    usage_description: Optional[str] = None
    operational_model: Optional[str] = None
    market_positioning: Optional[str] = None
    objective: Optional[str] = None
    target_gender: Optional[str] = None
    target_age: List[str] = Field(default_factory=list)
    geography: BriefingGeography = Field(default_factory=BriefingGeography)
    data_sources: DataSourcesConfig = Field(default_factory=DataSourcesConfig)


# ---------------------------------------------------------------------------
# Envelope
# ---------------------------------------------------------------------------


class EnvelopeBriefing(SignalModel):
    primary_city: str = "Unknown"
    municipio_id: Optional[str] = None
    data_sources: DataSourcesConfig = Field(default_factory=DataSourcesConfig)


class GeoSignalsEnvelope(SignalModel):
    version: Literal["1.0"] = "1.0"
    created_at: str
    real_only: bool
    briefing: EnvelopeBriefing
    polygons: List[GeoSignalPolygon] = Field(default_factory=list)
    hotspots: List[GeoSignalHotspot] = Field(default_factory=list)
    flows: List[GeoSignalFlow] = Field(default_factory=list)
    timeseries168h: List[Timeseries168h] = Field(default_factory=list, alias="timeseries168h")
    warnings: List[str] = Field(default_factory=list)

    def to_payload(self) -> Dict[str, Any]:
        return self.model_dump(by_alias=True, mode="json")
