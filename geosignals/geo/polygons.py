"""Administrative and census polygons turned into signal records."""

from __future__ import annotations

import logging
from typing import Any, Dict, Iterable, List, Mapping, NamedTuple, Optional, Set

from geosignals.config.settings import RealOnlyPolicy
from geosignals.geo.geometry import parse_area_geometry
from geosignals.geo.jurisdiction import (
    briefing_municipio_id,
    briefing_state_codes,
    feature_municipality_code,
    feature_state_code,
)
from geosignals.intelligence.audience import audience_seed, estimate_audience
from geosignals.observability.provenance import SOURCE_IBGE, real_provenance
from geosignals.shared.models import Briefing, GeoSignalPolygon, PolygonProperties
from geosignals.shared.numbers import aliases_for, pick_income, pick_population, pick_text
from geosignals.shared.utils import clamp

logger = logging.getLogger(__name__)


class LayerSpec(NamedTuple):
    name: str
    kind: str
    admin_level: str
    id_prefix: str
    method: str


STATE_LAYER = LayerSpec("state", "administrative-state", "estado", "uf", "ibge-malha-estados")
MUNICIPIO_LAYER = LayerSpec(
    "municipio", "administrative-municipality", "municipio", "mun", "ibge-malha-municipios"
)
SECTOR_LAYER = LayerSpec("sector", "census-sector", "setor", "setor", "ibge-setores-censitarios")

LAYERS = (STATE_LAYER, MUNICIPIO_LAYER, SECTOR_LAYER)


def polygon_score(audience: Optional[int], population: Optional[float]) -> Optional[int]:
    if audience is None:
        return None
    base = max(1.0, population or 0.0)
    return int(clamp(round(audience / base * 100), 1, 100))


def iter_features(collection: Optional[Mapping[str, Any]]) -> Iterable[Dict[str, Any]]:
    if not isinstance(collection, Mapping):
        return []
    features = collection.get("features")
    if not isinstance(features, list):
        return []
    return [feature for feature in features if isinstance(feature, dict)]


def _jurisdiction_matches(
    layer: LayerSpec,
    props: Mapping[str, Any],
    state_codes: Set[str],
    municipio_id: Optional[str],
) -> bool:
    # An undeterminable code on either side never excludes a feature.
    if layer is STATE_LAYER:
        if not state_codes:
            return True
        code = feature_state_code(props)
        return code is None or code in state_codes
    if not municipio_id:
        return True
    code = feature_municipality_code(props)
    return code is None or code == municipio_id


def _jurisdiction_code(layer: LayerSpec, props: Mapping[str, Any]) -> Optional[str]:
    if layer is STATE_LAYER:
        return feature_state_code(props)
    return feature_municipality_code(props)


def _unique_id(candidate: str, seen: Set[str]) -> str:
    polygon_id = candidate
    suffix = 2
    while polygon_id in seen:
        polygon_id = f"{candidate}-{suffix}"
        suffix += 1
    seen.add(polygon_id)
    return polygon_id


def build_layer_polygons(
    layer: LayerSpec,
    collection: Optional[Mapping[str, Any]],
    briefing: Briefing,
    policy: RealOnlyPolicy,
    seen_ids: Optional[Set[str]] = None,
) -> List[GeoSignalPolygon]:
    seen_ids = seen_ids if seen_ids is not None else set()
    state_codes = briefing_state_codes(briefing)
    municipio_id = briefing_municipio_id(briefing)
    id_aliases = aliases_for("feature_id")
    name_aliases = aliases_for("name")

    polygons: List[GeoSignalPolygon] = []
    skipped = 0
    for index, feature in enumerate(iter_features(collection), start=1):
        props = feature.get("properties") or {}
        if not isinstance(props, dict):
            props = {}
        geometry = parse_area_geometry(feature.get("geometry"))
        if geometry is None:
            skipped += 1
            continue
        if not _jurisdiction_matches(layer, props, state_codes, municipio_id):
            continue

        raw_id = pick_text(props, id_aliases) or str(index)
        polygon_id = _unique_id(f"{layer.id_prefix}-{raw_id}", seen_ids)
        population = pick_population(props)
        income = pick_income(props)

        audience: Optional[int] = None
        if policy.allows_derived:
            audience = estimate_audience(population, briefing, audience_seed(polygon_id, briefing))

        polygons.append(
            GeoSignalPolygon(
                geometry=geometry,
                properties=PolygonProperties(
                    id=polygon_id,
                    kind=layer.kind,
                    admin_level=layer.admin_level,
                    name=pick_text(props, name_aliases),
                    jurisdiction_code=_jurisdiction_code(layer, props),
                    population=population,
                    income=income,
                    target_audience_estimate=audience,
                    score=polygon_score(audience, population),
                ),
                provenance=real_provenance(SOURCE_IBGE, method=layer.method),
            )
        )

    if skipped:
        logger.info("Skipped %s %s feature(s) without area geometry", skipped, layer.name)
    return polygons


def build_polygons(
    collections: Mapping[str, Optional[Mapping[str, Any]]],
    briefing: Briefing,
    policy: RealOnlyPolicy,
    warnings: Optional[List[str]] = None,
) -> List[GeoSignalPolygon]:
    """Build polygons for the state, municipality and sector layers, in that order.

    A layer that fails to build is dropped on its own and reported in ``warnings``.
    """
    seen_ids: Set[str] = set()
    polygons: List[GeoSignalPolygon] = []
    for layer in LAYERS:
        try:
            layer_polygons = build_layer_polygons(
                layer, collections.get(layer.name), briefing, policy, seen_ids
            )
        except Exception as exc:
            logger.error("Polygon layer %s failed: %s", layer.name, exc, exc_info=True)
            if warnings is not None:
                warnings.append(f"Polygon layer '{layer.name}' could not be built.")
            continue
        polygons.extend(layer_polygons)
    logger.info("Built %s polygon(s) (real_only=%s)", len(polygons), policy.enabled)
    return polygons
