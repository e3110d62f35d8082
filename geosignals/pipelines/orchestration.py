"""Scan orchestration: geometry fan-out, polygons, hotspots, flows, envelope."""

from __future__ import annotations

import logging
from concurrent.futures import ThreadPoolExecutor
from datetime import datetime, timezone
from typing import Any, Callable, Dict, List, Optional, Tuple

from geosignals.config.settings import RealOnlyPolicy, ScanSettings, get_settings
from geosignals.geo.geometry import is_inside_brazil
from geosignals.geo.ibge_client import IbgeGeometryClient
from geosignals.geo.jurisdiction import briefing_municipio_id, resolve_known_city
from geosignals.geo.nominatim_client import geocode_city
from geosignals.geo.polygons import MUNICIPIO_LAYER, SECTOR_LAYER, STATE_LAYER, build_polygons
from geosignals.intelligence.flows import synthesize_flows
from geosignals.intelligence.hotspot_providers import (
    HotspotContext,
    HotspotProvider,
    build_hotspot_providers,
)
from geosignals.observability.provenance import audit_envelope
from geosignals.observability.tracing import create_trace_id, trace_event
from geosignals.shared.models import (
    Briefing,
    EnvelopeBriefing,
    GeoPoint,
    GeoSignalFlow,
    GeoSignalHotspot,
    GeoSignalsEnvelope,
)

logger = logging.getLogger(__name__)

Geocoder = Callable[[str], Optional[GeoPoint]]


def create_empty_envelope(briefing: Briefing, policy: RealOnlyPolicy) -> GeoSignalsEnvelope:
    return GeoSignalsEnvelope(
        created_at=datetime.now(timezone.utc).isoformat(),
        real_only=policy.enabled,
        briefing=EnvelopeBriefing(
            primary_city=briefing.geography.city or "Unknown",
            municipio_id=briefing_municipio_id(briefing),
            data_sources=briefing.data_sources,
        ),
    )


def resolve_center(
    briefing: Briefing,
    geocoder: Optional[Geocoder] = None,
) -> Tuple[Optional[GeoPoint], str]:
    """Center of the scan and where it came from (briefing, known-city, geocoder, none)."""
    geography = briefing.geography
    if geography.coords is not None:
        return geography.coords, "briefing"
    if geography.lat is not None and geography.lng is not None:
        return GeoPoint(lat=geography.lat, lng=geography.lng), "briefing"

    known = resolve_known_city(geography.city)
    if known is not None:
        return GeoPoint(lat=known.lat, lng=known.lng), "known-city"

    if geocoder is not None and geography.city:
        point = geocoder(geography.city)
        if point is not None:
            return point, "geocoder"
    return None, "none"


def fetch_geometry_layers(
    geometry_source: Any,
    municipio_id: Optional[str],
) -> Tuple[Dict[str, Optional[Dict[str, Any]]], List[str]]:
    """Fetch the three geometry layers concurrently; a failed layer becomes None."""
    tasks = {
        STATE_LAYER.name: lambda: geometry_source.fetch_states(),
        MUNICIPIO_LAYER.name: lambda: geometry_source.fetch_municipalities(),
        SECTOR_LAYER.name: lambda: geometry_source.fetch_sectors(municipio_id),
    }
    collections: Dict[str, Optional[Dict[str, Any]]] = {}
    warnings: List[str] = []
    with ThreadPoolExecutor(max_workers=len(tasks), thread_name_prefix="geosignals-fetch") as pool:
        futures = {name: pool.submit(task) for name, task in tasks.items()}
        for name, future in futures.items():
            try:
                collections[name] = future.result()
            except Exception as exc:
                logger.warning("Geometry layer %s failed: %s", name, exc)
                collections[name] = None
            if collections[name] is None:
                if name == SECTOR_LAYER.name and not municipio_id:
                    warnings.append("Census sectors skipped: no municipality id for this briefing.")
                else:
                    warnings.append(f"Geometry layer '{name}' unavailable.")
    return collections, warnings


def resolve_hotspots(
    providers: List[HotspotProvider],
    context: HotspotContext,
) -> Tuple[List[GeoSignalHotspot], Optional[str]]:
    for provider in providers:
        try:
            hotspots = provider.provide(context)
        except Exception as exc:
            logger.warning("Hotspot provider %s failed: %s", provider.name, exc)
            continue
        if context.policy.enabled:
            hotspots = [hotspot for hotspot in hotspots if hotspot.provenance.label == "REAL"]
        if hotspots:
            return hotspots, provider.name
    return [], None


def compose_signals(
    briefing: Briefing,
    policy: Optional[RealOnlyPolicy] = None,
    geometry_source: Any = None,
    hotspot_providers: Optional[List[HotspotProvider]] = None,
    settings: Optional[ScanSettings] = None,
    geocoder: Optional[Geocoder] = None,
) -> GeoSignalsEnvelope:
    """
    Compose the signal envelope for one briefing:
      1) resolve municipality id and geographic center
      2) fetch state/municipality/sector geometry concurrently
      3) build polygons, then hotspots through the provider chain
      4) synthesize flows (derived mode only) and assemble the envelope

    Data-source failures only empty their own layer; a well-formed envelope is
    always returned.
    """
    settings = settings or get_settings()
    policy = policy or RealOnlyPolicy.from_settings(settings)
    if geometry_source is None:
        geometry_source = IbgeGeometryClient(settings.ibge_base_url, timeout=settings.fetch_timeout)
    if hotspot_providers is None:
        hotspot_providers = build_hotspot_providers(policy, settings)
    if geocoder is None and settings.geocode_enabled:
        geocoder = lambda query: geocode_city(
            query, base_url=settings.nominatim_url, timeout=settings.fetch_timeout
        )

    trace_id = create_trace_id()
    envelope = create_empty_envelope(briefing, policy)
    warnings: List[str] = []
    logger.info(
        "Scan %s start: city=%s real_only=%s", trace_id, envelope.briefing.primary_city, policy.enabled
    )

    municipio_id = envelope.briefing.municipio_id
    try:
        center, center_origin = resolve_center(briefing, geocoder)
    except Exception as exc:
        logger.warning("Center resolution failed: %s", exc)
        center, center_origin = None, "none"
    if center is None:
        warnings.append("Geographic center could not be resolved.")
    elif not is_inside_brazil(center.lat, center.lng):
        warnings.append("Geographic center lies outside Brazil; IBGE layers may not match.")
    trace_event(
        trace_id,
        "resolve_center",
        settings.trace_dir,
        inputs_ref={"city": briefing.geography.city, "municipio_id": municipio_id},
        outputs_ref={"origin": center_origin, "center": center.model_dump() if center else None},
    )

    collections, fetch_warnings = fetch_geometry_layers(geometry_source, municipio_id)
    warnings.extend(fetch_warnings)
    trace_event(
        trace_id,
        "fetch_geometry",
        settings.trace_dir,
        outputs_ref={name: collection is not None for name, collection in collections.items()},
    )

    polygons = build_polygons(collections, briefing, policy, warnings)
    if not polygons:
        warnings.append("No polygons available for this briefing.")

    context = HotspotContext(
        briefing=briefing,
        policy=policy,
        center=center,
        municipio_id=municipio_id,
        polygons=polygons,
    )
    hotspots, hotspot_origin = resolve_hotspots(hotspot_providers, context)
    if not hotspots:
        warnings.append(
            "Hotspots unavailable in REAL_ONLY mode."
            if policy.enabled
            else "Hotspots unavailable: no provider returned data."
        )
    trace_event(
        trace_id,
        "hotspots",
        settings.trace_dir,
        inputs_ref={"polygons": len(polygons), "providers": [p.name for p in hotspot_providers]},
        outputs_ref={"hotspots": len(hotspots), "provider": hotspot_origin},
    )

    flows: List[GeoSignalFlow] = []
    try:
        flows = synthesize_flows(center, briefing, policy)
    except Exception as exc:
        logger.error("Flow layer failed: %s", exc, exc_info=True)
        warnings.append("Flow layer could not be built.")

    envelope = envelope.model_copy(
        update={
            "polygons": polygons,
            "hotspots": hotspots,
            "flows": flows,
            "warnings": warnings,
        }
    )
    audit = audit_envelope(envelope)
    trace_event(
        trace_id,
        "assemble",
        settings.trace_dir,
        outputs_ref={
            "polygons": len(polygons),
            "hotspots": len(hotspots),
            "flows": len(flows),
            "audit_passed": audit.passed,
        },
    )
    logger.info(
        "Scan %s done: polygons=%s hotspots=%s (%s) flows=%s warnings=%s",
        trace_id,
        len(polygons),
        len(hotspots),
        hotspot_origin or "none",
        len(flows),
        len(warnings),
    )
    return envelope
