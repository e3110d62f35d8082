from __future__ import annotations

import os
import sys
import traceback


def _bootstrap_path() -> None:
    base_dir = os.path.dirname(os.path.dirname(os.path.abspath(__file__)))
    if base_dir not in sys.path:
        sys.path.insert(0, base_dir)


class _OfflineGeometry:
    def fetch_states(self):
        return None

    def fetch_municipalities(self):
        return None

    def fetch_sectors(self, municipio_id):
        ring = [[-46.64, -23.55], [-46.63, -23.55], [-46.63, -23.54], [-46.64, -23.54], [-46.64, -23.55]]
        return {
            "type": "FeatureCollection",
            "features": [
                {
                    "type": "Feature",
                    "geometry": {"type": "Polygon", "coordinates": [ring]},
                    "properties": {"CD_SETOR": f"{municipio_id}05000001", "V001": "1200"},
                }
            ],
        }


def main() -> int:
    _bootstrap_path()
    os.environ.setdefault("GEOSIGNALS_GEOCODE_ENABLED", "false")
    try:
        from geosignals.analytics.choropleth import build_quantile_breaks
        from geosignals.config.settings import RealOnlyPolicy
        from geosignals.intelligence.hotspot_providers import (
            RadialHotspotProvider,
            RankedPolygonProvider,
        )
        from geosignals.observability.provenance import audit_envelope
        from geosignals.pipelines.orchestration import compose_signals
        from geosignals.shared.models import Briefing

        briefing = Briefing.model_validate(
            {"geography": {"city": "São Paulo", "state": ["SP"]}, "objective": "SellMore"}
        )
        for enabled in (False, True):
            envelope = compose_signals(
                briefing,
                policy=RealOnlyPolicy(enabled=enabled),
                geometry_source=_OfflineGeometry(),
                hotspot_providers=[] if enabled else [RankedPolygonProvider(), RadialHotspotProvider()],
            )
            if not envelope.polygons:
                raise RuntimeError("No polygons built from offline geometry.")
            if not audit_envelope(envelope).passed:
                raise RuntimeError(f"Envelope audit failed (real_only={enabled}).")
        if len(build_quantile_breaks([1, 2, 3])) != 5:
            raise RuntimeError("Quantile breaks not generated.")
    except Exception:
        traceback.print_exc()
        return 1
    print("health_check: ok")
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
