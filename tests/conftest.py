"""Pytest fixtures for geosignals tests (briefings, features, offline geometry)."""
import sys
from pathlib import Path

import pytest

# Ensure the repository root is on path when running without an install
root_dir = Path(__file__).resolve().parent.parent
if str(root_dir) not in sys.path:
    sys.path.insert(0, str(root_dir))

from geosignals.config import settings as settings_module
from geosignals.shared.models import Briefing


def square_ring(lng: float, lat: float, size: float = 0.01):
    return [
        [lng, lat],
        [lng + size, lat],
        [lng + size, lat + size],
        [lng, lat + size],
        [lng, lat],
    ]


def make_feature(props, lng=-46.63, lat=-23.55, size=0.01, multi=False):
    ring = square_ring(lng, lat, size)
    if multi:
        geometry = {"type": "MultiPolygon", "coordinates": [[ring]]}
    else:
        geometry = {"type": "Polygon", "coordinates": [ring]}
    return {"type": "Feature", "geometry": geometry, "properties": props}


def make_collection(features):
    return {"type": "FeatureCollection", "features": list(features)}


class FakeGeometrySource:
    def __init__(self, states=None, municipalities=None, sectors=None, fail=()):
        self.states = states
        self.municipalities = municipalities
        self.sectors = sectors
        self.fail = set(fail)
        self.sector_requests = []

    def fetch_states(self):
        if "state" in self.fail:
            raise RuntimeError("states down")
        return self.states

    def fetch_municipalities(self):
        if "municipio" in self.fail:
            raise RuntimeError("municipalities down")
        return self.municipalities

    def fetch_sectors(self, municipio_id):
        self.sector_requests.append(municipio_id)
        if "sector" in self.fail:
            raise RuntimeError("sectors down")
        return self.sectors


@pytest.fixture(autouse=True)
def isolated_settings(monkeypatch):
    for name in (
        "GEOSIGNALS_REAL_ONLY",
        "VITE_REAL_ONLY",
        "GEOSIGNALS_HOTSPOTS_URL",
        "GEOSIGNALS_TRACE_DIR",
        "GEOSIGNALS_FETCH_TIMEOUT",
    ):
        monkeypatch.delenv(name, raising=False)
    monkeypatch.setenv("GEOSIGNALS_GEOCODE_ENABLED", "false")
    settings_module.reset_settings()
    yield
    settings_module.reset_settings()


@pytest.fixture
def sao_paulo_briefing():
    return Briefing.model_validate(
        {
            "productDescription": "Café especial",
            "operationalModel": "Digital",
            "marketPositioning": "Premium",
            "objective": "SellMore",
            "targetGender": "Mixed",
            "targetAge": [],
            "geography": {"city": "São Paulo", "state": ["SP"], "country": "BR", "level": "City"},
        }
    )


@pytest.fixture
def sector_collection():
    populations = [100000, 50000, 10000]
    features = [
        make_feature(
            {"CD_SETOR": f"35503080500000{i}", "NM_SETOR": f"Setor {i}", "V001": pop},
            lng=-46.64 + i * 0.02,
            lat=-23.56 + i * 0.02,
        )
        for i, pop in enumerate(populations, start=1)
    ]
    return make_collection(features)
