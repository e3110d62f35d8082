from conftest import make_collection, make_feature

from geosignals.config.settings import RealOnlyPolicy
from geosignals.geo.jurisdiction import (
    briefing_municipio_id,
    briefing_state_codes,
    feature_municipality_code,
    resolve_known_city,
    uf_code,
)
from geosignals.geo.polygons import (
    MUNICIPIO_LAYER,
    SECTOR_LAYER,
    STATE_LAYER,
    build_layer_polygons,
    build_polygons,
    polygon_score,
)
from geosignals.shared.models import Briefing

DERIVED = RealOnlyPolicy(enabled=False)
REAL_ONLY = RealOnlyPolicy(enabled=True)


def _briefing(**geography):
    return Briefing.model_validate({"productDescription": "Pet shop", "geography": geography})


def test_known_city_resolution_ignores_accents_and_suffix():
    assert resolve_known_city("Sao Paulo, SP").municipio_id == "3550308"
    assert resolve_known_city("São Paulo").municipio_id == "3550308"
    assert resolve_known_city("Atlantis") is None


def test_uf_code_from_abbreviation_and_digits():
    assert uf_code("sp") == "35"
    assert uf_code(41) == "41"
    assert uf_code("3550308") == "35"
    assert uf_code("XX") is None


def test_briefing_jurisdiction_codes():
    briefing = _briefing(city="Curitiba", state=["PR"])
    assert briefing_municipio_id(briefing) == "4106902"
    assert briefing_state_codes(briefing) == {"41"}
    assert briefing_state_codes(_briefing(city="Atlantis")) == set()


def test_sector_code_maps_to_municipality():
    assert feature_municipality_code({"CD_SETOR": "355030805000001"}) == "3550308"
    assert feature_municipality_code({"CD_MUN_6": "355030"}) is None


def test_sector_layer_filters_by_municipality():
    collection = make_collection(
        [
            make_feature({"CD_SETOR": "355030805000001", "V001": 900}),
            make_feature({"CD_SETOR": "330455705000001", "V001": 800}),
            make_feature({"V001": 700}),
        ]
    )
    polygons = build_layer_polygons(SECTOR_LAYER, collection, _briefing(city="São Paulo"), DERIVED)
    assert [p.properties.population for p in polygons] == [900.0, 700.0]
    assert polygons[0].properties.jurisdiction_code == "3550308"
    assert polygons[1].properties.jurisdiction_code is None


def test_no_briefing_jurisdiction_keeps_everything():
    collection = make_collection(
        [make_feature({"CD_MUN": "3550308"}), make_feature({"CD_MUN": "3304557"})]
    )
    polygons = build_layer_polygons(MUNICIPIO_LAYER, collection, _briefing(city="Atlantis"), DERIVED)
    assert len(polygons) == 2


def test_state_layer_matches_abbreviation_against_numeric_code():
    collection = make_collection(
        [
            make_feature({"CD_UF": "35", "NM_UF": "São Paulo"}),
            make_feature({"SIGLA_UF": "RJ", "NM_UF": "Rio de Janeiro"}),
        ]
    )
    polygons = build_layer_polygons(STATE_LAYER, collection, _briefing(state=["SP"]), DERIVED)
    assert [p.properties.name for p in polygons] == ["São Paulo"]
    assert polygons[0].properties.kind == "administrative-state"
    assert polygons[0].properties.admin_level == "estado"


def test_polygon_records_are_real_with_estimates_outside_real_only():
    collection = make_collection([make_feature({"CD_SETOR": "355030805000001", "V001": "12000", "renda": "2500,50"})])
    polygon = build_layer_polygons(SECTOR_LAYER, collection, _briefing(city="São Paulo"), DERIVED)[0]
    assert polygon.provenance.label == "REAL"
    assert polygon.provenance.source == "IBGE"
    assert polygon.properties.income == 2500.5
    assert polygon.properties.target_audience_estimate is not None
    assert 1 <= polygon.properties.score <= 100


def test_real_only_never_attaches_estimates():
    collection = make_collection([make_feature({"CD_SETOR": "355030805000001", "V001": 12000})])
    polygon = build_layer_polygons(SECTOR_LAYER, collection, _briefing(city="São Paulo"), REAL_ONLY)[0]
    assert polygon.provenance.label == "REAL"
    assert polygon.properties.population == 12000.0
    assert polygon.properties.target_audience_estimate is None
    assert polygon.properties.score is None


def test_missing_population_yields_null_estimate_and_score():
    collection = make_collection([make_feature({"CD_SETOR": "355030805000001"})])
    polygon = build_layer_polygons(SECTOR_LAYER, collection, _briefing(), DERIVED)[0]
    assert polygon.properties.population is None
    assert polygon.properties.target_audience_estimate is None
    assert polygon.properties.score is None


def test_non_area_geometries_are_skipped():
    line = {"type": "Feature", "geometry": {"type": "LineString", "coordinates": [[0, 0], [1, 1]]}, "properties": {}}
    broken = {"type": "Feature", "geometry": None, "properties": {"V001": 10}}
    collection = make_collection([line, broken, make_feature({"V001": 5}, multi=True)])
    polygons = build_layer_polygons(SECTOR_LAYER, collection, _briefing(), DERIVED)
    assert len(polygons) == 1
    assert polygons[0].geometry.type == "MultiPolygon"


def test_polygon_ids_are_unique_across_layers():
    duplicated = make_collection(
        [make_feature({"id": "7", "V001": 10}), make_feature({"id": "7", "V001": 20})]
    )
    polygons = build_polygons(
        {"state": None, "municipio": duplicated, "sector": duplicated}, _briefing(), DERIVED
    )
    ids = [p.properties.id for p in polygons]
    assert len(ids) == 4
    assert len(set(ids)) == 4
    assert ids[:2] == ["mun-7", "mun-7-2"]


def test_polygon_score_is_clamped():
    assert polygon_score(None, 100) is None
    assert polygon_score(0, 100) == 1
    assert polygon_score(50, 100) == 50
    assert polygon_score(500, 100) == 100
    assert polygon_score(5, None) == 100


def test_build_polygons_tolerates_missing_and_malformed_collections():
    assert build_polygons({}, _briefing(), DERIVED) == []
    assert build_polygons({"sector": {"type": "FeatureCollection", "features": "nope"}}, _briefing(), DERIVED) == []


class _Unprintable:
    def __str__(self):
        raise RuntimeError("cannot render property")


def test_failed_layer_does_not_drop_other_layers():
    states = make_collection([make_feature({"CD_UF": "35", "NM_UF": "São Paulo"})])
    sectors = make_collection([make_feature({"CD_SETOR": _Unprintable(), "V001": 10})])
    warnings = []
    polygons = build_polygons({"state": states, "sector": sectors}, _briefing(), DERIVED, warnings)
    assert [p.properties.kind for p in polygons] == ["administrative-state"]
    assert warnings == ["Polygon layer 'sector' could not be built."]
