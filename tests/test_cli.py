import json

import pytest

from conftest import FakeGeometrySource

from geosignals import cli
from geosignals.pipelines import orchestration


@pytest.fixture
def offline_geometry(monkeypatch, sector_collection):
    source = FakeGeometrySource(sectors=sector_collection)
    monkeypatch.setattr(orchestration, "IbgeGeometryClient", lambda *args, **kwargs: source)
    return source


def _write_briefing(tmp_path, payload):
    path = tmp_path / "briefing.json"
    path.write_text(json.dumps(payload), encoding="utf-8")
    return path


BRIEFING = {
    "productDescription": "Barbearia",
    "objective": "DominateRegion",
    "geography": {"city": "São Paulo", "state": ["SP"]},
}


def test_cli_writes_envelope(tmp_path, offline_geometry):
    output = tmp_path / "out" / "envelope.json"
    code = cli.main([str(_write_briefing(tmp_path, BRIEFING)), "--output", str(output)])
    assert code == 0
    payload = json.loads(output.read_text(encoding="utf-8"))
    assert payload["version"] == "1.0"
    assert payload["realOnly"] is False
    assert len(payload["polygons"]) == 3
    assert len(payload["hotspots"]) == 3


def test_cli_real_only_flag_overrides_environment(tmp_path, monkeypatch, capsys, offline_geometry):
    monkeypatch.setenv("GEOSIGNALS_REAL_ONLY", "false")
    code = cli.main([str(_write_briefing(tmp_path, BRIEFING)), "--real-only"])
    assert code == 0
    payload = json.loads(capsys.readouterr().out)
    assert payload["realOnly"] is True
    assert payload["flows"] == []
    assert payload["hotspots"] == []


def test_cli_follows_environment_by_default(tmp_path, monkeypatch, capsys, offline_geometry):
    monkeypatch.setenv("GEOSIGNALS_REAL_ONLY", "true")
    assert cli.main([str(_write_briefing(tmp_path, BRIEFING))]) == 0
    assert json.loads(capsys.readouterr().out)["realOnly"] is True


def test_cli_rejects_invalid_briefing(tmp_path):
    bad = _write_briefing(tmp_path, {"targetAge": "not-a-list"})
    assert cli.main([str(bad)]) == 2
    assert cli.main([str(tmp_path / "missing.json")]) == 2

    broken = tmp_path / "broken.json"
    broken.write_text("{", encoding="utf-8")
    assert cli.main([str(broken)]) == 2
