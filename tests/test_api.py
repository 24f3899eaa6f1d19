"""
Tests for the FastAPI endpoints.
Covers:
  - catalog, presets and health endpoints
  - /api/v1/convert success, failure and validation paths
  - history and favorites round trips
  - preferences persisted to runtime_config.yaml
  - calculator and feature-request endpoints
"""

from unittest.mock import AsyncMock, patch

import pytest
import yaml


@pytest.fixture
def client(tmp_path):
    """Create a test client backed by a temp database and runtime config."""
    from fastapi.testclient import TestClient
    from swapunits import config as cfg_mod

    cfg_data = {
        "server": {"host": "127.0.0.1", "port": 8000},
        "storage": {"sqlite_path": str(tmp_path / "test.db"), "max_history": 15, "max_favorites": 15},
        "notifications": {"api_key": "", "recipient": "swapunits@gmail.com"},
        "logging": {"level": "WARNING"},
    }

    rt_path = tmp_path / "runtime_config.yaml"
    rt_path.write_text("runtime:\n  number_format: normal\n  category: Mass\n")

    orig_config = cfg_mod._config
    orig_rt_path = cfg_mod._RUNTIME_CONFIG_PATH
    orig_rt_mtime = cfg_mod._runtime_mtime
    orig_rt_config = cfg_mod._runtime_config

    cfg_mod._config = cfg_data
    cfg_mod._RUNTIME_CONFIG_PATH = rt_path
    cfg_mod._runtime_mtime = 0.0
    cfg_mod._runtime_config = {}

    from swapunits.main import app
    with TestClient(app, raise_server_exceptions=False) as c:
        yield c, rt_path

    cfg_mod._config = orig_config
    cfg_mod._RUNTIME_CONFIG_PATH = orig_rt_path
    cfg_mod._runtime_mtime = orig_rt_mtime
    cfg_mod._runtime_config = orig_rt_config


# ── Health / catalog ─────────────────────────────────────────────────────────

class TestCatalogEndpoints:
    def test_health(self, client):
        c, _ = client
        r = c.get("/api/v1/health")
        assert r.status_code == 200
        assert r.json()["status"] == "ok"

    def test_info(self, client):
        c, _ = client
        data = c.get("/api/v1/info").json()
        assert data["categories"] == 13
        assert data["feature_requests"]["mock"] is True
        assert data["storage"]["history"] == 0

    def test_categories(self, client):
        c, _ = client
        cats = c.get("/api/v1/categories").json()["categories"]
        assert len(cats) == 13
        assert cats[0] == {"name": "Length", "default_from": "m", "default_to": "ft"}

    def test_category_detail(self, client):
        c, _ = client
        r = c.get("/api/v1/categories/Fuel Economy")
        assert r.status_code == 200
        data = r.json()
        assert data["family"] == "reciprocal"
        assert data["default_pair"] == ["km/L", "MPG (US)"]

    def test_unknown_category(self, client):
        c, _ = client
        assert c.get("/api/v1/categories/Ethereum").status_code == 404

    def test_presets(self, client):
        c, _ = client
        presets = c.get("/api/v1/presets").json()["presets"]
        assert len(presets) == 15
        assert presets[0]["category"] == "Length"


# ── Conversion ───────────────────────────────────────────────────────────────

class TestConvertEndpoint:
    def test_meter_to_feet(self, client):
        c, _ = client
        r = c.post("/api/v1/convert", json={"category": "Length", "from_unit": "m", "to_unit": "ft", "value": 1})
        assert r.status_code == 200
        data = r.json()
        assert data["ok"] is True
        assert data["formatted"] == "3.2808399"
        assert data["result"]["unit"] == "ft"

    def test_magnitude_forces_scientific(self, client):
        c, _ = client
        data = c.post("/api/v1/convert", json={
            "category": "Length", "from_unit": "km", "to_unit": "mm", "value": 1e7,
        }).json()
        assert data["actual_format"] == "scientific"
        assert data["scientific_reason"] == "magnitude"
        assert data["policy"] == {"next_preference": "scientific", "normal_option_disabled": True}

    def test_user_scientific(self, client):
        c, _ = client
        data = c.post("/api/v1/convert", json={
            "category": "Mass", "from_unit": "kg", "to_unit": "g", "value": 5, "number_format": "scientific",
        }).json()
        assert data["formatted"] == "5E+3"
        assert data["scientific_reason"] == "user_choice"

    def test_reciprocal_zero(self, client):
        c, _ = client
        data = c.post("/api/v1/convert", json={
            "category": "Fuel Economy", "from_unit": "L/100km", "to_unit": "km/L", "value": 0,
        }).json()
        assert data["ok"] is True
        assert data["result"]["value"] == "Infinity"
        assert data["formatted"] == "-"

    def test_invalid_value_is_soft_failure(self, client):
        c, _ = client
        r = c.post("/api/v1/convert", json={"category": "Length", "from_unit": "m", "to_unit": "ft", "value": "abc"})
        assert r.status_code == 200
        data = r.json()
        assert data["ok"] is False
        assert data["error"]["reason"] == "invalid_input"
        assert data["formatted"] == "-"

    def test_unknown_unit_is_soft_failure(self, client):
        c, _ = client
        data = c.post("/api/v1/convert", json={
            "category": "Length", "from_unit": "unknown-symbol", "to_unit": "ft", "value": 1,
        }).json()
        assert data["ok"] is False
        assert data["error"]["reason"] == "unit_not_found"

    def test_missing_fields(self, client):
        c, _ = client
        r = c.post("/api/v1/convert", json={"category": "Length", "value": 1})
        assert r.status_code == 400
        assert "from_unit" in r.json()["error"]

    def test_bad_number_format(self, client):
        c, _ = client
        r = c.post("/api/v1/convert", json={
            "category": "Length", "from_unit": "m", "to_unit": "ft", "value": 1, "number_format": "engineering",
        })
        assert r.status_code == 400

    def test_invalid_json(self, client):
        c, _ = client
        r = c.post("/api/v1/convert", content=b"not json", headers={"Content-Type": "application/json"})
        assert r.status_code == 400


# ── History / favorites ──────────────────────────────────────────────────────

class TestHistoryEndpoints:
    def test_add_and_list(self, client):
        c, _ = client
        r = c.post("/api/v1/history", json={
            "category": "Length", "from_value": 12345678, "from_unit": "m", "to_value": 1, "to_unit": "ft",
        })
        assert r.status_code == 201
        items = c.get("/api/v1/history").json()["history"]
        assert len(items) == 1
        assert items[0]["from_display"] == "1.2346E+7"
        assert items[0]["to_display"] == "1"

    def test_rejects_unknown_unit(self, client):
        c, _ = client
        r = c.post("/api/v1/history", json={
            "category": "Length", "from_value": 1, "from_unit": "m", "to_value": 1, "to_unit": "kg",
        })
        assert r.status_code == 400

    def test_rejects_non_numeric(self, client):
        c, _ = client
        r = c.post("/api/v1/history", json={
            "category": "Length", "from_value": "x", "from_unit": "m", "to_value": 1, "to_unit": "ft",
        })
        assert r.status_code == 400

    def test_rejects_nan(self, client):
        c, _ = client
        r = c.post("/api/v1/history", json={
            "category": "Length", "from_value": "NaN", "from_unit": "m", "to_value": 1, "to_unit": "ft",
        })
        assert r.status_code == 400
        assert c.get("/api/v1/history").json()["count"] == 0

    def test_infinite_value_round_trip(self, client):
        c, _ = client
        c.post("/api/v1/history", json={
            "category": "Fuel Economy", "from_value": 0, "from_unit": "L/100km",
            "to_value": "Infinity", "to_unit": "km/L",
        })
        item = c.get("/api/v1/history").json()["history"][0]
        assert item["to_value"] == "Infinity"
        assert item["to_display"] == "-"

    def test_clear(self, client):
        c, _ = client
        c.post("/api/v1/history", json={
            "category": "Mass", "from_value": 1, "from_unit": "kg", "to_value": 1000, "to_unit": "g",
        })
        assert c.delete("/api/v1/history").json()["removed"] == 1
        assert c.get("/api/v1/history").json()["count"] == 0


class TestFavoritesEndpoints:
    def test_add_duplicate_remove(self, client):
        c, _ = client
        body = {"category": "Length", "from_unit": "m", "to_unit": "ft"}
        r = c.post("/api/v1/favorites", json=body)
        assert r.status_code == 201
        item = r.json()["item"]
        assert item["name"] == "m to ft"

        assert c.post("/api/v1/favorites", json=body).status_code == 409

        assert c.delete(f"/api/v1/favorites/{item['id']}").status_code == 200
        assert c.delete(f"/api/v1/favorites/{item['id']}").status_code == 404
        assert c.get("/api/v1/favorites").json()["count"] == 0

    def test_rejects_unknown_unit(self, client):
        c, _ = client
        r = c.post("/api/v1/favorites", json={"category": "Length", "from_unit": "m", "to_unit": "parsec"})
        assert r.status_code == 400

    def test_clear(self, client):
        c, _ = client
        c.post("/api/v1/favorites", json={"category": "Mass", "from_unit": "kg", "to_unit": "lb", "name": "kg→lb"})
        assert c.delete("/api/v1/favorites").json()["removed"] == 1


# ── Preferences ──────────────────────────────────────────────────────────────

class TestPreferencesEndpoints:
    def test_defaults(self, client):
        c, _ = client
        assert c.get("/api/v1/preferences").json() == {"number_format": "normal", "category": "Mass"}

    def test_save_persists(self, client):
        from swapunits import config as cfg_mod
        c, rt_path = client
        r = c.post("/api/v1/preferences", json={"number_format": "scientific", "category": "Length"})
        assert r.status_code == 200
        assert sorted(r.json()["saved"]) == ["category", "number_format"]

        data = yaml.safe_load(rt_path.read_text())
        assert data["runtime"]["number_format"] == "scientific"

        cfg_mod._runtime_mtime = 0.0
        assert c.get("/api/v1/preferences").json()["category"] == "Length"

    def test_invalid_value_partial(self, client):
        c, _ = client
        r = c.post("/api/v1/preferences", json={"number_format": "scientific", "category": "Ethereum"})
        assert r.status_code == 207
        assert r.json()["saved"] == ["number_format"]

    def test_unknown_key(self, client):
        c, _ = client
        assert c.post("/api/v1/preferences", json={"theme": "dark"}).status_code == 400


# ── Calculator / feature requests ────────────────────────────────────────────

class TestCalculatorEndpoint:
    def test_calculate(self, client):
        c, _ = client
        data = c.post("/api/v1/calculate", json={"expression": "2 + 3 * 4"}).json()
        assert data["result"] == "14"
        assert data["ok"] is True

    def test_division_by_zero(self, client):
        c, _ = client
        data = c.post("/api/v1/calculate", json={"expression": "1/0"}).json()
        assert data["result"] == "Error"
        assert data["ok"] is False

    def test_missing_expression(self, client):
        c, _ = client
        assert c.post("/api/v1/calculate", json={}).status_code == 400


class TestFeatureRequestEndpoint:
    def test_mock_send(self, client):
        c, _ = client
        r = c.post("/api/feature-request", json={
            "category": "Length", "from_unit": "ly", "to_unit": "pc", "additional_notes": "space",
        })
        assert r.status_code == 200
        assert r.json()["id"] == "mock"

    def test_missing_fields(self, client):
        c, _ = client
        assert c.post("/api/feature-request", json={"category": "Length"}).status_code == 400

    def test_send_failure(self, client):
        import swapunits.main as main_mod
        from swapunits.tools.notifier import NotifierError

        c, _ = client
        with patch.object(main_mod.notifier, "send", AsyncMock(side_effect=NotifierError("down"))):
            r = c.post("/api/feature-request", json={"category": "Length", "from_unit": "ly", "to_unit": "pc"})
        assert r.status_code == 500
        assert r.json() == {"error": "Failed to send email"}
