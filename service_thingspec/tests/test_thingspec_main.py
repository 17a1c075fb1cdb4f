"""
Unit tests for the Thing Spec main service.
"""

import pytest
from fastapi.testclient import TestClient

import sys
import os
sys.path.append(os.path.join(os.path.dirname(__file__), '..', '..'))

from shared.errors import ConfigurationError
from service_thingspec.app.config import FilterConfig, ThingSpecFilterConfig
from service_thingspec.app.main import ThingSpecService, create_app
from service_thingspec.app.filters.models import FilterSource


class TestThingSpecService:
    """Test cases for ThingSpecService."""

    @pytest.fixture
    def filter_config(self):
        """Configuration with two rules competing with the built-in one."""
        return ThingSpecFilterConfig(models={
            "em500-config": FilterConfig(modelPattern="EM500-SMTC*", mode="blacklist", priority=100, ids={"rssi"}),
            "ws": FilterConfig(modelPattern="WS*", mode="blacklist", priority=5, ids={"rssi"}),
        })

    @pytest.fixture
    def thingspec_service(self, filter_config):
        """Create ThingSpecService instance."""
        return ThingSpecService(filter_config=filter_config)

    @pytest.fixture
    def client(self, thingspec_service):
        """Create test client."""
        return TestClient(thingspec_service.app)

    @pytest.fixture
    def thing_spec_payload(self):
        """Thing spec request body."""
        return {
            "properties": [
                {"id": "temperature", "name": "Temperature", "access_mode": "R"},
                {"id": "rssi", "name": "RSSI"},
                {"id": "battery"},
            ],
            "events": [{"id": "button_event"}],
            "services": [{"id": "reboot"}, {"id": "factory_reset"}],
        }

    def test_registry_built_from_both_sources(self, thingspec_service):
        """Test code rules come first on a priority tie."""
        rules = thingspec_service.registry.rules

        assert len(rules) == 3
        assert rules[0].source == FilterSource.CODE
        assert rules[1].name == "em500-config"
        assert rules[2].name == "ws"

    def test_root_endpoint(self, client):
        """Test root endpoint."""
        response = client.get("/")

        assert response.status_code == 200
        assert response.json()["service"] == "thingspec"

    def test_health_endpoint(self, client):
        """Test health endpoint."""
        response = client.get("/health")

        assert response.status_code == 200
        data = response.json()
        assert data["status"] == "ok"
        assert data["dependencies"] == {"filter_rules": "ok"}

    def test_filter_applies_code_rule(self, client, thing_spec_payload):
        """Test the built-in whitelist wins over the config blacklist."""
        response = client.post("/thing-specs/filter", json={
            "deviceModel": "EM500-SMTC-868M",
            "thingSpec": thing_spec_payload
        })

        assert response.status_code == 200
        data = response.json()
        assert data["filtered"] is True
        assert data["rule"]["source"] == "code"
        assert data["rule"]["mode"] == "whitelist"
        assert [p["id"] for p in data["thingSpec"]["properties"]] == ["temperature", "battery"]
        assert data["thingSpec"]["properties"][0] == {"id": "temperature", "name": "Temperature", "access_mode": "R"}
        assert data["thingSpec"]["events"] == []
        assert [s["id"] for s in data["thingSpec"]["services"]] == ["reboot"]

    def test_filter_blacklist_config_rule(self, client, thing_spec_payload):
        """Test a config rule applies when it is the only match."""
        response = client.post("/thing-specs/filter", json={
            "deviceModel": "WS101",
            "thingSpec": thing_spec_payload
        })

        data = response.json()
        assert data["rule"]["name"] == "ws"
        assert [p["id"] for p in data["thingSpec"]["properties"]] == ["temperature", "battery"]
        assert len(data["thingSpec"]["services"]) == 2

    def test_filter_no_match(self, client, thing_spec_payload):
        """Test an unmatched model passes through."""
        response = client.post("/thing-specs/filter", json={
            "deviceModel": "AM102",
            "thingSpec": thing_spec_payload
        })

        data = response.json()
        assert data["filtered"] is False
        assert data["rule"] is None
        assert len(data["thingSpec"]["properties"]) == 3

    def test_filter_without_model(self, client, thing_spec_payload):
        """Test a request without device model passes through."""
        response = client.post("/thing-specs/filter", json={"thingSpec": thing_spec_payload})

        assert response.status_code == 200
        assert response.json()["filtered"] is False

    def test_filter_without_thing_spec(self, client):
        """Test a request without thing spec."""
        response = client.post("/thing-specs/filter", json={"deviceModel": "EM500-SMTC"})

        data = response.json()
        assert data["filtered"] is False
        assert data["thingSpec"] is None

    def test_list_rules(self, client):
        """Test rules are listed in resolution order."""
        response = client.get("/thing-specs/rules")

        data = response.json()
        assert data["total"] == 3
        assert [r["priority"] for r in data["rules"]] == [100, 100, 5]

    def test_resolve_rule(self, client):
        """Test rule resolution endpoint."""
        response = client.get("/thing-specs/rules/resolve", params={"device_model": "WS202"})

        data = response.json()
        assert data["matched"] is True
        assert data["rule"]["model_pattern"] == "WS*"

    def test_resolve_rule_no_match(self, client):
        """Test rule resolution without a match."""
        data = client.get("/thing-specs/rules/resolve", params={"device_model": "AM102"}).json()

        assert data["matched"] is False
        assert data["rule"] is None

    def test_stats(self, client):
        """Test registry statistics endpoint."""
        data = client.get("/thing-specs/stats").json()

        assert data["code_rules"] == 1
        assert data["config_rules"] == 2

    def test_request_id_echoed(self, client):
        """Test the request id header is propagated."""
        response = client.get("/", headers={"X-Request-ID": "req-42"})

        assert response.headers["X-Request-ID"] == "req-42"

    def test_metrics_endpoint(self, client, thing_spec_payload):
        """Test filter metrics are exported."""
        client.post("/thing-specs/filter", json={"deviceModel": "WS101", "thingSpec": thing_spec_payload})

        response = client.get("/metrics")

        assert response.status_code == 200
        assert "thing_spec_filter_requests_total" in response.text

    def test_custom_providers(self, filter_config):
        """Test the service can run without the built-in providers."""
        service = ThingSpecService(providers=[], filter_config=filter_config)

        assert all(r.source == FilterSource.CONFIG for r in service.registry.rules)

    def test_invalid_config_file_fails_startup(self, monkeypatch, tmp_path):
        """Test a broken filter file stops the service from starting."""
        path = tmp_path / "filters.yaml"
        path.write_text("models:\n  bad:\n    modelPattern: '   '\n")
        monkeypatch.setenv("MSC_THING_SPEC_FILTER_FILE", str(path))

        with pytest.raises(ConfigurationError):
            create_app()
