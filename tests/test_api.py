"""
HTTP surface tests.
"""

import pytest
from fastapi.testclient import TestClient

from procsim.main import app


@pytest.fixture
def client():
    return TestClient(app)


def _project_payload(composition=None):
    return {
        "project_id": "api",
        "name": "heater",
        "components": [{"id": "CO2", "role": "solute"}, {"id": "N2"}],
        "flowsheet": {
            "blocks": [
                {"id": "feed", "type": "Feed"},
                {"id": "heater", "type": "Heater", "params": {"outletT": {"kind": "quantity", "q": {"value": 80, "unit": "C"}}}},
                {"id": "sink", "type": "Sink"},
            ],
            "streams": [
                {
                    "id": "s1",
                    "source": {"block_id": "feed", "port": "out"},
                    "target": {"block_id": "heater", "port": "in"},
                    "spec": {
                        "temperature": {"value": 313.15, "unit": "K"},
                        "pressure": {"value": 1.0, "unit": "bar"},
                        "flow": {"value": 100.0, "unit": "kmol/h"},
                        "composition": composition or {"CO2": 0.12, "N2": 0.88},
                        "phase": "V",
                    },
                },
                {
                    "id": "s2",
                    "source": {"block_id": "heater", "port": "out"},
                    "target": {"block_id": "sink", "port": "in"},
                },
            ],
        },
        "constraints": [
            {"type": "max", "id": "steam", "ref": {"kind": "kpi", "metric": "steam"}, "limit": 0.0001},
        ],
    }


class TestEndpoints:
    def test_healthz(self, client):
        response = client.get("/healthz")
        assert response.status_code == 200
        assert response.json() == {"status": "ok"}

    def test_validate(self, client):
        response = client.post("/validate", json=_project_payload())
        assert response.status_code == 200
        assert response.json()["valid"] is True

    def test_validate_reports_errors(self, client):
        response = client.post("/validate", json=_project_payload({"CO2": 0.5}))
        body = response.json()
        assert body["valid"] is False
        assert body["errors"][0]["category"] == "composition"

    def test_solve(self, client):
        response = client.post("/solve", json={"project": _project_payload(), "strategy": "propagate"})
        assert response.status_code == 200
        body = response.json()
        assert body["converged"] is True
        product = next(s for s in body["streams"] if s["id"] == "s2")
        assert product["temperature_k"] == pytest.approx(353.15)

    def test_run(self, client):
        response = client.post("/run", json={"project": _project_payload(), "version_id": "v2"})
        assert response.status_code == 200
        body = response.json()
        assert body["status"] == "done"
        assert body["kpis"]["steam"] > 0
        assert [v["constraint_id"] for v in body["violations"]] == ["steam"]

    def test_malformed_parameter_rejected(self, client):
        payload = _project_payload()
        payload["flowsheet"]["blocks"][1]["params"]["outletT"] = {"kind": "text", "s": "hot"}
        response = client.post("/validate", json=payload)
        assert response.status_code == 422
