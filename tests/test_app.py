"""
API tests for the HCROI engine service
======================================
Exercises the FastAPI endpoints through TestClient. The module-level profile
store is reset before each test.
"""

import sys
import os

sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

import pytest
from fastapi.testclient import TestClient

from ahp import DEFAULT_CRITERIA, default_store
from app import app

CRITERIA = [c.name for c in DEFAULT_CRITERIA]


@pytest.fixture(autouse=True)
def fresh_store():
    default_store.reset()
    yield
    default_store.reset()


@pytest.fixture
def client():
    return TestClient(app)


def employee_payload(employee_id="E-001", achieved=3_600_000, alerts=0):
    return {
        "employeeId": employee_id,
        "name": "Kim",
        "financials": {
            "currentSalary": 36_000_000,
            "criterionSubScores": {name: 800 for name in CRITERIA},
        },
        "performanceRecords": [
            {"period": "2024-07", "targetSales": 4_500_000, "achievedSales": achieved},
        ],
        "unresolvedAlertCount": alerts,
    }


class TestServiceEndpoints:

    def test_root(self, client):
        response = client.get("/")
        assert response.status_code == 200
        assert response.json()["status"] == "running"

    def test_health(self, client):
        assert client.get("/health").json() == {"status": "healthy"}

    def test_metrics_exposed(self, client):
        assert client.get("/metrics").status_code == 200

    def test_config_defaults(self, client):
        data = client.get("/config/defaults").json()
        assert data["parameters"]["costMultiplier"] == 1.5
        assert data["thresholds"]["redHcroi"] == 1.0
        assert data["thresholds"]["topScore"] == 900


class TestAhpEndpoints:

    def test_default_profile(self, client):
        data = client.get("/ahp/weights").json()
        assert data["source"] == "default"
        assert len(data["weights"]) == len(CRITERIA)
        assert data["lambdaMax"] is None

    def test_calculate_activates(self, client):
        response = client.post(
            "/ahp/calculate",
            json={"criteria": ["sales", "attendance", "other"], "upperTriangleValues": [3, 5, 2]},
        )
        assert response.status_code == 200
        data = response.json()
        assert data["activated"] is True
        assert data["message"] == "Weights calculated"
        assert data["profile"]["isConsistent"] is True
        assert data["profile"]["weights"][0] == pytest.approx(0.6479, abs=1e-3)

        active = client.get("/ahp/weights").json()
        assert active["source"] == "ahp"
        assert active["version"] == 2

    def test_calculate_without_activation(self, client):
        response = client.post(
            "/ahp/calculate",
            json={"criteria": ["a", "b"], "upperTriangleValues": [3], "activate": False},
        )
        assert response.json()["activated"] is False
        assert client.get("/ahp/weights").json()["source"] == "default"

    def test_inconsistent_judgments_warn(self, client):
        response = client.post(
            "/ahp/calculate",
            json={"criteria": ["a", "b", "c"], "upperTriangleValues": [9, 1 / 9, 9]},
        )
        assert response.status_code == 200
        assert response.json()["message"].startswith("Warning: consistency ratio")
        assert response.json()["profile"]["isConsistent"] is False

    def test_inconsistent_judgments_rejected_when_required(self, client):
        response = client.post(
            "/ahp/calculate",
            json={
                "criteria": ["a", "b", "c"],
                "upperTriangleValues": [9, 1 / 9, 9],
                "requireConsistent": True,
            },
        )
        assert response.status_code == 422
        assert response.json()["detail"]["profile"]["isConsistent"] is False
        assert client.get("/ahp/weights").json()["version"] == 1

    def test_wrong_judgment_count(self, client):
        response = client.post(
            "/ahp/calculate",
            json={"criteria": ["a", "b", "c"], "upperTriangleValues": [3, 5]},
        )
        assert response.status_code == 400
        assert "Expected 3" in response.json()["detail"]

    def test_manual_weights(self, client):
        response = client.put(
            "/ahp/weights",
            json={"criteriaNames": ["a", "b", "c"], "weights": [0.5, 0.3, 0.2]},
        )
        assert response.status_code == 200
        assert response.json()["message"] == "Weights set directly"
        assert response.json()["profile"]["consistencyRatio"] is None

        history = client.get("/ahp/weights/history").json()
        assert len(history) == 1
        assert history[0]["source"] == "default"

    def test_manual_weights_bad_sum(self, client):
        response = client.put(
            "/ahp/weights",
            json={"criteriaNames": ["a", "b"], "weights": [0.5, 0.3]},
        )
        assert response.status_code == 400

    def test_random_index(self, client):
        assert client.get("/ahp/random-index/3").json() == {"n": 3, "randomIndex": 0.58}
        assert client.get("/ahp/random-index/0").status_code == 400


class TestEvaluationEndpoints:

    def test_evaluate_employee(self, client):
        response = client.post("/evaluate/employee", json={"employee": employee_payload()})
        assert response.status_code == 200

        data = response.json()
        assert data["employeeId"] == "E-001"
        assert data["scores"][0]["hcroi"] == pytest.approx(0.8)
        assert data["scores"][0]["breakEvenSales"] == pytest.approx(4_500_000)
        assert data["classifications"][0]["tier"] == "RED_WARNING"

    def test_evaluate_employee_with_parameters(self, client):
        response = client.post(
            "/evaluate/employee",
            json={"employee": employee_payload(), "parameters": {"costMultiplier": 1.0}},
        )
        assert response.json()["scores"][0]["hcroi"] == pytest.approx(1.2)

    def test_evaluate_roster(self, client):
        response = client.post(
            "/evaluate/roster",
            json={
                "employees": [
                    employee_payload("E-001", achieved=2_700_000, alerts=1),
                    employee_payload("E-002", achieved=9_000_000),
                ],
            },
        )
        assert response.status_code == 200

        data = response.json()
        assert data["period"] == "2024-07"
        assert [e["employeeId"] for e in data["redZone"]] == ["E-001"]
        assert data["redZone"][0]["tier"] == "RED_CRITICAL"
        assert [e["employeeId"] for e in data["topPerformers"]] == ["E-002"]
        assert data["summary"]["employeeCount"] == 2
        assert data["bepStatus"]["contributingEmployees"] == 2

    def test_bad_period(self, client):
        response = client.post(
            "/evaluate/roster",
            json={"employees": [employee_payload()], "period": "2024-7"},
        )
        assert response.status_code == 422
