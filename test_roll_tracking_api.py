"""
Tests for the roll tracking HTTP endpoints.
"""
import uuid
import pytest
from fastapi.testclient import TestClient

from conftest import RENDERED_AT
from rolltrack.main import app
from rolltrack.api import base
from rolltrack.api.base import get_render_time


@pytest.fixture
def client():
    app.dependency_overrides[get_render_time] = lambda: RENDERED_AT
    with TestClient(app) as test_client:
        yield test_client
    app.dependency_overrides.clear()


@pytest.fixture
def rolls_payload(mixed_rolls):
    return [roll.model_dump(mode="json") for roll in mixed_rolls]


def test_health(client):
    assert client.get("/health").json() == {"status": "healthy"}


class TestFilterEndpoints:

    def test_filter_with_stats(self, client, rolls_payload):
        response = client.post("/api/rolls/filter", json={
            "rolls": rolls_payload,
            "criteria": {"customer_id": "C2", "stage": "all"},
        })
        assert response.status_code == 200
        data = response.json()
        assert [roll["roll_id"] for roll in data["rolls"]] == [2, 4]
        assert data["stats"]["counts"]["printing"] == 1
        assert data["stats"]["total_weight_kg"] == pytest.approx(30.0)

    def test_filter_sorted(self, client, rolls_payload):
        response = client.post("/api/rolls/filter", json={
            "rolls": rolls_payload, "sort_by": "weight", "descending": True,
        })
        assert [roll["roll_id"] for roll in response.json()["rolls"]] == [2, 3, 1, 4, 5]

    def test_invalid_sort_key(self, client, rolls_payload):
        response = client.post("/api/rolls/filter", json={"rolls": rolls_payload, "sort_by": "colour"})
        assert response.status_code == 400

    def test_invalid_stage(self, client, rolls_payload):
        response = client.post("/api/rolls/filter", json={
            "rolls": rolls_payload, "criteria": {"stage": "shipping"},
        })
        assert response.status_code == 422
        assert response.json()["error"] == "InvalidStage"

    def test_stats(self, client, rolls_payload):
        data = client.post("/api/rolls/stats", json={"rolls": rolls_payload}).json()
        assert data["total"] == 5
        assert data["total_weight_kg"] == pytest.approx(55.5)

    def test_stage_table(self, client):
        data = client.get("/api/rolls/stages", params={"locale": "en"}).json()
        assert [entry["label"] for entry in data] == ["Film", "Printing", "Cutting", "Done", "Archived"]

    def test_timeline(self, client, rolls_payload):
        data = client.post("/api/rolls/timeline", json=rolls_payload[3]).json()
        assert [event["event"] for event in data] == ["created", "printed", "cut_completed"]


class TestDocumentEndpoints:

    def test_label(self, client, rolls_payload):
        response = client.post("/api/rolls/label", json={"roll": rolls_payload[1], "locale": "en"})
        assert response.status_code == 200
        data = response.json()
        assert data["kind"] == "label"
        assert data["blocks"][-1]["text"] == "Printed: 15/03/2024 14:30"

    def test_label_incomplete(self, client, rolls_payload):
        response = client.post("/api/rolls/label", json={"roll": rolls_payload[4]})
        assert response.status_code == 422
        assert response.json()["error"] == "IncompleteRecord"

    def test_label_pdf(self, client, rolls_payload):
        response = client.post("/api/rolls/label/pdf", json={"roll": rolls_payload[0], "locale": "en"})
        assert response.status_code == 200
        assert response.headers["content-type"] == "application/pdf"
        assert response.content.startswith(b"%PDF")

    def test_batch_labels(self, client, rolls_payload):
        response = client.post("/api/rolls/labels", json={"rolls": rolls_payload[:3]})
        assert [outcome["document"]["blocks"][0]["emphasis"] for outcome in response.json()] == ["R-001", "R-002", "R-003"]

    def test_batch_labels_report_failures_per_roll(self, client, rolls_payload):
        response = client.post("/api/rolls/labels", json={"rolls": rolls_payload})
        assert response.status_code == 200
        outcomes = response.json()
        assert [outcome["error"] is None for outcome in outcomes] == [True, True, True, True, False]
        assert outcomes[4]["document"] is None
        assert outcomes[4]["error"]["error"] == "IncompleteRecord"

    def test_label_pdf_with_non_ascii_roll_number(self, client, rolls_payload):
        roll = dict(rolls_payload[0], roll_number="ر-001")
        response = client.post("/api/rolls/label/pdf", json={"roll": roll, "locale": "en"})
        assert response.status_code == 200
        disposition = response.headers["content-disposition"]
        assert "filename*=UTF-8''roll-label-%D8%B1-001.pdf" in disposition
        assert 'filename="roll-label-_-001.pdf"' in disposition

    def test_report_is_deterministic(self, client, rolls_payload):
        first = client.post("/api/rolls/report", json={"rolls": rolls_payload})
        second = client.post("/api/rolls/report", json={"rolls": rolls_payload})
        assert first.status_code == 200
        assert first.content == second.content

    def test_empty_report(self, client):
        response = client.post("/api/rolls/report", json={"rolls": []})
        assert response.status_code == 400
        assert response.json()["error"] == "EmptySelection"

    def test_report_pdf(self, client, rolls_payload):
        response = client.post("/api/rolls/report/pdf", json={"rolls": rolls_payload, "locale": "en"})
        assert response.status_code == 200
        assert response.content.startswith(b"%PDF")


class TestSelectionEndpoints:

    def test_selection_drives_report(self, client, rolls_payload):
        selection_id = str(uuid.uuid4())
        client.post(f"/api/rolls/selection/{selection_id}/toggle/4")
        client.post(f"/api/rolls/selection/{selection_id}/toggle/2")

        data = client.get(f"/api/rolls/selection/{selection_id}").json()
        assert data["selected_ids"] == [2, 4]

        report = client.post("/api/rolls/report", json={
            "rolls": rolls_payload, "selection_id": selection_id, "locale": "en",
        }).json()
        rows = report["blocks"][1]["rows"]
        assert [row[0] for row in rows] == ["R-002", "R-004"]
        assert report["blocks"][2]["entries"][0]["value"] == "2"

    def test_select_all_toggles(self, client):
        selection_id = str(uuid.uuid4())
        url = f"/api/rolls/selection/{selection_id}/select-all"
        assert client.post(url, json={"roll_ids": [1, 2, 3]}).json()["count"] == 3
        assert client.post(url, json={"roll_ids": [1, 2, 3]}).json()["count"] == 0

    def test_retain_and_clear(self, client):
        selection_id = str(uuid.uuid4())
        client.post(f"/api/rolls/selection/{selection_id}/select-all", json={"roll_ids": [1, 2, 3]})
        data = client.post(f"/api/rolls/selection/{selection_id}/retain", json={"roll_ids": [2, 9]}).json()
        assert data["selected_ids"] == [2]
        assert client.delete(f"/api/rolls/selection/{selection_id}").json()["count"] == 0

    def test_reading_unknown_selection_does_not_store_it(self, client):
        selection_id = str(uuid.uuid4())
        data = client.get(f"/api/rolls/selection/{selection_id}").json()
        assert data == {"selection_id": selection_id, "selected_ids": [], "count": 0}
        assert selection_id not in base._selections

    def test_delete_forgets_selection(self, client):
        selection_id = str(uuid.uuid4())
        client.post(f"/api/rolls/selection/{selection_id}/toggle/3")
        assert selection_id in base._selections
        client.delete(f"/api/rolls/selection/{selection_id}")
        assert selection_id not in base._selections
        assert client.get(f"/api/rolls/selection/{selection_id}").json()["count"] == 0

    def test_registry_is_capped(self, client, monkeypatch):
        monkeypatch.setattr(base.config, "SELECTION_LIMIT", 3)
        monkeypatch.setattr(base, "_selections", {})
        selection_ids = [str(uuid.uuid4()) for _ in range(5)]
        for selection_id in selection_ids:
            client.post(f"/api/rolls/selection/{selection_id}/toggle/1")
        assert list(base._selections) == selection_ids[2:]

    def test_empty_selection_report(self, client, rolls_payload):
        response = client.post("/api/rolls/report", json={
            "rolls": rolls_payload, "selection_id": str(uuid.uuid4()),
        })
        assert response.status_code == 400


class TestExportEndpoint:

    def test_csv(self, client, rolls_payload):
        response = client.post("/api/rolls/export", json={
            "rolls": rolls_payload, "criteria": {"customer_id": "C1"}, "locale": "en",
        })
        assert response.status_code == 200
        assert response.headers["content-type"].startswith("text/csv")
        assert "rolls-2024-03-15.csv" in response.headers["content-disposition"]
        lines = response.text.strip().splitlines()
        assert lines[0].startswith("Roll No.,Production Order,Order No.")
        assert len(lines) == 3
        assert lines[1].startswith("R-001,PO-010,ORD-100,Acme Plastics,Shopping Bag,-,Film,10.00")

    def test_nothing_to_export(self, client, rolls_payload):
        response = client.post("/api/rolls/export", json={
            "rolls": rolls_payload, "criteria": {"start": "2030-01-01"},
        })
        assert response.status_code == 404

    def test_failing_roll_is_skipped(self, client, rolls_payload):
        lost = dict(rolls_payload[0], roll_id=9, roll_number="R-009", stage="lost")
        response = client.post("/api/rolls/export", json={"rolls": rolls_payload + [lost], "locale": "en"})
        assert response.status_code == 200
        assert response.headers["x-skipped-rolls"] == "9"
        assert len(response.text.strip().splitlines()) == 6

    def test_all_rolls_failing(self, client, rolls_payload):
        lost = dict(rolls_payload[0], stage="lost")
        response = client.post("/api/rolls/export", json={"rolls": [lost]})
        assert response.status_code == 422
        assert response.json()["detail"][0]["error"] == "UnknownStage"
