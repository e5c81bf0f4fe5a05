import pytest
from fastapi.testclient import TestClient

from staffplan.api.dependencies import get_record_store, get_settings, get_traffic_client
from staffplan.main import app


@pytest.fixture
def client(test_settings, record_store, traffic_client):
    app.dependency_overrides[get_settings] = lambda: test_settings
    app.dependency_overrides[get_record_store] = lambda: record_store
    app.dependency_overrides[get_traffic_client] = lambda: traffic_client
    yield TestClient(app)
    app.dependency_overrides.clear()


def test_health(client) -> None:
    response = client.get("/health")
    assert response.status_code == 200
    assert response.json()["status"] == "ok"


def test_week_lookups(client) -> None:
    response = client.get("/weeks", params={"date": "2025-05-05"})
    assert response.status_code == 200
    assert response.json()["week_label"] == "W19 2025"

    response = client.get("/weeks/W19 2025")
    assert response.status_code == 200
    body = response.json()
    assert body["start_date"] == "2025-05-05"
    assert body["end_date"] == "2025-05-11"
    assert body["previous_year_week"] == "W19 2024"
    assert len(body["dates"]) == 7


def test_week_lookups_reject_malformed_input(client) -> None:
    assert client.get("/weeks/W54 2025").status_code == 400
    assert client.get("/weeks", params={"date": "05/05/2025"}).status_code == 400


def test_recommend_week_endpoint(client, traffic_service) -> None:
    traffic_service.set_day("C001", "2025-05-07", {10: 100})

    response = client.post("/recommendations/week", json={"store_id": "S1", "target_week": "W19 2025"})

    assert response.status_code == 200
    body = response.json()
    assert len(body["days"]) == 7
    assert body["used_simulated_data"] is False
    assert body["summary"]["peak_day"] == "2025-05-07"
    assert body["days"][2]["hours"][0]["recommended"] == 9


def test_recommend_week_errors(client) -> None:
    response = client.post("/recommendations/week", json={"store_id": "missing", "target_week": "W19 2025"})
    assert response.status_code == 404
    assert "not found" in response.json()["detail"]

    response = client.post("/recommendations/week", json={"store_id": "S1", "target_week": "19 2025"})
    assert response.status_code == 422

    response = client.post(
        "/recommendations/week",
        json={"store_id": "S1", "target_week": "W19 2025", "start_date": "2025-05-05", "end_date": "2025-05-06"},
    )
    assert response.status_code == 422

    response = client.post(
        "/recommendations/week", json={"store_id": "S1", "target_week": "W19 2025", "desired_attention": 0}
    )
    assert response.status_code == 400


def test_historical_config_edit_and_read(client) -> None:
    response = client.put(
        "/admin/stores/S1/historical-config",
        json={"target_week": "W19 2025", "reference": {"type": "week_list", "weeks": ["W19 2024"]}},
    )
    assert response.status_code == 200
    assert response.json()["entries"]["W19 2025"] == {"type": "week_list", "weeks": ["W19 2024"]}

    response = client.put(
        "/admin/stores/S1/historical-config",
        json={
            "target_week": "W20 2025",
            "reference": {"type": "comparable_por_dia", "mapping": {"2025-05-12": "2024-05-13"}},
        },
    )
    assert response.status_code == 200

    body = client.get("/admin/stores/S1/historical-config").json()
    assert set(body["entries"]) == {"W19 2025", "W20 2025"}
    assert body["entries"]["W20 2025"]["mapping"] == {"2025-05-12": "2024-05-13"}
    assert '"comparable_por_dia"' in body["raw"]


def test_historical_config_edit_errors(client) -> None:
    reference = {"type": "week_list", "weeks": ["W19 2024"]}

    assert client.put("/admin/stores/S3/historical-config", json={"target_week": "W19 2025", "reference": reference}).status_code == 409
    assert client.put("/admin/stores/nope/historical-config", json={"target_week": "W19 2025", "reference": reference}).status_code == 404
    assert client.put("/admin/stores/S1/historical-config", json={"target_week": "W60 2025", "reference": reference}).status_code == 400

    body = client.get("/admin/stores/S3/historical-config").json()
    assert body["raw"] == "[1, 2]"
    assert body["entries"] == {}


def test_bulk_apply_endpoint(client) -> None:
    response = client.post(
        "/admin/historical-config/bulk",
        json={
            "store_ids": ["S1", "S2", "ghost"],
            "target_week": "W19 2025",
            "reference": {"type": "week_list", "weeks": ["W19 2024", "W20 2024"]},
            "session_id": "bulk-api",
        },
    )

    assert response.status_code == 200
    body = response.json()
    assert body["success_count"] == 2
    assert body["total"] == 3
    assert body["errors"][0]["store_id"] == "ghost"

    progress = client.get("/admin/progress/bulk-api/events").json()
    assert progress["completed"] is True
    assert progress["events"][-1]["kind"] == "bulk_done"


def test_sync_endpoint_and_progress_stream(client, traffic_service) -> None:
    traffic_service.set_day("C001", "2025-05-05", {10: 3})

    response = client.post("/admin/stores/S1/sync", json={"target_week": "W19 2025", "session_id": "sync-api"})

    assert response.status_code == 200
    assert response.json()["status"] == "completed"
    assert response.json()["days_synced"] == 7

    stream = client.get("/admin/progress/sync-api")
    assert stream.status_code == 200
    assert stream.headers["content-type"].startswith("text/event-stream")
    assert "event: progress" in stream.text
    assert "sync_done" in stream.text


def test_sync_endpoint_unknown_store(client) -> None:
    response = client.post("/admin/stores/nope/sync", json={"target_week": "W19 2025"})
    assert response.status_code == 404
