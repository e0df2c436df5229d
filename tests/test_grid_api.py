from __future__ import annotations

from fastapi.testclient import TestClient

from capmatrix.services.grid_store import GridStore


def test_read_grid_defaults(client: TestClient) -> None:
    response = client.get("/api/v1/grid")

    assert response.status_code == 200
    payload = response.json()
    assert len(payload["dimensions"]) == 6
    assert [item["id"] for item in payload["subjects"]] == ["defender", "kaspersky", "huorong"]
    assert payload["overview"]["subject_count"] == 3
    assert payload["overview"]["leader_name"] == "Kaspersky"


def test_dimension_lifecycle(client: TestClient, store: GridStore) -> None:
    create = client.post("/api/v1/dimensions", json={"name": "Sandboxing"})
    assert create.status_code == 201
    dimension_id = create.json()["id"]
    assert all(store.get_score(subject_id, dimension_id) == 5 for subject_id in store.subject_ids())

    blank = client.post("/api/v1/dimensions", json={"name": "  "})
    assert blank.status_code == 422

    rename = client.patch(f"/api/v1/dimensions/{dimension_id}", json={"name": "Sandbox"})
    assert rename.status_code == 200
    assert rename.json() == {"id": dimension_id, "name": "Sandbox"}

    reorder = client.post("/api/v1/dimensions/reorder", json={"old_index": 6, "new_index": 0})
    assert reorder.status_code == 200
    assert reorder.json()["order"][0] == dimension_id

    delete = client.delete(f"/api/v1/dimensions/{dimension_id}")
    assert delete.status_code == 204
    assert client.delete(f"/api/v1/dimensions/{dimension_id}").status_code == 404
    assert client.patch("/api/v1/dimensions/missing", json={"name": "X"}).status_code == 404


def test_subject_lifecycle(client: TestClient) -> None:
    create = client.post("/api/v1/subjects", json={"name": "ESET"})
    assert create.status_code == 201
    subject = create.json()
    assert set(subject["scores"].values()) == {5}
    assert subject["descriptions"] == {}

    update = client.patch(f"/api/v1/subjects/{subject['id']}", json={"color": "#abcdef"})
    assert update.status_code == 200
    assert (update.json()["name"], update.json()["color"]) == ("ESET", "#abcdef")

    reorder = client.post("/api/v1/subjects/reorder", json={"old_index": 3, "new_index": 0})
    assert reorder.json()["order"][0] == subject["id"]

    out_of_range = client.post("/api/v1/subjects/reorder", json={"old_index": 0, "new_index": 42})
    assert out_of_range.json()["order"] == reorder.json()["order"]

    assert client.delete(f"/api/v1/subjects/{subject['id']}").status_code == 204
    assert client.patch(f"/api/v1/subjects/{subject['id']}", json={"name": "X"}).status_code == 404


def test_cell_edits(client: TestClient, store: GridStore) -> None:
    score = client.put("/api/v1/subjects/huorong/scores/detection", json={"value": 14})
    assert score.status_code == 200
    assert score.json()["score"] == 10

    junk = client.put("/api/v1/subjects/huorong/scores/detection", json={"value": "n/a"})
    assert junk.json()["score"] == 0

    text = client.put(
        "/api/v1/subjects/huorong/descriptions/detection",
        json={"text": "Heuristics tuned for\nlocal threats"},
    )
    assert text.status_code == 200
    assert store.get_description("huorong", "detection") == "Heuristics tuned for\nlocal threats"

    assert client.put("/api/v1/subjects/ghost/scores/detection", json={"value": 1}).status_code == 404
    assert client.put("/api/v1/subjects/huorong/scores/ghost", json={"value": 1}).status_code == 404


def test_leader_and_radar(client: TestClient) -> None:
    client.put("/api/v1/subjects/huorong/scores/detection", json={"value": 10})
    client.put("/api/v1/subjects/huorong/scores/cloud", json={"value": 10})

    leader = client.get("/api/v1/grid/leader").json()
    assert leader["leader"]["id"] == "huorong"
    assert [row["id"] for row in leader["totals"]] == ["defender", "kaspersky", "huorong"]

    radar = client.get("/api/v1/grid/radar").json()
    assert radar["rows"][0]["dimension_id"] == "detection"
    assert radar["rows"][0]["scores"]["huorong"] == 10


def test_reset_restores_defaults(client: TestClient) -> None:
    client.delete("/api/v1/subjects/defender")
    client.post("/api/v1/dimensions", json={"name": "Extra"})

    reset = client.post("/api/v1/grid/reset")

    assert reset.status_code == 200
    assert [item["id"] for item in reset.json()["subjects"]] == ["defender", "kaspersky", "huorong"]
    assert len(reset.json()["dimensions"]) == 6


def test_summary_endpoints(client: TestClient, summary_client) -> None:
    assert client.get("/api/v1/summary").json()["text"] is None

    generated = client.post("/api/v1/summary")
    assert generated.status_code == 200
    assert generated.json()["fallback"] is False

    latest = client.get("/api/v1/summary").json()
    assert latest["text"] == "## Analysis\nAll good."
    assert len(summary_client.calls) == 1
