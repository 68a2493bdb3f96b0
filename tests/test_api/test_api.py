"""Tests for API endpoints."""

from __future__ import annotations

from fastapi.testclient import TestClient

from metablob.main import app

client = TestClient(app)


def _shapes(*specs):
    return [{"id": i, "x": x, "y": y, "radius": r} for i, (x, y, r) in enumerate(specs)]


def test_health():
    response = client.get("/api/health")
    assert response.status_code == 200
    data = response.json()
    assert data["status"] == "ok"
    assert data["stages_registered"] == 8


def test_blobs_merged_pair():
    response = client.post("/api/blobs", json={
        "shapes": _shapes((0, 0, 10), (50, 0, 10)),
        "cluster": {"closeness": 1.0},
        "seed": 1,
    })
    assert response.status_code == 200
    data = response.json()
    assert data["errors"] == {}
    assert data["cluster_count"] == 1
    assert len(data["contours"]) == 1
    assert len(data["contours"][0]) >= 3
    assert data["skeleton"][0]["from_id"] == 0
    assert data["skeleton"][0]["to_id"] == 1
    assert data["decorations"] == []


def test_blobs_star_and_dissolve():
    response = client.post("/api/blobs", json={
        "shapes": _shapes((0, 0, 30), (100, 0, 30)),
        "cluster": {"closeness": 1.0},
        "star": {"outer_offset_ratio": 0.4, "roundness": 0.7, "wing_count": 6},
        "dissolve": 0.3,
        "seed": 3,
    })
    assert response.status_code == 200
    data = response.json()
    assert data["errors"] == {}
    assert len(data["contours"]) >= 1
    assert len(data["decorations"]) > 0
    for d in data["decorations"]:
        assert 4.0 <= d["radius"] <= 8.0


def test_blobs_empty():
    response = client.post("/api/blobs", json={"shapes": []})
    assert response.status_code == 200
    data = response.json()
    assert data["contours"] == []
    assert data["cluster_count"] == 0


def test_blobs_rejects_bad_input():
    response = client.post("/api/blobs", json={"shapes": _shapes((0, 0, -5))})
    assert response.status_code == 422

    response = client.post("/api/blobs", json={"shapes": _shapes((0, 0, 5), (0, 0, 8))})
    assert response.status_code == 422

    response = client.post("/api/blobs", json={"shapes": _shapes((0, 0, 5)), "dissolve": 2})
    assert response.status_code == 422

    response = client.post("/api/blobs", json={
        "shapes": _shapes((0, 0, 5)),
        "cluster": {"consider_connected_lower_bound": 0},
    })
    assert response.status_code == 422
