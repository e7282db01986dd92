import json

import pytest
from fastapi.testclient import TestClient

from destress.dependencies import get_visitor_store
from destress.main import app
from destress.services.kv_store import MemoryKVStore, NullKVStore
from destress.services.visitor_tracking import compute_fingerprint

PAGES = ["/", "/slime", "/bounce", "/fountain", "/kaleidoscope", "/breathing", "/cube3", "/cube4", "/cube5"]
HEADERS = {"CF-Connecting-IP": "1.2.3.4", "User-Agent": "UA1", "CF-IPCity": "Paris", "CF-IPCountry": "France"}


@pytest.mark.parametrize("path", PAGES)
def test_pages_render_html(client, path):
    response = client.get(path, headers=HEADERS)

    assert response.status_code == 200
    assert response.headers["content-type"].startswith("text/html")
    assert "<!DOCTYPE html>" in response.text
    assert "{{" not in response.text


def test_cube_pages_use_their_size(client):
    assert "const size = 4;" in client.get("/cube4").text
    assert "camera.position.z = 12;" in client.get("/cube5").text


def test_each_page_request_is_tracked_once(client, memory_store):
    client.get("/slime", headers=HEADERS)

    assert client.get("/api/stats").json() == {
        "visitors": 1,
        "visits": 1,
        "ips": [{"ip": "1.2.3.4", "count": 1, "location": "Paris, France"}],
    }

    for _ in range(3):
        client.get("/bounce", headers=HEADERS)

    stats = client.get("/api/stats").json()
    assert stats["visitors"] == 1
    assert stats["visits"] == 4
    assert stats["ips"][0]["count"] == 4


def test_api_and_unknown_routes_are_not_tracked(client, memory_store):
    client.get("/api/stats", headers=HEADERS)
    client.get("/api/visitor", headers=HEADERS)
    client.get("/api/health", headers=HEADERS)
    assert client.get("/nope", headers=HEADERS).status_code == 404

    assert memory_store.list_keys() == []


def test_stats_endpoint_with_unconfigured_store():
    app.dependency_overrides[get_visitor_store] = lambda: NullKVStore()
    try:
        with TestClient(app) as client:
            assert client.get("/slime").status_code == 200
            assert client.get("/api/stats").json() == {"visitors": 0, "visits": 0, "ips": []}
    finally:
        app.dependency_overrides.clear()


def test_page_still_renders_when_tracking_fails(client, memory_store):
    fingerprint = compute_fingerprint("1.2.3.4", "UA1")
    memory_store.put(f"visitor:{fingerprint}", "{broken")

    response = client.get("/slime", headers=HEADERS)

    assert response.status_code == 200
    assert memory_store.get(f"visitor:{fingerprint}") == "{broken"


def test_stats_endpoint_fails_on_corrupt_record(client, memory_store):
    memory_store.put("visitor:0000000000000000", "{broken")

    response = client.get("/api/stats")

    assert response.status_code == 500


def test_visitor_endpoint_does_not_touch_store(client, memory_store):
    response = client.get("/api/visitor", headers=HEADERS)

    assert response.status_code == 200
    payload = response.json()
    assert payload["ip"] == "1.2.3.4"
    assert payload["fingerprint"] == compute_fingerprint("1.2.3.4", "UA1")
    assert payload["location"] == "Paris, France"
    assert payload["geoDetails"]["city"] == "Paris"
    assert memory_store.list_keys() == []


def test_visitor_endpoint_without_geo(client):
    payload = client.get("/api/visitor", headers={"X-Real-IP": "4.4.4.4"}).json()

    assert payload["location"] == "Unknown"
    assert "geoDetails" not in payload


def test_ranking_page_sorts_by_count(client):
    memory_store = MemoryKVStore({
        "totalVisitors": "2",
        "totalVisits": "7",
        "visitor:aaaaaaaaaaaaaaaa": json.dumps(
            {"ip": "5.5.5.5", "ua": "x", "location": "Lima, PE", "first": 1, "count": 2}),
        "visitor:bbbbbbbbbbbbbbbb": json.dumps(
            {"ip": "<b>6.6.6.6</b>", "ua": "y", "location": "Unknown", "first": 1, "count": 5}),
    })
    app.dependency_overrides[get_visitor_store] = lambda: memory_store

    # La propia visita al ranking se registra antes de leer las estadísticas
    html = client.get("/ranking", headers={"CF-Connecting-IP": "7.7.7.7", "User-Agent": "UA"}).text

    assert "&lt;b&gt;6.6.6.6&lt;/b&gt;" in html
    assert "<b>6.6.6.6</b>" not in html
    assert html.index("6.6.6.6") < html.index("5.5.5.5") < html.index("7.7.7.7")
    assert "<strong>3</strong>" in html
    assert "<strong>8</strong>" in html


def test_health_and_favicon(client):
    assert client.get("/api/health").json() == {"status": "ok", "server": "alive"}
    assert client.get("/favicon.ico").status_code == 204
