import time

import routes
from conftest import admin_headers, user_headers


def test_health(api):
    r = api.get("/api/health")
    assert r.status_code == 200
    assert r.json()["status"] == "ok"


def test_regions(api):
    regions = api.get("/api/regions").json()
    assert len(regions) == 38
    assert {"key": "cbi", "displayName": "CBI"} in regions
    assert {"key": "tamil nadu", "displayName": "Tamil Nadu"} in regions


def test_refresh_then_stats(api):
    r = api.post("/api/refresh")
    assert r.status_code == 200
    assert r.json()["totalArrests"] == 150
    stats = api.get("/api/stats").json()
    assert stats["regionsWithData"] == 2
    assert stats["ranking"] == ["maharashtra", "delhi"]


def test_map(api):
    api.post("/api/refresh")
    body = api.get("/api/map", params={"metric": "fir"}).json()
    assert body["metric"] == "fir"
    assert body["legend"]["high"] == 40
    names = {f["name"]: f for f in body["features"]}
    assert names["NCT of Delhi"]["fir"] == 15
    assert names["Atlantis"]["region"] is None


def test_map_rejects_unknown_metric(api):
    assert api.get("/api/map", params={"metric": "bail"}).status_code == 422


def test_map_without_boundaries_is_503(api, dashboard):
    dashboard.boundaries = None
    r = api.get("/api/map")
    assert r.status_code == 503
    assert r.json() == {"detail": "Error loading map. Please refresh the page."}


def test_table_and_tooltip(api):
    api.post("/api/refresh")
    table = api.get("/api/table").json()
    assert len(table["rows"]) == 38
    assert table["rows"][1]["displayName"] == "Delhi (excl. CBI)"
    assert (table["totalArrests"], table["totalFir"]) == (150, 55)

    tip = api.get("/api/tooltip", params={"name": "NCT of Delhi"}).json()
    assert tip["arrests"] == 50
    assert [part["label"] for part in tip["breakdown"]] == ["Delhi", "CBI"]


def test_auth_status(api):
    assert api.get("/api/auth/me").json()["authenticated"] is False

    admin = api.get("/api/auth/me", headers=admin_headers()).json()
    assert admin["authenticated"] and admin["isAdmin"]
    assert admin["displayName"] == "Admin"

    user = api.get("/api/auth/me", headers=user_headers()).json()
    assert user["authenticated"] and not user["isAdmin"]
    assert user["displayName"] == "someone@example.org"

    bad = api.get("/api/auth/me", headers={"Authorization": "Basic xyz"}).json()
    assert bad["authenticated"] is False


# ── writes ──

def test_update_refreshes_dashboard(api):
    r = api.put("/api/arrests/Goa", json={"arrests": 12, "fir": "3"}, headers=admin_headers())
    assert r.status_code == 200
    assert r.json() == {"status": "updated", "regions": ["goa"]}

    rows = {row["region"]: row for row in api.get("/api/table").json()["rows"]}
    assert (rows["goa"]["arrests"], rows["goa"]["fir"]) == (12, 3)


def test_additive_update(api):
    api.put("/api/arrests/cbi", json={"arrests": 5, "additive": True}, headers=admin_headers())
    rows = {row["region"]: row for row in api.get("/api/table").json()["rows"]}
    assert rows["cbi"]["arrests"] == 25


def test_write_errors(api):
    r = api.put("/api/arrests/goa", json={"arrests": 1})
    assert r.status_code == 401
    assert r.json() == {"detail": "Authentication required"}

    r = api.put("/api/arrests/goa", json={"arrests": 1}, headers=user_headers())
    assert r.status_code == 403

    r = api.put("/api/arrests/goa", json={"arrests": -4}, headers=admin_headers())
    assert r.status_code == 400
    assert r.json() == {"detail": "Invalid arrest count for goa", "field": "arrests"}

    r = api.delete("/api/arrests/Narnia", headers=admin_headers())
    assert r.status_code == 400
    assert r.json()["field"] == "region"


def test_boolean_counts_are_rejected(api, store):
    store.operations.clear()
    r = api.put("/api/arrests/goa", json={"arrests": True, "fir": 0}, headers=admin_headers())
    assert r.status_code == 400
    assert r.json() == {"detail": "Invalid arrest count for goa", "field": "arrests"}

    r = api.put("/api/arrests/goa", json={"arrests": 1, "fir": False}, headers=admin_headers())
    assert r.json()["field"] == "fir"

    r = api.post("/api/arrests/batch", json={"updates": [{"region": "goa", "arrests": True}]},
                 headers=admin_headers())
    assert r.status_code == 400
    assert r.json()["field"] == "arrests"
    assert store.operations == []


def test_delete(api):
    r = api.delete("/api/arrests/maharashtra", headers=admin_headers())
    assert r.json() == {"status": "deleted", "regions": ["maharashtra"]}
    assert api.get("/api/stats").json()["totalArrests"] == 50


def test_batch(api, store):
    updates = [{"region": "Kerala", "arrests": 2}, {"region": "Goa", "arrests": "4", "fir": 1}]
    r = api.post("/api/arrests/batch", json={"updates": updates}, headers=admin_headers())
    assert r.json() == {"status": "updated", "regions": ["kerala", "goa"]}

    too_many = [{"region": "goa", "arrests": 1}] * 51
    store.operations.clear()
    r = api.post("/api/arrests/batch", json={"updates": too_many}, headers=admin_headers())
    assert r.status_code == 400
    assert r.json() == {"detail": "Maximum 50 updates per batch", "field": "updates"}
    assert store.operations == []


def test_batch_accepts_legacy_keys(api):
    r = api.post("/api/arrests/batch", json={"updates": [{"state": "Orissa", "count": 9}]},
                 headers=admin_headers())
    assert r.json() == {"status": "updated", "regions": ["odisha"]}
    rows = {row["region"]: row for row in api.get("/api/table").json()["rows"]}
    assert (rows["odisha"]["arrests"], rows["odisha"]["fir"]) == (9, 0)


# ── media ──

def test_media_round_trip(api):
    assert api.get("/api/media").json() == {"media": {}}

    r = api.post(
        "/api/media",
        json={"region": "Goa", "url": "https://news.example.org/a", "title": "Raid", "kind": "video"},
        headers=admin_headers(),
    )
    assert r.status_code == 200
    media_id = r.json()["id"]

    items = api.get("/api/media").json()["media"]["goa"]
    assert [(item["id"], item["kind"]) for item in items] == [(media_id, "video")]

    assert api.delete(f"/api/media/{media_id}", headers=admin_headers()).json()["status"] == "deleted"
    assert api.get("/api/media").json() == {"media": {}}


def test_media_validation_error(api):
    r = api.post("/api/media", json={"region": "Goa", "url": "ftp://x", "title": "t"}, headers=admin_headers())
    assert r.status_code == 400
    assert r.json()["field"] == "url"


def test_media_unavailable_degrades_to_empty(api, media_library):
    media_library.store = None
    assert api.get("/api/media").json() == {"media": {}}


# ── rate limiting ──

def test_writes_are_rate_limited(api, monkeypatch):
    monkeypatch.setattr(routes, "RATE_LIMIT", 2)
    assert api.post("/api/refresh").status_code == 200
    assert api.post("/api/refresh").status_code == 200
    r = api.post("/api/refresh")
    assert r.status_code == 429
    assert r.json() == {"detail": "Too many attempts. Please wait."}
    assert api.get("/api/stats").status_code == 200


def test_idle_clients_are_evicted(api, monkeypatch):
    monkeypatch.setattr(routes, "_last_rate_evict", 0.0)
    routes._rate_store["10.0.0.9"] = [time.time() - 1000]
    routes._rate_store["10.0.0.8"] = []
    routes._rate_store["10.0.0.7"] = [time.time()]
    api.post("/api/refresh")
    assert "10.0.0.9" not in routes._rate_store
    assert "10.0.0.8" not in routes._rate_store
    assert "10.0.0.7" in routes._rate_store
    assert len(routes._rate_store["testclient"]) == 1
