from __future__ import annotations

import math

import pytest
from fastapi.testclient import TestClient

from delicious.app import app
from delicious.catalog.data_store import get_document_store, reset_document_store
from delicious.catalog.search import EARTH_RADIUS_M

ORIGIN = (-79.3832, 43.6532)


def _client(email="owner@example.com") -> TestClient:
    c = TestClient(app)
    c.post("/auth/register", json={"name": email.split("@")[0], "email": email, "password": "secret123"})
    return c


def _store_body(name="Deli", **overrides) -> dict:
    body = {
        "name": name,
        "description": "Sandwiches and soup",
        "tags": ["Wifi"],
        "location": {"coordinates": list(ORIGIN), "address": "5 Main St"},
    }
    body.update(overrides)
    return body


# ── Stores ───────────────────────────────────────────────────────────────


def test_create_and_fetch_by_slug():
    reset_document_store()
    c = _client()
    resp = c.post("/stores", json=_store_body())
    assert resp.status_code == 200
    assert resp.json()["slug"] == "deli"

    detail = c.get("/store/deli")
    assert detail.status_code == 200
    assert detail.json()["name"] == "Deli"
    assert detail.json()["reviews"] == []


def test_unknown_slug_is_404():
    reset_document_store()
    assert TestClient(app).get("/store/nothing-here").status_code == 404


def test_create_validation_rejects_missing_address():
    reset_document_store()
    c = _client()
    resp = c.post("/stores", json=_store_body(location={"coordinates": list(ORIGIN)}))
    assert resp.status_code == 422


def test_create_rejects_name_that_sanitizes_to_nothing():
    reset_document_store()
    c = _client()
    resp = c.post("/stores", json=_store_body(name="<b></b>"))
    assert resp.status_code == 422
    assert resp.json()["field"] == "name"


def test_edit_and_update_guarded_by_owner():
    reset_document_store()
    owner = _client()
    store_id = owner.post("/stores", json=_store_body()).json()["id"]

    intruder = _client("intruder@example.com")
    assert intruder.get(f"/stores/{store_id}/edit").status_code == 403
    assert intruder.post(f"/stores/{store_id}", json=_store_body("Mine")).status_code == 403

    assert owner.get(f"/stores/{store_id}/edit").status_code == 200
    resp = owner.post(f"/stores/{store_id}", json=_store_body(description="Now with pickles"))
    assert resp.status_code == 200
    assert resp.json()["description"] == "Now with pickles"
    assert resp.json()["slug"] == "deli"


def test_edit_unknown_store_is_404():
    reset_document_store()
    assert _client().get("/stores/missing/edit").status_code == 404


# ── Pagination ───────────────────────────────────────────────────────────


def test_stores_page_and_overflow_redirect():
    reset_document_store()
    c = _client()
    for i in range(8):
        c.post("/stores", json=_store_body(f"Store {i}"))

    first = c.get("/stores")
    assert first.status_code == 200
    assert first.json()["total_pages"] == 2
    assert len(first.json()["items"]) == 4

    resp = c.get("/stores/page/5", follow_redirects=False)
    assert resp.status_code == 302
    assert resp.headers["location"] == "/stores/page/2"

    followed = c.get("/stores/page/5")
    assert followed.status_code == 200
    assert followed.json()["page"] == 2


def test_empty_catalog_page_one():
    reset_document_store()
    resp = TestClient(app).get("/stores", follow_redirects=False)
    assert resp.status_code == 200
    assert resp.json()["items"] == []


# ── Reviews, tags, top ───────────────────────────────────────────────────


def test_reviews_feed_top_stores():
    reset_document_store()
    owner = _client()
    popular = owner.post("/stores", json=_store_body("Popular")).json()["id"]
    lonely = owner.post("/stores", json=_store_body("Lonely")).json()["id"]

    critic = _client("critic@example.com")
    critic.post(f"/reviews/{popular}", json={"text": "Good", "rating": 4})
    critic.post(f"/reviews/{popular}", json={"text": "Great", "rating": 5})
    critic.post(f"/reviews/{lonely}", json={"text": "Only one", "rating": 5})

    top = TestClient(app).get("/top").json()
    assert [s["name"] for s in top] == ["Popular"]
    assert top[0]["average_rating"] == 4.5


def test_review_validation_rejects_bad_rating():
    reset_document_store()
    c = _client()
    store_id = c.post("/stores", json=_store_body()).json()["id"]
    assert c.post(f"/reviews/{store_id}", json={"text": "Hmm", "rating": 6}).status_code == 422


def test_review_unknown_store_is_404():
    reset_document_store()
    resp = _client().post("/reviews/missing", json={"text": "Hmm", "rating": 3})
    assert resp.status_code == 404


def test_tags_endpoints():
    reset_document_store()
    c = _client()
    c.post("/stores", json=_store_body("Deli", tags=["Wifi", "Vegan"]))
    c.post("/stores", json=_store_body("Diner", tags=["Wifi"]))

    body = c.get("/tags").json()
    assert body["tags"] == [{"tag": "Wifi", "count": 2}, {"tag": "Vegan", "count": 1}]
    assert len(body["stores"]) == 2

    vegan = c.get("/tags/Vegan").json()
    assert vegan["tag"] == "Vegan"
    assert [s["name"] for s in vegan["stores"]] == ["Deli"]


@pytest.fixture
def closed_store():
    reset_document_store().close()
    yield get_document_store()
    reset_document_store()


def test_aggregates_unavailable_is_503(closed_store):
    c = TestClient(app)
    assert c.get("/tags").status_code == 503
    assert c.get("/top").status_code == 503


# ── Search ───────────────────────────────────────────────────────────────


def test_search_endpoint():
    reset_document_store()
    c = _client()
    c.post("/stores", json=_store_body("Coffee Corner", description="espresso"))
    c.post("/stores", json=_store_body("Burger Barn", description="burgers"))

    resp = c.get("/api/search", params={"q": "espresso"})
    assert resp.status_code == 200
    assert [s["name"] for s in resp.json()] == ["Coffee Corner"]
    assert resp.json()[0]["score"] > 0


def test_search_empty_query_is_400():
    assert TestClient(app).get("/api/search", params={"q": " "}).status_code == 400


def test_near_endpoint():
    reset_document_store()
    c = _client()
    far = [ORIGIN[0], ORIGIN[1] + math.degrees(20_000 / EARTH_RADIUS_M)]
    c.post("/stores", json=_store_body("Here"))
    c.post("/stores", json=_store_body("Far", location={"coordinates": far, "address": "Away"}))

    resp = c.get("/api/stores/near", params={"lng": ORIGIN[0], "lat": ORIGIN[1]})
    assert resp.status_code == 200
    assert [s["name"] for s in resp.json()] == ["Here"]
    assert "tags" not in resp.json()[0]


def test_near_bad_coordinates_is_400():
    c = TestClient(app)
    assert c.get("/api/stores/near", params={"lng": "abc", "lat": "1"}).status_code == 400
    assert c.get("/api/stores/near").status_code == 400


# ── Hearts ───────────────────────────────────────────────────────────────


def test_heart_toggle_endpoint():
    reset_document_store()
    c = _client()
    store_id = c.post("/stores", json=_store_body()).json()["id"]

    first = c.post(f"/api/stores/{store_id}/heart")
    assert first.status_code == 200
    assert first.json()["hearts"] == [store_id]
    assert [s["id"] for s in c.get("/hearts").json()] == [store_id]

    second = c.post(f"/api/stores/{store_id}/heart")
    assert second.json()["hearts"] == []
    assert c.get("/hearts").json() == []


def test_heart_unknown_store_is_404():
    reset_document_store()
    assert _client().post("/api/stores/missing/heart").status_code == 404
