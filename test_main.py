"""
test_main.py
============
API tests for the Gift Card Vault.

Covers:
- Creating, listing and fetching cards, scoped by owner
- View filters (all / favorites / expiring) and search
- Sample cards for an empty collection
- Favorite toggling and the one-way "mark as used" transition
- Analytics summary
- Brand logo search proxy
- Database failures surfacing as 503
"""

from datetime import datetime, timedelta, timezone

import pytest
from fastapi.testclient import TestClient

from card_engine import resolve_brand_color
from card_store import CardStore
from conftest import TestingSessionLocal, test_engine
from database import Base
from errors import LogoLookupError, TransientBackendError
from main import app, get_db, get_logo_client, get_store


def override_get_db():
    db = TestingSessionLocal()
    try:
        yield db
    finally:
        db.close()


class StubLogoClient:
    def __init__(self, logo_url=None, fail=False, configured=True):
        self.logo_url = logo_url
        self.fail = fail
        self.configured = configured
        self.calls = []

    def search_logo(self, brand_name):
        self.calls.append(brand_name)
        if self.fail:
            raise LogoLookupError("upstream down")
        return self.logo_url


@pytest.fixture(autouse=True)
def setup_db():
    """Create fresh tables before each test and drop them after."""
    Base.metadata.create_all(bind=test_engine)
    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_logo_client] = lambda: StubLogoClient()
    yield
    Base.metadata.drop_all(bind=test_engine)
    app.dependency_overrides.clear()


client = TestClient(app)

OWNER = "user-1"


# ══════════════════════════════════════════════
#  Helper functions
# ══════════════════════════════════════════════

def create_card(owner=OWNER, **overrides):
    payload = {
        "offer_name": "Coffee Gift",
        "brand_name": "Starbucks",
        "sector": "Food & Dining",
        "value": 100,
    }
    payload.update(overrides)
    return client.post(f"/users/{owner}/cards", json=payload)


def in_days(days, hours=0):
    return (datetime.now(timezone.utc) + timedelta(days=days, hours=hours)).isoformat()


# ══════════════════════════════════════════════
#  Create / Read Tests
# ══════════════════════════════════════════════

class TestCardCRUD:

    def test_create_card(self):
        resp = create_card(redeem_code="ABCD-1234-5678")
        assert resp.status_code == 201
        body = resp.json()
        assert body["brand_name"] == "Starbucks"
        assert body["sector"] == "Food & Dining"
        assert body["brand_color"] == "hsl(155, 59%, 27%)"
        assert body["is_favorite"] is False
        assert body["is_used"] is False
        assert body["used_at"] is None
        assert body["redeem_code_short"] == "5678"
        assert body["monogram"] == "S"
        assert "id" in body

    def test_create_then_list_round_trip(self):
        created = create_card(brand_name="Local Bakery").json()
        resp = client.get(f"/users/{OWNER}/cards")
        assert resp.status_code == 200
        body = resp.json()
        assert body["is_sample"] is False
        assert [c["id"] for c in body["cards"]] == [created["id"]]
        card = body["cards"][0]
        assert card["brand_color"] == resolve_brand_color("Local Bakery")
        assert card["is_used"] is False

    def test_value_defaults_to_zero(self):
        resp = client.post(f"/users/{OWNER}/cards", json={
            "offer_name": "Free Fries", "brand_name": "KFC", "sector": "Food & Dining",
        })
        assert resp.status_code == 201
        assert resp.json()["value"] == 0.0

    def test_get_card_by_id(self):
        created = create_card().json()
        resp = client.get(f"/users/{OWNER}/cards/{created['id']}")
        assert resp.status_code == 200
        assert resp.json()["id"] == created["id"]

    def test_get_card_not_found(self):
        resp = client.get(f"/users/{OWNER}/cards/does-not-exist")
        assert resp.status_code == 404

    def test_cards_are_scoped_by_owner(self):
        created = create_card(owner="someone-else").json()
        assert client.get(f"/users/{OWNER}/cards/{created['id']}").status_code == 404
        assert client.get(f"/users/{OWNER}/cards").json()["is_sample"] is True

    def test_newest_first(self):
        first = create_card(offer_name="First").json()
        second = create_card(offer_name="Second").json()
        ids = [c["id"] for c in client.get(f"/users/{OWNER}/cards").json()["cards"]]
        assert ids == [second["id"], first["id"]]


# ══════════════════════════════════════════════
#  Validation Tests
# ══════════════════════════════════════════════

class TestValidation:

    def test_missing_offer_name(self):
        resp = client.post(f"/users/{OWNER}/cards", json={
            "brand_name": "Nike", "sector": "Sports & Fitness",
        })
        assert resp.status_code == 422

    def test_blank_brand_name(self):
        resp = create_card(brand_name="   ")
        assert resp.status_code == 422

    def test_unknown_sector(self):
        resp = create_card(sector="Groceries")
        assert resp.status_code == 422

    def test_negative_value(self):
        resp = create_card(value=-5)
        assert resp.status_code == 422

    def test_unknown_view_filter(self):
        resp = client.get(f"/users/{OWNER}/cards", params={"view": "recent"})
        assert resp.status_code == 422


# ══════════════════════════════════════════════
#  Dashboard List Tests
# ══════════════════════════════════════════════

class TestCardList:

    def test_empty_collection_returns_samples(self):
        body = client.get(f"/users/{OWNER}/cards").json()
        assert body["is_sample"] is True
        assert len(body["cards"]) == 4
        assert all(c["is_sample"] for c in body["cards"])

    def test_samples_not_shown_for_other_views(self):
        body = client.get(f"/users/{OWNER}/cards", params={"view": "favorites"}).json()
        assert body["is_sample"] is False
        assert body["cards"] == []

    def test_samples_are_not_persisted(self):
        client.get(f"/users/{OWNER}/cards")
        analytics = client.get(f"/users/{OWNER}/analytics").json()
        assert analytics["total_cards"] == 0

    def test_favorites_view(self):
        fav = create_card(brand_name="Nike").json()
        create_card(brand_name="Zara")
        client.put(f"/users/{OWNER}/cards/{fav['id']}/favorite", json={"is_favorite": True})
        body = client.get(f"/users/{OWNER}/cards", params={"view": "favorites"}).json()
        assert [c["id"] for c in body["cards"]] == [fav["id"]]

    def test_expiring_view_includes_expired(self):
        soon = create_card(expires_at=in_days(3)).json()
        expired = create_card(expires_at=in_days(-10)).json()
        create_card(expires_at=in_days(30))
        create_card()  # never expires
        body = client.get(f"/users/{OWNER}/cards", params={"view": "expiring"}).json()
        assert {c["id"] for c in body["cards"]} == {soon["id"], expired["id"]}

    def test_expiry_label(self):
        create_card(expires_at=in_days(3, hours=-1))
        card = client.get(f"/users/{OWNER}/cards").json()["cards"][0]
        assert card["expiry_label"] == "Expires in 3 days"

    def test_search_matches_brand_offer_and_sector(self):
        create_card(brand_name="Spotify", offer_name="Music Gift", sector="Entertainment")
        create_card(brand_name="Nike", offer_name="Shoes", sector="Sports & Fitness")

        def search(term):
            body = client.get(f"/users/{OWNER}/cards", params={"search": term}).json()
            return [c["brand_name"] for c in body["cards"]]

        assert search("spot") == ["Spotify"]
        assert search("SHOES") == ["Nike"]
        assert search("entertain") == ["Spotify"]
        assert search("nothing-like-this") == []

    def test_used_cards_hidden_from_all_view(self):
        used = create_card(brand_name="Amazon").json()
        kept = create_card(brand_name="Apple").json()
        client.post(f"/users/{OWNER}/cards/{used['id']}/use")
        body = client.get(f"/users/{OWNER}/cards").json()
        assert [c["id"] for c in body["cards"]] == [kept["id"]]
        assert body["is_sample"] is False


# ══════════════════════════════════════════════
#  Favorite / Mark Used Tests
# ══════════════════════════════════════════════

class TestCardMutations:

    def test_set_favorite(self):
        created = create_card().json()
        resp = client.put(f"/users/{OWNER}/cards/{created['id']}/favorite", json={"is_favorite": True})
        assert resp.status_code == 200
        assert resp.json()["is_favorite"] is True

    def test_set_favorite_not_found(self):
        resp = client.put(f"/users/{OWNER}/cards/missing/favorite", json={"is_favorite": True})
        assert resp.status_code == 404

    def test_mark_used(self):
        created = create_card().json()
        resp = client.post(f"/users/{OWNER}/cards/{created['id']}/use")
        assert resp.status_code == 200
        body = resp.json()
        assert body["is_used"] is True
        assert body["used_at"] is not None

    def test_mark_used_twice_is_rejected(self):
        created = create_card().json()
        first = client.post(f"/users/{OWNER}/cards/{created['id']}/use").json()
        resp = client.post(f"/users/{OWNER}/cards/{created['id']}/use")
        assert resp.status_code == 409
        assert "already used" in resp.json()["detail"].lower()
        again = client.get(f"/users/{OWNER}/cards/{created['id']}").json()
        assert again["used_at"] == first["used_at"]

    def test_mark_used_not_found(self):
        resp = client.post(f"/users/{OWNER}/cards/missing/use")
        assert resp.status_code == 404


# ══════════════════════════════════════════════
#  Analytics Tests
# ══════════════════════════════════════════════

class TestAnalytics:

    def test_empty_analytics(self):
        body = client.get(f"/users/{OWNER}/analytics").json()
        assert body["total_cards"] == 0
        assert body["average_value"] == 0
        assert body["top_brand"] == "N/A"

    def test_analytics_summary(self):
        a = create_card(brand_name="Starbucks", value=100, sector="Food & Dining").json()
        create_card(brand_name="Dominos", value=50, sector="Food & Dining")
        create_card(brand_name="Apple", value=200, sector="Technology", expires_at=in_days(2))
        client.put(f"/users/{OWNER}/cards/{a['id']}/favorite", json={"is_favorite": True})
        client.post(f"/users/{OWNER}/cards/{a['id']}/use")

        body = client.get(f"/users/{OWNER}/analytics").json()
        assert body["total_cards"] == 3
        assert body["total_value"] == 350.0
        assert body["average_value"] == pytest.approx(116.67, abs=0.01)
        assert body["expiring_soon"] == 1
        assert body["used_count"] == 1
        assert body["favorite_count"] == 1
        assert body["sector_histogram"] == {"Food & Dining": 2, "Technology": 1}
        assert body["value_by_sector"] == {"Food & Dining": 150.0, "Technology": 200.0}
        assert body["top_brand"] == "Apple"
        assert sum(body["monthly_histogram"].values()) == 3


# ══════════════════════════════════════════════
#  Brand Logo Tests
# ══════════════════════════════════════════════

class TestBrandLogo:

    def test_search_brand_logo(self):
        stub = StubLogoClient(logo_url="https://cdn.example.com/nike.png")
        app.dependency_overrides[get_logo_client] = lambda: stub
        resp = client.post("/search-brand-logo", json={"brandName": "Nike"})
        assert resp.status_code == 200
        assert resp.json() == {"logoUrl": "https://cdn.example.com/nike.png"}
        assert stub.calls == ["Nike"]

    def test_search_brand_logo_no_match(self):
        resp = client.post("/search-brand-logo", json={"brandName": "Tiny Local Shop"})
        assert resp.status_code == 200
        assert resp.json() == {"logoUrl": None}

    def test_search_requires_brand_name(self):
        resp = client.post("/search-brand-logo", json={})
        assert resp.status_code == 400

    def test_search_without_api_key(self):
        app.dependency_overrides[get_logo_client] = lambda: StubLogoClient(configured=False)
        resp = client.post("/search-brand-logo", json={"brandName": "Nike"})
        assert resp.status_code == 500

    def test_search_upstream_failure(self):
        app.dependency_overrides[get_logo_client] = lambda: StubLogoClient(fail=True)
        resp = client.post("/search-brand-logo", json={"brandName": "Nike"})
        assert resp.status_code == 500
        assert resp.json()["detail"] == "Failed to search brand logo"

    def test_create_with_logo_lookup(self):
        stub = StubLogoClient(logo_url="https://cdn.example.com/amazon.png")
        app.dependency_overrides[get_logo_client] = lambda: stub
        resp = create_card(brand_name="Amazon", lookup_logo=True)
        assert resp.status_code == 201
        assert resp.json()["brand_logo_url"] == "https://cdn.example.com/amazon.png"

    def test_failed_logo_lookup_does_not_block_creation(self):
        app.dependency_overrides[get_logo_client] = lambda: StubLogoClient(fail=True)
        resp = create_card(brand_name="Amazon", lookup_logo=True)
        assert resp.status_code == 201
        body = resp.json()
        assert body["brand_logo_url"] is None
        assert body["brand_color"] == "hsl(37, 100%, 50%)"
        assert body["monogram"] == "A"


# ══════════════════════════════════════════════
#  Backend Failure Tests
# ══════════════════════════════════════════════

class DownStore(CardStore):
    """Store whose every call fails as if the database were unreachable."""

    def __init__(self):
        super().__init__(db=None)

    def list_cards(self, *args, **kwargs):
        raise TransientBackendError("Could not load gift cards")

    def get_card(self, *args, **kwargs):
        raise TransientBackendError("Could not load gift card")

    def create_card(self, *args, **kwargs):
        raise TransientBackendError("Could not create card")

    def set_favorite(self, *args, **kwargs):
        raise TransientBackendError("Could not update favorite")

    def mark_used(self, *args, **kwargs):
        raise TransientBackendError("Could not mark card used")


class TestBackendFailures:

    @pytest.fixture(autouse=True)
    def store_down(self):
        app.dependency_overrides[get_store] = DownStore

    @pytest.mark.parametrize("method, path, body", [
        ("get", f"/users/{OWNER}/cards", None),
        ("get", f"/users/{OWNER}/cards/abc", None),
        ("get", f"/users/{OWNER}/analytics", None),
        ("post", f"/users/{OWNER}/cards", {
            "offer_name": "Gift", "brand_name": "Nike", "sector": "Sports & Fitness",
        }),
        ("put", f"/users/{OWNER}/cards/abc/favorite", {"is_favorite": True}),
        ("post", f"/users/{OWNER}/cards/abc/use", None),
    ])
    def test_backend_failure_maps_to_503(self, method, path, body):
        kwargs = {"json": body} if body is not None else {}
        resp = getattr(client, method)(path, **kwargs)
        assert resp.status_code == 503
        assert resp.json()["detail"].startswith("Could not")
