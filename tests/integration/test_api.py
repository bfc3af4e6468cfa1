"""
End-to-end tests of the HTTP surface through FastAPI's TestClient.
"""

import pytest
from fastapi.testclient import TestClient

from moveease.main import create_app
from moveease.settings.config import Settings
from moveease.storage import MemoryStorage

PASSWORD = "correct horse battery staple"

CALCULATION = {
    "origin": "123 Main St, New York, NY",
    "destination": "456 Oak Ave, New York, NY",
    "homeSize": "2bedroom",
    "additionalItems": "none",
    "moveDate": "2025-06-01",
    "flexibility": "exact",
    "services": [],
}


class FixedDistance:
    def __init__(self, miles: int):
        self.miles = miles

    def estimate(self, origin: str, destination: str) -> int:
        return self.miles


class AlwaysAvailable:
    def is_available(self, company_name: str) -> bool:
        return True


@pytest.fixture
def app():
    return create_app(storage=MemoryStorage(), distance_estimator=FixedDistance(10), availability=AlwaysAvailable())


def _signed_in(app, name: str) -> TestClient:
    client = TestClient(app)
    email = f"{name}@example.com"
    r = client.post("/auth/register", json={"email": email, "password": PASSWORD, "username": name})
    assert r.status_code == 201, r.text
    r = client.post("/auth/jwt/login", data={"username": email, "password": PASSWORD})
    assert r.status_code == 204, r.text
    return client


@pytest.fixture
def alice(app) -> TestClient:
    return _signed_in(app, "alice")


@pytest.fixture
def bob(app) -> TestClient:
    return _signed_in(app, "bob")


@pytest.fixture
def anonymous(app) -> TestClient:
    return TestClient(app)


def _estimate_body(**overrides):
    body = {
        "origin": "1 A St, Boston, MA",
        "destination": "2 B St, Seattle, WA",
        "distance": 3000,
        "homeSize": "1bedroom",
        "moveDate": "2025-06-01",
        "costDiy": 1700,
        "costHybrid": 5150,
        "costFullService": 8700,
    }
    body.update(overrides)
    return body


class TestHealthAndAuth:
    def test_health(self, anonymous):
        assert anonymous.get("/health").json() == {"status": "ok"}

    def test_current_user(self, alice):
        r = alice.get("/api/user")
        assert r.status_code == 200
        assert r.json()["username"] == "alice"
        assert "hashed_password" not in r.json()

    def test_current_user_requires_login(self, anonymous):
        r = anonymous.get("/api/user")
        assert r.status_code == 401
        assert r.json() == {"detail": "Not authenticated"}

    def test_duplicate_username_rejected(self, app, alice):
        client = TestClient(app)
        r = client.post(
            "/auth/register", json={"email": "another@example.com", "password": PASSWORD, "username": "alice"}
        )
        assert r.status_code == 400
        assert r.json()["detail"] == "REGISTER_USER_ALREADY_EXISTS"

    def test_duplicate_email_rejected(self, app, alice):
        client = TestClient(app)
        r = client.post(
            "/auth/register", json={"email": "alice@example.com", "password": PASSWORD, "username": "alice2"}
        )
        assert r.status_code == 400

    def test_logout_drops_session(self, alice):
        assert alice.post("/auth/jwt/logout").status_code == 204
        alice.cookies.clear()
        assert alice.get("/api/my-estimates").status_code == 401


class TestCalculate:
    def test_anonymous_calculation_is_persisted(self, anonymous):
        r = anonymous.post("/api/calculate-moving-costs", json=CALCULATION)
        assert r.status_code == 200, r.text
        body = r.json()
        assert body["distance"] == 10
        assert body["costs"] == {"diy": 255, "hybrid": 815, "fullService": 1525}
        assert body["homeSize"] == "2bedroom"
        assert len(body["companies"]) == 2
        assert all(c["available"] for c in body["companies"])

        [saved] = anonymous.get("/api/moving-estimates").json()
        assert saved["userId"] is None
        assert saved["costHybrid"] == 815

    def test_signed_in_calculation_is_owned(self, alice):
        alice.post("/api/calculate-moving-costs", json=CALCULATION)
        [mine] = alice.get("/api/my-estimates").json()
        assert mine["distance"] == 10
        assert mine["userId"] is not None

    @pytest.mark.parametrize(
        "field,value",
        [("origin", "NYC"), ("homeSize", "castle"), ("services", ["piano-tuning"]), ("moveDate", "")],
    )
    def test_invalid_request_is_400(self, anonymous, field, value):
        r = anonymous.post("/api/calculate-moving-costs", json={**CALCULATION, field: value})
        assert r.status_code == 400
        body = r.json()
        assert body["detail"] == "Validation error"
        assert any(e["field"].startswith(field) for e in body["errors"])
        assert anonymous.get("/api/moving-estimates").json() == []

    def test_snake_case_input_is_accepted(self, anonymous):
        body = {k: v for k, v in CALCULATION.items() if k != "homeSize"}
        r = anonymous.post("/api/calculate-moving-costs", json={**body, "home_size": "studio"})
        assert r.status_code == 200
        assert r.json()["homeSize"] == "studio"


class TestEstimates:
    def test_save_and_fetch(self, alice):
        r = alice.post("/api/save-estimate", json=_estimate_body())
        assert r.status_code == 201
        saved = r.json()
        assert saved["id"] and saved["createdAt"]

        assert alice.get(f"/api/estimates/{saved['id']}").json()["costFullService"] == 8700

    def test_save_requires_login(self, anonymous):
        assert anonymous.post("/api/save-estimate", json=_estimate_body()).status_code == 401

    def test_someone_elses_estimate_is_not_found(self, alice, bob):
        estimate_id = alice.post("/api/save-estimate", json=_estimate_body()).json()["id"]
        assert bob.get(f"/api/estimates/{estimate_id}").status_code == 404
        assert bob.get("/api/my-estimates").json() == []

    def test_negative_cost_rejected(self, alice):
        r = alice.post("/api/save-estimate", json=_estimate_body(costDiy=-1))
        assert r.status_code == 400


class TestChecklists:
    def test_create_fetch_and_toggle(self, alice):
        estimate_id = alice.post("/api/save-estimate", json=_estimate_body()).json()["id"]
        r = alice.post("/api/checklists", json={"moveDate": "2025-06-01", "estimateId": estimate_id})
        assert r.status_code == 201, r.text
        created = r.json()
        checklist_id = created["checklist"]["id"]
        assert created["checklist"]["estimateId"] == estimate_id
        assert len(created["items"]) == 18

        by_estimate = alice.get(f"/api/estimates/{estimate_id}/checklist").json()
        assert by_estimate["checklist"]["id"] == checklist_id
        assert [i["id"] for i in by_estimate["items"]] == [i["id"] for i in created["items"]]

        item_id = created["items"][0]["id"]
        assert alice.patch(f"/api/checklist-items/{item_id}", json={"completed": True}).json()["completed"] is True
        assert alice.patch(f"/api/checklist-items/{item_id}", json={"completed": False}).json()["completed"] is False

        fetched = alice.get(f"/api/checklists/{checklist_id}").json()
        assert fetched["items"][0]["completed"] is False
        assert [c["id"] for c in alice.get("/api/checklists").json()] == [checklist_id]

    def test_other_users_checklist_is_forbidden(self, alice, bob):
        created = alice.post("/api/checklists", json={"moveDate": "2025-06-01"}).json()
        checklist_id = created["checklist"]["id"]
        item_id = created["items"][0]["id"]

        r = bob.get(f"/api/checklists/{checklist_id}")
        assert r.status_code == 403
        assert r.json() == {"detail": "Unauthorized access to this checklist"}
        assert bob.patch(f"/api/checklist-items/{item_id}", json={"completed": True}).status_code == 403
        assert alice.get(f"/api/checklists/{checklist_id}").json()["items"][0]["completed"] is False

    def test_missing_records_are_404(self, alice):
        assert alice.get("/api/checklists/999").status_code == 404
        assert alice.get("/api/estimates/999/checklist").status_code == 404
        assert alice.patch("/api/checklist-items/999", json={"completed": True}).status_code == 404

    def test_toggle_requires_real_boolean(self, alice):
        item_id = alice.post("/api/checklists", json={"moveDate": "2025-06-01"}).json()["items"][0]["id"]
        r = alice.patch(f"/api/checklist-items/{item_id}", json={"completed": "yes"})
        assert r.status_code == 400
        assert r.json()["errors"][0]["field"] == "completed"

    def test_foreign_estimate_cannot_be_linked(self, alice, bob):
        estimate_id = alice.post("/api/save-estimate", json=_estimate_body()).json()["id"]
        r = bob.post("/api/checklists", json={"moveDate": "2025-06-01", "estimateId": estimate_id})
        assert r.status_code == 400
        assert r.json()["errors"] == [{"field": "estimateId", "message": "Unknown estimate"}]
        assert bob.get("/api/checklists").json() == []

    def test_checklists_require_login(self, anonymous):
        assert anonymous.post("/api/checklists", json={"moveDate": "2025-06-01"}).status_code == 401
        assert anonymous.get("/api/checklists").status_code == 401


class TestGeo:
    def test_cost_map_defaults(self, anonymous):
        rows = anonymous.get("/api/moving-costs-map").json()
        new_york = next(r for r in rows if r["state"] == "New York, NY")
        assert new_york["hybridCost"] == 2500
        assert new_york["coordinates"] == [-74.006, 40.7128]

    def test_cost_map_for_origin_and_size(self, anonymous):
        rows = anonymous.get("/api/moving-costs-map", params={"origin": "Denver, CO", "homeSize": "studio"}).json()
        denver = next(r for r in rows if r["state"] == "Denver, CO")
        assert denver["hybridCost"] == 1440

    def test_address_suggestions(self, anonymous):
        assert anonymous.get("/api/address-suggestions", params={"q": "new york"}).json() == [
            "123 Main St, New York, NY 10001",
            "1515 Broadway, New York, NY 10036",
            "350 5th Ave, New York, NY 10118",
        ]
        assert len(anonymous.get("/api/address-suggestions", params={"q": "ave"}).json()) == 5
        assert anonymous.get("/api/address-suggestions", params={"q": "ne"}).json() == []


class TestProgress:
    def test_unlock_twice(self, alice):
        r = alice.post("/api/unlock-achievement", json={"achievementId": "first_estimate", "points": 15})
        assert r.status_code == 200
        first = r.json()
        assert first["unlocked"] is True
        assert first["progress"]["points"] == 15
        assert first["progress"]["achievements"] == ["first_estimate"]

        again = alice.post("/api/unlock-achievement", json={"achievementId": "first_estimate", "points": 15}).json()
        assert again["unlocked"] is False
        assert again["progress"]["points"] == 15

    def test_progress_lifecycle(self, alice):
        progress = alice.get("/api/user-progress").json()
        assert (progress["points"], progress["level"], progress["streak"]) == (0, 1, 0)

        patched = alice.patch("/api/user-progress", json={"points": 120, "streak": 3}).json()
        assert (patched["points"], patched["level"], patched["streak"]) == (120, 2, 3)

        touched = alice.post("/api/user-progress/interaction").json()
        assert touched["streak"] == 3

    def test_achievements_are_not_patchable(self, alice):
        patched = alice.patch("/api/user-progress", json={"achievements": ["streak_7"]}).json()
        assert patched["achievements"] == []

    def test_progress_is_per_user(self, alice, bob):
        alice.post("/api/unlock-achievement", json={"achievementId": "streak_3", "points": 20})
        assert bob.get("/api/user-progress").json()["points"] == 0

    def test_progress_requires_login(self, anonymous):
        assert anonymous.get("/api/user-progress").status_code == 401
        assert anonymous.post("/api/unlock-achievement", json={"achievementId": "x", "points": 1}).status_code == 401


class TestErrors:
    def test_unexpected_failure_is_opaque_500(self):
        class BrokenDistance:
            def estimate(self, origin, destination):
                raise RuntimeError("geocoder exploded")

        app = create_app(storage=MemoryStorage(), distance_estimator=BrokenDistance(), availability=AlwaysAvailable())
        client = TestClient(app, raise_server_exceptions=False)
        r = client.post("/api/calculate-moving-costs", json=CALCULATION)
        assert r.status_code == 500
        assert r.json() == {"detail": "Internal server error"}


@pytest.mark.slow
def test_database_backend_end_to_end(tmp_path):
    settings = Settings(
        STORAGE_BACKEND="database",
        DATABASE_URL=f"sqlite+aiosqlite:///{tmp_path / 'api.db'}",
        RUN_DB_CREATE_ALL=True,
    )
    app = create_app(settings=settings, distance_estimator=FixedDistance(10), availability=AlwaysAvailable())
    with TestClient(app) as client:
        r = client.post(
            "/auth/register", json={"email": "carol@example.com", "password": PASSWORD, "username": "carol"}
        )
        assert r.status_code == 201, r.text
        client.post("/auth/jwt/login", data={"username": "carol@example.com", "password": PASSWORD})

        client.post("/api/calculate-moving-costs", json=CALCULATION)
        [estimate] = client.get("/api/my-estimates").json()

        created = client.post("/api/checklists", json={"moveDate": "2025-06-01", "estimateId": estimate["id"]}).json()
        item_id = created["items"][0]["id"]
        assert client.patch(f"/api/checklist-items/{item_id}", json={"completed": True}).json()["completed"] is True

        unlocked = client.post("/api/unlock-achievement", json={"achievementId": "first_checklist", "points": 15})
        assert unlocked.json()["progress"]["achievements"] == ["first_checklist"]
