"""HTTP and WebSocket tests against the FastAPI app (memory backend)."""

import httpx
import pytest
from fastapi.testclient import TestClient
from starlette.websockets import WebSocketDisconnect

from conftest import RecordingSleep, gemini_reply
from strain_tracker.core.config import DEFAULT_SECRET_KEY, settings
from strain_tracker.main import app
from strain_tracker.services.retry_client import RetryClient

SIGN_UP = {
    "email": "dee@example.com",
    "password": "hunter22",
    "name": "Dee",
    "dob": "1990-05-17",
    "state": "Michigan",
}

REVIEW = {
    "strain": "Blue Dream",
    "rating": 5,
    "type": "Sativa",
    "productType": "Flower",
    "terpenes": ["Limonene", "Myrcene"],
    "cost": "45.50",
    "brand": "Cookies",
    "location": "Trulieve Miami",
    "effects": "Uplifted and creative",
}


@pytest.fixture
def client():
    with TestClient(app) as test_client:
        test_client.app.state.runtime.generative.retry_client = RetryClient(
            transport=httpx.MockTransport(
                lambda request: httpx.Response(200, json=gemini_reply("Positive; creative lift."))
            ),
            sleep=RecordingSleep(),
        )
        yield test_client


def auth_header(token):
    return {"Authorization": f"Bearer {token}"}


@pytest.fixture
def token(client):
    response = client.post("/api/auth/signup", json=SIGN_UP)
    assert response.status_code == 201
    return response.json()["token"]


class TestHealth:

    def test_health(self, client):
        response = client.get("/health")

        assert response.status_code == 200
        assert response.json() == {"status": "ok", "store": "ok"}
        assert "X-Request-Id" in response.headers

    def test_missing_backend_config(self, monkeypatch):
        monkeypatch.setattr(settings, "DOCUMENT_STORE_BACKEND", "sql")
        monkeypatch.setattr(settings, "DATABASE_URL", None)

        with TestClient(app) as client:
            assert client.get("/health").json()["store"] == "misconfigured"

            response = client.post("/api/auth/anonymous")

        assert response.status_code == 503
        body = response.json()
        assert body["error"]["code"] == "CONFIGURATION"
        assert body["error"]["message"] == "Backend configuration is missing."
        assert body["requestId"]

    def test_sql_backend_refuses_default_secret(self, monkeypatch, tmp_path):
        monkeypatch.setattr(settings, "DOCUMENT_STORE_BACKEND", "sql")
        monkeypatch.setattr(settings, "DATABASE_URL", f"sqlite+aiosqlite:///{tmp_path}/strains.db")
        monkeypatch.setattr(settings, "SECRET_KEY", DEFAULT_SECRET_KEY)

        with TestClient(app) as client:
            assert client.get("/health").json()["store"] == "misconfigured"
            response = client.post("/api/auth/token", json={"token": "anyone.forged"})

        assert response.status_code == 503
        assert response.json()["error"]["details"] == {"insecure": "SECRET_KEY"}

    def test_sql_backend_with_own_secret(self, monkeypatch, tmp_path):
        monkeypatch.setattr(settings, "DOCUMENT_STORE_BACKEND", "sql")
        monkeypatch.setattr(settings, "DATABASE_URL", f"sqlite+aiosqlite:///{tmp_path}/strains.db")
        monkeypatch.setattr(settings, "SECRET_KEY", "a-real-deployment-secret")

        with TestClient(app) as client:
            assert client.get("/health").json()["store"] == "ok"
            assert client.post("/api/auth/anonymous").status_code == 200


class TestAuth:

    def test_abandoned_sessions_are_reclaimed(self, monkeypatch):
        monkeypatch.setattr(settings, "MAX_SESSIONS", 5)

        with TestClient(app) as client:
            for _ in range(50):
                assert client.post("/api/auth/anonymous").status_code == 200

            runtime = client.app.state.runtime
            assert len(runtime.sessions) == 5
            assert runtime.store.subscriber_count(runtime.paths.popular_strains()) == 5

    def test_sign_up_then_me(self, client, token):
        response = client.get("/api/auth/me", headers=auth_header(token))

        assert response.status_code == 200
        body = response.json()
        assert body["anonymous"] is False
        assert body["profile"]["name"] == "Dee"
        assert body["profile"]["state"] == "Michigan"

    def test_duplicate_email(self, client, token):
        response = client.post("/api/auth/signup", json=SIGN_UP)

        assert response.status_code == 409
        assert response.json()["error"]["code"] == "EMAIL_IN_USE"

    def test_weak_password(self, client):
        response = client.post("/api/auth/signup", json={**SIGN_UP, "password": "123"})

        assert response.status_code == 400
        assert response.json()["error"]["code"] == "WEAK_PASSWORD"

    def test_under_age(self, client):
        response = client.post("/api/auth/signup", json={**SIGN_UP, "dob": "2020-01-01"})

        assert response.status_code == 422
        assert "21 years or older" in response.json()["error"]["message"]

    def test_sign_in_failure(self, client, token):
        response = client.post(
            "/api/auth/signin", json={"email": SIGN_UP["email"], "password": "wrong-pass"}
        )

        assert response.status_code == 401
        assert response.json()["error"]["code"] == "SIGN_IN_FAILED"

    def test_sign_in_and_sign_out(self, client, token):
        response = client.post(
            "/api/auth/signin", json={"email": SIGN_UP["email"], "password": SIGN_UP["password"]}
        )
        assert response.status_code == 200
        new_token = response.json()["token"]

        assert client.post("/api/auth/signout", headers=auth_header(new_token)).json() == {"ok": True}
        assert client.get("/api/auth/me", headers=auth_header(new_token)).status_code == 401

    def test_anonymous_profile_fallback(self, client):
        session = client.post("/api/auth/anonymous").json()

        body = client.get("/api/auth/me", headers=auth_header(session["token"])).json()

        assert session["anonymous"] is True
        assert body["profile"]["name"] == "User"
        assert body["profile"]["state"] == "N/A"

    def test_custom_token(self, client):
        runtime = client.app.state.runtime
        custom = runtime.provider.issue_custom_token("seed-user")

        response = client.post("/api/auth/token", json={"token": custom})

        assert response.status_code == 200
        assert response.json()["userId"] == "seed-user"

    def test_requires_bearer_token(self, client):
        response = client.get("/api/reviews")

        assert response.status_code == 401
        assert response.json()["error"]["code"] == "UNAUTHORIZED"


class TestReviews:

    def test_create_list_delete(self, client, token):
        headers = auth_header(token)

        created = client.post("/api/reviews", json=REVIEW, headers=headers)
        assert created.status_code == 201
        assert created.json()["mirrored"] is True
        review_id = created.json()["id"]

        listing = client.get("/api/reviews", headers=headers).json()
        assert listing["total"] == 1
        assert listing["reviews"][0]["strain"] == "Blue Dream"
        assert listing["reviews"][0]["productType"] == "Flower"

        assert client.delete(f"/api/reviews/{review_id}", headers=headers).json() == {"ok": True}
        assert client.get("/api/reviews", headers=headers).json()["total"] == 0

        popular = client.get("/api/popular", headers=headers).json()
        assert [entry["strain"] for entry in popular] == ["Blue Dream"]

    def test_search_and_filters(self, client, token):
        headers = auth_header(token)
        client.post("/api/reviews", json=REVIEW, headers=headers)
        client.post(
            "/api/reviews",
            json={**REVIEW, "strain": "Purple Punch", "type": "Indica", "brand": "Jungle Boys", "rating": 3},
            headers=headers,
        )

        by_brand = client.get("/api/reviews", params={"searchTerm": "cook"}, headers=headers).json()
        by_type = client.get("/api/reviews", params={"filterType": "Indica"}, headers=headers).json()
        combined = client.get(
            "/api/reviews", params={"filterType": "Sativa", "filterRating": 4}, headers=headers
        ).json()

        assert [r["strain"] for r in by_brand["reviews"]] == ["Blue Dream"]
        assert [r["strain"] for r in by_type["reviews"]] == ["Purple Punch"]
        assert [r["strain"] for r in combined["reviews"]] == ["Blue Dream"]

    def test_invalid_review(self, client, token):
        response = client.post(
            "/api/reviews", json={**REVIEW, "strain": ""}, headers=auth_header(token)
        )

        assert response.status_code == 422
        error = response.json()["error"]
        assert error["message"] == "Strain Name and Rating are required."
        assert error["details"] == {"reason": "missing_strain"}

    def test_unknown_terpene(self, client, token):
        response = client.post(
            "/api/reviews", json={**REVIEW, "terpenes": ["Unobtainium"]}, headers=auth_header(token)
        )

        assert response.status_code == 422
        assert response.json()["error"]["code"] == "INVALID_ARGUMENT"

    def test_delete_missing(self, client, token):
        response = client.delete("/api/reviews/nope", headers=auth_header(token))

        assert response.status_code == 404
        assert response.json()["error"]["code"] == "NOT_FOUND"

    def test_analysis_and_share(self, client, token):
        headers = auth_header(token)
        review_id = client.post("/api/reviews", json=REVIEW, headers=headers).json()["id"]

        analysis = client.post(f"/api/reviews/{review_id}/analysis", headers=headers)
        assert analysis.status_code == 200
        assert analysis.json() == {
            "reviewId": review_id,
            "started": True,
            "analysis": "Positive; creative lift.",
        }
        stored = client.get("/api/reviews", headers=headers).json()["reviews"][0]
        assert stored["analysis"] == "Positive; creative lift."
        assert stored["analysisLoading"] is False

        share = client.post(f"/api/reviews/{review_id}/share", headers=headers).json()
        assert share["copied"] is True
        assert share["text"].startswith("*** Black Cannabis Lounge Strain Tracker ***")
        assert "Effects/Notes: Uplifted and creative" in share["text"]


class TestDashboard:

    def test_dashboard(self, client, token):
        headers = auth_header(token)
        client.post("/api/reviews", json=REVIEW, headers=headers)
        client.post("/api/reviews", json={**REVIEW, "strain": "Low One", "rating": 2}, headers=headers)

        body = client.get("/api/dashboard", params={"state": "Michigan"}, headers=headers).json()

        assert [r["strain"] for r in body["topRated"]] == ["Blue Dream"]
        assert body["topRatedBreakdown"]["hasData"] is True
        assert body["popularBreakdown"]["total"] == 1
        assert body["legality"] == {
            "state": "Michigan",
            "status": "Recreational",
            "category": "recreational",
        }

    def test_empty_dashboard(self, client, token):
        body = client.get("/api/dashboard", headers=auth_header(token)).json()

        assert body["topRated"] == []
        assert body["topRatedBreakdown"]["hasData"] is False
        assert body["legality"]["state"] == "Florida"


class TestStrainNames:

    def test_suggestions(self, client, token):
        client.app.state.runtime.generative.retry_client = RetryClient(
            transport=httpx.MockTransport(
                lambda request: httpx.Response(200, json=gemini_reply("Moon Drift, Citrus Halo, Velvet Fog"))
            ),
            sleep=RecordingSleep(),
        )

        response = client.post(
            "/api/ai/strain-names", json={"effects": "sleepy", "flavor": "grape"}, headers=auth_header(token)
        )

        assert response.json()["suggestions"] == ["Moon Drift", "Citrus Halo", "Velvet Fog"]


class TestReference:

    def test_vocabulary(self, client):
        body = client.get("/api/reference/vocabulary").json()

        assert "Limonene" in body["terpenes"]
        assert "Sativa" in body["strainTypes"]
        assert "Tincture" in body["productTypes"]
        assert "Florida" in body["states"]

    def test_unknown_state(self, client):
        body = client.get("/api/reference/legality/Atlantis").json()

        assert body == {"state": "Atlantis", "status": "Unknown", "category": "unknown"}


class TestLiveViews:

    def test_initial_push_and_filter_updates(self, client, token):
        headers = auth_header(token)
        client.post("/api/reviews", json=REVIEW, headers=headers)

        with client.websocket_connect(f"/ws/live?token={token}") as websocket:
            initial = websocket.receive_json()
            assert initial["screen"] == "log"
            assert [r["strain"] for r in initial["reviews"]] == ["Blue Dream"]
            assert [p["strain"] for p in initial["popular"]] == ["Blue Dream"]

            websocket.send_json({"filterRating": 9})
            assert "error" in websocket.receive_json()

            websocket.send_json({"filterType": "Indica"})
            assert websocket.receive_json()["reviews"] == []

    def test_socket_closed_when_session_signs_out(self, client, token):
        with client.websocket_connect(f"/ws/live?token={token}") as websocket:
            websocket.receive_json()

            assert client.post("/api/auth/signout", headers=auth_header(token)).status_code == 200

            with pytest.raises(WebSocketDisconnect) as exc_info:
                websocket.receive_json()

        assert exc_info.value.code == 1008

    def test_unknown_token_rejected(self, client):
        with pytest.raises(WebSocketDisconnect):
            with client.websocket_connect("/ws/live?token=nope"):
                pass
