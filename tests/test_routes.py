"""Route tests through FastAPI's TestClient with the backend unset or mocked."""

import pytest
from fastapi.testclient import TestClient

from app import db
from app.config import get_settings
from app.main import app
from app.models.business_profile import ProfileStatus
from app.routes.auth import auth as auth_routes
from app.routes.business_profile.profile import get_dashboard
from app.services.backend_errors import BackendErrorCode
from app.services.dashboard_service import DashboardService
from app.services.profile_gateway import ProfileGateway
from app.services.profile_resolver import ProfileResolver
from conftest import backend_error


@pytest.fixture
def unconfigured(monkeypatch):
    monkeypatch.delenv("SUPABASE_URL", raising=False)
    monkeypatch.delenv("SUPABASE_ANON_KEY", raising=False)
    monkeypatch.setattr(db, "get_settings", lambda: get_settings().model_copy(
        update={"supabase_url": None, "supabase_anon_key": None}
    ))
    monkeypatch.setattr(db, "_backend", None)


@pytest.fixture
def client():
    with TestClient(app) as test_client:
        yield test_client
    app.dependency_overrides.clear()


class TestPublicPages:
    def test_root(self, client):
        response = client.get("/")
        assert response.status_code == 200
        assert response.json()["status"] == "running"

    def test_membership_tiers(self, client):
        body = client.get("/pages/membership").json()
        assert body["success"] is True
        assert len(body["data"]) == 4

    def test_awards(self, client):
        data = client.get("/pages/awards").json()["data"]
        assert len(data["categories"]) == 6
        assert data["winners"][0]["winner"] == "Sparkle Services"

    def test_contact_form(self, client):
        response = client.post("/contact", json={"name": "Jane", "email": "jane@acme.com", "message": "Hello"})
        assert response.status_code == 202
        assert response.json()["data"]["kind"] == "contact"

    def test_contact_form_invalid_email(self, client):
        response = client.post("/contact", json={"name": "Jane", "email": "nope", "message": "Hello"})
        assert response.status_code == 422

    def test_nomination(self, client):
        response = client.post(
            "/awards/nominate",
            json={
                "business_name": "Acme Cleaning",
                "contact_name": "Jane",
                "email": "jane@acme.com",
                "business_type": "cleaning",
            },
        )
        assert response.status_code == 202


class TestWithoutBackend:
    def test_login_reports_not_configured(self, unconfigured, client):
        response = client.post("/auth/login", json={"email": "jane@acme.com", "password": "secret123"})

        assert response.status_code == 503
        assert "not configured" in response.json()["error"]

    def test_signup_validation_before_backend(self, unconfigured, client):
        response = client.post(
            "/auth/signup",
            json={"email": "jane@acme.com", "password": "123", "company_name": "Acme"},
        )

        assert response.status_code == 400
        assert response.json()["code"] == "validation"

    def test_directory_is_empty(self, unconfigured, client):
        body = client.get("/businesses").json()
        assert body["data"] == {"count": 0, "businesses": []}

    def test_dashboard_requires_token(self, client):
        assert client.get("/dashboard/profile").status_code == 401


class TestBearerTokens:
    @pytest.fixture
    def remote_backend(self, monkeypatch, backend, settings):
        monkeypatch.setattr(auth_routes, "get_backend", lambda: backend)
        monkeypatch.setattr(auth_routes, "get_settings", lambda: settings)
        return backend

    def test_unreachable_backend_is_not_an_invalid_token(self, client, remote_backend):
        remote_backend.get_user.side_effect = backend_error(BackendErrorCode.unreachable, "Unable to reach the backend.")

        response = client.get("/auth/me", headers={"Authorization": "Bearer access-1"})

        assert response.status_code == 502
        assert response.json()["detail"] == "Unable to reach the backend."

    def test_rejected_token_is_unauthorized(self, client, remote_backend):
        remote_backend.get_user.side_effect = backend_error(BackendErrorCode.unauthorized)

        response = client.get("/auth/me", headers={"Authorization": "Bearer expired"})

        assert response.status_code == 401
        assert response.headers["WWW-Authenticate"] == "Bearer"


class TestDashboardRoutes:
    @pytest.fixture
    def dashboard(self, backend, settings, identity):
        service = DashboardService(identity, ProfileResolver(backend, settings), ProfileGateway(backend, settings))
        service.adopt(service.resolver.synthesize_default(identity))
        return service

    @pytest.fixture
    def override(self, client, dashboard):
        async def _dashboard():
            yield dashboard

        app.dependency_overrides[get_dashboard] = _dashboard
        return dashboard

    def test_get_provisional_profile(self, client, override):
        body = client.get("/dashboard/profile").json()

        assert body["data"]["status"] == ProfileStatus.provisional.value
        assert body["data"]["editing"] is True
        assert body["data"]["profile"]["operating_hours"]["friday"]["open"] == "09:00"

    def test_save_profile(self, client, override, backend):
        backend.upsert.return_value = {"id": "b-1", "user_id": "u1", "name": "Acme Cleaning"}

        response = client.put("/dashboard/profile", json={"id": "temp-17000", "name": "Acme Cleaning"})

        assert response.status_code == 200
        body = response.json()
        assert body["data"]["status"] == "persisted"
        assert body["data"]["profile"]["id"] == "b-1"
        assert "id" not in backend.upsert.call_args.args[1]

    def test_save_profile_setup_required(self, client, override, backend):
        backend.upsert.side_effect = backend_error(BackendErrorCode.table_missing)

        response = client.put("/dashboard/profile", json={"name": "Acme Cleaning"})

        assert response.status_code == 503
        assert response.json()["data"]["profile"]["name"] == "Acme Cleaning"

    def test_delete_profile(self, client, override, backend):
        response = client.delete("/dashboard/profile")

        assert response.status_code == 200
        assert response.json()["data"]["status"] == "provisional"
        backend.delete.assert_not_awaited()

    def test_upload_logo(self, client, override):
        response = client.post(
            "/dashboard/profile/logo",
            files={"file": ("logo.png", b"\x89PNG\r\n", "image/png")},
        )

        assert response.status_code == 200
        data = response.json()["data"]
        assert data["profile"]["logo_url"].startswith("data:image/png;base64,")
        assert data["logo_display_url"] == data["profile"]["logo_url"]

    def test_upload_non_image_rejected(self, client, override):
        response = client.post(
            "/dashboard/profile/logo",
            files={"file": ("doc.pdf", b"%PDF-1.4", "application/pdf")},
        )
        assert response.status_code == 400
