"""Tests for the REST gateway: request shape and error classification."""

import json

import httpx
import pytest

from app.services.backend_errors import BackendError, BackendErrorCode
from app.services.supabase_service import SupabaseService

BASE_URL = "https://example.supabase.co"


def make_service(handler):
    client = httpx.AsyncClient(base_url=BASE_URL, transport=httpx.MockTransport(handler))
    return SupabaseService(BASE_URL, "anon-key", client=client)


class TestTableErrors:
    @pytest.mark.asyncio
    @pytest.mark.parametrize(
        "status,body,expected",
        [
            (406, {"code": "PGRST116", "message": "JSON object requested, multiple (or no) rows returned"}, BackendErrorCode.no_row),
            (404, {"code": "42P01", "message": 'relation "public.businesses" does not exist'}, BackendErrorCode.table_missing),
            (404, {"code": "PGRST205", "message": "Could not find the table"}, BackendErrorCode.table_missing),
            (401, {"code": "PGRST301", "message": "JWT expired"}, BackendErrorCode.unauthorized),
            (400, {"code": "22P02", "message": "invalid input syntax for type uuid"}, BackendErrorCode.validation),
            (500, {"code": "XX000", "message": "internal"}, BackendErrorCode.unknown),
        ],
    )
    async def test_select_single_classification(self, status, body, expected):
        service = make_service(lambda request: httpx.Response(status, json=body))

        with pytest.raises(BackendError) as excinfo:
            await service.select_single("businesses", {"user_id": "u1"})

        assert excinfo.value.code == expected
        assert excinfo.value.status_code == status


class TestTableRequests:
    @pytest.mark.asyncio
    async def test_select_single_request_shape(self):
        seen = {}

        def handler(request):
            seen["request"] = request
            return httpx.Response(200, json={"id": "b-1", "user_id": "u1"})

        row = await make_service(handler).select_single("businesses", {"user_id": "u1"}, access_token="tok")

        request = seen["request"]
        assert row == {"id": "b-1", "user_id": "u1"}
        assert request.url.path == "/rest/v1/businesses"
        assert request.url.params["user_id"] == "eq.u1"
        assert request.headers["apikey"] == "anon-key"
        assert request.headers["Authorization"] == "Bearer tok"
        assert request.headers["Accept"] == "application/vnd.pgrst.object+json"

    @pytest.mark.asyncio
    async def test_upsert_merges_on_conflict_column(self):
        seen = {}

        def handler(request):
            seen["request"] = request
            body = json.loads(request.content)
            return httpx.Response(201, json={**body, "id": "b-2"})

        saved = await make_service(handler).upsert("businesses", {"user_id": "u1", "name": "Acme"}, on_conflict="user_id")

        request = seen["request"]
        assert request.method == "POST"
        assert request.url.params["on_conflict"] == "user_id"
        assert "resolution=merge-duplicates" in request.headers["Prefer"]
        assert saved["id"] == "b-2"

    @pytest.mark.asyncio
    async def test_select_orders_and_defaults_to_empty(self):
        seen = {}

        def handler(request):
            seen["request"] = request
            return httpx.Response(200, json=[])

        rows = await make_service(handler).select("businesses", order="name.asc")

        assert rows == []
        assert seen["request"].url.params["order"] == "name.asc"

    @pytest.mark.asyncio
    async def test_delete_with_empty_response(self):
        def handler(request):
            assert request.method == "DELETE"
            return httpx.Response(204)

        assert await make_service(handler).delete("businesses", {"user_id": "u1"}) is None


class TestAuthCalls:
    @pytest.mark.asyncio
    async def test_sign_in_returns_session(self):
        def handler(request):
            assert request.url.path == "/auth/v1/token"
            assert request.url.params["grant_type"] == "password"
            return httpx.Response(
                200,
                json={
                    "access_token": "a",
                    "refresh_token": "r",
                    "expires_at": 1700000000,
                    "token_type": "bearer",
                    "user": {"id": "u1", "email": "jane@acme.com", "aud": "authenticated"},
                },
            )

        session = await make_service(handler).sign_in_with_password("jane@acme.com", "secret123")

        assert session.access_token == "a"
        assert session.user.id == "u1"

    @pytest.mark.asyncio
    @pytest.mark.parametrize(
        "status,body,expected",
        [
            (400, {"error": "invalid_grant", "error_description": "Invalid login credentials"}, BackendErrorCode.invalid_credentials),
            (400, {"code": 400, "error_code": "email_not_confirmed", "msg": "Email not confirmed"}, BackendErrorCode.unconfirmed_account),
            (422, {"code": 422, "error_code": "user_already_exists", "msg": "User already registered"}, BackendErrorCode.duplicate_account),
            (422, {"code": 422, "msg": "Password should be at least 6 characters"}, BackendErrorCode.validation),
        ],
    )
    async def test_auth_error_classification(self, status, body, expected):
        service = make_service(lambda request: httpx.Response(status, json=body))

        with pytest.raises(BackendError) as excinfo:
            await service.sign_up("jane@acme.com", "secret123", {"company_name": "Acme"})

        assert excinfo.value.code == expected

    @pytest.mark.asyncio
    async def test_transport_failure_is_unreachable(self):
        def handler(request):
            raise httpx.ConnectError("connection refused", request=request)

        with pytest.raises(BackendError) as excinfo:
            await make_service(handler).sign_in_with_password("jane@acme.com", "secret123")

        assert excinfo.value.code == BackendErrorCode.unreachable

    @pytest.mark.asyncio
    async def test_reset_password_passes_redirect(self):
        seen = {}

        def handler(request):
            seen["request"] = request
            return httpx.Response(200, json={})

        await make_service(handler).reset_password_for_email("jane@acme.com", "http://localhost:3000/reset-password")

        assert seen["request"].url.path == "/auth/v1/recover"
        assert seen["request"].url.params["redirect_to"] == "http://localhost:3000/reset-password"
