"""
Thin async client for the backend-as-a-service: the auth REST API
(``/auth/v1``) and the table REST API (``/rest/v1``).

Every failure leaves this module as a ``BackendError`` with a classified
``BackendErrorCode``; callers never inspect backend message strings.
"""
import logging
from typing import Any, Dict, List, Optional

import httpx

from app.models.identity import AuthUser, Session
from app.services.backend_errors import BackendError, BackendErrorCode

logger = logging.getLogger(__name__)

AUTH_PATH = "/auth/v1"
REST_PATH = "/rest/v1"

SINGLE_OBJECT = "application/vnd.pgrst.object+json"

# Table-API error codes
PG_UNDEFINED_TABLE = "42P01"
PGRST_SCHEMA_CACHE_MISS = "PGRST205"
PGRST_NO_ROWS = "PGRST116"

_DUPLICATE_MARKERS = ("already registered", "already exists", "user_already_exists")
_UNCONFIRMED_MARKERS = ("not confirmed", "unconfirmed", "email_not_confirmed")
_INVALID_LOGIN_MARKERS = ("invalid login credentials", "invalid_credentials", "invalid_grant")


def _error_payload(response: httpx.Response) -> Dict[str, Any]:
    try:
        payload = response.json()
    except ValueError:
        return {"message": response.text}
    return payload if isinstance(payload, dict) else {"message": str(payload)}


def _error_message(payload: Dict[str, Any]) -> str:
    for key in ("error_description", "msg", "message", "error"):
        value = payload.get(key)
        if value:
            return str(value)
    return "Unknown backend error"


def classify_auth_error(response: httpx.Response) -> BackendError:
    payload = _error_payload(response)
    message = _error_message(payload)
    haystack = " ".join(
        str(payload.get(k, "")) for k in ("error", "error_code", "code", "msg", "message", "error_description")
    ).lower()

    if any(marker in haystack for marker in _DUPLICATE_MARKERS):
        code = BackendErrorCode.duplicate_account
    elif any(marker in haystack for marker in _UNCONFIRMED_MARKERS):
        code = BackendErrorCode.unconfirmed_account
    elif any(marker in haystack for marker in _INVALID_LOGIN_MARKERS):
        code = BackendErrorCode.invalid_credentials
    elif response.status_code in (401, 403):
        code = BackendErrorCode.unauthorized
    elif response.status_code == 422:
        code = BackendErrorCode.validation
    else:
        code = BackendErrorCode.unknown
    return BackendError(code, message, status_code=response.status_code, details=payload)


def classify_table_error(response: httpx.Response) -> BackendError:
    payload = _error_payload(response)
    message = _error_message(payload)
    pg_code = str(payload.get("code") or "")

    if pg_code in (PG_UNDEFINED_TABLE, PGRST_SCHEMA_CACHE_MISS):
        code = BackendErrorCode.table_missing
    elif pg_code == PGRST_NO_ROWS:
        code = BackendErrorCode.no_row
    elif response.status_code in (401, 403):
        code = BackendErrorCode.unauthorized
    elif pg_code.startswith("22") or pg_code.startswith("23"):
        code = BackendErrorCode.validation
    else:
        code = BackendErrorCode.unknown
    return BackendError(code, message, status_code=response.status_code, details=payload)


def _eq_filters(filters: Dict[str, Any]) -> Dict[str, str]:
    return {column: f"eq.{value}" for column, value in filters.items()}


def session_from_payload(payload: Dict[str, Any]) -> Optional[Session]:
    """Build a Session from a token response; sign-up without auto-confirm has no token."""
    if not payload.get("access_token"):
        return None
    return Session(**payload)


def user_from_payload(payload: Dict[str, Any]) -> Optional[AuthUser]:
    if isinstance(payload.get("user"), dict):
        return AuthUser(**payload["user"])
    if payload.get("id"):
        return AuthUser(**payload)
    return None


class SupabaseService:
    def __init__(
        self,
        url: str,
        anon_key: str,
        timeout: float = 30.0,
        client: Optional[httpx.AsyncClient] = None,
    ) -> None:
        self.url = url.rstrip("/")
        self.anon_key = anon_key
        self._client = client or httpx.AsyncClient(base_url=self.url, timeout=timeout)

    def _headers(self, access_token: Optional[str] = None, **extra: str) -> Dict[str, str]:
        headers = {
            "apikey": self.anon_key,
            "Authorization": f"Bearer {access_token or self.anon_key}",
            "Accept": "application/json",
        }
        headers.update(extra)
        return headers

    async def _request(self, method: str, path: str, **kwargs: Any) -> httpx.Response:
        try:
            return await self._client.request(method, path, **kwargs)
        except httpx.HTTPError as exc:
            logger.exception("Backend request %s %s failed to reach %s", method, path, self.url)
            raise BackendError(
                BackendErrorCode.unreachable,
                "Unable to reach the backend. Please try again.",
            ) from exc

    async def _auth_call(self, method: str, path: str, access_token: Optional[str] = None, **kwargs: Any) -> Dict[str, Any]:
        response = await self._request(method, f"{AUTH_PATH}{path}", headers=self._headers(access_token), **kwargs)
        if response.is_error:
            error = classify_auth_error(response)
            logger.warning("Auth call %s %s failed: %r", method, path, error)
            raise error
        if not response.content:
            return {}
        return response.json()

    async def _table_call(
        self,
        method: str,
        table: str,
        params: Optional[Dict[str, str]] = None,
        access_token: Optional[str] = None,
        headers: Optional[Dict[str, str]] = None,
        **kwargs: Any,
    ) -> Any:
        response = await self._request(
            method,
            f"{REST_PATH}/{table}",
            params=params,
            headers=self._headers(access_token, **(headers or {})),
            **kwargs,
        )
        if response.is_error:
            error = classify_table_error(response)
            logger.warning("Table call %s %s failed: %r", method, table, error)
            raise error
        if not response.content:
            return None
        return response.json()

    # -----------------------
    # Auth API
    # -----------------------
    async def sign_in_with_password(self, email: str, password: str) -> Session:
        payload = await self._auth_call(
            "POST", "/token", params={"grant_type": "password"}, json={"email": email, "password": password}
        )
        session = session_from_payload(payload)
        if session is None:
            raise BackendError(BackendErrorCode.unknown, "Sign-in returned no session")
        return session

    async def sign_up(self, email: str, password: str, data: Optional[Dict[str, Any]] = None) -> Dict[str, Any]:
        """Returns the raw response; it carries a session only when email confirmation is off."""
        return await self._auth_call(
            "POST", "/signup", json={"email": email, "password": password, "data": data or {}}
        )

    async def sign_out(self, access_token: str) -> None:
        await self._auth_call("POST", "/logout", access_token=access_token)

    async def get_user(self, access_token: str) -> AuthUser:
        payload = await self._auth_call("GET", "/user", access_token=access_token)
        return AuthUser(**payload)

    async def refresh_session(self, refresh_token: str) -> Session:
        payload = await self._auth_call(
            "POST", "/token", params={"grant_type": "refresh_token"}, json={"refresh_token": refresh_token}
        )
        session = session_from_payload(payload)
        if session is None:
            raise BackendError(BackendErrorCode.unknown, "Token refresh returned no session")
        return session

    async def reset_password_for_email(self, email: str, redirect_to: Optional[str] = None) -> None:
        params = {"redirect_to": redirect_to} if redirect_to else None
        await self._auth_call("POST", "/recover", params=params, json={"email": email})

    # -----------------------
    # Table API
    # -----------------------
    async def select_single(self, table: str, filters: Dict[str, Any], access_token: Optional[str] = None) -> Dict[str, Any]:
        params = {"select": "*", **_eq_filters(filters)}
        return await self._table_call(
            "GET", table, params=params, access_token=access_token, headers={"Accept": SINGLE_OBJECT}
        )

    async def select(
        self,
        table: str,
        order: Optional[str] = None,
        filters: Optional[Dict[str, Any]] = None,
        access_token: Optional[str] = None,
    ) -> List[Dict[str, Any]]:
        params = {"select": "*", **_eq_filters(filters or {})}
        if order:
            params["order"] = order
        rows = await self._table_call("GET", table, params=params, access_token=access_token)
        return rows or []

    async def update(
        self,
        table: str,
        values: Dict[str, Any],
        filters: Dict[str, Any],
        access_token: Optional[str] = None,
    ) -> List[Dict[str, Any]]:
        rows = await self._table_call(
            "PATCH",
            table,
            params=_eq_filters(filters),
            access_token=access_token,
            headers={"Prefer": "return=representation"},
            json=values,
        )
        return rows or []

    async def upsert(
        self,
        table: str,
        record: Dict[str, Any],
        on_conflict: str,
        access_token: Optional[str] = None,
    ) -> Dict[str, Any]:
        return await self._table_call(
            "POST",
            table,
            params={"on_conflict": on_conflict},
            access_token=access_token,
            headers={
                "Prefer": "resolution=merge-duplicates,return=representation",
                "Accept": SINGLE_OBJECT,
            },
            json=record,
        )

    async def delete(self, table: str, filters: Dict[str, Any], access_token: Optional[str] = None) -> None:
        await self._table_call("DELETE", table, params=_eq_filters(filters), access_token=access_token)

    async def aclose(self) -> None:
        await self._client.aclose()
