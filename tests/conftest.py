"""Shared fixtures for the service and route tests."""

from typing import Any, Dict, Optional
from unittest.mock import AsyncMock

import pytest

from app.config import Settings
from app.models.identity import AuthUser, Identity, Session
from app.services.backend_errors import BackendError, BackendErrorCode
from app.services.supabase_service import SupabaseService


@pytest.fixture
def settings():
    """Settings with a configured backend, isolated from any .env file."""
    return Settings(
        _env_file=None,
        supabase_url="https://example.supabase.co",
        supabase_anon_key="anon-key",
        supabase_jwt_secret=None,
    )


@pytest.fixture
def backend():
    """Mocked backend gateway; every method is an AsyncMock."""
    return AsyncMock(spec=SupabaseService)


@pytest.fixture
def identity():
    return Identity(id="u1", email="jane@acme.com")


@pytest.fixture
def session():
    return Session(
        access_token="access-1",
        refresh_token="refresh-1",
        user=AuthUser(id="u1", email="jane@acme.com"),
    )


def backend_error(code: BackendErrorCode, message: str = "backend error") -> BackendError:
    return BackendError(code, message)


class FakeTableBackend:
    """
    In-memory stand-in for the table API, enough to observe upsert
    conflict handling.
    """

    def __init__(self) -> None:
        self.rows: Dict[str, Dict[str, Any]] = {}
        self._next_id = 1

    async def upsert(self, table: str, record: Dict[str, Any], on_conflict: str, access_token: Optional[str] = None):
        key = record[on_conflict]
        existing = self.rows.get(key)
        row = {**(existing or {}), **record}
        if existing is None:
            row["id"] = f"row-{self._next_id}"
            self._next_id += 1
        self.rows[key] = row
        return dict(row)
