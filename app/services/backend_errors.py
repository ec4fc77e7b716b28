from enum import Enum
from typing import Any, Dict, Optional


class BackendErrorCode(str, Enum):
    not_configured = "not_configured"
    unreachable = "unreachable"
    table_missing = "table_missing"
    no_row = "no_row"
    duplicate_account = "duplicate_account"
    unconfirmed_account = "unconfirmed_account"
    invalid_credentials = "invalid_credentials"
    validation = "validation"
    unauthorized = "unauthorized"
    unknown = "unknown"


NOT_CONFIGURED_MESSAGE = "Backend is not configured. Set SUPABASE_URL and SUPABASE_ANON_KEY."


class BackendError(Exception):
    """Raised by the backend gateway with the failure already classified."""

    def __init__(
        self,
        code: BackendErrorCode,
        message: str,
        status_code: Optional[int] = None,
        details: Optional[Dict[str, Any]] = None,
    ) -> None:
        super().__init__(message)
        self.code = code
        self.message = message
        self.status_code = status_code
        self.details = details or {}

    def __repr__(self) -> str:
        return f"BackendError(code={self.code.value!r}, message={self.message!r}, status_code={self.status_code!r})"
