"""
Client-side view of the auth service: holds the current session for one
owner (a request, a test, a long-lived worker) and notifies listeners when
it changes.
"""
import logging
from typing import Awaitable, Callable, List, Optional

from jose import JWTError, jwt

from app.models.identity import AuthEvent, AuthUser, Session
from app.services.backend_errors import BackendError, BackendErrorCode, NOT_CONFIGURED_MESSAGE
from app.services.supabase_service import SupabaseService, session_from_payload, user_from_payload

logger = logging.getLogger(__name__)

AuthListener = Callable[[AuthEvent, Optional[Session]], Awaitable[None]]

JWT_AUDIENCE = "authenticated"


class Subscription:
    def __init__(self, client: "AuthClient", callback: AuthListener) -> None:
        self._client = client
        self.callback = callback
        self.active = True

    def unsubscribe(self) -> None:
        if self.active:
            self._client._listeners.remove(self)
            self.active = False


class AuthClient:
    def __init__(self, backend: Optional[SupabaseService], session: Optional[Session] = None) -> None:
        self.backend = backend
        self._session = session
        self._listeners: List[Subscription] = []

    def _require_backend(self) -> SupabaseService:
        if self.backend is None:
            raise BackendError(BackendErrorCode.not_configured, NOT_CONFIGURED_MESSAGE)
        return self.backend

    async def get_session(self) -> Optional[Session]:
        return self._session

    def on_auth_state_change(self, callback: AuthListener) -> Subscription:
        subscription = Subscription(self, callback)
        self._listeners.append(subscription)
        return subscription

    async def _emit(self, event: AuthEvent) -> None:
        for subscription in list(self._listeners):
            try:
                await subscription.callback(event, self._session)
            except Exception:
                logger.exception("Auth listener failed handling %s", event.value)

    async def sign_in_with_password(self, email: str, password: str) -> Session:
        backend = self._require_backend()
        self._session = await backend.sign_in_with_password(email, password)
        await self._emit(AuthEvent.signed_in)
        return self._session

    async def sign_up(self, email: str, password: str, data: Optional[dict] = None) -> Optional[AuthUser]:
        backend = self._require_backend()
        payload = await backend.sign_up(email, password, data)
        session = session_from_payload(payload)
        if session is not None:
            self._session = session
            await self._emit(AuthEvent.signed_in)
            return session.user
        return user_from_payload(payload)

    async def sign_out(self) -> None:
        session, self._session = self._session, None
        try:
            if session is not None:
                await self._require_backend().sign_out(session.access_token)
        finally:
            await self._emit(AuthEvent.signed_out)

    async def refresh_session(self) -> Session:
        backend = self._require_backend()
        if self._session is None or not self._session.refresh_token:
            raise BackendError(BackendErrorCode.unauthorized, "No session to refresh")
        self._session = await backend.refresh_session(self._session.refresh_token)
        await self._emit(AuthEvent.token_refreshed)
        return self._session

    async def reset_password_for_email(self, email: str, redirect_to: Optional[str] = None) -> None:
        await self._require_backend().reset_password_for_email(email, redirect_to)


async def session_from_access_token(
    backend: Optional[SupabaseService],
    access_token: str,
    jwt_secret: Optional[str] = None,
) -> Session:
    """
    Rebuild a Session from a bearer token. With a JWT secret the token is
    verified locally; otherwise the auth service is asked for the user.
    """
    if jwt_secret:
        try:
            claims = jwt.decode(access_token, jwt_secret, algorithms=["HS256"], audience=JWT_AUDIENCE)
        except JWTError as exc:
            raise BackendError(BackendErrorCode.unauthorized, "Could not validate credentials") from exc
        if not claims.get("sub"):
            raise BackendError(BackendErrorCode.unauthorized, "Could not validate credentials")
        user = AuthUser(
            id=claims["sub"],
            email=claims.get("email"),
            user_metadata=claims.get("user_metadata") or {},
        )
        return Session(access_token=access_token, expires_at=claims.get("exp"), user=user)

    if backend is None:
        raise BackendError(BackendErrorCode.not_configured, NOT_CONFIGURED_MESSAGE)
    user = await backend.get_user(access_token)
    return Session(access_token=access_token, user=user)
