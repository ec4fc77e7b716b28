"""
Session Manager

Owns the current identity for one auth context. On start it picks up any
existing session, resolves the identity row and its business profile, and
then follows auth-state notifications until stopped. Every public
operation returns an AuthResult; nothing raises past this class.
"""
import logging
from typing import Optional

from app.config import Settings
from app.models.business_profile import ProfileState
from app.models.identity import AuthError, AuthEvent, AuthResult, Identity, Session
from app.services.auth_client import AuthClient, Subscription
from app.services.backend_errors import BackendError, BackendErrorCode, NOT_CONFIGURED_MESSAGE
from app.services.profile_resolver import ProfileResolver, derive_company_name, is_placeholder_name

logger = logging.getLogger(__name__)

DUPLICATE_ACCOUNT_MESSAGE = "An account with this email already exists. Please sign in instead."
UNCONFIRMED_ACCOUNT_MESSAGE = (
    "This email is already registered but not confirmed. "
    "Please check your email for verification or try logging in."
)
INVALID_EMAIL_MESSAGE = "Please enter a valid email address."
COMPANY_REQUIRED_MESSAGE = "Company name is required."
PASSWORD_REQUIRED_MESSAGE = "Password is required."
UNEXPECTED_MESSAGE = "An unexpected error occurred. Please try again."


def _error(message: str, code: Optional[BackendErrorCode] = None) -> AuthResult:
    return AuthResult(error=AuthError(message=message, code=code.value if code else None))


def _valid_email(email: Optional[str]) -> bool:
    if not email:
        return False
    local, _, domain = email.strip().partition("@")
    return bool(local) and "." in domain


class SessionManager:
    def __init__(self, auth: AuthClient, resolver: ProfileResolver, settings: Settings) -> None:
        self.auth = auth
        self.resolver = resolver
        self.settings = settings
        self.identity: Optional[Identity] = None
        self.profile_state: ProfileState = ProfileState()
        self.loading = True
        self._subscription: Optional[Subscription] = None

    @property
    def backend(self):
        return self.auth.backend

    # -----------------------
    # Lifecycle
    # -----------------------
    async def start(self) -> None:
        try:
            session = await self.auth.get_session()
            if session is not None:
                await self._apply_session(session)
        except Exception:
            logger.exception("Failed to restore session")
        finally:
            self.loading = False
        if self._subscription is None:
            self._subscription = self.auth.on_auth_state_change(self._on_auth_state_change)

    def stop(self) -> None:
        if self._subscription is not None:
            self._subscription.unsubscribe()
            self._subscription = None

    async def _on_auth_state_change(self, event: AuthEvent, session: Optional[Session]) -> None:
        logger.info("Auth state change: %s", event.value)
        if session is not None:
            await self._apply_session(session)
        else:
            self._clear()
        self.loading = False

    def _clear(self) -> None:
        self.identity = None
        self.profile_state = ProfileState()

    async def _load_identity(self, session: Session) -> Identity:
        if self.backend is None:
            return Identity.from_auth_user(session.user)
        try:
            row = await self.backend.select_single(
                self.settings.users_table, {"id": session.user.id}, access_token=session.access_token
            )
            return Identity(**row)
        except BackendError as exc:
            logger.warning("Error fetching user profile for %s: %r", session.user.id, exc)
            return Identity.from_auth_user(session.user)

    async def _apply_session(self, session: Session) -> None:
        identity = await self._load_identity(session)
        state = await self.resolver.resolve(identity, access_token=session.access_token)
        if state is None:
            # superseded by a newer notification
            return
        self.identity = identity
        self.profile_state = state

    async def _normalize_company_name(self, identity: Identity, access_token: Optional[str]) -> Identity:
        if not is_placeholder_name(identity.company_name):
            return identity
        corrected = derive_company_name(identity.email)
        try:
            await self.backend.update(
                self.settings.users_table,
                {"company_name": corrected},
                {"id": identity.id},
                access_token=access_token,
            )
        except BackendError as exc:
            logger.warning("Could not update company name for %s: %r", identity.id, exc)
        return identity.model_copy(update={"company_name": corrected})

    # -----------------------
    # Operations
    # -----------------------
    async def sign_in(self, email: str, password: str) -> AuthResult:
        if self.backend is None:
            return _error(NOT_CONFIGURED_MESSAGE, BackendErrorCode.not_configured)
        if not _valid_email(email):
            return _error(INVALID_EMAIL_MESSAGE, BackendErrorCode.validation)
        if not password:
            return _error(PASSWORD_REQUIRED_MESSAGE, BackendErrorCode.validation)

        try:
            session = await self.auth.sign_in_with_password(email.strip(), password)
            if self._subscription is None:
                await self._apply_session(session)
            identity = self.identity if self.identity and self.identity.id == session.user.id else None
            if identity is None:
                identity = await self._load_identity(session)
            identity = await self._normalize_company_name(identity, session.access_token)
        except BackendError as exc:
            return _error(exc.message, exc.code)
        except Exception:
            logger.exception("Unexpected error during sign-in")
            return _error(UNEXPECTED_MESSAGE, BackendErrorCode.unknown)

        self.identity = identity
        return AuthResult(identity=identity, session=session)

    async def sign_up(
        self,
        email: str,
        password: str,
        company_name: str,
        company_url: Optional[str] = None,
    ) -> AuthResult:
        min_length = self.settings.min_password_length
        if not _valid_email(email):
            return _error(INVALID_EMAIL_MESSAGE, BackendErrorCode.validation)
        if not password or len(password) < min_length:
            return _error(f"Password must be at least {min_length} characters long.", BackendErrorCode.validation)
        if not company_name or not company_name.strip():
            return _error(COMPANY_REQUIRED_MESSAGE, BackendErrorCode.validation)
        if self.backend is None:
            return _error(NOT_CONFIGURED_MESSAGE, BackendErrorCode.not_configured)

        email = email.strip()
        company_name = company_name.strip()
        attributes = {"company_name": company_name}
        if company_url:
            attributes["business_link"] = company_url

        try:
            user = await self.auth.sign_up(email, password, data=attributes)
        except BackendError as exc:
            if exc.code == BackendErrorCode.duplicate_account:
                return _error(DUPLICATE_ACCOUNT_MESSAGE, exc.code)
            if exc.code == BackendErrorCode.unconfirmed_account:
                return _error(UNCONFIRMED_ACCOUNT_MESSAGE, exc.code)
            return _error(exc.message, exc.code)
        except Exception:
            logger.exception("Unexpected error during sign-up")
            return _error(UNEXPECTED_MESSAGE, BackendErrorCode.unknown)

        if user is None:
            return _error(UNEXPECTED_MESSAGE, BackendErrorCode.unknown)

        session = await self.auth.get_session()
        access_token = session.access_token if session else None
        # the signup trigger creates the users row; make sure it carries the submitted company name
        try:
            await self.backend.update(self.settings.users_table, attributes, {"id": user.id}, access_token=access_token)
        except BackendError as exc:
            logger.warning("Could not update company name for %s: %r", user.id, exc)

        identity = Identity(id=user.id, email=user.email or email, company_name=company_name, business_link=company_url)
        if session is not None:
            self.identity = identity
        return AuthResult(identity=identity, session=session)

    async def sign_out(self) -> AuthResult:
        try:
            await self.auth.sign_out()
        except Exception as exc:
            logger.warning("Sign-out was not acknowledged by the backend: %r", exc)
        finally:
            self._clear()
        return AuthResult()

    async def reset_password(self, email: str) -> AuthResult:
        if not _valid_email(email):
            return _error(INVALID_EMAIL_MESSAGE, BackendErrorCode.validation)
        if self.backend is None:
            return _error(NOT_CONFIGURED_MESSAGE, BackendErrorCode.not_configured)
        redirect_to = f"{self.settings.site_url.rstrip('/')}/reset-password"
        try:
            await self.auth.reset_password_for_email(email.strip(), redirect_to=redirect_to)
        except BackendError as exc:
            return _error(exc.message, exc.code)
        except Exception:
            logger.exception("Unexpected error requesting password reset")
            return _error(UNEXPECTED_MESSAGE, BackendErrorCode.unknown)
        return AuthResult()
