import logging
import re
from typing import Optional

from app.config import Settings, _now_utc
from app.models.business_profile import BusinessProfile, ProfileState, ProfileStatus
from app.models.identity import Identity
from app.services.backend_errors import BackendError, BackendErrorCode
from app.services.supabase_service import SupabaseService

logger = logging.getLogger(__name__)

PLACEHOLDER_NAMES = frozenset({"new company", "your company"})
DEFAULT_COMPANY_NAME = "Your Company"

SETUP_REQUIRED_MESSAGE = (
    "Business profile system is being set up. "
    "Please create the businesses table before editing your profile."
)

_TOKEN_SPLIT = re.compile(r"[._+\-]+")


def is_placeholder_name(name: Optional[str]) -> bool:
    return bool(name) and name.strip().lower() in PLACEHOLDER_NAMES


def derive_company_name(email: str) -> str:
    """
    'jane@acme.com' -> 'Jane Acme'; 'john.smith@big-corp.co.uk' -> 'John Smith Big Corp'.
    Local-part tokens come first, then the first domain label.
    """
    local, _, domain = (email or "").partition("@")
    domain_label = domain.split(".")[0] if domain else ""
    tokens = [t for t in _TOKEN_SPLIT.split(local) + _TOKEN_SPLIT.split(domain_label) if t]
    if not tokens:
        return DEFAULT_COMPANY_NAME
    return " ".join(t.capitalize() for t in tokens)


class ProfileResolver:
    """
    Fetches the business profile owned by an identity, or synthesizes a
    provisional one. Only the latest resolve() call may publish a result.
    """

    def __init__(self, backend: Optional[SupabaseService], settings: Settings) -> None:
        self.backend = backend
        self.table = settings.profiles_table
        self._latest_token = 0

    @property
    def latest_token(self) -> int:
        return self._latest_token

    def synthesize_default(self, identity: Identity) -> ProfileState:
        name = identity.company_name or DEFAULT_COMPANY_NAME
        if is_placeholder_name(name):
            name = derive_company_name(identity.email)
        now = _now_utc()
        profile = BusinessProfile(
            user_id=identity.id,
            name=name,
            website=identity.business_link or "",
            phone=identity.phone or "",
            email=identity.email or "",
            created_at=now,
            updated_at=now,
        )
        logger.info("Synthesized provisional business profile for user %s", identity.id)
        return ProfileState(status=ProfileStatus.provisional, profile=profile, editing=True)

    async def _correct_placeholder(
        self, profile: BusinessProfile, identity: Identity, access_token: Optional[str]
    ) -> BusinessProfile:
        corrected = derive_company_name(identity.email)
        logger.info("Replacing placeholder business name %r with %r for user %s", profile.name, corrected, identity.id)
        try:
            await self.backend.update(
                self.table,
                {"name": corrected, "updated_at": _now_utc().isoformat()},
                {"user_id": identity.id},
                access_token=access_token,
            )
        except BackendError as exc:
            logger.warning("Could not persist corrected business name for user %s: %r", identity.id, exc)
        return profile.model_copy(update={"name": corrected})

    async def resolve(self, identity: Identity, access_token: Optional[str] = None) -> Optional[ProfileState]:
        """
        Returns the profile state for ``identity``, or None when a newer
        resolve() was issued while this one was waiting on the backend.
        """
        self._latest_token += 1
        token = self._latest_token

        state = await self._resolve(identity, access_token)

        if token != self._latest_token:
            logger.info("Discarding stale profile resolution %s (latest %s)", token, self._latest_token)
            return None
        return state

    async def _resolve(self, identity: Identity, access_token: Optional[str]) -> ProfileState:
        if self.backend is None:
            return self.synthesize_default(identity)

        try:
            row = await self.backend.select_single(self.table, {"user_id": identity.id}, access_token=access_token)
        except BackendError as exc:
            if exc.code == BackendErrorCode.table_missing:
                logger.warning("Businesses table does not exist yet")
                return ProfileState(status=ProfileStatus.setup_required, message=SETUP_REQUIRED_MESSAGE)
            if exc.code == BackendErrorCode.no_row:
                logger.info("Business profile not found for user %s", identity.id)
            else:
                logger.error("Error fetching business profile for user %s: %r", identity.id, exc)
            return self.synthesize_default(identity)
        except Exception:
            logger.exception("Unexpected error fetching business profile for user %s", identity.id)
            return self.synthesize_default(identity)

        if not row:
            return self.synthesize_default(identity)

        try:
            profile = BusinessProfile(**row)
        except ValueError:
            logger.exception("Stored business profile for user %s is malformed", identity.id)
            return self.synthesize_default(identity)
        if is_placeholder_name(profile.name):
            profile = await self._correct_placeholder(profile, identity, access_token)
        return ProfileState(status=ProfileStatus.persisted, profile=profile, editing=False)
