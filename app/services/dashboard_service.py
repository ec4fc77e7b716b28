"""
Dashboard Service
Holds the business-profile edit state for one signed-in identity.

    unresolved -> setup_required | persisted | provisional(editing)
    persisted  -> editing               (begin_edit)
    editing    -> persisted             (save succeeded)
    editing    -> previous state        (cancel_edit)
    any loaded -> provisional(editing)  (delete)
"""
import base64
import logging
from typing import Any, Dict, Optional

from app.config import _now_utc
from app.models.business_profile import (
    DAYS,
    SOCIAL_PLATFORMS,
    BusinessProfile,
    BusinessProfileUpdate,
    ProfileState,
    ProfileStatus,
    Review,
    SaveResult,
)
from app.models.identity import Identity
from app.services.profile_gateway import DELETE_FAILED_MESSAGE, DELETE_OK_MESSAGE, ProfileGateway
from app.services.profile_resolver import ProfileResolver

logger = logging.getLogger(__name__)

MAX_LOGO_BYTES = 2 * 1024 * 1024
LOGO_UPLOADED_MESSAGE = 'Logo uploaded successfully! Click "Save Profile" to save it permanently.'
LOGO_ERROR_MESSAGE = "Error uploading logo. Please try again."


class DashboardStateError(Exception):
    """Raised when an edit is attempted outside of edit mode."""


def logo_display_url(logo_url: Optional[str]) -> Optional[str]:
    if not logo_url:
        return None
    if logo_url.startswith("data:image/"):
        return logo_url
    # object URLs only lived in the browser that created them
    if logo_url.startswith("blob:"):
        return None
    return logo_url


def encode_logo(content: bytes, content_type: str) -> str:
    if not content_type or not content_type.startswith("image/"):
        raise ValueError("Logo must be an image")
    if not content:
        raise ValueError("Logo file is empty")
    if len(content) > MAX_LOGO_BYTES:
        raise ValueError("Logo file is too large")
    return f"data:{content_type};base64,{base64.b64encode(content).decode('ascii')}"


class DashboardService:
    def __init__(
        self,
        identity: Identity,
        resolver: ProfileResolver,
        gateway: ProfileGateway,
        access_token: Optional[str] = None,
    ) -> None:
        self.identity = identity
        self.resolver = resolver
        self.gateway = gateway
        self.access_token = access_token
        self.state = ProfileState()
        self._snapshot: Optional[ProfileState] = None

    @property
    def profile(self) -> Optional[BusinessProfile]:
        return self.state.profile

    def _require_editing(self) -> BusinessProfile:
        if not self.state.editing or self.state.profile is None:
            raise DashboardStateError("Profile is not in edit mode")
        return self.state.profile

    def _replace_profile(self, profile: BusinessProfile) -> None:
        self.state = self.state.model_copy(update={"profile": profile})

    async def load(self) -> ProfileState:
        state = await self.resolver.resolve(self.identity, access_token=self.access_token)
        if state is not None:
            self.state = state
            self._snapshot = None
        return self.state

    def adopt(self, state: ProfileState) -> ProfileState:
        """Take over a state resolved elsewhere, e.g. by the session manager."""
        self.state = state
        self._snapshot = None
        return self.state

    def begin_edit(self) -> ProfileState:
        if self.state.profile is None:
            raise DashboardStateError("No profile loaded")
        if not self.state.editing:
            self._snapshot = self.state.model_copy(deep=True)
            self.state = self.state.model_copy(update={"editing": True, "message": None})
        return self.state

    def cancel_edit(self) -> ProfileState:
        if self._snapshot is not None:
            self.state = self._snapshot
            self._snapshot = None
        return self.state

    # -----------------------
    # Field edits
    # -----------------------
    def update_fields(self, changes: BusinessProfileUpdate) -> BusinessProfile:
        profile = self._require_editing()
        values: Dict[str, Any] = {
            k: v for k, v in changes.model_dump(exclude_none=True).items() if k in changes.model_fields_set
        }
        values.pop("id", None)
        updated = BusinessProfile(**{**profile.model_dump(), **values})
        self._replace_profile(updated)
        return updated

    def set_social_link(self, platform: str, url: str) -> BusinessProfile:
        profile = self._require_editing()
        if platform not in SOCIAL_PLATFORMS:
            raise ValueError(f"Unknown social platform: {platform}")
        social = profile.social_media.model_copy(update={platform: url})
        updated = profile.model_copy(update={"social_media": social})
        self._replace_profile(updated)
        return updated

    def set_operating_hours(
        self,
        day: str,
        open: Optional[str] = None,
        close: Optional[str] = None,
        closed: Optional[bool] = None,
    ) -> BusinessProfile:
        profile = self._require_editing()
        if day not in DAYS:
            raise ValueError(f"Unknown day: {day}")
        changes = {k: v for k, v in {"open": open, "close": close, "closed": closed}.items() if v is not None}
        hours = getattr(profile.operating_hours, day).model_copy(update=changes)
        operating_hours = profile.operating_hours.model_copy(update={day: hours})
        updated = profile.model_copy(update={"operating_hours": operating_hours})
        self._replace_profile(updated)
        return updated

    def toggle_service(self, service: str, selected: bool) -> BusinessProfile:
        profile = self._require_editing()
        services = [s for s in profile.services if s != service]
        if selected:
            services.append(service)
        updated = profile.model_copy(update={"services": services})
        self._replace_profile(updated)
        return updated

    def add_project(self, project: str) -> BusinessProfile:
        profile = self._require_editing()
        if not project.strip():
            return profile
        updated = profile.model_copy(update={"projects": [*profile.projects, project.strip()]})
        self._replace_profile(updated)
        return updated

    def remove_project(self, index: int) -> BusinessProfile:
        profile = self._require_editing()
        projects = [p for i, p in enumerate(profile.projects) if i != index]
        updated = profile.model_copy(update={"projects": projects})
        self._replace_profile(updated)
        return updated

    def add_review(self, customer_name: str, comment: str, rating: int = 5) -> BusinessProfile:
        profile = self._require_editing()
        if not customer_name.strip() or not comment.strip():
            return profile
        review = Review(customer_name=customer_name.strip(), comment=comment.strip(), rating=rating, date=_now_utc())
        updated = profile.model_copy(update={"reviews": [*profile.reviews, review]})
        self._replace_profile(updated)
        return updated

    def remove_review(self, index: int) -> BusinessProfile:
        profile = self._require_editing()
        reviews = [r for i, r in enumerate(profile.reviews) if i != index]
        updated = profile.model_copy(update={"reviews": reviews})
        self._replace_profile(updated)
        return updated

    def attach_logo(self, content: bytes, content_type: str) -> ProfileState:
        profile = self._require_editing()
        try:
            logo_url = encode_logo(content, content_type)
        except ValueError as exc:
            logger.warning("Logo upload rejected for user %s: %s", self.identity.id, exc)
            self.state = self.state.model_copy(update={"message": LOGO_ERROR_MESSAGE})
            return self.state
        self.state = self.state.model_copy(
            update={"profile": profile.model_copy(update={"logo_url": logo_url}), "message": LOGO_UPLOADED_MESSAGE}
        )
        return self.state

    # -----------------------
    # Persistence
    # -----------------------
    async def save(self) -> SaveResult:
        profile = self._require_editing()
        result = await self.gateway.upsert(
            profile,
            self.identity.id,
            provisional=self.state.is_provisional,
            access_token=self.access_token,
        )
        if result.success:
            self.state = ProfileState(status=ProfileStatus.persisted, profile=result.profile, editing=False, message=result.message)
            self._snapshot = None
        else:
            # unsaved edits stay in place for a retry
            self.state = self.state.model_copy(update={"message": result.message})
        return result

    async def delete(self) -> SaveResult:
        result = await self.gateway.delete(self.state, self.identity.id, access_token=self.access_token)
        self.state = self.resolver.synthesize_default(self.identity)
        self._snapshot = None
        message = DELETE_OK_MESSAGE if result.success else DELETE_FAILED_MESSAGE
        self.state = self.state.model_copy(update={"message": message})
        return result
