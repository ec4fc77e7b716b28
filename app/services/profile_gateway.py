import logging
from typing import Any, Dict, Optional

from fastapi.encoders import jsonable_encoder

from app.config import Settings, _now_utc
from app.models.business_profile import BusinessProfile, ProfileState, ProfileStatus, SaveResult
from app.services.backend_errors import BackendError, BackendErrorCode, NOT_CONFIGURED_MESSAGE
from app.services.supabase_service import SupabaseService

logger = logging.getLogger(__name__)

OWNER_KEY = "user_id"

SAVE_OK_MESSAGE = "Profile saved successfully!"
SAVE_FAILED_MESSAGE = "Error saving profile. Please try again."
SAVE_SETUP_MESSAGE = (
    "Business profile system is not set up yet. "
    "Please create the businesses table before saving your profile."
)
DELETE_OK_MESSAGE = "Profile deleted successfully! A new default profile has been created."
DELETE_FAILED_MESSAGE = "Error deleting profile. Please try again."


class ProfileGateway:
    """Upserts and deletes business profiles keyed by owner id."""

    def __init__(self, backend: Optional[SupabaseService], settings: Settings) -> None:
        self.backend = backend
        self.table = settings.profiles_table

    def build_payload(self, profile: BusinessProfile, owner_id: str, provisional: bool = False) -> Dict[str, Any]:
        payload = jsonable_encoder(profile)
        if provisional or profile.has_temporary_id or not payload.get("id"):
            payload.pop("id", None)
        if not payload.get("created_at"):
            payload.pop("created_at", None)
        payload[OWNER_KEY] = owner_id
        payload["updated_at"] = _now_utc().isoformat()
        return payload

    async def upsert(
        self,
        profile: BusinessProfile,
        owner_id: str,
        provisional: bool = False,
        access_token: Optional[str] = None,
    ) -> SaveResult:
        if self.backend is None:
            return SaveResult(success=False, message=NOT_CONFIGURED_MESSAGE)

        payload = self.build_payload(profile, owner_id, provisional)
        logger.info("Saving business profile for user %s", owner_id)
        try:
            saved = await self.backend.upsert(self.table, payload, on_conflict=OWNER_KEY, access_token=access_token)
        except BackendError as exc:
            if exc.code == BackendErrorCode.table_missing:
                return SaveResult(success=False, setup_required=True, message=SAVE_SETUP_MESSAGE)
            logger.error("Database error during save for user %s: %r", owner_id, exc)
            return SaveResult(success=False, message=SAVE_FAILED_MESSAGE)
        except Exception:
            logger.exception("Unexpected error saving business profile for user %s", owner_id)
            return SaveResult(success=False, message=SAVE_FAILED_MESSAGE)

        try:
            canonical = BusinessProfile(**(saved or payload))
        except ValueError:
            logger.exception("Saved business profile for user %s could not be read back", owner_id)
            return SaveResult(success=False, message=SAVE_FAILED_MESSAGE)
        return SaveResult(success=True, profile=canonical, message=SAVE_OK_MESSAGE)

    async def delete(self, state: ProfileState, owner_id: str, access_token: Optional[str] = None) -> SaveResult:
        """
        Deletes the owner's stored profile. Provisional profiles were never
        stored, so nothing is sent for them.
        """
        profile = state.profile
        if state.status != ProfileStatus.persisted or profile is None or not profile.id or profile.has_temporary_id:
            return SaveResult(success=True, message=DELETE_OK_MESSAGE)
        if self.backend is None:
            return SaveResult(success=False, message=NOT_CONFIGURED_MESSAGE)

        try:
            await self.backend.delete(self.table, {OWNER_KEY: owner_id}, access_token=access_token)
        except BackendError as exc:
            logger.error("Database error during delete for user %s: %r", owner_id, exc)
            return SaveResult(success=False, message=DELETE_FAILED_MESSAGE)
        except Exception:
            logger.exception("Unexpected error deleting business profile for user %s", owner_id)
            return SaveResult(success=False, message=DELETE_FAILED_MESSAGE)
        logger.info("Deleted business profile for user %s", owner_id)
        return SaveResult(success=True, message=DELETE_OK_MESSAGE)
