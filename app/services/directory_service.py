import logging
from typing import List, Optional, Tuple

from app.config import Settings
from app.models.business_profile import BusinessProfile
from app.services.backend_errors import BackendError, BackendErrorCode
from app.services.supabase_service import SupabaseService

logger = logging.getLogger(__name__)

NOT_FOUND_MESSAGE = "Company profile not found"
LOAD_FAILED_MESSAGE = "Failed to load company profile"


def matches_search(business: BusinessProfile, search: Optional[str]) -> bool:
    if not search:
        return True
    term = search.strip().lower()
    haystacks = [business.name, business.email, business.city, business.state, *business.services]
    return any(term in (value or "").lower() for value in haystacks)


class DirectoryService:
    """Public member directory; read-only."""

    def __init__(self, backend: Optional[SupabaseService], settings: Settings) -> None:
        self.backend = backend
        self.table = settings.profiles_table

    async def list_businesses(self, search: Optional[str] = None) -> List[BusinessProfile]:
        if self.backend is None:
            return []
        try:
            rows = await self.backend.select(self.table, order="name.asc")
        except BackendError as exc:
            # an unprovisioned table shows as an empty directory
            logger.error("Error fetching businesses: %r", exc)
            return []

        businesses = []
        for row in rows:
            try:
                businesses.append(BusinessProfile(**row))
            except ValueError:
                logger.warning("Skipping malformed business row %s", row.get("id"))
        return [b for b in businesses if matches_search(b, search)]

    async def get_company(self, company_id: str) -> Tuple[Optional[BusinessProfile], Optional[str]]:
        if self.backend is None:
            return None, LOAD_FAILED_MESSAGE
        try:
            row = await self.backend.select_single(self.table, {"id": company_id})
        except BackendError as exc:
            if exc.code in (BackendErrorCode.no_row, BackendErrorCode.validation):
                return None, NOT_FOUND_MESSAGE
            logger.error("Error fetching company profile %s: %r", company_id, exc)
            return None, LOAD_FAILED_MESSAGE
        try:
            return BusinessProfile(**row), None
        except ValueError:
            logger.exception("Company profile %s is malformed", company_id)
            return None, LOAD_FAILED_MESSAGE
