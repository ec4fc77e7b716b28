"""Tests for the public directory, page content and form intake."""

from datetime import datetime, timedelta, timezone

import pytest
from pydantic import ValidationError

from app.models.content import MEMBERSHIP_TIERS, membership_status
from app.models.forms import ContactForm, NominationForm
from app.models.identity import Identity
from app.services.backend_errors import BackendErrorCode
from app.services.directory_service import LOAD_FAILED_MESSAGE, NOT_FOUND_MESSAGE, DirectoryService
from app.services.forms_service import FormsService
from conftest import backend_error

ROWS = [
    {"id": "1", "name": "Acme Cleaning", "email": "hello@acme.com", "city": "Austin", "state": "TX", "services": ["Cleaning"]},
    {"id": "2", "name": "Bright Windows", "email": "info@bright.com", "city": "Boston", "state": "MA", "services": ["Window washing"]},
]


class TestDirectory:
    @pytest.mark.asyncio
    async def test_lists_in_name_order(self, backend, settings):
        backend.select.return_value = ROWS

        businesses = await DirectoryService(backend, settings).list_businesses()

        assert [b.name for b in businesses] == ["Acme Cleaning", "Bright Windows"]
        backend.select.assert_awaited_once_with("businesses", order="name.asc")

    @pytest.mark.asyncio
    @pytest.mark.parametrize(
        "search,expected",
        [("acme", ["1"]), ("BOSTON", ["2"]), ("window", ["2"]), ("info@", ["2"]), ("MA", ["2"]), ("zzz", [])],
    )
    async def test_search(self, backend, settings, search, expected):
        backend.select.return_value = ROWS

        businesses = await DirectoryService(backend, settings).list_businesses(search)

        assert [b.id for b in businesses] == expected

    @pytest.mark.asyncio
    async def test_missing_table_shows_empty_directory(self, backend, settings):
        backend.select.side_effect = backend_error(BackendErrorCode.table_missing)
        assert await DirectoryService(backend, settings).list_businesses() == []

    @pytest.mark.asyncio
    async def test_not_configured_shows_empty_directory(self, settings):
        assert await DirectoryService(None, settings).list_businesses() == []

    @pytest.mark.asyncio
    async def test_company_found(self, backend, settings):
        backend.select_single.return_value = ROWS[0]

        company, error = await DirectoryService(backend, settings).get_company("1")

        assert company.name == "Acme Cleaning"
        assert error is None

    @pytest.mark.asyncio
    async def test_company_with_null_columns(self, backend, settings):
        backend.select_single.return_value = {**ROWS[0], "logo_url": None, "google_place_id": None}

        company, error = await DirectoryService(backend, settings).get_company("1")

        assert error is None
        assert company.name == "Acme Cleaning"
        assert company.logo_url == ""

    @pytest.mark.asyncio
    async def test_null_columns_stay_listed(self, backend, settings):
        backend.select.return_value = [{**ROWS[0], "logo_url": None, "phone": None}, ROWS[1]]

        businesses = await DirectoryService(backend, settings).list_businesses()

        assert [b.id for b in businesses] == ["1", "2"]

    @pytest.mark.asyncio
    async def test_malformed_company_reports_load_failure(self, backend, settings):
        backend.select_single.return_value = {"id": "1", "reviews": [{"rating": 9}]}

        company, error = await DirectoryService(backend, settings).get_company("1")

        assert company is None
        assert error == LOAD_FAILED_MESSAGE

    @pytest.mark.asyncio
    async def test_company_not_found(self, backend, settings):
        backend.select_single.side_effect = backend_error(BackendErrorCode.no_row)

        company, error = await DirectoryService(backend, settings).get_company("missing")

        assert company is None
        assert error == NOT_FOUND_MESSAGE

    @pytest.mark.asyncio
    async def test_company_load_failure(self, backend, settings):
        backend.select_single.side_effect = backend_error(BackendErrorCode.unreachable)

        _, error = await DirectoryService(backend, settings).get_company("1")

        assert error == LOAD_FAILED_MESSAGE


class TestMembershipStatus:
    NOW = datetime(2026, 10, 19, tzinfo=timezone.utc)

    def test_free(self):
        assert membership_status(Identity(id="u1", email="a@b.com"), self.NOW) == "Free Member"
        assert membership_status(Identity(id="u1", email="a@b.com", membership_tier="free"), self.NOW) == "Free Member"

    def test_yearly_without_expiry(self):
        identity = Identity(id="u1", email="a@b.com", membership_tier="basic")
        assert membership_status(identity, self.NOW) == "Yearly Member"

    def test_active_and_expired(self):
        active = Identity(id="u1", email="a@b.com", membership_tier="basic", membership_expires=self.NOW + timedelta(days=1))
        expired = Identity(id="u1", email="a@b.com", membership_tier="basic", membership_expires=self.NOW - timedelta(days=1))
        assert membership_status(active, self.NOW) == "Yearly Active"
        assert membership_status(expired, self.NOW) == "Yearly Expired"

    def test_naive_expiry_compared_as_utc(self):
        identity = Identity(id="u1", email="a@b.com", membership_tier="basic", membership_expires=datetime(2027, 1, 1))
        assert membership_status(identity, self.NOW) == "Yearly Active"

    def test_one_popular_tier(self):
        assert [t.name for t in MEMBERSHIP_TIERS if t.popular] == ["Training Subscription"]


class TestForms:
    def test_nomination_acknowledged(self):
        form = NominationForm(
            business_name="Acme Cleaning",
            contact_name="Jane",
            email="jane@acme.com",
            business_type="cleaning",
            years_in_business="3-5",
        )

        receipt = FormsService().submit_nomination(form)

        assert receipt.kind == "nomination"
        assert receipt.reference

    def test_nomination_requires_known_business_type(self):
        with pytest.raises(ValidationError):
            NominationForm(business_name="Acme", contact_name="Jane", email="jane@acme.com", business_type="rockets")

    def test_contact_acknowledged(self):
        receipt = FormsService().submit_contact(ContactForm(name="Jane", email="jane@acme.com", message="Hi"))
        assert receipt.kind == "contact"

    def test_contact_requires_message(self):
        with pytest.raises(ValidationError):
            ContactForm(name="Jane", email="jane@acme.com", message="")
