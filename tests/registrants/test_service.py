"""Tests for RegistrantService (Cassandra session mocked)."""

from datetime import UTC, datetime
from types import SimpleNamespace
from unittest.mock import AsyncMock, MagicMock

import pytest

from src.auth.security import verify_password
from src.registrants.schemas import RegistrantCreateForm, RegistrantUpdateForm
from src.registrants.service import (
    InvalidLoginError,
    RegistrantExistsError,
    RegistrantNotFoundError,
    RegistrantService,
    RegistrantStoreError,
    RegistrationNumberUnavailableError,
    generate_registration_number,
)
from tests.conftest import make_registrant


def _row(registrant) -> SimpleNamespace:
    values = dict(vars(registrant))
    values["date_of_birth"] = (
        registrant.date_of_birth.isoformat() if registrant.date_of_birth else None
    )
    return SimpleNamespace(**values)


def _form(**overrides) -> RegistrantCreateForm:
    data = {
        "title": "Ms",
        "name": "Asha Verma",
        "father_husband_name": "Ravi Verma",
        "mobile_no": "9876543210",
        "email_id": "asha@example.com",
        "date_of_birth": "1998-04-12",
        "passout_percentage": 78.5,
        "state": "Kerala",
        "address": "12 MG Road, Kochi",
        "course_name": "D.Pharm",
        "experience": "2 years",
        "college_name": "Govt. College of Pharmacy",
    }
    data.update(overrides)
    return RegistrantCreateForm(**data)


@pytest.fixture
def session() -> MagicMock:
    session = MagicMock()
    session.aexecute = AsyncMock(return_value=[])
    return session


@pytest.fixture
def service(session: MagicMock) -> RegistrantService:
    return RegistrantService(session=session, keyspace="certregistry_test")


class TestRegistrationNumber:
    def test_format(self) -> None:
        number = generate_registration_number("MOH", 2025)
        assert number.startswith("MOH2025")
        suffix = int(number[len("MOH2025") :])
        assert 10000 <= suffix <= 99999

    def test_defaults_to_current_year(self) -> None:
        number = generate_registration_number("MOH")
        assert number.startswith(f"MOH{datetime.now(UTC).year}")

    @pytest.mark.asyncio
    async def test_allocate_skips_taken_numbers(self, service, session) -> None:
        taken = _row(make_registrant())
        session.aexecute.side_effect = [[taken], [taken], []]

        number = await service.allocate_registration_number()

        assert number.startswith("MOH")
        assert session.aexecute.await_count == 3

    @pytest.mark.asyncio
    async def test_allocate_gives_up(self, service, session) -> None:
        session.aexecute.return_value = [_row(make_registrant())]
        with pytest.raises(RegistrationNumberUnavailableError) as exc_info:
            await service.allocate_registration_number(max_attempts=3)

        assert exc_info.value.code == "registration_number_unavailable"
        assert session.aexecute.await_count == 3


class TestCreate:
    @pytest.mark.asyncio
    async def test_create_hashes_mobile(self, service, session) -> None:
        registrant = await service.create(
            _form(), photo_url="https://img/p.png", registration_number="MOH202512345"
        )

        assert registrant.registration_number == "MOH202512345"
        assert registrant.photo_url == "https://img/p.png"
        assert registrant.hashed_password != "9876543210"
        assert verify_password("9876543210", registrant.hashed_password)[0] is True

        insert_params = session.aexecute.await_args.args[1]
        assert insert_params[1] == "MOH202512345"
        assert insert_params[8] == "1998-04-12"

    @pytest.mark.asyncio
    async def test_duplicate_email(self, service, session) -> None:
        session.aexecute.return_value = [_row(make_registrant())]

        with pytest.raises(RegistrantExistsError) as exc_info:
            await service.create(_form())
        assert exc_info.value.field == "email_id"

    @pytest.mark.asyncio
    async def test_duplicate_mobile(self, service, session) -> None:
        session.aexecute.side_effect = [[], [_row(make_registrant())]]

        with pytest.raises(RegistrantExistsError) as exc_info:
            await service.check_available("other@example.com", "9876543210")
        assert exc_info.value.field == "mobile_no"

    @pytest.mark.asyncio
    async def test_store_failure(self, service, session) -> None:
        session.aexecute.side_effect = RuntimeError("no hosts")

        with pytest.raises(RegistrantStoreError):
            await service.create(_form())


class TestQueries:
    @pytest.mark.asyncio
    async def test_deleted_registrant_is_hidden(self, service, session) -> None:
        deleted = make_registrant(deleted_at=datetime(2025, 5, 1, tzinfo=UTC))
        session.aexecute.return_value = [_row(deleted)]

        assert await service.get_by_registration_number("MOH202512345") is None
        assert await service.get(deleted.id) is None

    @pytest.mark.asyncio
    async def test_list_newest_first(self, service, session) -> None:
        older = make_registrant(
            name="Older", created_at=datetime(2025, 1, 1, tzinfo=UTC)
        )
        newer = make_registrant(
            name="Newer", created_at=datetime(2025, 3, 1, tzinfo=UTC)
        )
        deleted = make_registrant(
            name="Gone", deleted_at=datetime(2025, 4, 1, tzinfo=UTC)
        )
        session.aexecute.return_value = [_row(older), _row(deleted), _row(newer)]

        result = await service.list_active()

        assert [r.name for r in result] == ["Newer", "Older"]


class TestUpdateDelete:
    @pytest.mark.asyncio
    async def test_update_mobile_rehashes(self, service, session) -> None:
        existing = make_registrant()
        # get -> mobile uniqueness lookup -> save
        session.aexecute.side_effect = [[_row(existing)], [], []]

        updated = await service.update(
            existing.id, RegistrantUpdateForm(mobile_no="9000000001")
        )

        assert updated.mobile_no == "9000000001"
        assert verify_password("9000000001", updated.hashed_password)[0] is True
        assert verify_password("9876543210", updated.hashed_password)[0] is False

    @pytest.mark.asyncio
    async def test_update_keeps_images_when_not_sent(self, service, session) -> None:
        existing = make_registrant()
        session.aexecute.side_effect = [[_row(existing)], []]

        updated = await service.update(existing.id, RegistrantUpdateForm(name="Asha V"))

        assert updated.name == "Asha V"
        assert updated.photo_url == existing.photo_url

    @pytest.mark.asyncio
    async def test_update_missing(self, service, session) -> None:
        with pytest.raises(RegistrantNotFoundError):
            await service.update(make_registrant().id, RegistrantUpdateForm(name="X Y"))

    @pytest.mark.asyncio
    async def test_delete(self, service, session) -> None:
        existing = make_registrant()
        session.aexecute.side_effect = [[_row(existing)], []]

        deleted = await service.delete(existing.id)

        assert deleted.id == existing.id
        assert session.aexecute.await_args.args[1] == [existing.id]

    @pytest.mark.asyncio
    async def test_delete_missing(self, service) -> None:
        with pytest.raises(RegistrantNotFoundError):
            await service.delete(make_registrant().id)


class TestAuthenticate:
    @pytest.mark.asyncio
    async def test_valid_login(self, service, session) -> None:
        session.aexecute.return_value = [_row(make_registrant())]

        registrant = await service.authenticate("asha@example.com", "9876543210")

        assert registrant.registration_number == "MOH202512345"

    @pytest.mark.asyncio
    async def test_wrong_mobile(self, service, session) -> None:
        session.aexecute.return_value = [_row(make_registrant())]

        with pytest.raises(InvalidLoginError):
            await service.authenticate("asha@example.com", "1111111111")

    @pytest.mark.asyncio
    async def test_unknown_email(self, service) -> None:
        with pytest.raises(InvalidLoginError):
            await service.authenticate("nobody@example.com", "9876543210")
