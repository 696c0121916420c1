"""Tests for ApplicantService and ApplicationService."""

from datetime import date

import pytest
from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession
from uuid_extensions import uuid7

from assistance.db.tables import ApplicationRow, HouseholdMemberRow
from assistance.errors import ConflictError, NotFoundError
from assistance.models.applicant import Applicant, HouseholdMember
from assistance.models.common import ApplicationStatus, utc_today
from assistance.services.applicants import ApplicantService
from assistance.services.applications import ApplicationService
from assistance.services.schemes import SchemeLifecycleManager

pytestmark = pytest.mark.anyio


def _applicant(name: str = "Mary", household: list[HouseholdMember] | None = None,
               **overrides) -> Applicant:
    fields = dict(
        name=name,
        employment_status="unemployed",
        marital_status="divorced",
        sex="female",
        date_of_birth=date(1984, 10, 6),
        household=household or [],
    )
    fields.update(overrides)
    return Applicant(**fields)


def _child(name: str = "Gwen", school_level: str = "primary") -> HouseholdMember:
    return HouseholdMember(
        name=name,
        relationship="daughter",
        sex="female",
        school_level=school_level,
        employment_status="unemployed",
        date_of_birth=date(2016, 2, 1),
    )


async def _count(session: AsyncSession, table) -> int:
    return (await session.execute(select(func.count()).select_from(table))).scalar_one()


class TestApplicantService:
    async def test_create_and_get_with_household(self, db_session: AsyncSession) -> None:
        service = ApplicantService(db_session)
        created = await service.create(_applicant(household=[_child(), _child("Jayden")]))

        fetched = await service.get(created.applicant_id)
        assert fetched.name == "Mary"
        assert sorted(m.name for m in fetched.household) == ["Gwen", "Jayden"]

    async def test_same_name_and_birth_date_conflicts(self, db_session: AsyncSession) -> None:
        service = ApplicantService(db_session)
        await service.create(_applicant())
        with pytest.raises(ConflictError):
            await service.create(_applicant(employment_status="employed"))

    async def test_update_replaces_household(self, db_session: AsyncSession) -> None:
        service = ApplicantService(db_session)
        created = await service.create(_applicant(household=[_child(), _child("Jayden")]))

        updated = await service.update(
            created.applicant_id,
            _applicant(employment_status="employed", household=[_child("Ivy", "secondary")]),
        )

        assert updated.employment_status == "employed"
        assert [m.name for m in updated.household] == ["Ivy"]
        assert await _count(db_session, HouseholdMemberRow) == 1

    async def test_update_unknown(self, db_session: AsyncSession) -> None:
        with pytest.raises(NotFoundError):
            await ApplicantService(db_session).update(uuid7(), _applicant())

    async def test_delete_removes_household(self, db_session: AsyncSession) -> None:
        service = ApplicantService(db_session)
        created = await service.create(_applicant(household=[_child()]))
        await service.delete(created.applicant_id)

        with pytest.raises(NotFoundError):
            await service.get(created.applicant_id)
        assert await _count(db_session, HouseholdMemberRow) == 0

    async def test_delete_unknown(self, db_session: AsyncSession) -> None:
        with pytest.raises(NotFoundError):
            await ApplicantService(db_session).delete(uuid7())

    async def test_list_all(self, db_session: AsyncSession) -> None:
        service = ApplicantService(db_session)
        await service.create(_applicant("Mary", household=[_child()]))
        await service.create(_applicant("James", marital_status="single", sex="male"))
        applicants = {a.name: a for a in await service.list_all()}
        assert set(applicants) == {"Mary", "James"}
        assert len(applicants["Mary"].household) == 1
        assert applicants["James"].household == []


class TestApplicationService:
    @pytest.fixture
    async def pair(self, db_session: AsyncSession):
        applicant = await ApplicantService(db_session).create(_applicant())
        scheme = await SchemeLifecycleManager(db_session).create_scheme("Open")
        return applicant.applicant_id, scheme.scheme_id

    async def test_apply_defaults(self, db_session: AsyncSession, pair) -> None:
        applicant_id, scheme_id = pair
        application = await ApplicationService(db_session).create(applicant_id, scheme_id)
        assert application.status is ApplicationStatus.PENDING
        assert application.applied_date == utc_today()

    async def test_second_application_for_pair_conflicts(
        self, db_session: AsyncSession, pair,
    ) -> None:
        applicant_id, scheme_id = pair
        service = ApplicationService(db_session)
        await service.create(applicant_id, scheme_id)
        await db_session.commit()

        with pytest.raises(ConflictError):
            await service.create(applicant_id, scheme_id)
        await db_session.rollback()
        assert await _count(db_session, ApplicationRow) == 1

    async def test_unknown_applicant_or_scheme(self, db_session: AsyncSession, pair) -> None:
        applicant_id, scheme_id = pair
        service = ApplicationService(db_session)
        with pytest.raises(NotFoundError, match="Applicant"):
            await service.create(uuid7(), scheme_id)
        with pytest.raises(NotFoundError, match="Scheme"):
            await service.create(applicant_id, uuid7())

    async def test_update_status_and_date(self, db_session: AsyncSession, pair) -> None:
        service = ApplicationService(db_session)
        created = await service.create(*pair)
        updated = await service.update(
            created.application_id,
            status=ApplicationStatus.APPROVED,
            applied_date=date(2024, 1, 15),
        )
        assert updated.status is ApplicationStatus.APPROVED
        assert updated.applied_date == date(2024, 1, 15)

    async def test_list_filters(self, db_session: AsyncSession, pair) -> None:
        applicant_id, scheme_id = pair
        service = ApplicationService(db_session)
        await service.create(applicant_id, scheme_id)
        other = await SchemeLifecycleManager(db_session).create_scheme("Other")
        await service.create(applicant_id, other.scheme_id)

        assert len(await service.list_all(applicant_id=applicant_id)) == 2
        assert len(await service.list_all(scheme_id=other.scheme_id)) == 1
        assert await service.list_all(applicant_id=uuid7()) == []

    async def test_deleting_scheme_removes_its_applications(
        self, db_session: AsyncSession, pair,
    ) -> None:
        applicant_id, scheme_id = pair
        await ApplicationService(db_session).create(applicant_id, scheme_id)
        await SchemeLifecycleManager(db_session).delete_scheme(scheme_id)
        assert await _count(db_session, ApplicationRow) == 0

    async def test_delete_unknown(self, db_session: AsyncSession) -> None:
        with pytest.raises(NotFoundError):
            await ApplicationService(db_session).delete(uuid7())
