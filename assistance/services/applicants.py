"""Applicant intake: create, read, replace and delete applicants."""

import logging
from uuid import UUID

from sqlalchemy.ext.asyncio import AsyncSession

from assistance.db.tables import ApplicantRow, HouseholdMemberRow
from assistance.errors import NotFoundError
from assistance.models.applicant import Applicant, HouseholdMember
from assistance.repositories.applicants import ApplicantRepository

logger = logging.getLogger(__name__)


def member_from_row(row: HouseholdMemberRow) -> HouseholdMember:
    return HouseholdMember(
        member_id=row.member_id,
        name=row.name,
        relationship=row.relationship,
        sex=row.sex,
        school_level=row.school_level,
        employment_status=row.employment_status,
        date_of_birth=row.date_of_birth,
    )


def applicant_from_rows(
    row: ApplicantRow, household: list[HouseholdMemberRow],
) -> Applicant:
    return Applicant(
        applicant_id=row.applicant_id,
        name=row.name,
        employment_status=row.employment_status,
        marital_status=row.marital_status,
        sex=row.sex,
        date_of_birth=row.date_of_birth,
        household=[member_from_row(m) for m in household],
        created_at=row.created_at,
        updated_at=row.updated_at,
    )


class ApplicantService:
    def __init__(self, session: AsyncSession) -> None:
        self._repo = ApplicantRepository(session)

    async def create(self, applicant: Applicant) -> Applicant:
        """Insert applicant + household; a known (name, date_of_birth) conflicts."""
        await self._repo.create(applicant)
        logger.info(
            "Created applicant %s with %d household member(s)",
            applicant.applicant_id, len(applicant.household),
        )
        return await self.get(applicant.applicant_id)

    async def get(self, applicant_id: UUID) -> Applicant:
        row = await self._repo.get(applicant_id)
        if row is None:
            raise NotFoundError("Applicant", applicant_id)
        return applicant_from_rows(row, await self._repo.get_household(applicant_id))

    async def list_all(self) -> list[Applicant]:
        rows = await self._repo.list_all()
        households = await self._repo.households_by_applicant()
        return [
            applicant_from_rows(row, households.get(row.applicant_id, []))
            for row in rows
        ]

    async def update(self, applicant_id: UUID, applicant: Applicant) -> Applicant:
        """Replace the applicant's facts; the household is replaced, not merged."""
        row = await self._repo.get(applicant_id)
        if row is None:
            raise NotFoundError("Applicant", applicant_id)
        await self._repo.update(row, applicant)
        logger.info("Updated applicant %s", applicant_id)
        return await self.get(applicant_id)

    async def delete(self, applicant_id: UUID) -> None:
        if not await self._repo.delete(applicant_id):
            raise NotFoundError("Applicant", applicant_id)
        logger.info("Deleted applicant %s", applicant_id)
