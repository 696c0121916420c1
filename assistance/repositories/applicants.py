"""Applicant repository: applicants and the households they own."""

from collections import defaultdict
from uuid import UUID

from sqlalchemy import delete, select
from sqlalchemy.ext.asyncio import AsyncSession

from assistance.db.tables import ApplicantRow, HouseholdMemberRow
from assistance.models.applicant import Applicant, HouseholdMember
from assistance.models.common import utc_now
from assistance.repositories.base import translate_errors


class ApplicantRepository:
    def __init__(self, session: AsyncSession) -> None:
        self._session = session

    async def create(self, applicant: Applicant) -> ApplicantRow:
        """Insert the applicant and its household together."""
        now = utc_now()
        row = ApplicantRow(
            applicant_id=applicant.applicant_id,
            name=applicant.name,
            employment_status=applicant.employment_status.value,
            marital_status=applicant.marital_status.value,
            sex=applicant.sex.value,
            date_of_birth=applicant.date_of_birth,
            created_at=now, updated_at=now,
        )
        self._session.add(row)
        with translate_errors("applicant"):
            await self._session.flush()
        await self.add_household(applicant.applicant_id, applicant.household)
        return row

    async def add_household(
        self, applicant_id: UUID, members: list[HouseholdMember],
    ) -> list[HouseholdMemberRow]:
        rows = [
            HouseholdMemberRow(
                member_id=m.member_id,
                applicant_id=applicant_id,
                name=m.name,
                relationship=m.relationship.value,
                sex=m.sex.value,
                school_level=m.school_level.value,
                employment_status=m.employment_status.value,
                date_of_birth=m.date_of_birth,
            )
            for m in members
        ]
        self._session.add_all(rows)
        with translate_errors("household member"):
            await self._session.flush()
        return rows

    async def get(self, applicant_id: UUID) -> ApplicantRow | None:
        with translate_errors("applicant"):
            return await self._session.get(ApplicantRow, applicant_id)

    async def list_all(self) -> list[ApplicantRow]:
        with translate_errors("applicants"):
            result = await self._session.execute(
                select(ApplicantRow).order_by(ApplicantRow.created_at)
            )
        return list(result.scalars().all())

    async def get_household(self, applicant_id: UUID) -> list[HouseholdMemberRow]:
        return (await self.households_by_applicant([applicant_id])).get(applicant_id, [])

    async def households_by_applicant(
        self, applicant_ids: list[UUID] | None = None,
    ) -> dict[UUID, list[HouseholdMemberRow]]:
        stmt = select(HouseholdMemberRow).order_by(HouseholdMemberRow.name)
        if applicant_ids is not None:
            stmt = stmt.where(HouseholdMemberRow.applicant_id.in_(applicant_ids))
        grouped: dict[UUID, list[HouseholdMemberRow]] = defaultdict(list)
        with translate_errors("household"):
            for row in (await self._session.execute(stmt)).scalars().all():
                grouped[row.applicant_id].append(row)
        return dict(grouped)

    async def update(self, row: ApplicantRow, applicant: Applicant) -> ApplicantRow:
        """Overwrite scalar fields and replace the household wholesale."""
        row.name = applicant.name
        row.employment_status = applicant.employment_status.value
        row.marital_status = applicant.marital_status.value
        row.sex = applicant.sex.value
        row.date_of_birth = applicant.date_of_birth
        row.updated_at = utc_now()
        with translate_errors("applicant"):
            await self._session.flush()
            await self._session.execute(
                delete(HouseholdMemberRow)
                .where(HouseholdMemberRow.applicant_id == row.applicant_id)
                .execution_options(synchronize_session="fetch")
            )
        await self.add_household(row.applicant_id, applicant.household)
        return row

    async def delete(self, applicant_id: UUID) -> bool:
        """Delete the applicant; household members go with it."""
        with translate_errors("applicant"):
            await self._session.execute(
                delete(HouseholdMemberRow)
                .where(HouseholdMemberRow.applicant_id == applicant_id)
                .execution_options(synchronize_session="fetch")
            )
            result = await self._session.execute(
                delete(ApplicantRow)
                .where(ApplicantRow.applicant_id == applicant_id)
                .execution_options(synchronize_session="fetch")
            )
        return result.rowcount > 0
