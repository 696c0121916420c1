"""Applications: an applicant applying to a scheme."""

import logging
from datetime import date
from uuid import UUID

from sqlalchemy.ext.asyncio import AsyncSession

from assistance.db.tables import ApplicationRow
from assistance.errors import NotFoundError
from assistance.models.application import Application
from assistance.models.common import ApplicationStatus
from assistance.repositories.applicants import ApplicantRepository
from assistance.repositories.applications import ApplicationRepository
from assistance.repositories.schemes import SchemeRepository

logger = logging.getLogger(__name__)


def application_from_row(row: ApplicationRow) -> Application:
    return Application(
        application_id=row.application_id,
        applicant_id=row.applicant_id,
        scheme_id=row.scheme_id,
        status=row.status,
        applied_date=row.applied_date,
        updated_at=row.updated_at,
    )


class ApplicationService:
    def __init__(self, session: AsyncSession) -> None:
        self._repo = ApplicationRepository(session)
        self._applicants = ApplicantRepository(session)
        self._schemes = SchemeRepository(session)

    async def create(self, applicant_id: UUID, scheme_id: UUID) -> Application:
        """Record a Pending application dated today.

        Uniqueness per (applicant, scheme) is left to the store constraint,
        so two concurrent submissions cannot both succeed.
        """
        if await self._applicants.get(applicant_id) is None:
            raise NotFoundError("Applicant", applicant_id)
        if await self._schemes.get(scheme_id) is None:
            raise NotFoundError("Scheme", scheme_id)
        application = Application(applicant_id=applicant_id, scheme_id=scheme_id)
        row = await self._repo.create(application)
        logger.info(
            "Applicant %s applied to scheme %s (%s)",
            applicant_id, scheme_id, row.application_id,
        )
        return application_from_row(row)

    async def get(self, application_id: UUID) -> Application:
        row = await self._repo.get(application_id)
        if row is None:
            raise NotFoundError("Application", application_id)
        return application_from_row(row)

    async def list_all(
        self,
        *,
        applicant_id: UUID | None = None,
        scheme_id: UUID | None = None,
    ) -> list[Application]:
        rows = await self._repo.list_all(applicant_id=applicant_id, scheme_id=scheme_id)
        return [application_from_row(r) for r in rows]

    async def update(
        self,
        application_id: UUID,
        *,
        status: ApplicationStatus | None = None,
        applied_date: date | None = None,
    ) -> Application:
        row = await self._repo.get(application_id)
        if row is None:
            raise NotFoundError("Application", application_id)
        await self._repo.update(
            row,
            status=status.value if status is not None else None,
            applied_date=applied_date,
        )
        return application_from_row(row)

    async def delete(self, application_id: UUID) -> None:
        if not await self._repo.delete(application_id):
            raise NotFoundError("Application", application_id)
