"""Application repository."""

from datetime import date
from uuid import UUID

from sqlalchemy import delete, select
from sqlalchemy.ext.asyncio import AsyncSession

from assistance.db.tables import ApplicationRow
from assistance.models.application import Application
from assistance.models.common import utc_now
from assistance.repositories.base import translate_errors


class ApplicationRepository:
    def __init__(self, session: AsyncSession) -> None:
        self._session = session

    async def create(self, application: Application) -> ApplicationRow:
        """Insert; a second application for the same pair raises ConflictError."""
        row = ApplicationRow(
            application_id=application.application_id,
            applicant_id=application.applicant_id,
            scheme_id=application.scheme_id,
            status=application.status.value,
            applied_date=application.applied_date,
            updated_at=utc_now(),
        )
        self._session.add(row)
        with translate_errors("application"):
            await self._session.flush()
        return row

    async def get(self, application_id: UUID) -> ApplicationRow | None:
        with translate_errors("application"):
            return await self._session.get(ApplicationRow, application_id)

    async def list_all(
        self,
        *,
        applicant_id: UUID | None = None,
        scheme_id: UUID | None = None,
    ) -> list[ApplicationRow]:
        stmt = select(ApplicationRow)
        if applicant_id is not None:
            stmt = stmt.where(ApplicationRow.applicant_id == applicant_id)
        if scheme_id is not None:
            stmt = stmt.where(ApplicationRow.scheme_id == scheme_id)
        stmt = stmt.order_by(ApplicationRow.applied_date, ApplicationRow.application_id)
        with translate_errors("applications"):
            result = await self._session.execute(stmt)
        return list(result.scalars().all())

    async def update(
        self,
        row: ApplicationRow,
        *,
        status: str | None = None,
        applied_date: date | None = None,
    ) -> ApplicationRow:
        """Administrative edit; only status and applied_date are mutable."""
        if status is not None:
            row.status = status
        if applied_date is not None:
            row.applied_date = applied_date
        row.updated_at = utc_now()
        with translate_errors("application"):
            await self._session.flush()
        return row

    async def delete(self, application_id: UUID) -> bool:
        with translate_errors("application"):
            result = await self._session.execute(
                delete(ApplicationRow)
                .where(ApplicationRow.application_id == application_id)
                .execution_options(synchronize_session="fetch")
            )
        return result.rowcount > 0
