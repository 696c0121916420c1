"""Scheme repository: the scheme rows themselves (links live in the pool)."""

from uuid import UUID

from sqlalchemy import delete, select
from sqlalchemy.ext.asyncio import AsyncSession

from assistance.db.tables import SchemeRow
from assistance.models.common import utc_now
from assistance.repositories.base import translate_errors


class SchemeRepository:
    def __init__(self, session: AsyncSession) -> None:
        self._session = session

    async def create(self, *, scheme_id: UUID, name: str) -> SchemeRow:
        now = utc_now()
        row = SchemeRow(scheme_id=scheme_id, name=name, created_at=now, updated_at=now)
        self._session.add(row)
        with translate_errors("scheme"):
            await self._session.flush()
        return row

    async def get(self, scheme_id: UUID) -> SchemeRow | None:
        with translate_errors("scheme"):
            return await self._session.get(SchemeRow, scheme_id)

    async def list_all(self) -> list[SchemeRow]:
        with translate_errors("schemes"):
            result = await self._session.execute(select(SchemeRow).order_by(SchemeRow.name))
        return list(result.scalars().all())

    async def rename(self, row: SchemeRow, name: str) -> SchemeRow:
        row.name = name
        row.updated_at = utc_now()
        with translate_errors("scheme"):
            await self._session.flush()
        return row

    async def delete(self, scheme_id: UUID) -> bool:
        with translate_errors("scheme"):
            result = await self._session.execute(
                delete(SchemeRow)
                .where(SchemeRow.scheme_id == scheme_id)
                .execution_options(synchronize_session="fetch")
            )
        return result.rowcount > 0
