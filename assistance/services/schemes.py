"""Scheme lifecycle manager: create, update and delete schemes.

Each operation runs inside the request's single transaction (Unit-of-Work):

    mutate scheme row -> replace criterion/benefit links -> reclaim -> commit

Links are always fully replaced, never diffed. Criteria and benefits are
interned through the shared pool, so a spec seen before reuses its row.
Reclamation runs after the unlink in the same transaction, under its own
SAVEPOINT: if it fails, only the savepoint is rolled back, the failure is
logged, and the scheme mutation still commits. Orphans left behind are
picked up by the next pass.
"""

import logging
from collections.abc import Iterable
from uuid import UUID

from pydantic import ValidationError
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from assistance.db.tables import BenefitRow, CriterionRow, SchemeRow
from assistance.errors import AssistanceError, InvalidInputError, NotFoundError
from assistance.models.common import new_uuid7
from assistance.models.scheme import Benefit, BenefitSpec, Criterion, CriterionSpec, Scheme
from assistance.repositories.pool import (
    DEFAULT_INTERN_ATTEMPTS,
    CriteriaBenefitPool,
    ReclaimResult,
)
from assistance.repositories.schemes import SchemeRepository

logger = logging.getLogger(__name__)


# ---------------------------------------------------------------------------
# Row -> model conversion
# ---------------------------------------------------------------------------


def criterion_from_row(row: CriterionRow) -> Criterion:
    return Criterion(
        criterion_id=row.criterion_id,
        criteria_level=row.criteria_level,
        criteria_type=row.criteria_type,
        status=row.status,
    )


def benefit_from_row(row: BenefitRow) -> Benefit:
    return Benefit(benefit_id=row.benefit_id, name=row.name, amount=row.amount)


def scheme_from_rows(
    row: SchemeRow,
    criteria: Iterable[CriterionRow],
    benefits: Iterable[BenefitRow],
) -> Scheme:
    """Build a Scheme; a stored definition outside the closed sets is InvalidInput."""
    try:
        criterion_models = [criterion_from_row(c) for c in criteria]
    except ValidationError as exc:
        raise InvalidInputError(
            f"Scheme {row.scheme_id} holds an unsupported criterion: {exc}"
        ) from exc
    try:
        benefit_models = [benefit_from_row(b) for b in benefits]
    except ValidationError as exc:
        raise InvalidInputError(
            f"Scheme {row.scheme_id} holds an unsupported benefit: {exc}"
        ) from exc
    return Scheme(
        scheme_id=row.scheme_id,
        name=row.name,
        criteria=criterion_models,
        benefits=benefit_models,
        created_at=row.created_at,
        updated_at=row.updated_at,
    )


# ---------------------------------------------------------------------------
# Lifecycle
# ---------------------------------------------------------------------------


class SchemeLifecycleManager:
    """Orchestrates scheme mutations over the scheme table and the shared pool."""

    def __init__(
        self,
        session: AsyncSession,
        *,
        max_intern_attempts: int = DEFAULT_INTERN_ATTEMPTS,
    ) -> None:
        self._session = session
        self._schemes = SchemeRepository(session)
        self._pool = CriteriaBenefitPool(session, max_attempts=max_intern_attempts)

    @property
    def pool(self) -> CriteriaBenefitPool:
        return self._pool

    async def create_scheme(
        self,
        name: str,
        criteria: Iterable[CriterionSpec] = (),
        benefits: Iterable[BenefitSpec] = (),
    ) -> Scheme:
        """Create a scheme; a taken name raises ConflictError and nothing is kept."""
        scheme_id = new_uuid7()
        await self._schemes.create(scheme_id=scheme_id, name=name)
        await self._attach(scheme_id, criteria, benefits)
        logger.info("Created scheme %s (%s)", scheme_id, name)
        return await self.get_scheme(scheme_id)

    async def update_scheme(
        self,
        scheme_id: UUID,
        name: str,
        criteria: Iterable[CriterionSpec] = (),
        benefits: Iterable[BenefitSpec] = (),
    ) -> Scheme:
        """Rename and fully replace the criterion / benefit sets, then reclaim."""
        row = await self._require(scheme_id)
        await self._schemes.rename(row, name)
        await self._pool.unlink_all(scheme_id)
        await self._attach(scheme_id, criteria, benefits)
        await self._reclaim()
        logger.info("Updated scheme %s (%s)", scheme_id, name)
        return await self.get_scheme(scheme_id)

    async def delete_scheme(self, scheme_id: UUID) -> None:
        await self._require(scheme_id)
        await self._pool.unlink_all(scheme_id)
        await self._schemes.delete(scheme_id)
        await self._reclaim()
        logger.info("Deleted scheme %s", scheme_id)

    async def get_scheme(self, scheme_id: UUID) -> Scheme:
        row = await self._require(scheme_id)
        return scheme_from_rows(
            row,
            await self._pool.criteria_for_scheme(scheme_id),
            await self._pool.benefits_for_scheme(scheme_id),
        )

    async def list_schemes(self) -> list[Scheme]:
        rows = await self._schemes.list_all()
        criteria = await self._pool.criteria_by_scheme()
        benefits = await self._pool.benefits_by_scheme()
        return [
            scheme_from_rows(
                row,
                criteria.get(row.scheme_id, []),
                benefits.get(row.scheme_id, []),
            )
            for row in rows
        ]

    # --- internals ---

    async def _require(self, scheme_id: UUID) -> SchemeRow:
        row = await self._schemes.get(scheme_id)
        if row is None:
            raise NotFoundError("Scheme", scheme_id)
        return row

    async def _attach(
        self,
        scheme_id: UUID,
        criteria: Iterable[CriterionSpec],
        benefits: Iterable[BenefitSpec],
    ) -> None:
        # Equal specs intern to the same row and collapse to one link.
        linked: set[UUID] = set()
        for spec in criteria:
            criterion_id = await self._pool.intern_criterion(spec)
            if criterion_id not in linked:
                linked.add(criterion_id)
                await self._pool.link_criterion(scheme_id, criterion_id)
        for spec in benefits:
            benefit_id = await self._pool.intern_benefit(spec)
            if benefit_id not in linked:
                linked.add(benefit_id)
                await self._pool.link_benefit(scheme_id, benefit_id)

    async def _reclaim(self) -> ReclaimResult:
        try:
            async with self._session.begin_nested():
                return await self._pool.reclaim()
        except (AssistanceError, SQLAlchemyError) as exc:
            logger.warning("Reclamation failed, orphans kept for the next pass: %s", exc)
            return ReclaimResult()
