"""Criteria / benefit pool: deduplicated definitions shared across schemes.

Criteria are keyed by (level, type, status) and benefits by (name, amount).
Interning is insert-or-fetch: a lookup under a key-share row lock, then an
insert inside a SAVEPOINT; a duplicate-key failure means another writer won
the race, so the savepoint is rolled back and the row re-read.

Reclamation deletes every definition with no association row left. It runs
inside the caller's transaction, after the unlink:
- candidates are locked FOR UPDATE SKIP LOCKED, so a row a concurrent
  intern holds a key-share lock on is skipped rather than deleted
- the DELETE re-checks the zero-reference condition itself
SQLite ignores the lock clauses; it serializes writers instead.
"""

import logging
from collections import defaultdict
from dataclasses import dataclass
from uuid import UUID

from sqlalchemy import Select, delete, exists, select
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from assistance.db.tables import (
    BenefitRow,
    CriterionRow,
    SchemeBenefitRow,
    SchemeCriterionRow,
)
from assistance.errors import ConflictError, InvalidInputError, StorageFailureError
from assistance.models.common import new_uuid7
from assistance.models.scheme import BenefitSpec, CriterionSpec
from assistance.repositories.base import is_duplicate_key, translate_errors

logger = logging.getLogger(__name__)

DEFAULT_INTERN_ATTEMPTS = 3


@dataclass(frozen=True)
class ReclaimResult:
    """Ids of the definitions a reclamation pass deleted."""

    criteria_removed: tuple[UUID, ...] = ()
    benefits_removed: tuple[UUID, ...] = ()

    @property
    def total(self) -> int:
        return len(self.criteria_removed) + len(self.benefits_removed)


class CriteriaBenefitPool:
    """Repository for the shared criterion / benefit pool and its links."""

    def __init__(
        self, session: AsyncSession, *, max_attempts: int = DEFAULT_INTERN_ATTEMPTS,
    ) -> None:
        self._session = session
        self._max_attempts = max_attempts

    # --- Interning ---

    async def intern_criterion(self, spec: CriterionSpec) -> UUID:
        """Return the id of the criterion with this content, creating it if new."""
        level, criteria_type, status = spec.content_key()

        def make_row() -> CriterionRow:
            return CriterionRow(
                criterion_id=new_uuid7(), criteria_level=level,
                criteria_type=criteria_type, status=status,
            )

        return await self._intern("criterion", criterion_lookup(spec), make_row)

    async def intern_benefit(self, spec: BenefitSpec) -> UUID:
        """Return the id of the benefit with this content, creating it if new."""
        name, amount = spec.content_key()

        def make_row() -> BenefitRow:
            return BenefitRow(benefit_id=new_uuid7(), name=name, amount=amount)

        return await self._intern("benefit", benefit_lookup(spec), make_row)

    async def _intern(self, entity: str, lookup: Select, make_row) -> UUID:
        for attempt in range(1, self._max_attempts + 1):
            with translate_errors(entity):
                existing = (await self._session.execute(lookup)).scalar_one_or_none()
            if existing is not None:
                return existing

            row = make_row()
            new_id = _row_id(row)
            try:
                async with self._session.begin_nested():
                    self._session.add(row)
                    await self._session.flush()
            except IntegrityError as exc:
                if not is_duplicate_key(exc):
                    raise InvalidInputError(
                        f"The {entity} violates a store constraint."
                    ) from exc
                logger.debug(
                    "Lost %s intern race on attempt %d, re-reading", entity, attempt,
                )
                continue
            except SQLAlchemyError as exc:
                raise StorageFailureError(f"Failed to store {entity}.") from exc
            logger.debug("Interned new %s %s", entity, new_id)
            return new_id

        raise ConflictError(
            f"Could not intern {entity} after {self._max_attempts} attempts."
        )

    # --- Scheme links ---

    async def link_criterion(self, scheme_id: UUID, criterion_id: UUID) -> None:
        self._session.add(SchemeCriterionRow(scheme_id=scheme_id, criterion_id=criterion_id))
        with translate_errors("scheme criterion link"):
            await self._session.flush()

    async def link_benefit(self, scheme_id: UUID, benefit_id: UUID) -> None:
        self._session.add(SchemeBenefitRow(scheme_id=scheme_id, benefit_id=benefit_id))
        with translate_errors("scheme benefit link"):
            await self._session.flush()

    async def unlink_all(self, scheme_id: UUID) -> None:
        """Drop every criterion and benefit link of a scheme."""
        with translate_errors("scheme links"):
            await self._session.execute(
                delete(SchemeCriterionRow)
                .where(SchemeCriterionRow.scheme_id == scheme_id)
                .execution_options(synchronize_session="fetch")
            )
            await self._session.execute(
                delete(SchemeBenefitRow)
                .where(SchemeBenefitRow.scheme_id == scheme_id)
                .execution_options(synchronize_session="fetch")
            )

    # --- Reclamation ---

    async def reclaim(self) -> ReclaimResult:
        """Delete every criterion and benefit no scheme references."""
        with translate_errors("reclamation"):
            criteria = await self._sweep(
                CriterionRow, CriterionRow.criterion_id, _criterion_unreferenced(),
            )
            benefits = await self._sweep(
                BenefitRow, BenefitRow.benefit_id, _benefit_unreferenced(),
            )
        result = ReclaimResult(criteria_removed=criteria, benefits_removed=benefits)
        if result.total:
            logger.info(
                "Reclaimed %d criteria and %d benefits",
                len(criteria), len(benefits),
            )
        return result

    async def _sweep(self, table, id_column, unreferenced) -> tuple[UUID, ...]:
        candidates = (
            await self._session.execute(_orphan_candidates(table, id_column, unreferenced))
        ).scalars().all()
        if not candidates:
            return ()
        await self._session.execute(
            delete(table)
            .where(id_column.in_(candidates), unreferenced)
            .execution_options(synchronize_session="fetch")
        )
        remaining = set(
            (await self._session.execute(
                select(id_column).where(id_column.in_(candidates))
            )).scalars().all()
        )
        return tuple(c for c in candidates if c not in remaining)

    # --- Reads ---

    async def get_criterion(self, criterion_id: UUID) -> CriterionRow | None:
        return await self._session.get(CriterionRow, criterion_id)

    async def find_criterion(self, spec: CriterionSpec) -> CriterionRow | None:
        level, criteria_type, status = spec.content_key()
        result = await self._session.execute(
            select(CriterionRow).where(
                CriterionRow.criteria_level == level,
                CriterionRow.criteria_type == criteria_type,
                CriterionRow.status == status,
            )
        )
        return result.scalar_one_or_none()

    async def find_benefit(self, spec: BenefitSpec) -> BenefitRow | None:
        name, amount = spec.content_key()
        result = await self._session.execute(
            select(BenefitRow).where(BenefitRow.name == name, BenefitRow.amount == amount)
        )
        return result.scalar_one_or_none()

    async def list_benefits(self) -> list[BenefitRow]:
        result = await self._session.execute(select(BenefitRow))
        return list(result.scalars().all())

    async def criteria_for_scheme(self, scheme_id: UUID) -> list[CriterionRow]:
        return (await self.criteria_by_scheme([scheme_id])).get(scheme_id, [])

    async def benefits_for_scheme(self, scheme_id: UUID) -> list[BenefitRow]:
        return (await self.benefits_by_scheme([scheme_id])).get(scheme_id, [])

    async def criteria_by_scheme(
        self, scheme_ids: list[UUID] | None = None,
    ) -> dict[UUID, list[CriterionRow]]:
        """Resolve criteria for many schemes in one query (all when None)."""
        stmt = select(SchemeCriterionRow.scheme_id, CriterionRow).join(
            CriterionRow, CriterionRow.criterion_id == SchemeCriterionRow.criterion_id,
        )
        if scheme_ids is not None:
            stmt = stmt.where(SchemeCriterionRow.scheme_id.in_(scheme_ids))
        grouped: dict[UUID, list[CriterionRow]] = defaultdict(list)
        with translate_errors("criteria"):
            for scheme_id, row in (await self._session.execute(stmt)).all():
                grouped[scheme_id].append(row)
        return dict(grouped)

    async def benefits_by_scheme(
        self, scheme_ids: list[UUID] | None = None,
    ) -> dict[UUID, list[BenefitRow]]:
        stmt = select(SchemeBenefitRow.scheme_id, BenefitRow).join(
            BenefitRow, BenefitRow.benefit_id == SchemeBenefitRow.benefit_id,
        )
        if scheme_ids is not None:
            stmt = stmt.where(SchemeBenefitRow.scheme_id.in_(scheme_ids))
        grouped: dict[UUID, list[BenefitRow]] = defaultdict(list)
        with translate_errors("benefits"):
            for scheme_id, row in (await self._session.execute(stmt)).all():
                grouped[scheme_id].append(row)
        return dict(grouped)

    async def reference_count(self, *, criterion_id: UUID | None = None,
                              benefit_id: UUID | None = None) -> int:
        """Number of schemes linked to a criterion or a benefit."""
        if criterion_id is not None:
            stmt = select(SchemeCriterionRow.scheme_id).where(
                SchemeCriterionRow.criterion_id == criterion_id,
            )
        elif benefit_id is not None:
            stmt = select(SchemeBenefitRow.scheme_id).where(
                SchemeBenefitRow.benefit_id == benefit_id,
            )
        else:
            raise ValueError("criterion_id or benefit_id is required")
        return len((await self._session.execute(stmt)).all())


# --- Statements ---


def criterion_lookup(spec: CriterionSpec) -> Select:
    """Select a criterion id by content under a key-share lock.

    The lock does not block other interns or links, but it does block the
    FOR UPDATE a concurrent reclaim takes on the same row.
    """
    level, criteria_type, status = spec.content_key()
    return (
        select(CriterionRow.criterion_id)
        .where(
            CriterionRow.criteria_level == level,
            CriterionRow.criteria_type == criteria_type,
            CriterionRow.status == status,
        )
        .with_for_update(key_share=True)
    )


def benefit_lookup(spec: BenefitSpec) -> Select:
    name, amount = spec.content_key()
    return (
        select(BenefitRow.benefit_id)
        .where(BenefitRow.name == name, BenefitRow.amount == amount)
        .with_for_update(key_share=True)
    )


def orphaned_criteria() -> Select:
    """Unreferenced criteria, locked; rows held by an intern are skipped."""
    return _orphan_candidates(
        CriterionRow, CriterionRow.criterion_id, _criterion_unreferenced(),
    )


def orphaned_benefits() -> Select:
    return _orphan_candidates(BenefitRow, BenefitRow.benefit_id, _benefit_unreferenced())


def _orphan_candidates(table, id_column, unreferenced) -> Select:
    return select(id_column).where(unreferenced).with_for_update(skip_locked=True, of=table)


def _criterion_unreferenced():
    return ~exists().where(SchemeCriterionRow.criterion_id == CriterionRow.criterion_id)


def _benefit_unreferenced():
    return ~exists().where(SchemeBenefitRow.benefit_id == BenefitRow.benefit_id)


def _row_id(row: CriterionRow | BenefitRow) -> UUID:
    if isinstance(row, CriterionRow):
        return row.criterion_id
    return row.benefit_id
