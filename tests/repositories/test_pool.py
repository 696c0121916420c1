"""Tests for CriteriaBenefitPool: interning, links and reclamation."""

from decimal import Decimal

import pytest
from sqlalchemy import false, func, select
from sqlalchemy.ext.asyncio import AsyncSession

from assistance.db.tables import CriterionRow, SchemeCriterionRow
from assistance.errors import ConflictError
from assistance.models.common import new_uuid7
from assistance.models.scheme import BenefitSpec, CriterionSpec
from assistance.repositories.pool import CriteriaBenefitPool
from assistance.repositories.schemes import SchemeRepository

pytestmark = pytest.mark.anyio

EMPLOYED = CriterionSpec(
    criteria_level="individual", criteria_type="employment_status", status="employed",
)
HAS_CHILDREN = CriterionSpec(criteria_level="individual", criteria_type="has_children")
GRANT = BenefitSpec(name="Cash grant", amount=Decimal("500.00"))


async def _count(session: AsyncSession, table) -> int:
    return (await session.execute(select(func.count()).select_from(table))).scalar_one()


async def _new_scheme(session: AsyncSession, name: str):
    return await SchemeRepository(session).create(scheme_id=new_uuid7(), name=name)


class TestIntern:
    async def test_intern_criterion_is_idempotent(self, db_session: AsyncSession) -> None:
        pool = CriteriaBenefitPool(db_session)
        first = await pool.intern_criterion(EMPLOYED)
        second = await pool.intern_criterion(EMPLOYED)
        assert first == second
        assert await _count(db_session, CriterionRow) == 1

    async def test_intern_normalized_spec_reuses_row(self, db_session: AsyncSession) -> None:
        pool = CriteriaBenefitPool(db_session)
        first = await pool.intern_criterion(EMPLOYED)
        shouty = CriterionSpec(
            criteria_level="INDIVIDUAL", criteria_type="employment_status", status="Employed",
        )
        assert await pool.intern_criterion(shouty) == first

    async def test_distinct_specs_get_distinct_rows(self, db_session: AsyncSession) -> None:
        pool = CriteriaBenefitPool(db_session)
        a = await pool.intern_criterion(EMPLOYED)
        b = await pool.intern_criterion(HAS_CHILDREN)
        assert a != b
        assert await _count(db_session, CriterionRow) == 2

    async def test_intern_benefit_is_idempotent(self, db_session: AsyncSession) -> None:
        pool = CriteriaBenefitPool(db_session)
        first = await pool.intern_benefit(GRANT)
        same_amount = BenefitSpec(name="Cash grant", amount=500)
        assert await pool.intern_benefit(same_amount) == first
        other = await pool.intern_benefit(BenefitSpec(name="Cash grant", amount=750))
        assert other != first
        assert len(await pool.list_benefits()) == 2

    async def test_duplicate_insert_rolls_back_savepoint_only(
        self, db_session: AsyncSession,
    ) -> None:
        """A lookup that never sees the row keeps losing the race, then conflicts."""
        pool = CriteriaBenefitPool(db_session, max_attempts=2)
        existing = await pool.intern_criterion(EMPLOYED)
        blind_lookup = select(CriterionRow.criterion_id).where(false())

        def make_row() -> CriterionRow:
            return CriterionRow(
                criterion_id=new_uuid7(), criteria_level="individual",
                criteria_type="employment_status", status="employed",
            )

        with pytest.raises(ConflictError):
            await pool._intern("criterion", blind_lookup, make_row)

        # Outer transaction still usable; the original row is untouched.
        assert await pool.intern_criterion(EMPLOYED) == existing
        assert await _count(db_session, CriterionRow) == 1


class TestLinks:
    async def test_link_and_read_back(self, db_session: AsyncSession) -> None:
        pool = CriteriaBenefitPool(db_session)
        scheme = await _new_scheme(db_session, "Retrenchment Support")
        cid = await pool.intern_criterion(EMPLOYED)
        bid = await pool.intern_benefit(GRANT)
        await pool.link_criterion(scheme.scheme_id, cid)
        await pool.link_benefit(scheme.scheme_id, bid)

        criteria = await pool.criteria_for_scheme(scheme.scheme_id)
        benefits = await pool.benefits_for_scheme(scheme.scheme_id)
        assert [c.criterion_id for c in criteria] == [cid]
        assert [b.benefit_id for b in benefits] == [bid]
        assert await pool.reference_count(criterion_id=cid) == 1

    async def test_duplicate_link_conflicts(self, db_session: AsyncSession) -> None:
        pool = CriteriaBenefitPool(db_session)
        scheme = await _new_scheme(db_session, "Twice")
        cid = await pool.intern_criterion(EMPLOYED)
        await pool.link_criterion(scheme.scheme_id, cid)
        with pytest.raises(ConflictError):
            await pool.link_criterion(scheme.scheme_id, cid)

    async def test_unlink_all(self, db_session: AsyncSession) -> None:
        pool = CriteriaBenefitPool(db_session)
        scheme = await _new_scheme(db_session, "Unlinked")
        await pool.link_criterion(scheme.scheme_id, await pool.intern_criterion(EMPLOYED))
        await pool.link_benefit(scheme.scheme_id, await pool.intern_benefit(GRANT))
        await pool.unlink_all(scheme.scheme_id)
        assert await pool.criteria_for_scheme(scheme.scheme_id) == []
        assert await pool.benefits_for_scheme(scheme.scheme_id) == []
        assert await _count(db_session, SchemeCriterionRow) == 0


class TestReclaim:
    async def test_reclaim_removes_only_unreferenced(self, db_session: AsyncSession) -> None:
        pool = CriteriaBenefitPool(db_session)
        scheme = await _new_scheme(db_session, "Keeper")
        kept = await pool.intern_criterion(EMPLOYED)
        orphan = await pool.intern_criterion(HAS_CHILDREN)
        orphan_benefit = await pool.intern_benefit(GRANT)
        await pool.link_criterion(scheme.scheme_id, kept)

        result = await pool.reclaim()

        assert result.criteria_removed == (orphan,)
        assert result.benefits_removed == (orphan_benefit,)
        assert result.total == 2
        assert await pool.get_criterion(kept) is not None
        assert await pool.find_criterion(HAS_CHILDREN) is None
        assert await pool.find_benefit(GRANT) is None

    async def test_reclaim_with_nothing_to_do(self, db_session: AsyncSession) -> None:
        pool = CriteriaBenefitPool(db_session)
        result = await pool.reclaim()
        assert result.total == 0

    async def test_shared_criterion_survives_one_unlink(self, db_session: AsyncSession) -> None:
        pool = CriteriaBenefitPool(db_session)
        x = await _new_scheme(db_session, "X")
        y = await _new_scheme(db_session, "Y")
        shared = await pool.intern_criterion(EMPLOYED)
        await pool.link_criterion(x.scheme_id, shared)
        await pool.link_criterion(y.scheme_id, shared)

        await pool.unlink_all(x.scheme_id)
        await pool.reclaim()

        assert await pool.get_criterion(shared) is not None
        assert await pool.reference_count(criterion_id=shared) == 1
