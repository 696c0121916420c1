"""On-demand eligibility query keyed by applicant id.

Loads the applicant's current facts and every scheme with its criteria in
the request's session, then hands them to the pure evaluator. Nothing is
cached; every call sees the current state.
"""

import logging
from uuid import UUID

from sqlalchemy.ext.asyncio import AsyncSession

from assistance.engine.eligibility import eligible_schemes
from assistance.errors import InvalidInputError, NotFoundError
from assistance.models.scheme import Scheme
from assistance.repositories.applicants import ApplicantRepository
from assistance.repositories.pool import CriteriaBenefitPool
from assistance.repositories.schemes import SchemeRepository
from assistance.services.applicants import applicant_from_rows
from assistance.services.schemes import scheme_from_rows

logger = logging.getLogger(__name__)


class EligibilityService:
    def __init__(self, session: AsyncSession) -> None:
        self._applicants = ApplicantRepository(session)
        self._schemes = SchemeRepository(session)
        self._pool = CriteriaBenefitPool(session)

    async def eligible_for(self, applicant_id: UUID) -> list[Scheme]:
        row = await self._applicants.get(applicant_id)
        if row is None:
            raise NotFoundError("Applicant", applicant_id)
        applicant = applicant_from_rows(row, await self._applicants.get_household(applicant_id))
        return eligible_schemes(applicant, applicant.household, await self._all_schemes())

    async def _all_schemes(self) -> list[Scheme]:
        rows = await self._schemes.list_all()
        criteria = await self._pool.criteria_by_scheme()
        benefits = await self._pool.benefits_by_scheme()
        schemes: list[Scheme] = []
        for row in rows:
            try:
                schemes.append(scheme_from_rows(
                    row,
                    criteria.get(row.scheme_id, []),
                    benefits.get(row.scheme_id, []),
                ))
            except InvalidInputError as exc:
                # An unreadable scheme can never be offered.
                logger.warning("Skipping scheme in eligibility: %s", exc)
        return schemes
