"""Eligibility evaluator: which schemes an applicant qualifies for.

Deterministic engine code: no I/O, no store access. The caller supplies one
applicant's complete fact snapshot (scalar attributes plus the full current
household) and the schemes with their resolved criteria.

Rule: a scheme is eligible iff EVERY criterion attached to it is satisfied.
Household-level criteria are existential: one member is enough, and each
criterion may be matched by a different member. A scheme without criteria
is open to everyone.

Satisfaction table (anything outside it fails closed):

    individual / employment_status   applicant.employment_status == status
    individual / marital_status      applicant.marital_status == status
    individual / has_children        some member is a son or daughter (status ignored)
    household  / school_level        some member.school_level == status
    household  / employment_status   some member.employment_status == status

Values are compared exactly; casing is normalized at the model boundary.
"""

import logging
from collections.abc import Callable, Iterable, Sequence

from assistance.models.applicant import Applicant, HouseholdMember
from assistance.models.common import CriteriaLevel, CriteriaType, Relationship
from assistance.models.scheme import CriterionSpec, Scheme

logger = logging.getLogger(__name__)

CHILD_RELATIONSHIPS = frozenset({Relationship.SON, Relationship.DAUGHTER})

_Rule = Callable[[CriterionSpec, Applicant, Sequence[HouseholdMember]], bool]


def _individual_employment(
    criterion: CriterionSpec, applicant: Applicant, household: Sequence[HouseholdMember],
) -> bool:
    return applicant.employment_status == criterion.status


def _individual_marital(
    criterion: CriterionSpec, applicant: Applicant, household: Sequence[HouseholdMember],
) -> bool:
    return applicant.marital_status == criterion.status


def _has_children(
    criterion: CriterionSpec, applicant: Applicant, household: Sequence[HouseholdMember],
) -> bool:
    return any(m.relationship in CHILD_RELATIONSHIPS for m in household)


def _household_school_level(
    criterion: CriterionSpec, applicant: Applicant, household: Sequence[HouseholdMember],
) -> bool:
    return any(m.school_level == criterion.status for m in household)


def _household_employment(
    criterion: CriterionSpec, applicant: Applicant, household: Sequence[HouseholdMember],
) -> bool:
    return any(m.employment_status == criterion.status for m in household)


RULES: dict[tuple[CriteriaLevel, CriteriaType], _Rule] = {
    (CriteriaLevel.INDIVIDUAL, CriteriaType.EMPLOYMENT_STATUS): _individual_employment,
    (CriteriaLevel.INDIVIDUAL, CriteriaType.MARITAL_STATUS): _individual_marital,
    (CriteriaLevel.INDIVIDUAL, CriteriaType.HAS_CHILDREN): _has_children,
    (CriteriaLevel.HOUSEHOLD, CriteriaType.SCHOOL_LEVEL): _household_school_level,
    (CriteriaLevel.HOUSEHOLD, CriteriaType.EMPLOYMENT_STATUS): _household_employment,
}


def criterion_satisfied(
    criterion: CriterionSpec,
    applicant: Applicant,
    household: Sequence[HouseholdMember] | None = None,
) -> bool:
    """Check one criterion against the applicant's facts.

    ``household`` defaults to ``applicant.household``.
    """
    rule = RULES.get((criterion.criteria_level, criterion.criteria_type))
    if rule is None:
        logger.debug(
            "Unsupported criterion %s/%s fails closed",
            criterion.criteria_level, criterion.criteria_type,
        )
        return False
    members = applicant.household if household is None else household
    return rule(criterion, applicant, members)


def is_eligible(
    scheme: Scheme,
    applicant: Applicant,
    household: Sequence[HouseholdMember] | None = None,
) -> bool:
    """True iff every criterion of the scheme is satisfied (vacuously for none)."""
    return all(criterion_satisfied(c, applicant, household) for c in scheme.criteria)


def eligible_schemes(
    applicant: Applicant,
    household: Sequence[HouseholdMember] | None,
    schemes: Iterable[Scheme],
) -> list[Scheme]:
    """Return the schemes the applicant qualifies for.

    The result is a set in meaning; input order is kept only for stable output.
    """
    members = applicant.household if household is None else list(household)
    eligible = [s for s in schemes if is_eligible(s, applicant, members)]
    logger.debug(
        "Applicant %s eligible for %d scheme(s)", applicant.applicant_id, len(eligible),
    )
    return eligible
