"""Scheme models and the content-addressed criterion / benefit specs.

Two specs with equal content are the same pool entry, so specs are frozen
and hashable; a set of specs is what a scheme actually references.
"""

from decimal import Decimal

from pydantic import ConfigDict, Field, ValidationInfo, field_validator

from assistance.models.common import (
    AssistanceBase,
    CriteriaLevelValue,
    CriteriaType,
    CriteriaTypeValue,
    EmploymentStatus,
    MaritalStatus,
    SchoolLevel,
    UTCTimestamp,
    UUIDv7,
    new_uuid7,
    utc_now,
)

# Criterion types whose status must be one of a closed value set.
# has_children ignores its status, so any value is accepted there.
STATUS_VALUE_SETS: dict[CriteriaType, type] = {
    CriteriaType.EMPLOYMENT_STATUS: EmploymentStatus,
    CriteriaType.MARITAL_STATUS: MaritalStatus,
    CriteriaType.SCHOOL_LEVEL: SchoolLevel,
}


class CriterionSpec(AssistanceBase):
    """A single eligibility condition: level + type + required status."""

    model_config = ConfigDict(frozen=True)

    criteria_level: CriteriaLevelValue
    criteria_type: CriteriaTypeValue
    status: str = Field(default="", max_length=50, validate_default=True)

    @field_validator("status")
    @classmethod
    def _canonical_status(cls, value: str, info: ValidationInfo) -> str:
        value = value.strip()
        value_set = STATUS_VALUE_SETS.get(info.data.get("criteria_type"))
        if value_set is None:
            return value
        for member in value_set:
            if member.value.casefold() == value.casefold():
                return member.value
        allowed = ", ".join(m.value for m in value_set)
        raise ValueError(f"status {value!r} is not one of [{allowed}]")

    def content_key(self) -> tuple[str, str, str]:
        return (self.criteria_level.value, self.criteria_type.value, self.status)


class Criterion(CriterionSpec):
    """An interned criterion shared by every scheme that references it."""

    criterion_id: UUIDv7


class BenefitSpec(AssistanceBase):
    model_config = ConfigDict(frozen=True)

    name: str = Field(..., min_length=1, max_length=100)
    amount: Decimal = Field(..., ge=0, max_digits=10, decimal_places=2)

    def content_key(self) -> tuple[str, Decimal]:
        return (self.name, self.amount.quantize(Decimal("0.01")))


class Benefit(BenefitSpec):
    """An interned benefit shared by every scheme that references it."""

    benefit_id: UUIDv7


class Scheme(AssistanceBase):
    """A named bundle of criteria and benefits.

    A scheme with no criteria is open to every applicant.
    """

    scheme_id: UUIDv7 = Field(default_factory=new_uuid7)
    name: str = Field(..., min_length=1, max_length=100)
    criteria: list[Criterion] = Field(default_factory=list)
    benefits: list[Benefit] = Field(default_factory=list)
    created_at: UTCTimestamp = Field(default_factory=utc_now)
    updated_at: UTCTimestamp = Field(default_factory=utc_now)
