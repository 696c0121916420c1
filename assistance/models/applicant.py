"""Applicant and household models: the facts eligibility is evaluated against."""

from datetime import date

from pydantic import Field

from assistance.models.common import (
    AssistanceBase,
    EmploymentStatusValue,
    MaritalStatusValue,
    RelationshipValue,
    SchoolLevelValue,
    SexValue,
    UTCTimestamp,
    UUIDv7,
    new_uuid7,
    utc_now,
)


class HouseholdMember(AssistanceBase):
    """A person living with the applicant. Owned by exactly one applicant."""

    member_id: UUIDv7 = Field(default_factory=new_uuid7)
    name: str = Field(..., min_length=1, max_length=100)
    relationship: RelationshipValue
    sex: SexValue
    school_level: SchoolLevelValue
    employment_status: EmploymentStatusValue
    date_of_birth: date


class Applicant(AssistanceBase):
    """An applicant with their complete current household.

    (name, date_of_birth) identifies an applicant. The household list is
    always the full set; updates replace it rather than merging.
    """

    applicant_id: UUIDv7 = Field(default_factory=new_uuid7)
    name: str = Field(..., min_length=1, max_length=100)
    employment_status: EmploymentStatusValue
    marital_status: MaritalStatusValue
    sex: SexValue
    date_of_birth: date
    household: list[HouseholdMember] = Field(default_factory=list)
    created_at: UTCTimestamp = Field(default_factory=utc_now)
    updated_at: UTCTimestamp = Field(default_factory=utc_now)
