"""Application model: one applicant applying to one scheme."""

from datetime import date

from pydantic import Field

from assistance.models.common import (
    ApplicationStatus,
    ApplicationStatusValue,
    AssistanceBase,
    UTCTimestamp,
    UUIDv7,
    new_uuid7,
    utc_now,
    utc_today,
)


class Application(AssistanceBase):
    """At most one application exists per (applicant, scheme) pair."""

    application_id: UUIDv7 = Field(default_factory=new_uuid7)
    applicant_id: UUIDv7
    scheme_id: UUIDv7
    status: ApplicationStatusValue = ApplicationStatus.PENDING
    applied_date: date = Field(default_factory=utc_today)
    updated_at: UTCTimestamp = Field(default_factory=utc_now)
