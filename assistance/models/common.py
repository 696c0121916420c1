"""Shared types, enums, and base models used across assistance domain models."""

from datetime import date, datetime, timezone
from enum import StrEnum
from typing import Annotated, Any
from uuid import UUID

from pydantic import BaseModel, BeforeValidator, Field
from uuid_extensions import uuid7


def utc_now() -> datetime:
    """Return the current UTC timestamp (timezone-aware)."""
    return datetime.now(tz=timezone.utc)


def utc_today() -> date:
    return utc_now().date()


def new_uuid7() -> UUID:
    """Generate a new time-sortable UUID v7."""
    return uuid7()


# --- Reusable annotated types ---

UUIDv7 = Annotated[UUID, Field(description="Time-sortable UUID v7.")]
UTCTimestamp = Annotated[
    datetime, Field(description="UTC timezone-aware timestamp.")
]


# --- Shared enums (closed value sets validated at the boundary) ---


class EmploymentStatus(StrEnum):
    EMPLOYED = "employed"
    UNEMPLOYED = "unemployed"
    SELF_EMPLOYED = "self-employed"
    RETIRED = "retired"


class MaritalStatus(StrEnum):
    SINGLE = "single"
    MARRIED = "married"
    DIVORCED = "divorced"
    WIDOWED = "widowed"


class Sex(StrEnum):
    MALE = "male"
    FEMALE = "female"


class SchoolLevel(StrEnum):
    NONE = "none"
    PRIMARY = "primary"
    SECONDARY = "secondary"
    POST_SECONDARY = "post-secondary"
    UNIVERSITY = "university"
    GRADUATED = "graduated"


class Relationship(StrEnum):
    """Relationship of a household member to the applicant."""

    PARENT = "parent"
    SON = "son"
    DAUGHTER = "daughter"
    SIBLING = "sibling"
    SPOUSE = "spouse"
    OTHER = "other"


class CriteriaLevel(StrEnum):
    """Whose facts a criterion is checked against."""

    INDIVIDUAL = "individual"
    HOUSEHOLD = "household"


class CriteriaType(StrEnum):
    EMPLOYMENT_STATUS = "employment_status"
    MARITAL_STATUS = "marital_status"
    HAS_CHILDREN = "has_children"
    SCHOOL_LEVEL = "school_level"


class ApplicationStatus(StrEnum):
    """Lifecycle status for an application."""

    PENDING = "Pending"
    APPROVED = "Approved"
    REJECTED = "Rejected"
    WITHDRAWN = "Withdrawn"


def canonical(enum_cls: type[StrEnum]):
    """Build a before-validator mapping any casing onto the enum's own value."""
    lookup = {member.value.casefold(): member.value for member in enum_cls}

    def _normalize(value: Any) -> Any:
        if isinstance(value, str):
            return lookup.get(value.strip().casefold(), value)
        return value

    return BeforeValidator(_normalize)


EmploymentStatusValue = Annotated[EmploymentStatus, canonical(EmploymentStatus)]
MaritalStatusValue = Annotated[MaritalStatus, canonical(MaritalStatus)]
SexValue = Annotated[Sex, canonical(Sex)]
SchoolLevelValue = Annotated[SchoolLevel, canonical(SchoolLevel)]
RelationshipValue = Annotated[Relationship, canonical(Relationship)]
CriteriaLevelValue = Annotated[CriteriaLevel, canonical(CriteriaLevel)]
CriteriaTypeValue = Annotated[CriteriaType, canonical(CriteriaType)]
ApplicationStatusValue = Annotated[ApplicationStatus, canonical(ApplicationStatus)]


# --- Base model ---


class AssistanceBase(BaseModel):
    """Base model with common configuration for all assistance Pydantic models."""

    model_config = {
        "populate_by_name": True,
        "protected_namespaces": (),
    }
