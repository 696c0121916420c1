"""SQLAlchemy ORM table models for the assistance service.

All tables defined in a single file.

Categories:
- FACTS: Applicant, HouseholdMember (household replaced wholesale on update)
- SCHEMES: Scheme plus the content-addressed pool (Criterion, Benefit) and
           the association tables that reference it
- OPERATIONAL: Application (status edits allowed)
"""

from datetime import date, datetime
from decimal import Decimal
from uuid import UUID

from sqlalchemy import (
    CheckConstraint,
    Date,
    DateTime,
    ForeignKey,
    Numeric,
    String,
    UniqueConstraint,
)
from sqlalchemy.orm import Mapped, mapped_column

from assistance.db.session import Base

# ---------------------------------------------------------------------------
# Facts
# ---------------------------------------------------------------------------


class ApplicantRow(Base):
    __tablename__ = "applicants"
    __table_args__ = (
        UniqueConstraint("name", "date_of_birth", name="uq_applicant_name_dob"),
    )

    applicant_id: Mapped[UUID] = mapped_column(primary_key=True)
    name: Mapped[str] = mapped_column(String(100), nullable=False)
    employment_status: Mapped[str] = mapped_column(String(50), nullable=False)
    marital_status: Mapped[str] = mapped_column(String(50), nullable=False)
    sex: Mapped[str] = mapped_column(String(10), nullable=False)
    date_of_birth: Mapped[date] = mapped_column(Date, nullable=False)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)
    updated_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)


class HouseholdMemberRow(Base):
    """Owned by exactly one applicant; deleted with it."""

    __tablename__ = "household_members"
    __table_args__ = (
        UniqueConstraint(
            "applicant_id", "name", "date_of_birth", name="uq_household_applicant_name_dob",
        ),
    )

    member_id: Mapped[UUID] = mapped_column(primary_key=True)
    applicant_id: Mapped[UUID] = mapped_column(
        ForeignKey("applicants.applicant_id", ondelete="CASCADE"), nullable=False, index=True,
    )
    name: Mapped[str] = mapped_column(String(100), nullable=False)
    relationship: Mapped[str] = mapped_column(String(50), nullable=False)
    sex: Mapped[str] = mapped_column(String(10), nullable=False)
    school_level: Mapped[str] = mapped_column(String(50), nullable=False)
    employment_status: Mapped[str] = mapped_column(String(50), nullable=False)
    date_of_birth: Mapped[date] = mapped_column(Date, nullable=False)


# ---------------------------------------------------------------------------
# Schemes and the shared criteria / benefit pool
# ---------------------------------------------------------------------------


class SchemeRow(Base):
    __tablename__ = "schemes"

    scheme_id: Mapped[UUID] = mapped_column(primary_key=True)
    name: Mapped[str] = mapped_column(String(100), nullable=False, unique=True)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)
    updated_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)


class CriterionRow(Base):
    """Content-addressed: one row per (level, type, status). Never updated."""

    __tablename__ = "criteria"
    __table_args__ = (
        UniqueConstraint(
            "criteria_level", "criteria_type", "status", name="uq_criterion_content",
        ),
    )

    criterion_id: Mapped[UUID] = mapped_column(primary_key=True)
    criteria_level: Mapped[str] = mapped_column(String(50), nullable=False)
    criteria_type: Mapped[str] = mapped_column(String(100), nullable=False)
    status: Mapped[str] = mapped_column(String(50), nullable=False, default="")


class BenefitRow(Base):
    """Content-addressed: one row per (name, amount). Never updated."""

    __tablename__ = "benefits"
    __table_args__ = (
        UniqueConstraint("name", "amount", name="uq_benefit_content"),
        CheckConstraint("amount >= 0", name="ck_benefit_amount_non_negative"),
    )

    benefit_id: Mapped[UUID] = mapped_column(primary_key=True)
    name: Mapped[str] = mapped_column(String(100), nullable=False)
    amount: Mapped[Decimal] = mapped_column(Numeric(10, 2), nullable=False)


class SchemeCriterionRow(Base):
    __tablename__ = "scheme_criteria"

    scheme_id: Mapped[UUID] = mapped_column(
        ForeignKey("schemes.scheme_id", ondelete="CASCADE"), primary_key=True,
    )
    criterion_id: Mapped[UUID] = mapped_column(
        ForeignKey("criteria.criterion_id", ondelete="CASCADE"), primary_key=True, index=True,
    )


class SchemeBenefitRow(Base):
    __tablename__ = "scheme_benefits"

    scheme_id: Mapped[UUID] = mapped_column(
        ForeignKey("schemes.scheme_id", ondelete="CASCADE"), primary_key=True,
    )
    benefit_id: Mapped[UUID] = mapped_column(
        ForeignKey("benefits.benefit_id", ondelete="CASCADE"), primary_key=True, index=True,
    )


# ---------------------------------------------------------------------------
# Operational
# ---------------------------------------------------------------------------


class ApplicationRow(Base):
    __tablename__ = "applications"
    __table_args__ = (
        UniqueConstraint("applicant_id", "scheme_id", name="uq_application_applicant_scheme"),
    )

    application_id: Mapped[UUID] = mapped_column(primary_key=True)
    applicant_id: Mapped[UUID] = mapped_column(
        ForeignKey("applicants.applicant_id", ondelete="CASCADE"), nullable=False, index=True,
    )
    scheme_id: Mapped[UUID] = mapped_column(
        ForeignKey("schemes.scheme_id", ondelete="CASCADE"), nullable=False, index=True,
    )
    status: Mapped[str] = mapped_column(String(50), nullable=False)
    applied_date: Mapped[date] = mapped_column(Date, nullable=False)
    updated_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)
