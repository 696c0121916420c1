"""FastAPI dependency injection factories for services.

Each factory takes AsyncSession via Depends(get_async_session) and returns
a service bound to it, so one request is one transaction.
"""

from fastapi import Depends, HTTPException
from sqlalchemy.ext.asyncio import AsyncSession

from assistance.config.settings import Settings, get_settings
from assistance.db.session import get_async_session
from assistance.errors import (
    AssistanceError,
    ConflictError,
    InvalidInputError,
    NotFoundError,
    StorageFailureError,
)
from assistance.services.applicants import ApplicantService
from assistance.services.applications import ApplicationService
from assistance.services.eligibility import EligibilityService
from assistance.services.schemes import SchemeLifecycleManager

# ---------------------------------------------------------------------------
# Services
# ---------------------------------------------------------------------------


async def get_scheme_manager(
    session: AsyncSession = Depends(get_async_session),
    settings: Settings = Depends(get_settings),
) -> SchemeLifecycleManager:
    return SchemeLifecycleManager(session, max_intern_attempts=settings.INTERN_MAX_ATTEMPTS)


async def get_eligibility_service(
    session: AsyncSession = Depends(get_async_session),
) -> EligibilityService:
    return EligibilityService(session)


async def get_applicant_service(
    session: AsyncSession = Depends(get_async_session),
) -> ApplicantService:
    return ApplicantService(session)


async def get_application_service(
    session: AsyncSession = Depends(get_async_session),
) -> ApplicationService:
    return ApplicationService(session)


# ---------------------------------------------------------------------------
# Error mapping
# ---------------------------------------------------------------------------

_STATUS_BY_ERROR: list[tuple[type[AssistanceError], int]] = [
    (NotFoundError, 404),
    (ConflictError, 409),
    (InvalidInputError, 422),
    (StorageFailureError, 503),
]


def http_error(exc: AssistanceError) -> HTTPException:
    """Translate a domain failure into the HTTPException endpoints raise."""
    for error_type, status_code in _STATUS_BY_ERROR:
        if isinstance(exc, error_type):
            return HTTPException(status_code=status_code, detail=str(exc))
    return HTTPException(status_code=500, detail=str(exc))
