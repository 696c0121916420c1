"""FastAPI application endpoints.

POST   /api/applications        - apply (status Pending, applied today; one per pair)
GET    /api/applications        - list, optionally by applicant_id / scheme_id
GET    /api/applications/{id}   - get application
PUT    /api/applications/{id}   - administrative edit of status / applied_date
DELETE /api/applications/{id}   - delete application
"""

from datetime import date
from uuid import UUID

from fastapi import APIRouter, Depends, Query, Response
from pydantic import BaseModel

from assistance.api.dependencies import get_application_service, http_error
from assistance.errors import AssistanceError
from assistance.models.application import Application
from assistance.models.common import ApplicationStatusValue
from assistance.services.applications import ApplicationService

router = APIRouter(prefix="/api/applications", tags=["applications"])


# ---------------------------------------------------------------------------
# Request / Response schemas
# ---------------------------------------------------------------------------


class CreateApplicationRequest(BaseModel):
    applicant_id: UUID
    scheme_id: UUID


class UpdateApplicationRequest(BaseModel):
    status: ApplicationStatusValue | None = None
    applied_date: date | None = None


class ApplicationResponse(BaseModel):
    id: str
    applicant_id: str
    scheme_id: str
    status: str
    applied_date: date


def _to_response(application: Application) -> ApplicationResponse:
    return ApplicationResponse(
        id=str(application.application_id),
        applicant_id=str(application.applicant_id),
        scheme_id=str(application.scheme_id),
        status=application.status.value,
        applied_date=application.applied_date,
    )


# ---------------------------------------------------------------------------
# Endpoints
# ---------------------------------------------------------------------------


@router.post("", status_code=201, response_model=ApplicationResponse)
async def create_application(
    body: CreateApplicationRequest,
    service: ApplicationService = Depends(get_application_service),
) -> ApplicationResponse:
    """409 if the applicant already applied to this scheme."""
    try:
        application = await service.create(body.applicant_id, body.scheme_id)
    except AssistanceError as exc:
        raise http_error(exc) from exc
    return _to_response(application)


@router.get("", response_model=list[ApplicationResponse])
async def list_applications(
    applicant_id: UUID | None = Query(default=None),
    scheme_id: UUID | None = Query(default=None),
    service: ApplicationService = Depends(get_application_service),
) -> list[ApplicationResponse]:
    try:
        applications = await service.list_all(applicant_id=applicant_id, scheme_id=scheme_id)
    except AssistanceError as exc:
        raise http_error(exc) from exc
    return [_to_response(a) for a in applications]


@router.get("/{application_id}", response_model=ApplicationResponse)
async def get_application(
    application_id: UUID,
    service: ApplicationService = Depends(get_application_service),
) -> ApplicationResponse:
    try:
        application = await service.get(application_id)
    except AssistanceError as exc:
        raise http_error(exc) from exc
    return _to_response(application)


@router.put("/{application_id}", status_code=204)
async def update_application(
    application_id: UUID,
    body: UpdateApplicationRequest,
    service: ApplicationService = Depends(get_application_service),
) -> Response:
    try:
        await service.update(
            application_id, status=body.status, applied_date=body.applied_date,
        )
    except AssistanceError as exc:
        raise http_error(exc) from exc
    return Response(status_code=204)


@router.delete("/{application_id}", status_code=204)
async def delete_application(
    application_id: UUID,
    service: ApplicationService = Depends(get_application_service),
) -> Response:
    try:
        await service.delete(application_id)
    except AssistanceError as exc:
        raise http_error(exc) from exc
    return Response(status_code=204)
