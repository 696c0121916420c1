"""FastAPI applicant endpoints.

POST   /api/applicants        - create applicant with household
GET    /api/applicants        - list applicants with households
GET    /api/applicants/{id}   - get applicant
PUT    /api/applicants/{id}   - replace applicant facts (household replaced wholesale)
DELETE /api/applicants/{id}   - delete applicant, household and applications
"""

from datetime import date
from uuid import UUID

from fastapi import APIRouter, Depends, Response
from pydantic import BaseModel, Field

from assistance.api.dependencies import get_applicant_service, http_error
from assistance.errors import AssistanceError
from assistance.models.applicant import Applicant, HouseholdMember
from assistance.models.common import (
    EmploymentStatusValue,
    MaritalStatusValue,
    RelationshipValue,
    SchoolLevelValue,
    SexValue,
)
from assistance.services.applicants import ApplicantService

router = APIRouter(prefix="/api/applicants", tags=["applicants"])


# ---------------------------------------------------------------------------
# Request / Response schemas
# ---------------------------------------------------------------------------


class HouseholdMemberPayload(BaseModel):
    name: str = Field(..., min_length=1, max_length=100)
    relationship: RelationshipValue
    sex: SexValue
    school_level: SchoolLevelValue
    employment_status: EmploymentStatusValue
    date_of_birth: date


class ApplicantRequest(BaseModel):
    name: str = Field(..., min_length=1, max_length=100)
    employment_status: EmploymentStatusValue
    marital_status: MaritalStatusValue
    sex: SexValue
    date_of_birth: date
    household: list[HouseholdMemberPayload] = Field(default_factory=list)

    def to_model(self) -> Applicant:
        return Applicant(
            name=self.name,
            employment_status=self.employment_status,
            marital_status=self.marital_status,
            sex=self.sex,
            date_of_birth=self.date_of_birth,
            household=[HouseholdMember(**m.model_dump()) for m in self.household],
        )


class HouseholdMemberResponse(BaseModel):
    id: str
    name: str
    relationship: str
    sex: str
    school_level: str
    employment_status: str
    date_of_birth: date


class ApplicantResponse(BaseModel):
    id: str
    name: str
    employment_status: str
    marital_status: str
    sex: str
    date_of_birth: date
    household: list[HouseholdMemberResponse]


def _to_response(applicant: Applicant) -> ApplicantResponse:
    return ApplicantResponse(
        id=str(applicant.applicant_id),
        name=applicant.name,
        employment_status=applicant.employment_status.value,
        marital_status=applicant.marital_status.value,
        sex=applicant.sex.value,
        date_of_birth=applicant.date_of_birth,
        household=[
            HouseholdMemberResponse(
                id=str(m.member_id),
                name=m.name,
                relationship=m.relationship.value,
                sex=m.sex.value,
                school_level=m.school_level.value,
                employment_status=m.employment_status.value,
                date_of_birth=m.date_of_birth,
            )
            for m in applicant.household
        ],
    )


# ---------------------------------------------------------------------------
# Endpoints
# ---------------------------------------------------------------------------


@router.post("", status_code=201, response_model=ApplicantResponse)
async def create_applicant(
    body: ApplicantRequest,
    service: ApplicantService = Depends(get_applicant_service),
) -> ApplicantResponse:
    try:
        applicant = await service.create(body.to_model())
    except AssistanceError as exc:
        raise http_error(exc) from exc
    return _to_response(applicant)


@router.get("", response_model=list[ApplicantResponse])
async def list_applicants(
    service: ApplicantService = Depends(get_applicant_service),
) -> list[ApplicantResponse]:
    try:
        applicants = await service.list_all()
    except AssistanceError as exc:
        raise http_error(exc) from exc
    return [_to_response(a) for a in applicants]


@router.get("/{applicant_id}", response_model=ApplicantResponse)
async def get_applicant(
    applicant_id: UUID,
    service: ApplicantService = Depends(get_applicant_service),
) -> ApplicantResponse:
    try:
        applicant = await service.get(applicant_id)
    except AssistanceError as exc:
        raise http_error(exc) from exc
    return _to_response(applicant)


@router.put("/{applicant_id}", status_code=204)
async def update_applicant(
    applicant_id: UUID,
    body: ApplicantRequest,
    service: ApplicantService = Depends(get_applicant_service),
) -> Response:
    try:
        await service.update(applicant_id, body.to_model())
    except AssistanceError as exc:
        raise http_error(exc) from exc
    return Response(status_code=204)


@router.delete("/{applicant_id}", status_code=204)
async def delete_applicant(
    applicant_id: UUID,
    service: ApplicantService = Depends(get_applicant_service),
) -> Response:
    try:
        await service.delete(applicant_id)
    except AssistanceError as exc:
        raise http_error(exc) from exc
    return Response(status_code=204)
