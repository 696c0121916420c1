"""FastAPI scheme endpoints.

POST   /api/schemes                         - create scheme (criteria + benefits interned)
GET    /api/schemes                         - list schemes with criteria and benefits
GET    /api/schemes/eligible?applicant=ID   - schemes the applicant qualifies for
GET    /api/schemes/{id}                    - get scheme
PUT    /api/schemes/{id}                    - rename + replace criteria/benefits, reclaim
DELETE /api/schemes/{id}                    - delete scheme, reclaim
"""

from uuid import UUID

from fastapi import APIRouter, Depends, Query, Response
from pydantic import BaseModel, Field

from assistance.api.dependencies import (
    get_eligibility_service,
    get_scheme_manager,
    http_error,
)
from assistance.errors import AssistanceError
from assistance.models.scheme import BenefitSpec, CriterionSpec, Scheme
from assistance.services.eligibility import EligibilityService
from assistance.services.schemes import SchemeLifecycleManager

router = APIRouter(prefix="/api/schemes", tags=["schemes"])


# ---------------------------------------------------------------------------
# Request / Response schemas
# ---------------------------------------------------------------------------


class SchemeRequest(BaseModel):
    name: str = Field(..., min_length=1, max_length=100)
    criteria: list[CriterionSpec] = Field(default_factory=list)
    benefits: list[BenefitSpec] = Field(default_factory=list)


class CriterionResponse(BaseModel):
    id: str
    criteria_level: str
    criteria_type: str
    status: str


class BenefitResponse(BaseModel):
    id: str
    name: str
    amount: float


class SchemeResponse(BaseModel):
    id: str
    name: str
    criteria: list[CriterionResponse]
    benefits: list[BenefitResponse]


def _to_response(scheme: Scheme) -> SchemeResponse:
    return SchemeResponse(
        id=str(scheme.scheme_id),
        name=scheme.name,
        criteria=[
            CriterionResponse(
                id=str(c.criterion_id),
                criteria_level=c.criteria_level.value,
                criteria_type=c.criteria_type.value,
                status=c.status,
            )
            for c in scheme.criteria
        ],
        benefits=[
            BenefitResponse(id=str(b.benefit_id), name=b.name, amount=float(b.amount))
            for b in scheme.benefits
        ],
    )


# ---------------------------------------------------------------------------
# Endpoints
# ---------------------------------------------------------------------------


@router.post("", status_code=201, response_model=SchemeResponse)
async def create_scheme(
    body: SchemeRequest,
    manager: SchemeLifecycleManager = Depends(get_scheme_manager),
) -> SchemeResponse:
    try:
        scheme = await manager.create_scheme(body.name, body.criteria, body.benefits)
    except AssistanceError as exc:
        raise http_error(exc) from exc
    return _to_response(scheme)


@router.get("", response_model=list[SchemeResponse])
async def list_schemes(
    manager: SchemeLifecycleManager = Depends(get_scheme_manager),
) -> list[SchemeResponse]:
    try:
        schemes = await manager.list_schemes()
    except AssistanceError as exc:
        raise http_error(exc) from exc
    return [_to_response(s) for s in schemes]


@router.get("/eligible", response_model=list[SchemeResponse])
async def list_eligible_schemes(
    applicant: UUID = Query(..., description="Applicant id to evaluate."),
    service: EligibilityService = Depends(get_eligibility_service),
) -> list[SchemeResponse]:
    """Recomputed from current state on every call."""
    try:
        schemes = await service.eligible_for(applicant)
    except AssistanceError as exc:
        raise http_error(exc) from exc
    return [_to_response(s) for s in schemes]


@router.get("/{scheme_id}", response_model=SchemeResponse)
async def get_scheme(
    scheme_id: UUID,
    manager: SchemeLifecycleManager = Depends(get_scheme_manager),
) -> SchemeResponse:
    try:
        scheme = await manager.get_scheme(scheme_id)
    except AssistanceError as exc:
        raise http_error(exc) from exc
    return _to_response(scheme)


@router.put("/{scheme_id}", status_code=204)
async def update_scheme(
    scheme_id: UUID,
    body: SchemeRequest,
    manager: SchemeLifecycleManager = Depends(get_scheme_manager),
) -> Response:
    try:
        await manager.update_scheme(scheme_id, body.name, body.criteria, body.benefits)
    except AssistanceError as exc:
        raise http_error(exc) from exc
    return Response(status_code=204)


@router.delete("/{scheme_id}", status_code=204)
async def delete_scheme(
    scheme_id: UUID,
    manager: SchemeLifecycleManager = Depends(get_scheme_manager),
) -> Response:
    try:
        await manager.delete_scheme(scheme_id)
    except AssistanceError as exc:
        raise http_error(exc) from exc
    return Response(status_code=204)
