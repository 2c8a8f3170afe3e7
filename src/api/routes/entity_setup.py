"""
Entity setup API - the organization's own onboarding wizard.

Hosts may only address their own organization; admins may address any.
Domain errors raised by the service are mapped to HTTP responses by the
handlers registered in src.api.main.
"""

from datetime import datetime
from typing import Any
from uuid import UUID

from fastapi import APIRouter, Depends, Query, Response
from pydantic import BaseModel

from src.api.deps import (
    get_current_identity,
    get_onboarding_service,
    get_policy,
    require_org_access,
)
from src.components.completeness import CompletenessReport
from src.components.entity_form import address_labels, details_to_payload
from src.components.onboarding import EntityDetailsView, OnboardingService
from src.domain.entities import (
    EntityCategory,
    EntityDetails,
    Identity,
    Jurisdiction,
    LegalStructure,
    OnboardingStatus,
)
from src.domain.policy import PolicyEngine

router = APIRouter()


# --- Request/Response Models ---


class EntityTypeRequest(BaseModel):
    category: EntityCategory


class EntityTypeResponse(BaseModel):
    org_id: str
    category: EntityCategory | None
    status: OnboardingStatus


class OnboardingStatusResponse(BaseModel):
    org_id: str
    category: EntityCategory | None
    status: OnboardingStatus
    has_entity_type: bool
    completed_at: datetime | None
    can_proceed: bool
    next_step_hint: str | None
    blocked_reason: str | None


class EntityDetailsRequest(BaseModel):
    """
    Flat wizard payload. Every field is optional: PUT applies only the
    fields sent, POST is validated as a whole by the service.
    """

    legal_name: str | None = None
    trading_names: list[str] | None = None
    description: str | None = None
    founded_year: int | None = None

    address_line1: str | None = None
    address_line2: str | None = None
    city: str | None = None
    county_state: str | None = None
    postal_code: str | None = None
    country: Jurisdiction | None = None

    legal_structure: LegalStructure | None = None

    ie_cro_number: str | None = None
    ie_charity_chy: str | None = None
    ie_charity_rcn: str | None = None
    ie_revenue_sports_body: bool | None = None

    uk_company_number: str | None = None
    uk_charity_england_wales: str | None = None
    uk_charity_scotland: str | None = None
    uk_charity_ni: str | None = None
    uk_casc_registered: bool | None = None

    def to_payload(self) -> dict[str, Any]:
        return self.model_dump(exclude_unset=True)


class AddressLabelsResponse(BaseModel):
    postal_code: str
    county_state: str


class CompletenessResponse(BaseModel):
    score: int
    missing: list[str]


class EntityDetailsResponse(BaseModel):
    id: str
    org_id: str

    legal_name: str
    trading_names: list[str]
    description: str | None = None
    founded_year: int | None = None

    address_line1: str | None = None
    address_line2: str | None = None
    city: str | None = None
    county_state: str | None = None
    postal_code: str | None = None
    country: Jurisdiction

    legal_structure: LegalStructure

    # Only the fields of `country` are ever populated
    ie_cro_number: str | None = None
    ie_charity_chy: str | None = None
    ie_charity_rcn: str | None = None
    ie_revenue_sports_body: bool | None = None
    uk_company_number: str | None = None
    uk_charity_england_wales: str | None = None
    uk_charity_scotland: str | None = None
    uk_charity_ni: str | None = None
    uk_casc_registered: bool | None = None

    is_registered_charity: bool
    is_registered_company: bool

    registration_verified: bool
    verification_notes: str | None = None
    verified_at: datetime | None = None
    verified_by: str | None = None

    created_at: datetime
    updated_at: datetime

    address_labels: AddressLabelsResponse
    completeness: CompletenessResponse | None = None


class StepValidationResponse(BaseModel):
    valid: bool
    errors: list[str]
    step: int | None


class RegistrationCheckResponse(BaseModel):
    field: str
    valid: bool
    message: str | None


# --- Serialization ---


def _completeness_to_response(report: CompletenessReport) -> CompletenessResponse:
    return CompletenessResponse(score=report.score, missing=list(report.missing))


def details_to_response(
    details: EntityDetails,
    completeness: CompletenessReport | None = None,
) -> EntityDetailsResponse:
    labels = address_labels(details.country)
    return EntityDetailsResponse(
        id=str(details.id),
        org_id=str(details.org_id),
        **details_to_payload(details),
        is_registered_charity=details.is_registered_charity,
        is_registered_company=details.is_registered_company,
        registration_verified=details.registration_verified,
        verification_notes=details.verification_notes,
        verified_at=details.verified_at,
        verified_by=str(details.verified_by) if details.verified_by else None,
        created_at=details.created_at,
        updated_at=details.updated_at,
        address_labels=AddressLabelsResponse(
            postal_code=labels.postal_code, county_state=labels.county_state
        ),
        completeness=_completeness_to_response(completeness) if completeness else None,
    )


def _view_to_response(view: EntityDetailsView) -> EntityDetailsResponse:
    return details_to_response(view.details, view.completeness)


# --- Entity type ---


@router.post("/clubs/{org_id}/entity-type", response_model=EntityTypeResponse)
def set_entity_type(
    org_id: UUID,
    data: EntityTypeRequest,
    identity: Identity = Depends(get_current_identity),
    policy: PolicyEngine = Depends(get_policy),
    service: OnboardingService = Depends(get_onboarding_service),
) -> EntityTypeResponse:
    """Choose the entity category (draft -> entity_setup)."""
    require_org_access(identity, org_id, "entity:edit", policy)
    org = service.set_entity_category(org_id, data.category)
    return EntityTypeResponse(org_id=str(org.id), category=org.category, status=org.status)


@router.put("/clubs/{org_id}/entity-type", response_model=EntityTypeResponse)
def change_entity_type(
    org_id: UUID,
    data: EntityTypeRequest,
    identity: Identity = Depends(get_current_identity),
    policy: PolicyEngine = Depends(get_policy),
    service: OnboardingService = Depends(get_onboarding_service),
) -> EntityTypeResponse:
    """Change the entity category. Not allowed once verified."""
    require_org_access(identity, org_id, "entity:edit", policy)
    org = service.change_entity_category(org_id, data.category)
    return EntityTypeResponse(org_id=str(org.id), category=org.category, status=org.status)


@router.get("/clubs/{org_id}/onboarding-status", response_model=OnboardingStatusResponse)
def get_onboarding_status(
    org_id: UUID,
    identity: Identity = Depends(get_current_identity),
    policy: PolicyEngine = Depends(get_policy),
    service: OnboardingService = Depends(get_onboarding_service),
) -> OnboardingStatusResponse:
    require_org_access(identity, org_id, "entity:read", policy)
    view = service.get_onboarding_status(org_id)
    return OnboardingStatusResponse(
        org_id=str(view.org_id),
        category=view.category,
        status=view.status,
        has_entity_type=view.has_entity_type,
        completed_at=view.completed_at,
        can_proceed=view.guidance.allowed,
        next_step_hint=view.guidance.next_step_hint,
        blocked_reason=view.guidance.blocked_reason,
    )


# --- Entity details ---


@router.post(
    "/clubs/{org_id}/entity-details",
    response_model=EntityDetailsResponse,
    status_code=201,
)
def create_entity_details(
    org_id: UUID,
    data: EntityDetailsRequest,
    identity: Identity = Depends(get_current_identity),
    policy: PolicyEngine = Depends(get_policy),
    service: OnboardingService = Depends(get_onboarding_service),
) -> EntityDetailsResponse:
    """Create entity details and submit them for verification."""
    require_org_access(identity, org_id, "entity:edit", policy)
    service.create_entity_details(org_id, data.to_payload())
    return _view_to_response(service.get_entity_details(org_id))


@router.put("/clubs/{org_id}/entity-details", response_model=EntityDetailsResponse)
def update_entity_details(
    org_id: UUID,
    data: EntityDetailsRequest,
    identity: Identity = Depends(get_current_identity),
    policy: PolicyEngine = Depends(get_policy),
    service: OnboardingService = Depends(get_onboarding_service),
) -> EntityDetailsResponse:
    """Partially update entity details and resubmit them."""
    require_org_access(identity, org_id, "entity:edit", policy)
    service.update_entity_details(org_id, data.to_payload())
    return _view_to_response(service.get_entity_details(org_id))


@router.get("/clubs/{org_id}/entity-details", response_model=EntityDetailsResponse)
def get_entity_details(
    org_id: UUID,
    identity: Identity = Depends(get_current_identity),
    policy: PolicyEngine = Depends(get_policy),
    service: OnboardingService = Depends(get_onboarding_service),
) -> EntityDetailsResponse:
    require_org_access(identity, org_id, "entity:read", policy)
    return _view_to_response(service.get_entity_details(org_id))


@router.delete("/clubs/{org_id}/entity-details", status_code=204)
def delete_entity_details(
    org_id: UUID,
    identity: Identity = Depends(get_current_identity),
    policy: PolicyEngine = Depends(get_policy),
    service: OnboardingService = Depends(get_onboarding_service),
) -> Response:
    require_org_access(identity, org_id, "entity:edit", policy)
    service.delete_entity_details(org_id)
    return Response(status_code=204)


@router.post(
    "/clubs/{org_id}/entity-details/validate",
    response_model=StepValidationResponse,
)
def validate_entity_details(
    org_id: UUID,
    data: EntityDetailsRequest,
    step: int | None = Query(default=None, ge=1, le=4),
    identity: Identity = Depends(get_current_identity),
    policy: PolicyEngine = Depends(get_policy),
    service: OnboardingService = Depends(get_onboarding_service),
) -> StepValidationResponse:
    """Check one wizard step (or all of them) without saving."""
    require_org_access(identity, org_id, "entity:read", policy)
    result = service.validate_step(data.to_payload(), step, org_id=org_id)
    return StepValidationResponse(valid=result.valid, errors=list(result.errors), step=step)


# --- Registration lookup ---


@router.get(
    "/entity-setup/validate-registration",
    response_model=RegistrationCheckResponse,
)
def validate_registration(
    field: str = Query(..., alias="type", description="Registration field, e.g. ie_cro_number"),
    value: str = Query(""),
    service: OnboardingService = Depends(get_onboarding_service),
) -> RegistrationCheckResponse:
    """Format check for one registration number. Needs no login."""
    check = service.check_registration_number(field, value)
    return RegistrationCheckResponse(field=check.field, valid=check.valid, message=check.message)
