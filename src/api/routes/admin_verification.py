"""Admin routes for reviewing entity verification submissions."""

from datetime import datetime
from uuid import UUID

from fastapi import APIRouter, Depends, Query
from pydantic import BaseModel

from src.api.deps import get_current_identity, get_onboarding_service
from src.api.routes.entity_setup import (
    CompletenessResponse,
    EntityDetailsResponse,
    details_to_response,
)
from src.components.completeness import score_completeness
from src.components.onboarding import NotFoundError, OnboardingService
from src.domain.entities import (
    EntityCategory,
    Identity,
    OnboardingRecord,
    OnboardingStatus,
    Organization,
)

router = APIRouter()


# --- Request/Response Models ---


class VerifyEntityRequest(BaseModel):
    notes: str | None = None


class RejectEntityRequest(BaseModel):
    notes: str = ""


class SuspendRequest(BaseModel):
    reason: str | None = None


class OrganizationResponse(BaseModel):
    id: str
    name: str
    category: EntityCategory | None
    status: OnboardingStatus
    onboarding_completed_at: datetime | None
    suspended_reason: str | None
    updated_at: datetime


class VerificationResponse(BaseModel):
    organization: OrganizationResponse
    details: EntityDetailsResponse


class PendingVerificationItem(BaseModel):
    organization: OrganizationResponse
    details: EntityDetailsResponse | None
    completeness: CompletenessResponse


class PendingVerificationListResponse(BaseModel):
    items: list[PendingVerificationItem]
    limit: int
    offset: int


def _org_to_response(org: Organization) -> OrganizationResponse:
    return OrganizationResponse(
        id=str(org.id),
        name=org.name,
        category=org.category,
        status=org.status,
        onboarding_completed_at=org.onboarding_completed_at,
        suspended_reason=org.suspended_reason,
        updated_at=org.updated_at,
    )


def _record_to_response(record: OnboardingRecord) -> VerificationResponse:
    if record.details is None:
        raise NotFoundError("Entity details", record.organization.id)
    return VerificationResponse(
        organization=_org_to_response(record.organization),
        details=details_to_response(record.details, score_completeness(record.details)),
    )


# --- Routes ---


@router.post("/clubs/{org_id}/verify-entity", response_model=VerificationResponse)
def verify_entity(
    org_id: UUID,
    data: VerifyEntityRequest,
    identity: Identity = Depends(get_current_identity),
    service: OnboardingService = Depends(get_onboarding_service),
) -> VerificationResponse:
    """Approve a pending submission (pending_verification -> verified)."""
    return _record_to_response(service.verify_entity(identity, org_id, data.notes))


@router.post("/clubs/{org_id}/reject-entity", response_model=VerificationResponse)
def reject_entity(
    org_id: UUID,
    data: RejectEntityRequest,
    identity: Identity = Depends(get_current_identity),
    service: OnboardingService = Depends(get_onboarding_service),
) -> VerificationResponse:
    """Send a submission back with notes (pending_verification -> entity_setup)."""
    return _record_to_response(service.reject_entity(identity, org_id, data.notes))


@router.post("/clubs/{org_id}/suspend", response_model=OrganizationResponse)
def suspend_organization(
    org_id: UUID,
    data: SuspendRequest,
    identity: Identity = Depends(get_current_identity),
    service: OnboardingService = Depends(get_onboarding_service),
) -> OrganizationResponse:
    org = service.suspend_organization(identity, org_id, data.reason)
    return _org_to_response(org)


@router.get("/entity-verifications/pending", response_model=PendingVerificationListResponse)
def list_pending_verifications(
    limit: int = Query(default=50, ge=1),
    offset: int = Query(default=0, ge=0),
    identity: Identity = Depends(get_current_identity),
    service: OnboardingService = Depends(get_onboarding_service),
) -> PendingVerificationListResponse:
    """Review queue, most recently submitted first. `limit` is capped by rules.yaml."""
    pending = service.list_pending_verifications(identity, limit=limit, offset=offset)
    return PendingVerificationListResponse(
        items=[
            PendingVerificationItem(
                organization=_org_to_response(p.organization),
                details=details_to_response(p.details) if p.details else None,
                completeness=CompletenessResponse(
                    score=p.completeness.score, missing=list(p.completeness.missing)
                ),
            )
            for p in pending
        ],
        limit=limit,
        offset=offset,
    )
