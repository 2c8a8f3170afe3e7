"""
Onboarding component - Data models.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from uuid import UUID

from src.components.completeness import CompletenessReport
from src.domain.entities import (
    EntityCategory,
    EntityDetails,
    OnboardingStatus,
    Organization,
)
from src.domain.state import ProceedGuidance

# --- Output Models ---


@dataclass(frozen=True)
class OnboardingStatusView:
    """Current onboarding position of an organization."""

    org_id: UUID
    category: EntityCategory | None
    status: OnboardingStatus
    completed_at: datetime | None
    guidance: ProceedGuidance

    @property
    def has_entity_type(self) -> bool:
        """Derived from status; a category is only ever recorded on leaving draft."""
        return self.status != "draft"


@dataclass(frozen=True)
class EntityDetailsView:
    """Stored entity details with their completeness."""

    details: EntityDetails
    completeness: CompletenessReport


@dataclass(frozen=True)
class PendingVerification:
    """One organization waiting in the admin review queue."""

    organization: Organization
    details: EntityDetails | None
    completeness: CompletenessReport

