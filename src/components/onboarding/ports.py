"""
Onboarding component - Port interfaces.
"""

from __future__ import annotations

from collections.abc import Callable
from typing import Protocol
from uuid import UUID

from src.domain.entities import OnboardingRecord, OnboardingStatus, Organization


class EntityStorePort(Protocol):
    """
    Durable store for organizations and their entity details.

    `mutate` is the only write path for onboarding state. It must run the
    read, the change and the write as one atomic unit per organization; if
    `change` raises, nothing is written.
    """

    def get(self, org_id: UUID) -> OnboardingRecord | None:
        """Load an organization and its entity details."""
        ...

    def mutate(
        self,
        org_id: UUID,
        change: Callable[[OnboardingRecord], OnboardingRecord],
    ) -> OnboardingRecord | None:
        """Atomically read-modify-write. Returns None if the organization is unknown."""
        ...

    def list_by_status(
        self,
        status: OnboardingStatus,
        limit: int,
        offset: int,
    ) -> list[OnboardingRecord]:
        """Records in a status, most recently updated first."""
        ...

    def add_organization(self, org: Organization) -> Organization:
        """Register a new organization."""
        ...
