"""
Onboarding component - Entity setup orchestration and verification workflow.
"""

from src.domain.errors import (
    AlreadyExistsError,
    ForbiddenError,
    InvalidTransitionError,
    NotFoundError,
    OnboardingError,
    ValidationFailedError,
)

from .component import OnboardingService
from .models import EntityDetailsView, OnboardingStatusView, PendingVerification
from .ports import EntityStorePort

__all__ = [
    # Service
    "OnboardingService",
    # Output models
    "OnboardingStatusView",
    "EntityDetailsView",
    "PendingVerification",
    # Errors
    "OnboardingError",
    "ValidationFailedError",
    "InvalidTransitionError",
    "ForbiddenError",
    "NotFoundError",
    "AlreadyExistsError",
    # Ports
    "EntityStorePort",
]
