"""
Onboarding error types.

Every error here is recoverable by the caller; none signals a defect.
"""

from collections.abc import Iterable


class OnboardingError(Exception):
    """Base onboarding error."""

    pass


class ValidationFailedError(OnboardingError):
    """Caller-correctable input problems."""

    def __init__(self, errors: Iterable[str]) -> None:
        self.errors = tuple(errors)
        super().__init__(f"Validation failed: {'; '.join(self.errors)}")


class InvalidTransitionError(OnboardingError):
    """Raised when an onboarding event is not allowed from the current status."""

    def __init__(self, from_status: str, event: str, reason: str = "") -> None:
        self.from_status = from_status
        self.event = event
        self.reason = reason
        msg = f"Cannot apply '{event}' while onboarding status is '{from_status}'"
        if reason:
            msg += f": {reason}"
        super().__init__(msg)


class ForbiddenError(OnboardingError):
    """The record is locked, or the caller lacks the role for the action."""

    def __init__(self, reason: str) -> None:
        self.reason = reason
        super().__init__(reason)


class NotFoundError(OnboardingError):
    """Expected during early onboarding, before entity details exist."""

    def __init__(self, resource: str, key: object) -> None:
        self.resource = resource
        self.key = key
        super().__init__(f"{resource} not found for {key}")


class AlreadyExistsError(OnboardingError):
    """Entity details already exist; update them instead."""

    def __init__(self, resource: str, key: object) -> None:
        self.resource = resource
        self.key = key
        super().__init__(f"{resource} already exist for {key}. Use update instead.")
