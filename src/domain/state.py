"""
Onboarding state machine.

draft -> entity_setup -> pending_verification -> verified
                  ^                |
                  +---- reject ----+
any (except suspended) -> suspended (admin)
"""

from dataclasses import dataclass
from datetime import datetime
from typing import Any, Literal

from src.domain.entities import OnboardingStatus, Organization
from src.domain.errors import InvalidTransitionError

OnboardingEvent = Literal[
    "set_entity_type",
    "submit_for_verification",
    "withdraw_submission",
    "admin_verify",
    "admin_reject",
    "admin_suspend",
]

TRANSITIONS: dict[tuple[OnboardingStatus, OnboardingEvent], OnboardingStatus] = {
    ("draft", "set_entity_type"): "entity_setup",
    ("entity_setup", "set_entity_type"): "entity_setup",
    ("pending_verification", "set_entity_type"): "pending_verification",
    ("entity_setup", "submit_for_verification"): "pending_verification",
    ("pending_verification", "submit_for_verification"): "pending_verification",
    ("pending_verification", "withdraw_submission"): "entity_setup",
    ("pending_verification", "admin_verify"): "verified",
    ("pending_verification", "admin_reject"): "entity_setup",
    ("draft", "admin_suspend"): "suspended",
    ("entity_setup", "admin_suspend"): "suspended",
    ("pending_verification", "admin_suspend"): "suspended",
    ("verified", "admin_suspend"): "suspended",
}

SELF_EDIT_STATUSES: frozenset[OnboardingStatus] = frozenset(
    {"entity_setup", "pending_verification"}
)
LOCKED_STATUSES: frozenset[OnboardingStatus] = frozenset({"verified", "suspended"})


@dataclass(frozen=True)
class ProceedGuidance:
    """What the caller should be told to do next."""

    allowed: bool
    next_step_hint: str | None = None
    blocked_reason: str | None = None


def can_transition(
    current: OnboardingStatus,
    event: OnboardingEvent,
    form_valid: bool | None = None,
) -> bool:
    """
    Determine if an event is allowed from the current status.

    Submission additionally requires the whole entity form to be valid.
    """
    if (current, event) not in TRANSITIONS:
        return False

    if event == "submit_for_verification":
        return bool(form_valid)

    return True


def transition(
    org: Organization,
    event: OnboardingEvent,
    now: datetime,
    form_valid: bool | None = None,
) -> Organization:
    """
    Return a NEW Organization with the status the event leads to.
    Raises InvalidTransitionError if the event is not allowed.
    """
    if not can_transition(org.status, event, form_valid):
        reason = ""
        if event == "submit_for_verification" and (org.status, event) in TRANSITIONS:
            reason = "entity details are incomplete"
        raise InvalidTransitionError(org.status, event, reason)

    updates: dict[str, Any] = {
        "status": TRANSITIONS[(org.status, event)],
        "updated_at": now,
    }

    if event == "admin_verify":
        updates["onboarding_completed_at"] = now

    return org.model_copy(update=updates)


def can_self_edit(status: OnboardingStatus) -> bool:
    """Whether the organization may edit its own entity details."""
    return status in SELF_EDIT_STATUSES


def can_change_category(status: OnboardingStatus) -> bool:
    return status not in LOCKED_STATUSES


def can_proceed(status: OnboardingStatus) -> ProceedGuidance:
    if status == "draft":
        return ProceedGuidance(allowed=True, next_step_hint="Select entity type")
    if status == "entity_setup":
        return ProceedGuidance(allowed=True, next_step_hint="Complete entity details")
    if status == "pending_verification":
        return ProceedGuidance(
            allowed=False,
            blocked_reason="Awaiting review from our verification team",
        )
    if status == "verified":
        return ProceedGuidance(
            allowed=True,
            next_step_hint="Complete - proceed to payment setup",
        )
    if status == "suspended":
        return ProceedGuidance(
            allowed=False,
            blocked_reason="Account suspended - contact support",
        )
    return ProceedGuidance(allowed=False, blocked_reason="Unknown status")
