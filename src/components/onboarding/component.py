"""
Onboarding component - Entity setup orchestration.

Ties the form model, step validation, completeness scoring and the onboarding
state machine to the entity store. Holds no state between calls: every
operation is one read-validate-write through EntityStorePort.mutate, so the
status check and the write it guards commit together.

Status gates (single place, no caller can bypass them):
- draft:                 category must be chosen before details are entered
- entity_setup, pending: self-service edits allowed
- verified, suspended:   self-service edits forbidden ("contact support")
"""

from __future__ import annotations

import logging
from collections.abc import Callable, Mapping
from typing import Any
from uuid import UUID

from src.components.completeness import score_completeness
from src.components.entity_form import (
    EntityForm,
    build_details,
    details_to_form,
    foreign_registration_fields,
    form_from_payload,
    form_to_payload,
    merge_forms,
    populated_registration_fields,
)
from src.components.registration import RegistrationCheck, check_registration_number
from src.components.step_validation import StepValidationResult, validate_form
from src.domain.entities import (
    EntityCategory,
    EntityDetails,
    Identity,
    Jurisdiction,
    OnboardingRecord,
    Organization,
)
from src.domain.errors import (
    AlreadyExistsError,
    ForbiddenError,
    InvalidTransitionError,
    NotFoundError,
    ValidationFailedError,
)
from src.domain.policy import PolicyEngine
from src.domain.state import (
    can_change_category,
    can_proceed,
    can_self_edit,
    transition,
)
from src.ports.clock import ClockPort
from src.rules.models import OnboardingRules

from .models import EntityDetailsView, OnboardingStatusView, PendingVerification
from .ports import EntityStorePort

logger = logging.getLogger(__name__)

JURISDICTION_NAMES: dict[str, str] = {"IE": "Ireland", "GB": "United Kingdom"}

LOCKED_MESSAGE = (
    "Entity details can no longer be changed at this stage. Contact support for changes."
)

COUNTRY_REQUIRED_MESSAGE = "Country is required to check registration numbers"


class OnboardingService:
    """
    Entity setup orchestrator.

    Self-service operations take the organization id; admin operations also
    take the acting identity and check it against the RBAC policy.
    """

    def __init__(
        self,
        store: EntityStorePort,
        policy: PolicyEngine,
        clock: ClockPort,
        rules: OnboardingRules | None = None,
    ) -> None:
        self._store = store
        self._policy = policy
        self._clock = clock
        self._rules = rules or OnboardingRules()

    # --- Helpers ---

    def _mutate(
        self,
        org_id: UUID,
        change: Callable[[OnboardingRecord], OnboardingRecord],
    ) -> OnboardingRecord:
        record = self._store.mutate(org_id, change)
        if record is None:
            raise NotFoundError("Organization", org_id)
        return record

    def _load(self, org_id: UUID) -> OnboardingRecord:
        record = self._store.get(org_id)
        if record is None:
            raise NotFoundError("Organization", org_id)
        return record

    def _validate(self, form: EntityForm, step: int | None = None) -> StepValidationResult:
        return validate_form(
            form,
            step,
            current_year=self._clock.now().year,
            min_year=self._rules.founded_year_min,
        )

    def _require_admin(self, actor: Identity, action: str) -> None:
        if not self._policy.check_permission(actor, action):
            logger.warning(f"Denied {action} for user {actor.user_id} (role={actor.role})")
            raise ForbiddenError(f"Only administrators may perform '{action}'")

    def _require_self_edit(self, org: Organization, operation: str) -> None:
        if org.status == "draft":
            raise InvalidTransitionError(
                org.status, "submit_for_verification", "select an entity type first"
            )
        if not can_self_edit(org.status):
            logger.info(f"Rejected {operation} for org {org.id}: status is {org.status}")
            raise ForbiddenError(LOCKED_MESSAGE)

    def _form_from_payload(
        self,
        payload: Mapping[str, Any],
        jurisdiction: Jurisdiction | None,
    ) -> EntityForm:
        if jurisdiction is not None:
            if jurisdiction not in JURISDICTION_NAMES:
                raise ValidationFailedError(["Country must be IE or GB"])
            foreign = foreign_registration_fields(payload, jurisdiction)
            if foreign:
                name = JURISDICTION_NAMES[jurisdiction]
                raise ValidationFailedError(
                    f"Registration field '{field}' does not apply to {name} entities"
                    for field in foreign
                )
        return form_from_payload(payload, jurisdiction)

    def _require_valid(self, form: EntityForm) -> None:
        result = self._validate(form)
        if not result.valid:
            raise ValidationFailedError(result.errors)

    def _log_transition(self, before: Organization, after: Organization, event: str) -> None:
        if before.status != after.status:
            logger.info(
                f"Onboarding transition org={after.id} {before.status} -> {after.status} "
                f"({event})"
            )

    # --- Entity category ---

    def set_entity_category(self, org_id: UUID, category: EntityCategory) -> Organization:
        """
        Record the organization's category.

        Moves draft -> entity_setup. Raises InvalidTransitionError once the
        organization is verified or suspended.
        """

        def change(record: OnboardingRecord) -> OnboardingRecord:
            org = record.organization
            updated = transition(org, "set_entity_type", self._clock.now())
            updated = updated.model_copy(update={"category": category})
            self._log_transition(org, updated, "set_entity_type")
            return record.model_copy(update={"organization": updated})

        return self._mutate(org_id, change).organization

    def change_entity_category(
        self, org_id: UUID, category: EntityCategory
    ) -> Organization:
        """Change the category. Raises ForbiddenError once verified or suspended."""

        def change(record: OnboardingRecord) -> OnboardingRecord:
            org = record.organization
            if not can_change_category(org.status):
                raise ForbiddenError(
                    "Entity type cannot be changed after verification. Contact support."
                )
            updated = transition(org, "set_entity_type", self._clock.now())
            updated = updated.model_copy(update={"category": category})
            self._log_transition(org, updated, "set_entity_type")
            return record.model_copy(update={"organization": updated})

        return self._mutate(org_id, change).organization

    # --- Entity details ---

    def create_entity_details(
        self, org_id: UUID, payload: Mapping[str, Any]
    ) -> EntityDetails:
        """
        Store the organization's entity details and submit them for verification.

        Raises:
            ForbiddenError: verified or suspended.
            InvalidTransitionError: no entity type chosen yet.
            AlreadyExistsError: details already stored (use update).
            ValidationFailedError: the form fails any wizard step.
        """

        def change(record: OnboardingRecord) -> OnboardingRecord:
            org = record.organization
            self._require_self_edit(org, "create")
            if record.details is not None:
                raise AlreadyExistsError("Entity details", org.id)

            form = self._form_from_payload(payload, payload.get("country"))
            self._require_valid(form)

            now = self._clock.now()
            details = build_details(form, org_id=org.id, now=now)
            updated = transition(org, "submit_for_verification", now, form_valid=True)
            self._log_transition(org, updated, "submit_for_verification")
            return OnboardingRecord(organization=updated, details=details)

        record = self._mutate(org_id, change)
        if record.details is None:
            raise NotFoundError("Entity details", org_id)
        return record.details

    def update_entity_details(
        self, org_id: UUID, payload: Mapping[str, Any]
    ) -> EntityDetails:
        """
        Apply a partial update and (re)submit for verification.

        Only fields present in the payload change; a null clears the field.
        The merged form is validated across all steps, so an update can never
        store a record that would fail final submission.
        """

        def change(record: OnboardingRecord) -> OnboardingRecord:
            org = record.organization
            self._require_self_edit(org, "update")
            current = record.details
            if current is None:
                raise NotFoundError("Entity details", org.id)

            jurisdiction = payload.get("country") or current.country
            patch = self._form_from_payload(payload, jurisdiction)
            if not form_to_payload(patch) and not patch.cleared:
                raise ValidationFailedError(["No fields to update"])

            form = merge_forms(details_to_form(current), patch)
            self._require_valid(form)

            now = self._clock.now()
            details = build_details(form, org_id=org.id, now=now, base=current)
            updated = transition(org, "submit_for_verification", now, form_valid=True)
            self._log_transition(org, updated, "submit_for_verification")
            return OnboardingRecord(organization=updated, details=details)

        record = self._mutate(org_id, change)
        if record.details is None:
            raise NotFoundError("Entity details", org_id)
        return record.details

    def delete_entity_details(self, org_id: UUID) -> None:
        """Delete the stored details; a pending submission is withdrawn."""

        def change(record: OnboardingRecord) -> OnboardingRecord:
            org = record.organization
            if not can_change_category(org.status):
                raise ForbiddenError("Cannot delete verified entity details")
            if record.details is None:
                raise NotFoundError("Entity details", org.id)

            updated = org
            if org.status == "pending_verification":
                updated = transition(org, "withdraw_submission", self._clock.now())
                self._log_transition(org, updated, "withdraw_submission")
            return OnboardingRecord(organization=updated, details=None)

        self._mutate(org_id, change)

    def get_onboarding_status(self, org_id: UUID) -> OnboardingStatusView:
        org = self._load(org_id).organization
        return OnboardingStatusView(
            org_id=org.id,
            category=org.category,
            status=org.status,
            completed_at=org.onboarding_completed_at,
            guidance=can_proceed(org.status),
        )

    def get_entity_details(self, org_id: UUID) -> EntityDetailsView:
        """
        Stored details with completeness.

        NotFoundError for missing details is the normal early-onboarding case.
        """
        record = self._load(org_id)
        if record.details is None:
            raise NotFoundError("Entity details", org_id)
        return EntityDetailsView(
            details=record.details,
            completeness=score_completeness(record.details),
        )

    # --- Wizard helpers ---

    def validate_step(
        self,
        payload: Mapping[str, Any],
        step: int | None = None,
        org_id: UUID | None = None,
    ) -> StepValidationResult:
        """
        Validate wizard input without storing it.

        Registration fields are read for the payload's country, or the stored
        record's country when the payload has none. Registration numbers with
        no country to check them against are reported, not skipped.
        """
        jurisdiction = payload.get("country")
        if jurisdiction is None and org_id is not None:
            details = self._load(org_id).details
            if details is not None:
                jurisdiction = details.country

        try:
            form = self._form_from_payload(payload, jurisdiction)
        except ValidationFailedError as e:
            return StepValidationResult(valid=False, errors=e.errors, step=step)
        result = self._validate(form, step)

        if (
            jurisdiction is None
            and step in (None, 4)
            and populated_registration_fields(payload)
        ):
            return StepValidationResult(
                valid=False,
                errors=(*result.errors, COUNTRY_REQUIRED_MESSAGE),
                step=step,
            )
        return result

    def check_registration_number(self, field: str, value: str) -> RegistrationCheck:
        return check_registration_number(field, value)

    # --- Admin ---

    def verify_entity(
        self, actor: Identity, org_id: UUID, notes: str | None = None
    ) -> OnboardingRecord:
        """Approve a pending submission. Entity details become read-only."""
        self._require_admin(actor, "entity:verify")

        def change(record: OnboardingRecord) -> OnboardingRecord:
            org = record.organization
            now = self._clock.now()
            updated = transition(org, "admin_verify", now)
            if record.details is None:
                raise NotFoundError("Entity details", org.id)

            details = record.details.model_copy(
                update={
                    "registration_verified": True,
                    "verified_at": now,
                    "verified_by": actor.user_id,
                    "verification_notes": (notes or "").strip() or None,
                    "updated_at": now,
                }
            )
            self._log_transition(org, updated, "admin_verify")
            return OnboardingRecord(organization=updated, details=details)

        return self._mutate(org_id, change)

    def reject_entity(self, actor: Identity, org_id: UUID, notes: str) -> OnboardingRecord:
        """
        Send a pending submission back to the organization.

        Notes are mandatory: they tell the organization what to fix.
        """
        self._require_admin(actor, "entity:verify")
        if not notes or not notes.strip():
            raise ValidationFailedError(["Rejection notes are required"])

        def change(record: OnboardingRecord) -> OnboardingRecord:
            org = record.organization
            now = self._clock.now()
            updated = transition(org, "admin_reject", now)
            if record.details is None:
                raise NotFoundError("Entity details", org.id)

            details = record.details.model_copy(
                update={
                    "registration_verified": False,
                    "verification_notes": notes.strip(),
                    "updated_at": now,
                }
            )
            self._log_transition(org, updated, "admin_reject")
            return OnboardingRecord(organization=updated, details=details)

        return self._mutate(org_id, change)

    def suspend_organization(
        self, actor: Identity, org_id: UUID, reason: str | None = None
    ) -> Organization:
        """Block all further self-service changes."""
        self._require_admin(actor, "entity:suspend")

        def change(record: OnboardingRecord) -> OnboardingRecord:
            org = record.organization
            updated = transition(org, "admin_suspend", self._clock.now())
            updated = updated.model_copy(
                update={"suspended_reason": (reason or "").strip() or None}
            )
            self._log_transition(org, updated, "admin_suspend")
            return record.model_copy(update={"organization": updated})

        return self._mutate(org_id, change).organization

    def list_pending_verifications(
        self, actor: Identity, limit: int = 50, offset: int = 0
    ) -> list[PendingVerification]:
        """Review queue, most recently submitted first."""
        self._require_admin(actor, "entity:list_pending")
        limit = max(1, min(limit, self._rules.pending_page_size_max))
        offset = max(0, offset)

        records = self._store.list_by_status("pending_verification", limit, offset)
        return [
            PendingVerification(
                organization=r.organization,
                details=r.details,
                completeness=score_completeness(r.details),
            )
            for r in records
        ]
