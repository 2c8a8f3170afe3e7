"""
Onboarding service: status gates, validation and admin review.
"""

from datetime import UTC, datetime
from uuid import uuid4

import pytest

from src.components.onboarding import (
    AlreadyExistsError,
    ForbiddenError,
    InvalidTransitionError,
    NotFoundError,
    ValidationFailedError,
)

LATER = datetime(2026, 3, 9, 14, 0, tzinfo=UTC)


def _status(service, org_id):
    return service.get_onboarding_status(org_id).status


class TestEntityCategory:
    def test_draft_has_no_category(self, service, org):
        view = service.get_onboarding_status(org.id)
        assert view.status == "draft"
        assert view.category is None
        assert view.guidance.next_step_hint == "Select entity type"

    def test_set_category_from_draft(self, service, org):
        updated = service.set_entity_category(org.id, "club")
        assert updated.status == "entity_setup"
        assert updated.category == "club"

    def test_set_category_again_keeps_status(self, service, org):
        service.set_entity_category(org.id, "club")
        updated = service.set_entity_category(org.id, "charity")
        assert updated.status == "entity_setup"
        assert updated.category == "charity"

    def test_change_category_while_pending(self, service, submitted_org):
        updated = service.change_entity_category(submitted_org.id, "community_group")
        assert updated.status == "pending_verification"
        assert updated.category == "community_group"

    def test_set_category_after_verification_is_invalid(self, service, submitted_org, admin):
        service.verify_entity(admin, submitted_org.id)
        with pytest.raises(InvalidTransitionError):
            service.set_entity_category(submitted_org.id, "school")

    def test_change_category_after_verification_is_forbidden(
        self, service, submitted_org, admin
    ):
        service.verify_entity(admin, submitted_org.id)
        with pytest.raises(ForbiddenError):
            service.change_entity_category(submitted_org.id, "school")
        assert service.get_onboarding_status(submitted_org.id).category == "club"

    def test_unknown_org(self, service):
        with pytest.raises(NotFoundError):
            service.set_entity_category(uuid4(), "club")


class TestCreateEntityDetails:
    def test_create_submits_for_verification(self, service, org, ie_payload):
        service.set_entity_category(org.id, "club")
        details = service.create_entity_details(org.id, ie_payload)

        assert details.legal_name == "Ballybrack Rowing Club CLG"
        assert details.registration.ie_charity_chy == "CHY12345"
        assert _status(service, org.id) == "pending_verification"

        view = service.get_onboarding_status(org.id)
        assert view.guidance.allowed is False

    def test_create_from_draft_requires_category(self, service, org, ie_payload):
        with pytest.raises(InvalidTransitionError):
            service.create_entity_details(org.id, ie_payload)
        assert _status(service, org.id) == "draft"

    def test_invalid_form_leaves_status_unchanged(self, service, store, org, ie_payload):
        service.set_entity_category(org.id, "club")
        payload = {**ie_payload, "legal_name": "", "city": None}

        with pytest.raises(ValidationFailedError) as exc:
            service.create_entity_details(org.id, payload)

        assert "Legal name is required" in exc.value.errors
        assert "City is required" in exc.value.errors
        assert _status(service, org.id) == "entity_setup"
        assert store.get(org.id).details is None

    def test_create_twice_already_exists(self, service, submitted_org, ie_payload):
        with pytest.raises(AlreadyExistsError):
            service.create_entity_details(submitted_org.id, ie_payload)

    def test_mixed_jurisdiction_payload_rejected(self, service, org, ie_payload):
        service.set_entity_category(org.id, "club")
        payload = {**ie_payload, "uk_company_number": "12345678"}

        with pytest.raises(ValidationFailedError) as exc:
            service.create_entity_details(org.id, payload)
        assert exc.value.errors == (
            "Registration field 'uk_company_number' does not apply to Ireland entities",
        )

    def test_unsupported_country_rejected(self, service, org, ie_payload):
        service.set_entity_category(org.id, "club")
        with pytest.raises(ValidationFailedError):
            service.create_entity_details(org.id, {**ie_payload, "country": "FR"})

    def test_malformed_registration_rejected(self, service, org, gb_payload):
        service.set_entity_category(org.id, "club")
        with pytest.raises(ValidationFailedError) as exc:
            service.create_entity_details(org.id, {**gb_payload, "uk_charity_scotland": "123"})
        assert exc.value.errors == ("Invalid OSCR number format (expected: SC012345)",)

    def test_get_details_before_create_not_found(self, service, org):
        service.set_entity_category(org.id, "club")
        with pytest.raises(NotFoundError):
            service.get_entity_details(org.id)

    def test_get_details_with_completeness(self, service, submitted_org):
        view = service.get_entity_details(submitted_org.id)
        assert view.completeness.score == 100
        assert view.details.is_registered_charity is True


class TestUpdateEntityDetails:
    def test_partial_update_keeps_other_fields(self, service, submitted_org, clock):
        clock.advance_to(LATER)
        details = service.update_entity_details(submitted_org.id, {"city": "Bray"})

        assert details.city == "Bray"
        assert details.legal_name == "Ballybrack Rowing Club CLG"
        assert details.registration.ie_cro_number == "123456"
        assert details.updated_at == LATER
        assert details.created_at < LATER

    def test_null_clears_optional_fields(self, service, submitted_org):
        details = service.update_entity_details(
            submitted_org.id,
            {"founded_year": None, "description": None, "city": "Bray"},
        )
        assert details.founded_year is None
        assert details.description is None
        assert details.city == "Bray"
        assert details.trading_names == ["Ballybrack RC"]

        stored = service.get_entity_details(submitted_org.id).details
        assert stored.founded_year is None

    def test_null_only_update_is_applied(self, service, submitted_org):
        details = service.update_entity_details(submitted_org.id, {"ie_charity_chy": None})
        assert details.registration.ie_charity_chy is None
        assert details.registration.ie_cro_number == "123456"

    def test_null_required_field_fails_validation(self, service, submitted_org):
        with pytest.raises(ValidationFailedError) as exc:
            service.update_entity_details(submitted_org.id, {"city": None})
        assert "City is required" in exc.value.errors

    def test_update_resubmits_after_rejection(self, service, submitted_org, admin):
        service.reject_entity(admin, submitted_org.id, "CHY number does not match")
        assert _status(service, submitted_org.id) == "entity_setup"

        service.update_entity_details(submitted_org.id, {"ie_charity_chy": "CHY54321"})
        assert _status(service, submitted_org.id) == "pending_verification"

    def test_update_switching_country(self, service, submitted_org):
        details = service.update_entity_details(
            submitted_org.id,
            {"country": "GB", "postal_code": "BT1 1AA", "uk_charity_ni": "NIC101234"},
        )
        assert details.country == "GB"
        assert details.registration.uk_charity_ni == "NIC101234"
        assert not hasattr(details.registration, "ie_cro_number")

    def test_update_cannot_break_required_fields(self, service, submitted_org):
        before = service.get_entity_details(submitted_org.id).details
        with pytest.raises(ValidationFailedError):
            service.update_entity_details(submitted_org.id, {"legal_name": "  "})
        after = service.get_entity_details(submitted_org.id).details
        assert after.model_dump() == before.model_dump()

    def test_empty_update_rejected(self, service, submitted_org):
        with pytest.raises(ValidationFailedError, match="No fields to update"):
            service.update_entity_details(submitted_org.id, {})

    def test_update_without_record(self, service, org):
        service.set_entity_category(org.id, "club")
        with pytest.raises(NotFoundError):
            service.update_entity_details(org.id, {"city": "Bray"})

    def test_verified_record_is_read_only(self, service, submitted_org, admin):
        service.verify_entity(admin, submitted_org.id)
        before = service.get_entity_details(submitted_org.id).details

        with pytest.raises(ForbiddenError, match="Contact support"):
            service.update_entity_details(submitted_org.id, {"legal_name": "Renamed"})

        after = service.get_entity_details(submitted_org.id).details
        assert after.model_dump() == before.model_dump()

    def test_suspended_record_is_read_only(self, service, submitted_org, admin):
        service.suspend_organization(admin, submitted_org.id, "Chargebacks")
        with pytest.raises(ForbiddenError):
            service.update_entity_details(submitted_org.id, {"city": "Bray"})


class TestDeleteEntityDetails:
    def test_delete_withdraws_submission(self, service, submitted_org):
        service.delete_entity_details(submitted_org.id)
        assert _status(service, submitted_org.id) == "entity_setup"
        with pytest.raises(NotFoundError):
            service.get_entity_details(submitted_org.id)

    def test_delete_missing(self, service, org):
        service.set_entity_category(org.id, "club")
        with pytest.raises(NotFoundError):
            service.delete_entity_details(org.id)

    def test_delete_verified_forbidden(self, service, submitted_org, admin):
        service.verify_entity(admin, submitted_org.id)
        with pytest.raises(ForbiddenError):
            service.delete_entity_details(submitted_org.id)


class TestWizardHelpers:
    def test_validate_step_does_not_store(self, service, store, org):
        service.set_entity_category(org.id, "club")
        result = service.validate_step({"legal_name": ""}, step=1, org_id=org.id)
        assert result.valid is False
        assert result.errors == ("Legal name is required",)
        assert store.get(org.id).details is None

    def test_validate_step_uses_stored_country(self, service, submitted_org):
        result = service.validate_step(
            {"ie_cro_number": "bad"}, step=4, org_id=submitted_org.id
        )
        assert result.valid is False

        result = service.validate_step(
            {"uk_company_number": "12345678"}, step=4, org_id=submitted_org.id
        )
        assert result.valid is False
        assert "does not apply to Ireland" in result.errors[0]

    def test_validate_step_needs_country_for_registration(self, service, org):
        service.set_entity_category(org.id, "club")
        result = service.validate_step({"ie_cro_number": "bad"}, step=4, org_id=org.id)
        assert result.valid is False
        assert result.errors == ("Country is required to check registration numbers",)

        result = service.validate_step({"ie_cro_number": "bad"})
        assert result.valid is False
        assert "Legal name is required" in result.errors
        assert result.errors[-1] == "Country is required to check registration numbers"

    def test_validate_step_registration_ignored_outside_step_4(self, service, org):
        service.set_entity_category(org.id, "club")
        result = service.validate_step(
            {"legal_name": "Cork Rowing Club", "ie_cro_number": "bad"}, step=1, org_id=org.id
        )
        assert result.valid is True

    def test_check_registration_number(self, service):
        assert service.check_registration_number("ie_charity_rcn", "20123456").valid is True


class TestAdminReview:
    def test_verify(self, service, submitted_org, admin, clock):
        clock.advance_to(LATER)
        record = service.verify_entity(admin, submitted_org.id, "  Checked CRO  ")

        assert record.organization.status == "verified"
        assert record.organization.onboarding_completed_at == LATER
        assert record.details.registration_verified is True
        assert record.details.verified_by == admin.user_id
        assert record.details.verification_notes == "Checked CRO"

        guidance = service.get_onboarding_status(submitted_org.id).guidance
        assert guidance.allowed is True
        assert guidance.next_step_hint == "Complete - proceed to payment setup"

    def test_verify_requires_pending(self, service, org, admin):
        service.set_entity_category(org.id, "club")
        with pytest.raises(InvalidTransitionError):
            service.verify_entity(admin, org.id)

    def test_host_cannot_verify(self, service, submitted_org, host):
        with pytest.raises(ForbiddenError):
            service.verify_entity(host, submitted_org.id)
        assert _status(service, submitted_org.id) == "pending_verification"

    def test_reject_with_blank_notes(self, service, submitted_org, admin):
        with pytest.raises(ValidationFailedError, match="Rejection notes are required"):
            service.reject_entity(admin, submitted_org.id, "   ")
        assert _status(service, submitted_org.id) == "pending_verification"

    def test_reject_stores_notes(self, service, submitted_org, admin):
        record = service.reject_entity(admin, submitted_org.id, "Eircode missing")
        assert record.organization.status == "entity_setup"
        assert record.details.verification_notes == "Eircode missing"
        assert record.details.registration_verified is False

    def test_suspend(self, service, submitted_org, admin):
        org = service.suspend_organization(admin, submitted_org.id, " Fraud review ")
        assert org.status == "suspended"
        assert org.suspended_reason == "Fraud review"

        guidance = service.get_onboarding_status(submitted_org.id).guidance
        assert guidance.allowed is False

        with pytest.raises(InvalidTransitionError):
            service.suspend_organization(admin, submitted_org.id)

    def test_list_pending(self, service, store, submitted_org, admin, org):
        # A second org that never submitted
        other = store.add_organization(org.model_copy(update={"id": uuid4()}))
        service.set_entity_category(other.id, "school")

        pending = service.list_pending_verifications(admin)
        assert [p.organization.id for p in pending] == [submitted_org.id]
        assert pending[0].completeness.score == 100

    def test_list_pending_limit_capped(self, service, store, admin, rules, monkeypatch):
        calls = []

        def spy(status, limit, offset):
            calls.append((status, limit, offset))
            return []

        monkeypatch.setattr(store, "list_by_status", spy)
        service.list_pending_verifications(admin, limit=10_000, offset=-5)
        assert calls == [("pending_verification", rules.onboarding.pending_page_size_max, 0)]

    def test_host_cannot_list_pending(self, service, host):
        with pytest.raises(ForbiddenError):
            service.list_pending_verifications(host)

    def test_host_cannot_suspend(self, service, submitted_org, host):
        with pytest.raises(ForbiddenError):
            service.suspend_organization(host, submitted_org.id)


def test_status_query_is_idempotent(service, submitted_org, store):
    writes = store.mutations
    first = service.get_onboarding_status(submitted_org.id)
    second = service.get_onboarding_status(submitted_org.id)
    assert first == second
    assert store.mutations == writes
