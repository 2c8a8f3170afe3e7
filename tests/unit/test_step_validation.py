import pytest

from src.components.entity_form import EntityForm, form_from_payload
from src.components.step_validation import validate_form
from src.domain.entities import IrelandRegistration, UKRegistration

SCENARIO_A = {
    "legal_name": "",
    "address_line1": "12 Main St",
    "city": "Cork",
    "postal_code": "T12AB34",
    "country": "IE",
    "legal_structure": "unincorporated_association",
}


def _validate(payload, step=None):
    return validate_form(form_from_payload(payload), step, current_year=2026)


def test_missing_legal_name_is_invalid():
    result = _validate(SCENARIO_A)
    assert result.valid is False
    assert "Legal name is required" in result.errors


def test_complete_form_is_valid():
    result = _validate({**SCENARIO_A, "legal_name": "Cork Rowing Club", "founded_year": 1899})
    assert result.valid is True
    assert result.errors == ()


def test_empty_form_reports_every_required_field_in_step_order():
    result = validate_form(EntityForm(), current_year=2026)
    assert result.errors == (
        "Legal name is required",
        "Address line 1 is required",
        "City is required",
        "Postal code is required",
        "Country is required",
        "Legal structure is required",
    )


def test_whitespace_only_counts_as_missing():
    result = _validate({**SCENARIO_A, "legal_name": "Cork RC", "city": "   "}, step=2)
    assert result.errors == ("City is required",)


def test_step_filter_checks_only_that_step():
    assert _validate(SCENARIO_A, step=2).valid is True
    assert _validate(SCENARIO_A, step=1).valid is False


@pytest.mark.parametrize("year", [1799, 2027])
def test_founded_year_out_of_range_on_any_step(year):
    result = _validate({**SCENARIO_A, "legal_name": "Cork RC", "founded_year": year}, step=3)
    assert result.errors == ("Founded year must be between 1800 and 2026",)


def test_founded_year_bounds_inclusive():
    assert _validate({**SCENARIO_A, "legal_name": "Cork RC", "founded_year": 1800}).valid
    assert _validate({**SCENARIO_A, "legal_name": "Cork RC", "founded_year": 2026}).valid


def test_min_year_comes_from_caller():
    form = form_from_payload({**SCENARIO_A, "legal_name": "Cork RC", "founded_year": 1850})
    result = validate_form(form, current_year=2026, min_year=1900)
    assert result.errors == ("Founded year must be between 1900 and 2026",)


def test_registration_step_nothing_required():
    assert validate_form(EntityForm(), 4, current_year=2026).valid is True


def test_registration_step_rejects_malformed_number():
    result = _validate({**SCENARIO_A, "ie_cro_number": "12"}, step=4)
    assert result.valid is False
    assert result.errors == ("Invalid CRO number format (expected: 123456 or A12345)",)


def test_registration_variant_must_match_country():
    form = form_from_payload({**SCENARIO_A, "legal_name": "Cork RC"})
    form.registration = UKRegistration(uk_company_number="12345678")
    result = validate_form(form, 4, current_year=2026)
    assert result.errors == ("Registration details do not match the selected country",)


def test_full_validation_includes_registration_format():
    form = form_from_payload({**SCENARIO_A, "legal_name": "Cork RC"})
    form.registration = IrelandRegistration(ie_charity_rcn="123")
    result = validate_form(form, current_year=2026)
    assert result.valid is False
    assert len(result.errors) == 1


def test_unknown_step_raises():
    with pytest.raises(ValueError):
        validate_form(EntityForm(), 5)
