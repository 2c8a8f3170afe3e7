"""
Step validation component - Required-field rules for each wizard step.

Step 1 Basic Info:      legal name
Step 2 Address:         address line 1, city, postal code, country
Step 3 Legal Structure: legal structure
Step 4 Registration:    nothing required; populated numbers must be well-formed
Any step:               founded year within [min_year, current year]

Errors are informational strings; validation never raises for bad data.
"""

from __future__ import annotations

from datetime import UTC, datetime

from src.components.entity_form import EntityForm
from src.components.registration import check_registration

from .models import WIZARD_STEPS, StepValidationResult


def _blank(value: str | None) -> bool:
    return value is None or not value.strip()


def _basic_info_errors(form: EntityForm) -> list[str]:
    if _blank(form.basic.legal_name):
        return ["Legal name is required"]
    return []


def _address_errors(form: EntityForm) -> list[str]:
    errors: list[str] = []
    if _blank(form.address.address_line1):
        errors.append("Address line 1 is required")
    if _blank(form.address.city):
        errors.append("City is required")
    if _blank(form.address.postal_code):
        errors.append("Postal code is required")
    if not form.address.country:
        errors.append("Country is required")
    return errors


def _legal_structure_errors(form: EntityForm) -> list[str]:
    if not form.legal.legal_structure:
        return ["Legal structure is required"]
    return []


def _registration_errors(form: EntityForm) -> list[str]:
    registration = form.registration
    if registration is None:
        return []
    if form.address.country and registration.jurisdiction != form.address.country:
        return ["Registration details do not match the selected country"]
    return [check.message or "" for check in check_registration(registration)]


def _founded_year_errors(
    form: EntityForm,
    current_year: int,
    min_year: int,
) -> list[str]:
    year = form.basic.founded_year
    if year is None:
        return []
    if year < min_year or year > current_year:
        return [f"Founded year must be between {min_year} and {current_year}"]
    return []


def validate_form(
    form: EntityForm,
    step: int | None = None,
    *,
    current_year: int | None = None,
    min_year: int = 1800,
) -> StepValidationResult:
    """
    Validate one wizard step, or every step when `step` is None.

    The founded-year range is checked whichever step is requested.

    Args:
        form: The in-progress form.
        step: 1-4, or None for final submission.
        current_year: Upper bound for founded year (defaults to this UTC year).
        min_year: Lower bound for founded year.

    Raises:
        ValueError: if step is not one of 1-4.
    """
    if step is not None and step not in WIZARD_STEPS:
        raise ValueError(f"Unknown wizard step {step}; expected one of 1-4")

    if current_year is None:
        current_year = datetime.now(UTC).year

    errors: list[str] = []
    if step in (None, 1):
        errors.extend(_basic_info_errors(form))
    if step in (None, 2):
        errors.extend(_address_errors(form))
    if step in (None, 3):
        errors.extend(_legal_structure_errors(form))

    errors.extend(_founded_year_errors(form, current_year, min_year))

    if step in (None, 4):
        errors.extend(_registration_errors(form))

    return StepValidationResult(valid=not errors, errors=tuple(errors), step=step)
