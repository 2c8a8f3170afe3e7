"""
Registration component - Registration number format checks.

Format-only: a well-formed number is not asserted to exist in any registry.
That is left to admin verification.

Functional Core - pure, no I/O.
"""

from __future__ import annotations

import re

from src.domain.entities import (
    IrelandRegistration,
    UKRegistration,
    registration_numbers,
)

from .models import RegistrationCheck, RegistrationFormat, UnknownRegistrationField

FORMATS: dict[str, RegistrationFormat] = {
    f.field: f
    for f in (
        RegistrationFormat(
            field="ie_cro_number",
            jurisdiction="IE",
            label="CRO number",
            pattern=re.compile(r"^[A-Z]?\d{5,6}$"),
            expected="123456 or A12345",
        ),
        RegistrationFormat(
            field="ie_charity_chy",
            jurisdiction="IE",
            label="CHY number",
            pattern=re.compile(r"^CHY\d{4,5}$", re.IGNORECASE),
            expected="CHY12345",
        ),
        RegistrationFormat(
            field="ie_charity_rcn",
            jurisdiction="IE",
            label="RCN",
            pattern=re.compile(r"^20\d{6}$"),
            expected="20123456",
        ),
        RegistrationFormat(
            field="uk_company_number",
            jurisdiction="GB",
            label="Companies House number",
            pattern=re.compile(r"^([A-Z]{2}\d{6}|\d{8})$"),
            expected="12345678 or AB123456",
        ),
        RegistrationFormat(
            field="uk_charity_england_wales",
            jurisdiction="GB",
            label="Charity Commission number",
            pattern=re.compile(r"^\d{6,7}$"),
            expected="1234567",
        ),
        RegistrationFormat(
            field="uk_charity_scotland",
            jurisdiction="GB",
            label="OSCR number",
            pattern=re.compile(r"^SC\d{6}$", re.IGNORECASE),
            expected="SC012345",
        ),
        RegistrationFormat(
            field="uk_charity_ni",
            jurisdiction="GB",
            label="CCNI number",
            pattern=re.compile(r"^NIC\d{6}$", re.IGNORECASE),
            expected="NIC101234",
        ),
    )
}

# Client-side names that predate the wire names
FIELD_ALIASES: dict[str, str] = {
    "ie_charity_chy_number": "ie_charity_chy",
}

_CAMEL_BOUNDARY = re.compile(r"(?<=[a-z0-9])(?=[A-Z])")


def normalize_field(field: str) -> str:
    """
    Normalize a registration field tag to its wire name.

    Accepts snake_case ("uk_charity_scotland") and camelCase
    ("ukCharityScotland", "ieCharityChyNumber").
    """
    tag = _CAMEL_BOUNDARY.sub("_", field.strip()).lower()
    tag = FIELD_ALIASES.get(tag, tag)
    if tag not in FORMATS:
        raise UnknownRegistrationField(field)
    return tag


def check_registration_number(field: str, value: str | None) -> RegistrationCheck:
    """
    Check one registration number for well-formedness.

    Empty or missing values are always valid since every number is optional.
    Raises UnknownRegistrationField for an unrecognised field tag.
    """
    tag = normalize_field(field)
    if value is None or not value.strip():
        return RegistrationCheck(field=tag, valid=True)

    fmt = FORMATS[tag]
    if fmt.pattern.match(value.strip()):
        return RegistrationCheck(field=tag, valid=True)
    return RegistrationCheck(field=tag, valid=False, message=fmt.error_message)


def check_registration(
    registration: IrelandRegistration | UKRegistration,
) -> list[RegistrationCheck]:
    """Return the failing checks for a registration variant, in field order."""
    failures: list[RegistrationCheck] = []
    for name, value in registration_numbers(registration).items():
        result = check_registration_number(name, value)
        if not result.valid:
            failures.append(result)
    return failures
