"""
Entity form component - Conversions between the wizard form, the flat wire
payload and the persisted EntityDetails record.

The registration variant is always chosen by jurisdiction, never by which
registration fields happen to be filled in.

Functional Core - pure business logic.
"""

from __future__ import annotations

from collections.abc import Iterable, Mapping
from datetime import datetime
from typing import Any
from uuid import UUID

from src.domain.entities import (
    JURISDICTIONS,
    REGISTRATION_FLAG_FIELDS,
    REGISTRATION_NUMBER_FIELDS,
    EntityDetails,
    IrelandRegistration,
    Jurisdiction,
    UKRegistration,
    empty_registration,
)

from .models import (
    ADDRESS_FIELDS,
    BASIC_FIELDS,
    CLEARABLE_FIELDS,
    LEGAL_FIELDS,
    AddressLabels,
    AddressSection,
    BasicInfoSection,
    EntityForm,
    LegalStructureSection,
)


def registration_fields(country: Jurisdiction) -> tuple[str, ...]:
    """Every wire field of a jurisdiction's registration variant."""
    return REGISTRATION_NUMBER_FIELDS[country] + (REGISTRATION_FLAG_FIELDS[country],)


def address_labels(country: Jurisdiction | None) -> AddressLabels:
    if country == "IE":
        return AddressLabels(postal_code="Eircode", county_state="County")
    return AddressLabels(postal_code="Postcode", county_state="County/Region")


# --- Persisted -> Form ---


def details_to_form(details: EntityDetails) -> EntityForm:
    """Rebuild the wizard form from a stored record."""
    registration = details.registration
    # Re-construct with every field passed so all of them count as set
    variant = type(registration)(**registration.model_dump())

    return EntityForm(
        basic=BasicInfoSection(
            legal_name=details.legal_name,
            trading_names=list(details.trading_names),
            description=details.description,
            founded_year=details.founded_year,
        ),
        address=AddressSection(
            address_line1=details.address_line1,
            address_line2=details.address_line2,
            city=details.city,
            county_state=details.county_state,
            postal_code=details.postal_code,
            country=details.country,
        ),
        legal=LegalStructureSection(legal_structure=details.legal_structure),
        registration=variant,
    )


# --- Form -> Payload ---


def _registration_payload(
    registration: IrelandRegistration | UKRegistration,
) -> dict[str, Any]:
    return registration.model_dump(
        exclude={"jurisdiction"}, exclude_unset=True, exclude_none=True
    )


def form_to_payload(form: EntityForm) -> dict[str, Any]:
    """
    Flatten a form to its wire payload.

    Unset fields are omitted so a partial update never clobbers stored values.
    """
    payload: dict[str, Any] = {}
    for section, names in (
        (form.basic, BASIC_FIELDS),
        (form.address, ADDRESS_FIELDS),
        (form.legal, LEGAL_FIELDS),
    ):
        for name in names:
            value = getattr(section, name)
            if value is not None:
                payload[name] = list(value) if isinstance(value, list) else value

    if form.registration is not None:
        payload.update(_registration_payload(form.registration))

    return payload


def details_to_payload(details: EntityDetails) -> dict[str, Any]:
    """Wire payload of the editable fields of a stored record."""
    payload = details.model_dump(
        include=set(BASIC_FIELDS + ADDRESS_FIELDS + LEGAL_FIELDS),
        exclude_none=True,
    )
    payload.update(
        details.registration.model_dump(exclude={"jurisdiction"}, exclude_none=True)
    )
    return payload


# --- Payload -> Form ---


def form_from_payload(
    payload: Mapping[str, Any],
    jurisdiction: Jurisdiction | None = None,
) -> EntityForm:
    """
    Build a form from a flat wire payload.

    Registration fields are read only for `jurisdiction` (the payload's country
    when it carries one). A key present with a null value is recorded in
    `form.cleared` when the field can be cleared; absent keys are not set.
    """
    form = EntityForm()

    for section, names in (
        (form.basic, BASIC_FIELDS),
        (form.address, ADDRESS_FIELDS),
        (form.legal, LEGAL_FIELDS),
    ):
        for name in names:
            if name not in payload:
                continue
            value = payload[name]
            if value is not None:
                setattr(section, name, list(value) if name == "trading_names" else value)
            elif name in CLEARABLE_FIELDS:
                form.cleared.add(name)

    country = form.address.country or jurisdiction
    if country is None:
        return form

    values: dict[str, Any] = {}
    for name in registration_fields(country):
        if name not in payload:
            continue
        if payload[name] is not None:
            values[name] = payload[name]
        elif name in REGISTRATION_NUMBER_FIELDS[country]:
            values[name] = None
            form.cleared.add(name)
    if values:
        form.registration = (
            IrelandRegistration(**values) if country == "IE" else UKRegistration(**values)
        )
    return form


def populated_registration_fields(
    payload: Mapping[str, Any],
    jurisdictions: Iterable[Jurisdiction] = JURISDICTIONS,
) -> list[str]:
    """Registration fields of `jurisdictions` that carry a value in the payload."""
    populated: list[str] = []
    for country in jurisdictions:
        for name in registration_fields(country):
            value = payload.get(name)
            if isinstance(value, str):
                if value.strip():
                    populated.append(name)
            elif value:
                populated.append(name)
    return populated


def foreign_registration_fields(
    payload: Mapping[str, Any],
    jurisdiction: Jurisdiction,
) -> list[str]:
    """Populated registration fields that belong to another jurisdiction."""
    others = [other for other in JURISDICTIONS if other != jurisdiction]
    return populated_registration_fields(payload, others)


# --- Partial updates ---


def merge_forms(base: EntityForm, patch: EntityForm) -> EntityForm:
    """
    Apply a partial form on top of a complete one.

    Set fields of `patch` win, as do the fields it explicitly clears. A
    jurisdiction change discards the base's registration variant.
    """
    merged = EntityForm()
    for name in ("basic", "address", "legal"):
        base_section = getattr(base, name)
        patch_section = getattr(patch, name)
        target = getattr(merged, name)
        for attr in vars(base_section):
            value = getattr(patch_section, attr)
            if value is None and attr not in patch.cleared:
                value = getattr(base_section, attr)
            setattr(target, attr, list(value) if isinstance(value, list) else value)

    country = merged.address.country
    if country is None:
        return merged

    if base.registration is not None and base.registration.jurisdiction == country:
        registration = base.registration.model_copy()
    else:
        registration = empty_registration(country)

    if patch.registration is not None and patch.registration.jurisdiction == country:
        for attr in patch.registration.model_fields_set - {"jurisdiction"}:
            setattr(registration, attr, getattr(patch.registration, attr))

    merged.registration = registration
    return merged


# --- Form -> Persisted ---


def _clean(value: str | None) -> str | None:
    if value is None:
        return None
    stripped = value.strip()
    return stripped or None


def build_details(
    form: EntityForm,
    *,
    org_id: UUID,
    now: datetime,
    base: EntityDetails | None = None,
) -> EntityDetails:
    """
    Turn a validated form into a persisted record.

    Strings are trimmed and blank ones stored as None. Identity, creation time
    and verification fields are kept from `base` when updating.
    Raises ValueError if the form has no legal name or country.
    """
    legal_name = _clean(form.basic.legal_name)
    country = form.address.country
    if legal_name is None or country is None:
        raise ValueError("A legal name and country are required to store entity details")

    registration = form.registration
    if registration is None or registration.jurisdiction != country:
        registration = empty_registration(country)
    values = registration.model_dump(exclude={"jurisdiction"})
    for name in REGISTRATION_NUMBER_FIELDS[country]:
        values[name] = _clean(values[name])
    registration = type(registration)(**values)

    trading_names = [
        name.strip() for name in (form.basic.trading_names or []) if name and name.strip()
    ]

    fields: dict[str, Any] = {
        "org_id": org_id,
        "legal_name": legal_name,
        "trading_names": trading_names,
        "description": _clean(form.basic.description),
        "founded_year": form.basic.founded_year,
        "address_line1": _clean(form.address.address_line1),
        "address_line2": _clean(form.address.address_line2),
        "city": _clean(form.address.city),
        "county_state": _clean(form.address.county_state),
        "postal_code": _clean(form.address.postal_code),
        "country": country,
        "legal_structure": form.legal.legal_structure or "unincorporated_association",
        "registration": registration,
        "updated_at": now,
    }

    if base is None:
        return EntityDetails(created_at=now, **fields)
    return base.model_copy(update=fields)
