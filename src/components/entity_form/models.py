"""
Entity form component - Data models.

The in-progress wizard form. Every field is optional; None means "not set".
"""

from __future__ import annotations

from dataclasses import dataclass, field

from src.domain.entities import (
    IrelandRegistration,
    Jurisdiction,
    LegalStructure,
    UKRegistration,
)

BASIC_FIELDS = ("legal_name", "trading_names", "description", "founded_year")
ADDRESS_FIELDS = (
    "address_line1",
    "address_line2",
    "city",
    "county_state",
    "postal_code",
    "country",
)
LEGAL_FIELDS = ("legal_structure",)

# An explicit null for these clears the stored value on update
CLEARABLE_FIELDS = tuple(
    name for name in BASIC_FIELDS + ADDRESS_FIELDS if name != "country"
)


@dataclass
class BasicInfoSection:
    """Step 1."""

    legal_name: str | None = None
    trading_names: list[str] | None = None
    description: str | None = None
    founded_year: int | None = None


@dataclass
class AddressSection:
    """Step 2."""

    address_line1: str | None = None
    address_line2: str | None = None
    city: str | None = None
    county_state: str | None = None
    postal_code: str | None = None
    country: Jurisdiction | None = None


@dataclass
class LegalStructureSection:
    """Step 3."""

    legal_structure: LegalStructure | None = None


@dataclass
class EntityForm:
    """
    Four-section entity form (basic info / address / legal structure / registration).

    The registration variant always belongs to address.country. Only the
    fields recorded in registration.model_fields_set count as set. `cleared`
    holds the wire names a partial update explicitly set to null.
    """

    basic: BasicInfoSection = field(default_factory=BasicInfoSection)
    address: AddressSection = field(default_factory=AddressSection)
    legal: LegalStructureSection = field(default_factory=LegalStructureSection)
    registration: IrelandRegistration | UKRegistration | None = None
    cleared: set[str] = field(default_factory=set)


@dataclass(frozen=True)
class AddressLabels:
    """Jurisdiction-specific address field labels."""

    postal_code: str
    county_state: str

