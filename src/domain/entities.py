from datetime import UTC, datetime
from typing import Annotated, Literal
from uuid import UUID, uuid4

from pydantic import BaseModel, Field, model_validator

# --- Enums / Literals ---
EntityCategory = Literal["club", "charity", "school", "community_group", "cause"]
Jurisdiction = Literal["IE", "GB"]
LegalStructure = Literal[
    "unincorporated_association",
    "company_limited_by_guarantee",
    "charitable_trust",
    "community_interest_company",
    "other",
]
OnboardingStatus = Literal[
    "draft", "entity_setup", "pending_verification", "verified", "suspended"
]
RoleType = Literal["host", "admin"]

ENTITY_CATEGORIES: tuple[EntityCategory, ...] = (
    "club",
    "charity",
    "school",
    "community_group",
    "cause",
)
JURISDICTIONS: tuple[Jurisdiction, ...] = ("IE", "GB")


def _utcnow() -> datetime:
    return datetime.now(UTC)


# --- Registration (tagged by jurisdiction) ---

class IrelandRegistration(BaseModel):
    jurisdiction: Literal["IE"] = "IE"
    ie_cro_number: str | None = None
    ie_charity_chy: str | None = None
    ie_charity_rcn: str | None = None
    ie_revenue_sports_body: bool = False


class UKRegistration(BaseModel):
    jurisdiction: Literal["GB"] = "GB"
    uk_company_number: str | None = None
    uk_charity_england_wales: str | None = None
    uk_charity_scotland: str | None = None
    uk_charity_ni: str | None = None
    uk_casc_registered: bool = False


RegistrationDetails = Annotated[
    IrelandRegistration | UKRegistration, Field(discriminator="jurisdiction")
]

# Field order here is the order checks and payloads are emitted in.
REGISTRATION_NUMBER_FIELDS: dict[Jurisdiction, tuple[str, ...]] = {
    "IE": ("ie_cro_number", "ie_charity_chy", "ie_charity_rcn"),
    "GB": (
        "uk_company_number",
        "uk_charity_england_wales",
        "uk_charity_scotland",
        "uk_charity_ni",
    ),
}
REGISTRATION_FLAG_FIELDS: dict[Jurisdiction, str] = {
    "IE": "ie_revenue_sports_body",
    "GB": "uk_casc_registered",
}
CHARITY_NUMBER_FIELDS = frozenset(
    {
        "ie_charity_chy",
        "ie_charity_rcn",
        "uk_charity_england_wales",
        "uk_charity_scotland",
        "uk_charity_ni",
    }
)
COMPANY_NUMBER_FIELDS = frozenset({"ie_cro_number", "uk_company_number"})


def empty_registration(country: Jurisdiction) -> IrelandRegistration | UKRegistration:
    if country == "IE":
        return IrelandRegistration()
    return UKRegistration()


def registration_numbers(
    registration: IrelandRegistration | UKRegistration,
) -> dict[str, str]:
    """Populated registration numbers of a variant, in field order."""
    numbers: dict[str, str] = {}
    for name in REGISTRATION_NUMBER_FIELDS[registration.jurisdiction]:
        value = getattr(registration, name)
        if value:
            numbers[name] = value
    return numbers


# --- Organization & Onboarding ---

class Organization(BaseModel):
    id: UUID = Field(default_factory=uuid4)
    name: str
    category: EntityCategory | None = None
    status: OnboardingStatus = "draft"
    onboarding_completed_at: datetime | None = None
    suspended_reason: str | None = None
    created_at: datetime = Field(default_factory=_utcnow)
    updated_at: datetime = Field(default_factory=_utcnow)


class EntityDetails(BaseModel):
    id: UUID = Field(default_factory=uuid4)
    org_id: UUID

    # Basic info
    legal_name: str
    trading_names: list[str] = Field(default_factory=list)
    description: str | None = None
    founded_year: int | None = None

    # Address
    address_line1: str | None = None
    address_line2: str | None = None
    city: str | None = None
    county_state: str | None = None
    postal_code: str | None = None
    country: Jurisdiction

    legal_structure: LegalStructure = "unincorporated_association"
    registration: RegistrationDetails

    # Verification
    registration_verified: bool = False
    verification_notes: str | None = None
    verified_at: datetime | None = None
    verified_by: UUID | None = None

    created_at: datetime = Field(default_factory=_utcnow)
    updated_at: datetime = Field(default_factory=_utcnow)

    @model_validator(mode="after")
    def _registration_matches_country(self) -> "EntityDetails":
        if self.registration.jurisdiction != self.country:
            raise ValueError(
                f"Registration details for {self.registration.jurisdiction} "
                f"cannot be stored on a {self.country} entity"
            )
        return self

    @property
    def is_registered_charity(self) -> bool:
        return any(
            name in CHARITY_NUMBER_FIELDS for name in registration_numbers(self.registration)
        )

    @property
    def is_registered_company(self) -> bool:
        return any(
            name in COMPANY_NUMBER_FIELDS for name in registration_numbers(self.registration)
        )


class OnboardingRecord(BaseModel):
    """An organization together with its (optional) entity details."""

    organization: Organization
    details: EntityDetails | None = None


# --- Identity ---

class Identity(BaseModel):
    user_id: UUID
    org_id: UUID | None = None
    role: RoleType = "host"
