"""
Entity form component - Wizard form model and its conversions.
"""

from .component import (
    address_labels,
    build_details,
    details_to_form,
    details_to_payload,
    foreign_registration_fields,
    form_from_payload,
    form_to_payload,
    merge_forms,
    populated_registration_fields,
    registration_fields,
)
from .models import (
    AddressLabels,
    AddressSection,
    BasicInfoSection,
    EntityForm,
    LegalStructureSection,
)

__all__ = [
    # Conversions
    "details_to_form",
    "form_to_payload",
    "details_to_payload",
    "form_from_payload",
    "foreign_registration_fields",
    "populated_registration_fields",
    "merge_forms",
    "build_details",
    # Helpers
    "address_labels",
    "registration_fields",
    # Models
    "EntityForm",
    "BasicInfoSection",
    "AddressSection",
    "LegalStructureSection",
    "AddressLabels",
]
