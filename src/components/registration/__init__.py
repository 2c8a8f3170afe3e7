"""
Registration component - Jurisdiction-specific registration number checks.
"""

from .component import (
    FORMATS,
    check_registration,
    check_registration_number,
    normalize_field,
)
from .models import RegistrationCheck, RegistrationFormat, UnknownRegistrationField

__all__ = [
    # Entry points
    "check_registration_number",
    "check_registration",
    "normalize_field",
    # Models
    "FORMATS",
    "RegistrationCheck",
    "RegistrationFormat",
    "UnknownRegistrationField",
]
