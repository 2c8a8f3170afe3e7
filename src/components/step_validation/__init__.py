"""
Step validation component - Per-step checks for the entity setup wizard.
"""

from .component import validate_form
from .models import WIZARD_STEPS, StepValidationResult, WizardStep

__all__ = [
    "validate_form",
    "StepValidationResult",
    "WizardStep",
    "WIZARD_STEPS",
]
