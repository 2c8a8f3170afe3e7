"""
Step validation component - Data models.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Literal

WizardStep = Literal[1, 2, 3, 4]

WIZARD_STEPS: tuple[WizardStep, ...] = (1, 2, 3, 4)


@dataclass(frozen=True)
class StepValidationResult:
    """Outcome of validating one wizard step (or all of them)."""

    valid: bool
    errors: tuple[str, ...]
    step: int | None = None
