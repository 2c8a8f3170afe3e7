"""
Registration component - Data models.

Jurisdiction-specific registration number formats.
"""

from __future__ import annotations

import re
from dataclasses import dataclass

from src.domain.entities import Jurisdiction


@dataclass(frozen=True)
class RegistrationFormat:
    """Well-formedness rule for one registration number field."""

    field: str
    jurisdiction: Jurisdiction
    label: str
    pattern: re.Pattern[str]
    expected: str

    @property
    def error_message(self) -> str:
        return f"Invalid {self.label} format (expected: {self.expected})"


@dataclass(frozen=True)
class RegistrationCheck:
    """Result of checking a single registration number."""

    field: str
    valid: bool
    message: str | None = None


class UnknownRegistrationField(ValueError):
    """Raised when a field tag names no known registration number."""

    def __init__(self, field: str) -> None:
        self.field = field
        super().__init__(f"Unknown registration field '{field}'")
