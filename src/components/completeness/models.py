"""
Completeness component - Data models.
"""

from __future__ import annotations

from dataclasses import dataclass


@dataclass(frozen=True)
class ChecklistItem:
    """One entry of the completeness checklist."""

    key: str
    label: str
    present: bool
    required: bool = True


@dataclass(frozen=True)
class CompletenessReport:
    """Completeness of a stored entity record."""

    score: int
    items: tuple[ChecklistItem, ...]

    @property
    def missing(self) -> tuple[str, ...]:
        return tuple(item.key for item in self.items if item.required and not item.present)
