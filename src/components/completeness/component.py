"""
Completeness component - Presence scoring over a stored entity record.

Scores presence only; format and range checks belong to step validation.
Registration numbers are an optional checklist item and never hold the
score below 100.
"""

from __future__ import annotations

from src.domain.entities import EntityDetails, registration_numbers

from .models import ChecklistItem, CompletenessReport


def _filled(value: str | None) -> bool:
    return bool(value and value.strip())


def build_checklist(details: EntityDetails) -> tuple[ChecklistItem, ...]:
    has_address = all(
        _filled(v) for v in (details.address_line1, details.city, details.postal_code)
    )
    return (
        ChecklistItem(
            key="legal_name",
            label="Legal name",
            present=_filled(details.legal_name),
        ),
        ChecklistItem(key="address", label="Full address", present=has_address),
        ChecklistItem(
            key="legal_structure",
            label="Legal structure",
            present=bool(details.legal_structure),
        ),
        ChecklistItem(
            key="registration",
            label="Registration number",
            present=bool(registration_numbers(details.registration)),
            required=False,
        ),
    )


def score_completeness(details: EntityDetails | None) -> CompletenessReport:
    """
    Compute the 0-100 completeness score of a stored record.

    Returns a score of 0 with an empty checklist when there is no record.
    """
    if details is None:
        return CompletenessReport(score=0, items=())

    items = build_checklist(details)
    required = [item for item in items if item.required]
    present = sum(1 for item in required if item.present)
    score = round(100 * present / len(required))
    return CompletenessReport(score=score, items=items)
