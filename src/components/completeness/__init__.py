"""
Completeness component - Checklist scoring of stored entity records.
"""

from .component import build_checklist, score_completeness
from .models import ChecklistItem, CompletenessReport

__all__ = [
    "score_completeness",
    "build_checklist",
    "ChecklistItem",
    "CompletenessReport",
]
