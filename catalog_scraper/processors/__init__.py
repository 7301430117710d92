"""Whole-snapshot passes run after every term is scraped."""
from catalog_scraper.models.course import TermSnapshot

from .mark_missing import mark_missing_requisites
from .prereqs_for import add_prerequisite_for, sort_back_refs


def run_processors(snapshot: TermSnapshot) -> TermSnapshot:
    """Mark missing requisites first so they are never cross-referenced."""
    mark_missing_requisites(snapshot.classes)
    add_prerequisite_for(snapshot.classes)
    return snapshot


__all__ = [
    "add_prerequisite_for",
    "mark_missing_requisites",
    "run_processors",
    "sort_back_refs",
]
