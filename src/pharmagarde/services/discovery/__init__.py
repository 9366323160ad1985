"""Pharmacy discovery helpers."""

from .engine import AnnotatedPharmacy, SearchCriteria, SearchPage, collation_key, search

__all__ = [
    "AnnotatedPharmacy",
    "SearchCriteria",
    "SearchPage",
    "collation_key",
    "search",
]
