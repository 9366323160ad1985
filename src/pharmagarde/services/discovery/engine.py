"""Geo-ranked, filtered and paginated pharmacy discovery."""

from __future__ import annotations

import math
import unicodedata
from dataclasses import dataclass
from datetime import datetime
from typing import Literal, Optional, Sequence

from ...models.domain import CandidatePharmacy, Pharmacy, PharmacyStatus
from ..duty.evaluator import is_on_duty
from ..geospatial import distance_km
from ..ratings.aggregator import aggregate

DEFAULT_PAGE = 1
DEFAULT_PAGE_SIZE = 20

SortKey = Literal["distance", "rating", "name"]


@dataclass(slots=True)
class SearchCriteria:
    search: Optional[str] = None
    city: Optional[str] = None
    district: Optional[str] = None
    at: Optional[datetime] = None
    latitude: Optional[float] = None
    longitude: Optional[float] = None
    radius_km: Optional[float] = None
    duty_only: bool = False
    sort_by: SortKey = "name"
    page: int = DEFAULT_PAGE
    page_size: int = DEFAULT_PAGE_SIZE

    @property
    def has_origin(self) -> bool:
        return self.latitude is not None and self.longitude is not None


@dataclass(slots=True)
class AnnotatedPharmacy:
    pharmacy: Pharmacy
    is_on_duty: bool
    average_rating: float
    rating_count: int
    distance_km: Optional[float]


@dataclass(slots=True)
class SearchPage:
    items: list[AnnotatedPharmacy]
    page: int
    page_size: int
    total: int

    @property
    def total_pages(self) -> int:
        return math.ceil(self.total / self.page_size) if self.page_size else 0

    @property
    def has_next_page(self) -> bool:
        return self.page < self.total_pages


def collation_key(name: str) -> tuple[str, str, str]:
    """Sort key approximating locale-aware ordering.

    Compares base letters first (accents and case ignored), then accents, then case
    with lowercase ahead of uppercase.
    """

    decomposed = unicodedata.normalize("NFD", name)
    base = "".join(char for char in decomposed if not unicodedata.combining(char))
    return (base.casefold(), name.casefold(), name.swapcase())


def _contains(value: Optional[str], needle: str) -> bool:
    return bool(value) and needle in value.casefold()


def _matches_text(pharmacy: Pharmacy, criteria: SearchCriteria) -> bool:
    if criteria.search:
        needle = criteria.search.casefold()
        if not any(_contains(value, needle) for value in (pharmacy.name, pharmacy.address, pharmacy.city)):
            return False
    if criteria.city and not _contains(pharmacy.city, criteria.city.casefold()):
        return False
    if criteria.district and not _contains(pharmacy.district, criteria.district.casefold()):
        return False
    return True


def _annotate(candidate: CandidatePharmacy, criteria: SearchCriteria, at: datetime) -> AnnotatedPharmacy:
    pharmacy = candidate.pharmacy
    summary = aggregate(candidate.ratings)
    distance: Optional[float] = None
    if criteria.has_origin:
        distance = distance_km(criteria.latitude, criteria.longitude, pharmacy.latitude, pharmacy.longitude)
    return AnnotatedPharmacy(
        pharmacy=pharmacy,
        is_on_duty=is_on_duty(candidate.duty_periods, at),
        average_rating=summary.average,
        rating_count=summary.count,
        distance_km=distance,
    )


def _sort(items: list[AnnotatedPharmacy], criteria: SearchCriteria) -> list[AnnotatedPharmacy]:
    if criteria.sort_by == "distance" and criteria.has_origin:
        return sorted(
            items,
            key=lambda item: (item.distance_km is None, item.distance_km if item.distance_km is not None else 0.0),
        )
    if criteria.sort_by == "rating":
        return sorted(items, key=lambda item: -item.average_rating)
    return sorted(items, key=lambda item: collation_key(item.pharmacy.name))


def normalize_paging(page: int, page_size: int) -> tuple[int, int]:
    """Clamp non-positive paging input to the defaults instead of failing."""

    return (page if page > 0 else DEFAULT_PAGE, page_size if page_size > 0 else DEFAULT_PAGE_SIZE)


def search(candidates: Sequence[CandidatePharmacy], criteria: SearchCriteria, at: datetime) -> SearchPage:
    """Filter, annotate, sort and paginate ``candidates``.

    ``at`` is the reference instant for duty status; the caller resolves it
    from ``criteria.at`` or the current time. Steps run in a fixed order
    because later ones read the annotations of earlier ones: approval, text
    filters, annotation, duty filter, radius filter, sort, then pagination.
    """

    approved = [c for c in candidates if c.pharmacy.status == PharmacyStatus.APPROVED]
    matching = [c for c in approved if _matches_text(c.pharmacy, criteria)]
    annotated = [_annotate(c, criteria, at) for c in matching]

    if criteria.duty_only:
        annotated = [item for item in annotated if item.is_on_duty]

    if criteria.radius_km is not None and criteria.has_origin:
        radius = criteria.radius_km
        annotated = [item for item in annotated if item.distance_km is not None and item.distance_km <= radius]

    ordered = _sort(annotated, criteria)

    page, page_size = normalize_paging(criteria.page, criteria.page_size)
    skip = (page - 1) * page_size
    return SearchPage(
        items=ordered[skip : skip + page_size],
        page=page,
        page_size=page_size,
        total=len(ordered),
    )
