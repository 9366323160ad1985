"""Aggregate rating scores for display and ranking."""

from __future__ import annotations

from dataclasses import dataclass
from decimal import ROUND_HALF_UP, Decimal
from typing import Iterable

from ...models.domain import Rating


@dataclass(slots=True, frozen=True)
class RatingSummary:
    average: float
    count: int


def round_one_decimal(value: float) -> float:
    """Round half away from zero; ``round()`` would round half to even."""

    return float(Decimal(str(value)).quantize(Decimal("0.1"), rounding=ROUND_HALF_UP))


def aggregate(ratings: Iterable[Rating]) -> RatingSummary:
    scores = [rating.score for rating in ratings if rating.approved]
    if not scores:
        return RatingSummary(average=0.0, count=0)
    return RatingSummary(average=round_one_decimal(sum(scores) / len(scores)), count=len(scores))
