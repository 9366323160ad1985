"""Duty scheduling helpers."""

from .evaluator import active_period, filter_on_duty, is_on_duty, upcoming_periods
from .service import DutyService
from .store import DutyIntervalStore, find_overlap

__all__ = [
    "DutyIntervalStore",
    "DutyService",
    "active_period",
    "filter_on_duty",
    "find_overlap",
    "is_on_duty",
    "upcoming_periods",
]
