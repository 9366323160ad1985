"""Route group exports."""

from . import admin, duty_periods, feedbacks, health, pharmacies, ratings

__all__ = ["admin", "duty_periods", "feedbacks", "health", "pharmacies", "ratings"]
