"""Feedback service helpers."""

from .service import FeedbackPage, FeedbackService

__all__ = ["FeedbackPage", "FeedbackService"]
