"""Public feedback intake and admin triage."""

from __future__ import annotations

import logging
import uuid
from dataclasses import dataclass
from typing import Optional

from ...errors import ValidationError
from ...models.domain import Feedback, FeedbackStatus
from ...persistence.base import PharmacyRepository
from ..clock import Clock
from ..discovery.engine import normalize_paging

logger = logging.getLogger(__name__)

MIN_MESSAGE_LENGTH = 10
MAX_MESSAGE_LENGTH = 1000


@dataclass(slots=True)
class FeedbackPage:
    items: list[Feedback]
    page: int
    page_size: int
    total: int


class FeedbackService:
    def __init__(self, repository: PharmacyRepository, clock: Optional[Clock] = None) -> None:
        self._repository = repository
        self._clock = clock or Clock()

    def submit(self, message: str, email: Optional[str] = None, pharmacy_id: Optional[str] = None) -> Feedback:
        text = message.strip()
        if not MIN_MESSAGE_LENGTH <= len(text) <= MAX_MESSAGE_LENGTH:
            raise ValidationError(
                f"Message must be between {MIN_MESSAGE_LENGTH} and {MAX_MESSAGE_LENGTH} characters",
                field="message",
            )
        if pharmacy_id:
            # raises NotFoundError for unknown pharmacies
            self._repository.get_pharmacy(pharmacy_id)

        feedback = Feedback(
            id=str(uuid.uuid4()),
            message=text,
            email=email or None,
            pharmacy_id=pharmacy_id or None,
            status=FeedbackStatus.PENDING,
            created_at=self._clock.now(),
        )
        stored = self._repository.add_feedback(feedback)
        logger.info(f"Recorded feedback {stored.id}")
        return stored

    def list_feedback(self, status: Optional[FeedbackStatus] = None, page: int = 1, page_size: int = 20) -> FeedbackPage:
        entries = self._repository.list_feedback(status)
        page, page_size = normalize_paging(page, page_size)
        skip = (page - 1) * page_size
        return FeedbackPage(items=entries[skip : skip + page_size], page=page, page_size=page_size, total=len(entries))

    def set_status(self, feedback_id: str, status: FeedbackStatus) -> Feedback:
        return self._repository.set_feedback_status(feedback_id, status)
