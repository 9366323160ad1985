"""Rating submission and moderation."""

from __future__ import annotations

from typing import Optional

from ...errors import NotFoundError, ValidationError
from ...models.domain import PharmacyStatus, Rating
from ...persistence.base import PharmacyRepository

MIN_SCORE = 1
MAX_SCORE = 5
MAX_COMMENT_LENGTH = 500


class RatingService:
    def __init__(self, repository: PharmacyRepository, *, require_moderation: bool = False) -> None:
        self._repository = repository
        self._require_moderation = require_moderation

    def rate_score(
        self,
        pharmacy_id: str,
        anonymous_id: str,
        score: int,
        comment: Optional[str] = None,
    ) -> tuple[Rating, bool]:
        """Store a rating, replacing this rater's earlier one for the same pharmacy.

        Returns the stored rating and whether it was newly created.
        """

        if isinstance(score, bool) or not isinstance(score, int) or not MIN_SCORE <= score <= MAX_SCORE:
            raise ValidationError(f"Score must be an integer between {MIN_SCORE} and {MAX_SCORE}", field="score")
        if comment is not None and len(comment) > MAX_COMMENT_LENGTH:
            raise ValidationError(f"Comment must be at most {MAX_COMMENT_LENGTH} characters", field="comment")

        pharmacy = self._repository.get_pharmacy(pharmacy_id)
        if pharmacy.status != PharmacyStatus.APPROVED:
            raise NotFoundError("Pharmacy", pharmacy_id)

        return self._repository.upsert_rating(
            pharmacy_id,
            anonymous_id,
            score,
            comment,
            approved_on_create=not self._require_moderation,
        )

    def set_approval(self, rating_id: str, approved: bool) -> Rating:
        return self._repository.set_rating_approval(rating_id, approved)
