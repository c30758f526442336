import logging

from app.core.exceptions import IncompleteSubmissionError, ReviewNotFoundError
from app.models.identifiers import ReviewCycleId, UserId
from app.models.review_values import Narrative, PillarScores, ReviewPhase
from app.models.self_review import SelfReview
from app.repositories.ports import ReviewCycleRepository, SelfReviewRepository
from app.schemas.reviews import SelfReviewUpdate
from app.services.review_rules import ensure_deadline_not_passed, load_cycle

logger = logging.getLogger(__name__)


class SelfReviewService:
    """
    Employee self-assessment use cases.
    """

    def __init__(self, cycles: ReviewCycleRepository, self_reviews: SelfReviewRepository):
        self.cycles = cycles
        self.self_reviews = self_reviews

    async def get_my_self_review(self, cycle_id: ReviewCycleId, user_id: UserId) -> SelfReview:
        """Returns the caller's review, creating an empty DRAFT on first access."""
        await load_cycle(self.cycles, cycle_id)

        review = await self.self_reviews.find_by_user_and_cycle(user_id, cycle_id)
        if review is None:
            review = SelfReview.create(
                cycle_id=cycle_id,
                user_id=user_id,
                scores=PillarScores.zero(),
                narrative=Narrative.from_text(""),
            )
            review = await self.self_reviews.save(review)
            logger.info(f"Created draft self-review {review.id} for user {user_id} in cycle {cycle_id}")
        return review

    async def update_self_review(
        self, cycle_id: ReviewCycleId, user_id: UserId, request: SelfReviewUpdate
    ) -> SelfReview:
        cycle = await load_cycle(self.cycles, cycle_id)
        ensure_deadline_not_passed(cycle, ReviewPhase.SELF_REVIEW)

        review = await self.self_reviews.find_by_user_and_cycle(user_id, cycle_id)
        if review is None:
            raise ReviewNotFoundError(f"Self-review not found for user {user_id} in cycle {cycle_id}")

        if request.scores is not None:
            review.update_scores(request.scores.to_value())
        if request.narrative is not None:
            review.update_narrative(Narrative.from_text(request.narrative))

        return await self.self_reviews.save(review)

    async def submit_self_review(self, cycle_id: ReviewCycleId, user_id: UserId) -> SelfReview:
        cycle = await load_cycle(self.cycles, cycle_id)
        ensure_deadline_not_passed(cycle, ReviewPhase.SELF_REVIEW)

        review = await self.self_reviews.find_by_user_and_cycle(user_id, cycle_id)
        if review is None:
            raise ReviewNotFoundError("Self-review not found for this user and cycle")

        if review.narrative.is_blank:
            logger.warning(f"Rejected self-review submission {review.id}: empty narrative")
            raise IncompleteSubmissionError("Cannot submit incomplete self-review. Narrative is required.")

        review.submit()
        review = await self.self_reviews.save(review)
        logger.info(f"Self-review {review.id} submitted by user {user_id}")
        return review
