import logging
from typing import Optional

from app.core.exceptions import PeerFeedbackAlreadySubmittedError
from app.core.config import settings
from app.models.identifiers import ReviewCycleId, UserId
from app.models.peer_feedback import PeerFeedback
from app.models.review_values import PillarScores, ReviewPhase
from app.repositories.ports import PeerFeedbackRepository, ReviewCycleRepository, UserRepository
from app.schemas.reviews import (
    AggregatedPeerFeedbackResponse,
    AnonymizedCommentsSchema,
    PeerFeedbackCreate,
    PillarScoresSchema,
)
from app.services.peer_feedback_aggregation import PeerFeedbackAggregationService
from app.services.review_rules import (
    ensure_can_submit_peer_feedback,
    ensure_deadline_not_passed,
    load_cycle,
    load_employee,
)

logger = logging.getLogger(__name__)


def peer_feedback_status(count: int) -> str:
    return "COMPLETE" if count >= settings.reviews.peer_feedback_target else "PENDING"


class PeerFeedbackService:
    def __init__(
        self,
        cycles: ReviewCycleRepository,
        users: UserRepository,
        peer_feedback: PeerFeedbackRepository,
        aggregation: Optional[PeerFeedbackAggregationService] = None,
    ):
        self.cycles = cycles
        self.users = users
        self.peer_feedback = peer_feedback
        self.aggregation = aggregation or PeerFeedbackAggregationService()

    async def submit_peer_feedback(
        self, cycle_id: ReviewCycleId, reviewer_id: UserId, request: PeerFeedbackCreate
    ) -> PeerFeedback:
        cycle = await load_cycle(self.cycles, cycle_id)
        ensure_deadline_not_passed(cycle, ReviewPhase.PEER_FEEDBACK)

        reviewee = await load_employee(self.users, UserId.from_string(request.reviewee_id))
        ensure_can_submit_peer_feedback(reviewer_id, reviewee)

        existing = await self.peer_feedback.find_by_reviewer_and_cycle(reviewer_id, cycle_id)
        if any(feedback.reviewee_id == reviewee.id for feedback in existing):
            logger.warning(f"Duplicate peer feedback from {reviewer_id} for {reviewee.id} in cycle {cycle_id}")
            raise PeerFeedbackAlreadySubmittedError()

        feedback = PeerFeedback.create(
            cycle_id=cycle_id,
            reviewee_id=reviewee.id,
            reviewer_id=reviewer_id,
            scores=request.scores.to_value(),
            strengths=request.strengths,
            growth_areas=request.growth_areas,
            general_comments=request.general_comments,
        )
        feedback = await self.peer_feedback.save(feedback)
        logger.info(f"Peer feedback {feedback.id} submitted for {reviewee.id} in cycle {cycle_id}")
        return feedback

    async def get_aggregated_peer_feedback(
        self, cycle_id: ReviewCycleId, employee_id: UserId
    ) -> AggregatedPeerFeedbackResponse:
        """Anonymised view: averages and comments, never reviewer ids."""
        await load_cycle(self.cycles, cycle_id)

        feedbacks = await self.peer_feedback.find_by_reviewee_and_cycle(employee_id, cycle_id)
        if not feedbacks:
            return AggregatedPeerFeedbackResponse(
                employee_id=str(employee_id),
                cycle_id=str(cycle_id),
                feedback_count=0,
                average_scores=PillarScoresSchema.from_value(PillarScores.zero()),
                anonymized_comments=AnonymizedCommentsSchema(),
            )

        anonymized = self.aggregation.anonymize_feedback(feedbacks)
        return AggregatedPeerFeedbackResponse(
            employee_id=str(employee_id),
            cycle_id=str(cycle_id),
            feedback_count=anonymized.feedback_count,
            average_scores=PillarScoresSchema.from_value(anonymized.average_scores),
            anonymized_comments=AnonymizedCommentsSchema(
                strengths=anonymized.strengths,
                growth_areas=anonymized.growth_areas,
                general=anonymized.general,
            ),
        )
