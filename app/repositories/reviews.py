"""SQLAlchemy adapters for the three review artifacts of a cycle."""
from typing import List, Optional

from app.models.identifiers import (
    ManagerEvaluationId,
    PeerFeedbackId,
    ReviewCycleId,
    SelfReviewId,
    UserId,
)
from app.models.manager_evaluation import ManagerEvaluation
from app.models.peer_feedback import PeerFeedback
from app.models.self_review import SelfReview
from app.repositories.base import SqlAlchemyRepository
from app.repositories.ports import (
    ManagerEvaluationRepository,
    PeerFeedbackRepository,
    SelfReviewRepository,
)


class SqlAlchemySelfReviewRepository(SqlAlchemyRepository[SelfReview], SelfReviewRepository):
    model = SelfReview

    async def find_by_id(self, review_id: SelfReviewId) -> Optional[SelfReview]:
        return await self._get(review_id)

    async def find_by_user_and_cycle(self, user_id: UserId, cycle_id: ReviewCycleId) -> Optional[SelfReview]:
        return await self._first(SelfReview.user_id == user_id, SelfReview.cycle_id == cycle_id)

    async def find_by_cycle(self, cycle_id: ReviewCycleId) -> List[SelfReview]:
        return await self._list(SelfReview.cycle_id == cycle_id, order_by=SelfReview.created_at)

    async def save(self, review: SelfReview) -> SelfReview:
        return await self._save(review)

    async def delete(self, review_id: SelfReviewId) -> None:
        await self._delete(review_id)


class SqlAlchemyPeerFeedbackRepository(SqlAlchemyRepository[PeerFeedback], PeerFeedbackRepository):
    model = PeerFeedback

    async def find_by_id(self, feedback_id: PeerFeedbackId) -> Optional[PeerFeedback]:
        return await self._get(feedback_id)

    async def find_by_reviewee_and_cycle(self, reviewee_id: UserId, cycle_id: ReviewCycleId) -> List[PeerFeedback]:
        return await self._list(
            PeerFeedback.reviewee_id == reviewee_id,
            PeerFeedback.cycle_id == cycle_id,
            order_by=PeerFeedback.submitted_at,
        )

    async def find_by_reviewer_and_cycle(self, reviewer_id: UserId, cycle_id: ReviewCycleId) -> List[PeerFeedback]:
        return await self._list(
            PeerFeedback.reviewer_id == reviewer_id,
            PeerFeedback.cycle_id == cycle_id,
            order_by=PeerFeedback.submitted_at,
        )

    async def find_by_cycle(self, cycle_id: ReviewCycleId) -> List[PeerFeedback]:
        return await self._list(PeerFeedback.cycle_id == cycle_id, order_by=PeerFeedback.submitted_at)

    async def save(self, feedback: PeerFeedback) -> PeerFeedback:
        return await self._save(feedback)

    async def delete(self, feedback_id: PeerFeedbackId) -> None:
        await self._delete(feedback_id)


class SqlAlchemyManagerEvaluationRepository(SqlAlchemyRepository[ManagerEvaluation], ManagerEvaluationRepository):
    model = ManagerEvaluation

    async def find_by_id(self, evaluation_id: ManagerEvaluationId) -> Optional[ManagerEvaluation]:
        return await self._get(evaluation_id)

    async def find_by_employee_and_cycle(
        self, employee_id: UserId, cycle_id: ReviewCycleId
    ) -> Optional[ManagerEvaluation]:
        return await self._first(ManagerEvaluation.employee_id == employee_id, ManagerEvaluation.cycle_id == cycle_id)

    async def find_by_manager_and_cycle(self, manager_id: UserId, cycle_id: ReviewCycleId) -> List[ManagerEvaluation]:
        return await self._list(
            ManagerEvaluation.manager_id == manager_id,
            ManagerEvaluation.cycle_id == cycle_id,
            order_by=ManagerEvaluation.created_at,
        )

    async def find_by_cycle(self, cycle_id: ReviewCycleId) -> List[ManagerEvaluation]:
        return await self._list(ManagerEvaluation.cycle_id == cycle_id, order_by=ManagerEvaluation.created_at)

    async def save(self, evaluation: ManagerEvaluation) -> ManagerEvaluation:
        return await self._save(evaluation)

    async def delete(self, evaluation_id: ManagerEvaluationId) -> None:
        await self._delete(evaluation_id)
