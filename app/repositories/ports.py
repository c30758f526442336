"""
Repository ports consumed by the review services.

Services only depend on these abstract classes. The SQLAlchemy adapters live
next to this module; tests substitute AsyncMock instances built with
``create_autospec`` or plain ``AsyncMock()``.
"""
from abc import ABC, abstractmethod
from typing import List, Optional

from app.models.final_score import FinalScore
from app.models.identifiers import (
    FinalScoreId,
    ManagerEvaluationId,
    PeerFeedbackId,
    ReviewCycleId,
    SelfReviewId,
    UserId,
)
from app.models.manager_evaluation import ManagerEvaluation
from app.models.peer_feedback import PeerFeedback
from app.models.review_cycle import ReviewCycle
from app.models.self_review import SelfReview
from app.models.user import User


class UserRepository(ABC):
    @abstractmethod
    async def find_by_id(self, user_id: UserId) -> Optional[User]:
        ...

    @abstractmethod
    async def find_by_manager_id(self, manager_id: UserId) -> List[User]:
        """Direct reports of a manager, in a stable order."""

    @abstractmethod
    async def save(self, user: User) -> User:
        ...


class ReviewCycleRepository(ABC):
    @abstractmethod
    async def find_by_id(self, cycle_id: ReviewCycleId) -> Optional[ReviewCycle]:
        ...

    @abstractmethod
    async def find_active(self) -> Optional[ReviewCycle]:
        ...

    @abstractmethod
    async def save(self, cycle: ReviewCycle) -> ReviewCycle:
        ...

    @abstractmethod
    async def delete(self, cycle_id: ReviewCycleId) -> None:
        ...


class SelfReviewRepository(ABC):
    @abstractmethod
    async def find_by_id(self, review_id: SelfReviewId) -> Optional[SelfReview]:
        ...

    @abstractmethod
    async def find_by_user_and_cycle(self, user_id: UserId, cycle_id: ReviewCycleId) -> Optional[SelfReview]:
        ...

    @abstractmethod
    async def find_by_cycle(self, cycle_id: ReviewCycleId) -> List[SelfReview]:
        ...

    @abstractmethod
    async def save(self, review: SelfReview) -> SelfReview:
        ...

    @abstractmethod
    async def delete(self, review_id: SelfReviewId) -> None:
        ...


class PeerFeedbackRepository(ABC):
    @abstractmethod
    async def find_by_id(self, feedback_id: PeerFeedbackId) -> Optional[PeerFeedback]:
        ...

    @abstractmethod
    async def find_by_reviewee_and_cycle(self, reviewee_id: UserId, cycle_id: ReviewCycleId) -> List[PeerFeedback]:
        ...

    @abstractmethod
    async def find_by_reviewer_and_cycle(self, reviewer_id: UserId, cycle_id: ReviewCycleId) -> List[PeerFeedback]:
        ...

    @abstractmethod
    async def find_by_cycle(self, cycle_id: ReviewCycleId) -> List[PeerFeedback]:
        ...

    @abstractmethod
    async def save(self, feedback: PeerFeedback) -> PeerFeedback:
        ...

    @abstractmethod
    async def delete(self, feedback_id: PeerFeedbackId) -> None:
        ...


class ManagerEvaluationRepository(ABC):
    @abstractmethod
    async def find_by_id(self, evaluation_id: ManagerEvaluationId) -> Optional[ManagerEvaluation]:
        ...

    @abstractmethod
    async def find_by_employee_and_cycle(
        self, employee_id: UserId, cycle_id: ReviewCycleId
    ) -> Optional[ManagerEvaluation]:
        ...

    @abstractmethod
    async def find_by_manager_and_cycle(self, manager_id: UserId, cycle_id: ReviewCycleId) -> List[ManagerEvaluation]:
        ...

    @abstractmethod
    async def find_by_cycle(self, cycle_id: ReviewCycleId) -> List[ManagerEvaluation]:
        ...

    @abstractmethod
    async def save(self, evaluation: ManagerEvaluation) -> ManagerEvaluation:
        ...

    @abstractmethod
    async def delete(self, evaluation_id: ManagerEvaluationId) -> None:
        ...


class FinalScoreRepository(ABC):
    @abstractmethod
    async def find_by_id(self, final_score_id: FinalScoreId) -> Optional[FinalScore]:
        ...

    @abstractmethod
    async def find_by_user_and_cycle(self, user_id: UserId, cycle_id: ReviewCycleId) -> Optional[FinalScore]:
        ...

    @abstractmethod
    async def find_by_cycle(self, cycle_id: ReviewCycleId) -> List[FinalScore]:
        ...

    @abstractmethod
    async def save(self, final_score: FinalScore) -> FinalScore:
        """Replaces any existing final score for the same user and cycle."""

    @abstractmethod
    async def delete(self, final_score_id: FinalScoreId) -> None:
        ...
