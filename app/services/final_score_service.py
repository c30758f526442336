import asyncio
import logging
from typing import List, Optional

from app.core.exceptions import ReviewNotFoundError
from app.models.final_score import FinalScore
from app.models.identifiers import ReviewCycleId, UserId
from app.models.manager_evaluation import ManagerEvaluation
from app.models.review_values import ReviewPhase
from app.repositories.ports import (
    FinalScoreRepository,
    ManagerEvaluationRepository,
    PeerFeedbackRepository,
    ReviewCycleRepository,
    UserRepository,
)
from app.services.peer_feedback_aggregation import PeerFeedbackAggregationService
from app.services.review_rules import (
    ensure_deadline_not_passed,
    load_authorized_employee,
    load_cycle,
    load_employee,
)
from app.services.score_calculation import FinalScoreCalculationService

logger = logging.getLogger(__name__)


class FinalScoreService:
    def __init__(
        self,
        cycles: ReviewCycleRepository,
        users: UserRepository,
        evaluations: ManagerEvaluationRepository,
        peer_feedback: PeerFeedbackRepository,
        final_scores: FinalScoreRepository,
        calculator: Optional[FinalScoreCalculationService] = None,
        aggregation: Optional[PeerFeedbackAggregationService] = None,
    ):
        self.cycles = cycles
        self.users = users
        self.evaluations = evaluations
        self.peer_feedback = peer_feedback
        self.final_scores = final_scores
        self.calculator = calculator or FinalScoreCalculationService()
        self.aggregation = aggregation or PeerFeedbackAggregationService()

    async def calculate_final_scores(self, cycle_id: ReviewCycleId) -> List[FinalScore]:
        """
        Recalculates a final score for every evaluation in the cycle.

        There is no status filter. An existing score is updated in place so its
        lock and feedback delivery record survive; locked scores are skipped.
        """
        await load_cycle(self.cycles, cycle_id)
        evaluations = await self.evaluations.find_by_cycle(cycle_id)

        results = []
        for evaluation in evaluations:
            if not evaluation.is_submitted:
                logger.warning(f"Calculating final score from unsubmitted evaluation {evaluation.id}")
            calculated = await self._calculate(evaluation, cycle_id)

            final_score = await self.final_scores.find_by_user_and_cycle(evaluation.employee_id, cycle_id)
            if final_score is None:
                final_score = calculated
            elif final_score.is_locked:
                logger.warning(f"Final score {final_score.id} is locked; recalculation skipped")
                continue
            else:
                final_score.apply_recalculation(calculated)
            results.append(await self.final_scores.save(final_score))

        logger.info(f"Calculated {len(results)} final scores for cycle {cycle_id}")
        return results

    async def get_my_final_score(self, cycle_id: ReviewCycleId, user_id: UserId) -> FinalScore:
        await load_cycle(self.cycles, cycle_id)
        await load_employee(self.users, user_id)

        final_score = await self.final_scores.find_by_user_and_cycle(user_id, cycle_id)
        if final_score is None:
            raise ReviewNotFoundError("Final score not found for this user and cycle")
        return final_score

    async def get_team_final_scores(self, cycle_id: ReviewCycleId, manager_id: UserId) -> List[FinalScore]:
        """Final scores of a manager's direct reports; reports without one are skipped."""
        await load_cycle(self.cycles, cycle_id)
        direct_reports = await self.users.find_by_manager_id(manager_id)
        scores = await asyncio.gather(
            *(self.final_scores.find_by_user_and_cycle(report.id, cycle_id) for report in direct_reports)
        )
        return [score for score in scores if score is not None]

    async def lock_final_scores(self, cycle_id: ReviewCycleId) -> List[FinalScore]:
        await load_cycle(self.cycles, cycle_id)
        final_scores = await self.final_scores.find_by_cycle(cycle_id)

        locked = []
        for final_score in final_scores:
            if not final_score.is_locked:
                final_score.lock()
                final_score = await self.final_scores.save(final_score)
            locked.append(final_score)

        logger.info(f"Locked {len(locked)} final scores for cycle {cycle_id}")
        return locked

    async def mark_feedback_delivered(
        self,
        cycle_id: ReviewCycleId,
        employee_id: UserId,
        manager_id: UserId,
        feedback_notes: Optional[str] = None,
    ) -> FinalScore:
        cycle = await load_cycle(self.cycles, cycle_id)
        ensure_deadline_not_passed(cycle, ReviewPhase.FEEDBACK_DELIVERY)
        await load_authorized_employee(self.users, employee_id, manager_id)

        final_score = await self.final_scores.find_by_user_and_cycle(employee_id, cycle_id)
        if final_score is None:
            raise ReviewNotFoundError("Final score not found")

        final_score.mark_feedback_delivered(manager_id, feedback_notes)
        final_score = await self.final_scores.save(final_score)
        logger.info(f"Feedback delivered to {employee_id} by {manager_id} for cycle {cycle_id}")
        return final_score

    async def _calculate(self, evaluation: ManagerEvaluation, cycle_id: ReviewCycleId) -> FinalScore:
        feedbacks = await self.peer_feedback.find_by_reviewee_and_cycle(evaluation.employee_id, cycle_id)
        # No feedback means no peer average, not a zero average
        peer_average = self.aggregation.aggregate_peer_scores(feedbacks) if feedbacks else None
        return self.calculator.calculate_final_score(
            evaluation,
            peer_average_scores=peer_average,
            peer_feedback_count=len(feedbacks),
        )
