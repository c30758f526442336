"""
Manager-facing review use cases.

Every flow resolves the cycle first, then (for writes) the managerEvaluation
deadline, then the employee and the acting manager, and only then the
evaluation itself.
"""
import asyncio
import logging
from typing import List, Optional

from app.core.exceptions import IncompleteSubmissionError, ReviewNotFoundError
from app.models.identifiers import ReviewCycleId, UserId
from app.models.manager_evaluation import ManagerEvaluation
from app.models.peer_feedback import PeerFeedback
from app.models.review_values import EngineerLevel, Narrative, PillarScores, ReviewPhase
from app.models.user import User
from app.repositories.ports import (
    ManagerEvaluationRepository,
    PeerFeedbackRepository,
    ReviewCycleRepository,
    SelfReviewRepository,
    UserRepository,
)
from app.schemas.reviews import (
    AggregatedPeerFeedbackResponse,
    AnonymizedCommentsSchema,
    AttributedPeerFeedback,
    EmployeeReviewResponse,
    EmployeeSummary,
    ManagerEvaluationResponse,
    ManagerEvaluationSubmit,
    ManagerEvaluationUpdate,
    PillarScoresSchema,
    SelfReviewResponse,
    TeamMemberReviewStatus,
)
from app.services.peer_feedback_aggregation import PeerFeedbackAggregationService
from app.services.peer_feedback_service import peer_feedback_status
from app.services.review_rules import ensure_deadline_not_passed, load_authorized_employee, load_cycle

logger = logging.getLogger(__name__)

NOT_STARTED = "NOT_STARTED"


def employee_summary(user: User) -> EmployeeSummary:
    return EmployeeSummary(
        id=str(user.id),
        name=user.name,
        email=user.email,
        level=user.level,
        department=user.department,
    )


class ManagerEvaluationService:
    def __init__(
        self,
        cycles: ReviewCycleRepository,
        users: UserRepository,
        self_reviews: SelfReviewRepository,
        peer_feedback: PeerFeedbackRepository,
        evaluations: ManagerEvaluationRepository,
        aggregation: Optional[PeerFeedbackAggregationService] = None,
    ):
        self.cycles = cycles
        self.users = users
        self.self_reviews = self_reviews
        self.peer_feedback = peer_feedback
        self.evaluations = evaluations
        self.aggregation = aggregation or PeerFeedbackAggregationService()

    # --- Reads ---

    async def get_employee_review(
        self, cycle_id: ReviewCycleId, employee_id: UserId, manager_id: UserId
    ) -> EmployeeReviewResponse:
        """Everything a manager needs to evaluate one direct report."""
        await load_cycle(self.cycles, cycle_id)
        employee = await load_authorized_employee(self.users, employee_id, manager_id)

        self_review = await self.self_reviews.find_by_user_and_cycle(employee_id, cycle_id)
        feedbacks = await self.peer_feedback.find_by_reviewee_and_cycle(employee_id, cycle_id)
        evaluation = await self.evaluations.find_by_employee_and_cycle(employee_id, cycle_id)

        attributed = await asyncio.gather(*(self._attribute(feedback) for feedback in feedbacks))

        return EmployeeReviewResponse(
            employee=employee_summary(employee),
            self_review=SelfReviewResponse.from_entity(self_review) if self_review else None,
            peer_feedback=self._aggregate(employee_id, cycle_id, feedbacks),
            attributed_peer_feedback=list(attributed),
            manager_evaluation=ManagerEvaluationResponse.from_entity(evaluation) if evaluation else None,
        )

    async def get_team_reviews(self, cycle_id: ReviewCycleId, manager_id: UserId) -> List[TeamMemberReviewStatus]:
        await load_cycle(self.cycles, cycle_id)
        direct_reports = await self.users.find_by_manager_id(manager_id)
        # gather keeps the input order
        return list(await asyncio.gather(*(self._team_member_status(e, cycle_id) for e in direct_reports)))

    async def get_manager_evaluation(
        self, cycle_id: ReviewCycleId, employee_id: UserId, manager_id: UserId
    ) -> ManagerEvaluation:
        await load_cycle(self.cycles, cycle_id)
        await load_authorized_employee(self.users, employee_id, manager_id)

        evaluation = await self.evaluations.find_by_employee_and_cycle(employee_id, cycle_id)
        if evaluation is None:
            raise ReviewNotFoundError("Manager evaluation not found")
        return evaluation

    # --- Writes ---

    async def start_manager_evaluation(
        self, cycle_id: ReviewCycleId, employee_id: UserId, manager_id: UserId
    ) -> ManagerEvaluation:
        """Returns the existing evaluation or creates an empty DRAFT."""
        cycle = await load_cycle(self.cycles, cycle_id)
        ensure_deadline_not_passed(cycle, ReviewPhase.MANAGER_EVALUATION)
        employee = await load_authorized_employee(self.users, employee_id, manager_id)

        evaluation = await self.evaluations.find_by_employee_and_cycle(employee_id, cycle_id)
        if evaluation is not None:
            return evaluation

        evaluation = self._new_draft(cycle_id, employee, manager_id)
        evaluation = await self.evaluations.save(evaluation)
        logger.info(f"Manager {manager_id} started evaluation {evaluation.id} for {employee_id}")
        return evaluation

    async def update_manager_evaluation(
        self,
        cycle_id: ReviewCycleId,
        employee_id: UserId,
        manager_id: UserId,
        request: ManagerEvaluationUpdate,
    ) -> ManagerEvaluation:
        cycle = await load_cycle(self.cycles, cycle_id)
        ensure_deadline_not_passed(cycle, ReviewPhase.MANAGER_EVALUATION)
        await load_authorized_employee(self.users, employee_id, manager_id)

        evaluation = await self.evaluations.find_by_employee_and_cycle(employee_id, cycle_id)
        if evaluation is None:
            raise ReviewNotFoundError("Manager evaluation not found")

        self._apply_update(evaluation, request)
        return await self.evaluations.save(evaluation)

    async def submit_manager_evaluation(
        self,
        cycle_id: ReviewCycleId,
        employee_id: UserId,
        manager_id: UserId,
        request: ManagerEvaluationSubmit,
    ) -> ManagerEvaluation:
        cycle = await load_cycle(self.cycles, cycle_id)
        ensure_deadline_not_passed(cycle, ReviewPhase.MANAGER_EVALUATION)
        employee = await load_authorized_employee(self.users, employee_id, manager_id)

        evaluation = await self.evaluations.find_by_employee_and_cycle(employee_id, cycle_id)
        if evaluation is None:
            evaluation = ManagerEvaluation.create(
                cycle_id=cycle_id,
                employee_id=employee_id,
                manager_id=manager_id,
                scores=request.scores.to_value(),
                narrative=Narrative.from_text(request.narrative).text,
                strengths=request.strengths,
                growth_areas=Narrative.from_text(request.growth_areas).text,
                development_plan=request.development_plan,
                employee_level=employee.level,
                proposed_level=request.proposed_level,
                performance_narrative=request.performance_narrative,
            )
        else:
            self._apply_update(
                evaluation,
                ManagerEvaluationUpdate(
                    scores=request.scores,
                    narrative=request.narrative,
                    performance_narrative=request.performance_narrative,
                    growth_areas=request.growth_areas or None,
                    strengths=request.strengths or None,
                    development_plan=request.development_plan or None,
                    proposed_level=request.proposed_level,
                ),
            )

        if not (evaluation.narrative or "").strip():
            logger.warning(f"Rejected manager evaluation submission for {employee_id}: empty narrative")
            raise IncompleteSubmissionError("Cannot submit evaluation without a narrative")

        evaluation.submit()
        evaluation = await self.evaluations.save(evaluation)
        logger.info(f"Manager {manager_id} submitted evaluation {evaluation.id} for {employee_id}")
        return evaluation

    # --- Helpers ---

    @staticmethod
    def _new_draft(cycle_id: ReviewCycleId, employee: User, manager_id: UserId) -> ManagerEvaluation:
        return ManagerEvaluation.create(
            cycle_id=cycle_id,
            employee_id=employee.id,
            manager_id=manager_id,
            scores=PillarScores.zero(),
            employee_level=employee.level,
        )

    @staticmethod
    def _apply_update(evaluation: ManagerEvaluation, request: ManagerEvaluationUpdate):
        # One guarded mutator per present field
        if request.scores is not None:
            evaluation.update_scores(request.scores.to_value())
        if request.narrative is not None:
            evaluation.update_narrative(Narrative.from_text(request.narrative))
        if request.performance_narrative is not None:
            evaluation.update_performance_narrative(Narrative.from_text(request.performance_narrative))
        if request.growth_areas is not None:
            evaluation.update_growth_areas(Narrative.from_text(request.growth_areas))
        if request.strengths is not None:
            evaluation.update_strengths(request.strengths)
        if request.development_plan is not None:
            evaluation.update_development_plan(request.development_plan)
        if request.proposed_level is not None:
            evaluation.update_proposed_level(EngineerLevel.from_string(request.proposed_level))

    def _aggregate(
        self, employee_id: UserId, cycle_id: ReviewCycleId, feedbacks: List[PeerFeedback]
    ) -> AggregatedPeerFeedbackResponse:
        if not feedbacks:
            average, comments = PillarScores.zero(), AnonymizedCommentsSchema()
        else:
            anonymized = self.aggregation.anonymize_feedback(feedbacks)
            average = anonymized.average_scores
            comments = AnonymizedCommentsSchema(
                strengths=anonymized.strengths,
                growth_areas=anonymized.growth_areas,
                general=anonymized.general,
            )
        return AggregatedPeerFeedbackResponse(
            employee_id=str(employee_id),
            cycle_id=str(cycle_id),
            feedback_count=len(feedbacks),
            average_scores=PillarScoresSchema.from_value(average),
            anonymized_comments=comments,
        )

    async def _attribute(self, feedback: PeerFeedback) -> AttributedPeerFeedback:
        reviewer = await self.users.find_by_id(feedback.reviewer_id)
        return AttributedPeerFeedback(
            reviewer_id=str(feedback.reviewer_id),
            reviewer_name=reviewer.name if reviewer else "Unknown",
            scores=PillarScoresSchema.from_value(feedback.scores),
            strengths=feedback.strengths,
            growth_areas=feedback.growth_areas,
            general_comments=feedback.general_comments,
        )

    async def _team_member_status(self, employee: User, cycle_id: ReviewCycleId) -> TeamMemberReviewStatus:
        self_review = await self.self_reviews.find_by_user_and_cycle(employee.id, cycle_id)
        feedbacks = await self.peer_feedback.find_by_reviewee_and_cycle(employee.id, cycle_id)
        evaluation = await self.evaluations.find_by_employee_and_cycle(employee.id, cycle_id)
        return TeamMemberReviewStatus(
            employee=employee_summary(employee),
            self_review_status=self_review.status.value if self_review else NOT_STARTED,
            peer_feedback_count=len(feedbacks),
            peer_feedback_status=peer_feedback_status(len(feedbacks)),
            manager_evaluation_status=evaluation.status.value if evaluation else NOT_STARTED,
            has_submitted_evaluation=bool(evaluation and evaluation.is_submitted),
        )
