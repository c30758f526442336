import asyncio
import logging
from typing import Dict, Optional, Tuple

from app.core.config import settings
from app.core.exceptions import InvalidJustificationError, ReviewNotFoundError
from app.models.identifiers import ManagerEvaluationId, ReviewCycleId
from app.models.manager_evaluation import ManagerEvaluation
from app.models.review_values import BonusTier, ReviewPhase
from app.models.user import User
from app.repositories.ports import (
    FinalScoreRepository,
    ManagerEvaluationRepository,
    ReviewCycleRepository,
    UserRepository,
)
from app.schemas.reviews import (
    CalibrationAdjustmentRequest,
    CalibrationAdjustmentResponse,
    CalibrationDashboardResponse,
    CalibrationEvaluationEntry,
    CalibrationSummary,
    PillarScoresSchema,
)
from app.services.review_rules import ensure_deadline_not_passed, load_cycle
from app.services.score_calculation import FinalScoreCalculationService, ScoreCalculationService

logger = logging.getLogger(__name__)

UNKNOWN = "Unknown"


def _empty_tier_counts() -> Dict[str, int]:
    return {tier.value: 0 for tier in BonusTier}


class CalibrationService:
    """
    HR calibration of submitted manager evaluations.
    The dashboard lists the evaluations HR calibrates. An adjustment replaces
    the evaluation's scores whole and, when a final score was already
    calculated and is not locked, refreshes it too.
    """

    def __init__(
        self,
        cycles: ReviewCycleRepository,
        evaluations: ManagerEvaluationRepository,
        final_scores: FinalScoreRepository,
        users: UserRepository,
        score_calculation: Optional[ScoreCalculationService] = None,
    ):
        self.cycles = cycles
        self.evaluations = evaluations
        self.final_scores = final_scores
        self.users = users
        self.score_calculation = score_calculation or ScoreCalculationService()

    async def get_calibration_dashboard(
        self, cycle_id: ReviewCycleId, department: Optional[str] = None
    ) -> CalibrationDashboardResponse:
        """
        Every evaluation of the cycle with its weighted score and bonus tier.

        Optionally limited to one department. Scores are weighted at the same
        resolved level an adjustment uses, and the summary counts evaluations
        per tier and per department.
        """
        await load_cycle(self.cycles, cycle_id)
        evaluations = await self.evaluations.find_by_cycle(cycle_id)
        people = await asyncio.gather(*(self._people_for(evaluation) for evaluation in evaluations))

        by_bonus_tier = _empty_tier_counts()
        by_department: Dict[str, Dict[str, int]] = {}
        entries = []
        for evaluation, (employee, manager) in zip(evaluations, people):
            if department is not None and (employee is None or employee.department != department):
                continue
            employee_department = (employee.department if employee else None) or UNKNOWN
            level = FinalScoreCalculationService.resolve_final_level(evaluation)
            weighted = self.score_calculation.calculate_weighted_score(evaluation.scores, level)
            tier = weighted.bonus_tier.value

            by_bonus_tier[tier] += 1
            by_department.setdefault(employee_department, _empty_tier_counts())[tier] += 1
            entries.append(
                CalibrationEvaluationEntry(
                    evaluation_id=str(evaluation.id),
                    employee_id=str(evaluation.employee_id),
                    employee_name=employee.name if employee else UNKNOWN,
                    department=employee_department,
                    level=level,
                    manager_id=str(evaluation.manager_id),
                    manager_name=manager.name if manager else UNKNOWN,
                    scores=PillarScoresSchema.from_value(evaluation.scores),
                    weighted_score=weighted.value,
                    percentage_score=weighted.percentage,
                    bonus_tier=tier,
                    status=evaluation.status,
                    calibration_status="CALIBRATED" if evaluation.is_calibrated else "PENDING",
                )
            )

        logger.info(f"Calibration dashboard for cycle {cycle_id}: {len(entries)} evaluations")
        return CalibrationDashboardResponse(
            cycle_id=str(cycle_id),
            department=department,
            summary=CalibrationSummary(
                total_evaluations=len(entries),
                by_bonus_tier=by_bonus_tier,
                by_department=by_department,
            ),
            evaluations=entries,
        )

    async def _people_for(self, evaluation: ManagerEvaluation) -> Tuple[Optional[User], Optional[User]]:
        employee = await self.users.find_by_id(evaluation.employee_id)
        manager = await self.users.find_by_id(evaluation.manager_id)
        return employee, manager

    async def apply_calibration_adjustment(
        self,
        cycle_id: ReviewCycleId,
        evaluation_id: ManagerEvaluationId,
        request: CalibrationAdjustmentRequest,
    ) -> CalibrationAdjustmentResponse:
        cycle = await load_cycle(self.cycles, cycle_id)
        ensure_deadline_not_passed(cycle, ReviewPhase.CALIBRATION)

        evaluation = await self.evaluations.find_by_id(evaluation_id)
        if evaluation is None or evaluation.cycle_id != cycle_id:
            raise ReviewNotFoundError("Manager evaluation not found")

        justification = (request.justification or "").strip()
        min_length = settings.reviews.calibration_min_justification
        if len(justification) < min_length:
            raise InvalidJustificationError(f"Justification must be at least {min_length} characters")

        level = FinalScoreCalculationService.resolve_final_level(evaluation)
        adjusted_scores = request.adjusted_scores.to_value()
        old_weighted = self.score_calculation.calculate_weighted_score(evaluation.scores, level)
        new_weighted = self.score_calculation.calculate_weighted_score(adjusted_scores, level)

        evaluation.apply_calibration_adjustment(adjusted_scores, justification)
        evaluation = await self.evaluations.save(evaluation)
        logger.info(
            f"Calibrated evaluation {evaluation.id}: {old_weighted.value} -> {new_weighted.value}",
            extra={"cycle_id": str(cycle_id), "employee_id": str(evaluation.employee_id)},
        )

        final_score_updated = False
        final_score = await self.final_scores.find_by_user_and_cycle(evaluation.employee_id, cycle_id)
        if final_score is not None:
            if final_score.is_locked:
                logger.warning(f"Final score {final_score.id} is locked; calibration not propagated")
            else:
                final_score.update_scores(adjusted_scores, new_weighted)
                await self.final_scores.save(final_score)
                final_score_updated = True

        return CalibrationAdjustmentResponse(
            evaluation_id=str(evaluation.id),
            employee_id=str(evaluation.employee_id),
            status=evaluation.status,
            old_weighted_score=old_weighted.value,
            new_weighted_score=new_weighted.value,
            old_bonus_tier=old_weighted.bonus_tier.value,
            new_bonus_tier=new_weighted.bonus_tier.value,
            adjusted_scores=adjusted_scores.to_dict(),
            calibrated_at=evaluation.calibrated_at,
            final_score_updated=final_score_updated,
        )
