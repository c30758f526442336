"""
Weighted scoring and final score derivation.

Weights depend on the level the employee is assessed at; every row sums to 1.0.
The raw weighted sum is rounded half-up to two decimals before tiering.
"""
from typing import Dict, Optional

from app.models.final_score import FinalScore
from app.models.manager_evaluation import ManagerEvaluation
from app.models.review_values import EngineerLevel, PILLARS, PillarScores, WeightedScore

WEIGHTS_BY_LEVEL: Dict[EngineerLevel, Dict[str, float]] = {
    EngineerLevel.JUNIOR: {
        "project_impact": 0.20,
        "direction": 0.10,
        "engineering_excellence": 0.25,
        "operational_ownership": 0.20,
        "people_impact": 0.25,
    },
    EngineerLevel.MID: {
        "project_impact": 0.25,
        "direction": 0.15,
        "engineering_excellence": 0.25,
        "operational_ownership": 0.20,
        "people_impact": 0.15,
    },
    EngineerLevel.SENIOR: {
        "project_impact": 0.30,
        "direction": 0.20,
        "engineering_excellence": 0.20,
        "operational_ownership": 0.15,
        "people_impact": 0.15,
    },
    EngineerLevel.LEAD: {
        "project_impact": 0.30,
        "direction": 0.25,
        "engineering_excellence": 0.20,
        "operational_ownership": 0.15,
        "people_impact": 0.10,
    },
    EngineerLevel.MANAGER: {
        "project_impact": 0.35,
        "direction": 0.25,
        "engineering_excellence": 0.15,
        "operational_ownership": 0.10,
        "people_impact": 0.15,
    },
}

DEFAULT_LEVEL = EngineerLevel.MID


class ScoreCalculationService:
    def calculate_weighted_score(self, scores: PillarScores, level: EngineerLevel) -> WeightedScore:
        weights = self.weights_for_level(level)
        raw = sum(getattr(scores, pillar) * weights[pillar] for pillar in PILLARS)
        return WeightedScore.from_raw(raw)

    def weights_for_level(self, level: EngineerLevel) -> Dict[str, float]:
        weights = WEIGHTS_BY_LEVEL.get(level)
        if weights is None:
            raise ValueError(f"No weights defined for level: {level}")
        return weights

    @staticmethod
    def all_weights() -> Dict[str, Dict[str, float]]:
        return {level.value: dict(weights) for level, weights in WEIGHTS_BY_LEVEL.items()}


class FinalScoreCalculationService:
    """Turns a manager evaluation into a FinalScore. Pure; does not persist."""

    def __init__(self, score_calculation: Optional[ScoreCalculationService] = None):
        self.score_calculation = score_calculation or ScoreCalculationService()

    @staticmethod
    def resolve_final_level(evaluation: ManagerEvaluation) -> EngineerLevel:
        return evaluation.proposed_level or evaluation.employee_level or DEFAULT_LEVEL

    def calculate_final_score(
        self,
        evaluation: ManagerEvaluation,
        peer_average_scores: Optional[PillarScores] = None,
        peer_feedback_count: int = 0,
    ) -> FinalScore:
        final_level = self.resolve_final_level(evaluation)
        weighted = self.score_calculation.calculate_weighted_score(evaluation.scores, final_level)
        return FinalScore.create(
            cycle_id=evaluation.cycle_id,
            user_id=evaluation.employee_id,
            pillar_scores=evaluation.scores,
            weighted_score=weighted,
            final_level=final_level,
            peer_average_scores=peer_average_scores,
            peer_feedback_count=peer_feedback_count,
        )
