from datetime import datetime
from typing import Optional

from pydantic import BaseModel

from app.models.final_score import FinalScore
from app.models.review_values import BonusTier, EngineerLevel
from app.schemas.reviews import PillarScoresSchema


class FinalScoreResponse(BaseModel):
    id: str
    cycle_id: str
    user_id: str
    pillar_scores: PillarScoresSchema
    weighted_score: float
    percentage_score: float
    bonus_tier: BonusTier
    final_level: EngineerLevel
    peer_average_scores: Optional[PillarScoresSchema] = None
    peer_feedback_count: int
    is_locked: bool
    locked_at: Optional[datetime] = None
    feedback_delivered: bool
    feedback_delivered_at: Optional[datetime] = None
    feedback_notes: Optional[str] = None
    calculated_at: datetime

    @classmethod
    def from_entity(cls, final_score: FinalScore) -> "FinalScoreResponse":
        peer_average = final_score.peer_average_scores
        return cls(
            id=str(final_score.id),
            cycle_id=str(final_score.cycle_id),
            user_id=str(final_score.user_id),
            pillar_scores=PillarScoresSchema.from_value(final_score.pillar_scores),
            weighted_score=final_score.weighted_score,
            percentage_score=final_score.percentage_score,
            bonus_tier=final_score.bonus_tier,
            final_level=final_score.final_level,
            peer_average_scores=PillarScoresSchema.from_value(peer_average) if peer_average else None,
            peer_feedback_count=final_score.peer_feedback_count or 0,
            is_locked=final_score.is_locked,
            locked_at=final_score.locked_at,
            feedback_delivered=bool(final_score.feedback_delivered),
            feedback_delivered_at=final_score.feedback_delivered_at,
            feedback_notes=final_score.feedback_notes,
            calculated_at=final_score.calculated_at,
        )


class CalculateFinalScoresResponse(BaseModel):
    cycle_id: str
    calculated_count: int


class LockFinalScoresResponse(BaseModel):
    cycle_id: str
    locked_count: int


class FeedbackDeliveryRequest(BaseModel):
    feedback_notes: Optional[str] = None
