from datetime import datetime, timezone
from typing import Optional

from sqlalchemy import Boolean, Column, DateTime, Enum, Float, Integer, Text, UniqueConstraint
from sqlalchemy.orm import composite

from app.core.exceptions import FinalScoreLockedError
from app.database import Base
from app.models.identifiers import EntityIdType, FinalScoreId, ReviewCycleId, UserId
from app.models.review_values import BonusTier, EngineerLevel, PILLARS, PillarScores, WeightedScore


class FinalScore(Base):
    """
    Outcome of a cycle for one employee.
    At most one per (user, cycle); recalculation updates it in place.
    """
    __tablename__ = "final_scores"
    __table_args__ = (UniqueConstraint("cycle_id", "user_id", name="uq_final_score_user_cycle"),)

    id = Column(EntityIdType(FinalScoreId), primary_key=True)
    cycle_id = Column(EntityIdType(ReviewCycleId), index=True, nullable=False)
    user_id = Column(EntityIdType(UserId), index=True, nullable=False)

    project_impact_score = Column(Integer, nullable=False)
    direction_score = Column(Integer, nullable=False)
    engineering_excellence_score = Column(Integer, nullable=False)
    operational_ownership_score = Column(Integer, nullable=False)
    people_impact_score = Column(Integer, nullable=False)
    pillar_scores = composite(
        PillarScores,
        project_impact_score,
        direction_score,
        engineering_excellence_score,
        operational_ownership_score,
        people_impact_score,
    )

    weighted_score = Column(Float, nullable=False)
    final_level = Column(Enum(EngineerLevel), nullable=False)

    # Peer averages are optional; all five are set or none is
    peer_project_impact = Column(Integer, nullable=True)
    peer_direction = Column(Integer, nullable=True)
    peer_engineering_excellence = Column(Integer, nullable=True)
    peer_operational_ownership = Column(Integer, nullable=True)
    peer_people_impact = Column(Integer, nullable=True)
    peer_feedback_count = Column(Integer, nullable=False, default=0)

    locked = Column(Boolean, nullable=False, default=False)
    locked_at = Column(DateTime(timezone=True), nullable=True)
    feedback_delivered = Column(Boolean, nullable=False, default=False)
    feedback_delivered_at = Column(DateTime(timezone=True), nullable=True)
    delivered_by = Column(EntityIdType(UserId), nullable=True)
    feedback_notes = Column(Text, nullable=True)
    calculated_at = Column(DateTime(timezone=True), nullable=False)

    @classmethod
    def create(
        cls,
        cycle_id: ReviewCycleId,
        user_id: UserId,
        pillar_scores: PillarScores,
        weighted_score: WeightedScore,
        final_level: EngineerLevel,
        peer_average_scores: Optional[PillarScores] = None,
        peer_feedback_count: int = 0,
        id: Optional[FinalScoreId] = None,
    ) -> "FinalScore":
        final_score = cls(
            id=id or FinalScoreId.generate(),
            cycle_id=cycle_id,
            user_id=user_id,
            pillar_scores=pillar_scores,
            weighted_score=weighted_score.value,
            final_level=final_level,
            peer_feedback_count=peer_feedback_count,
            locked=False,
            feedback_delivered=False,
            calculated_at=datetime.now(timezone.utc),
        )
        final_score.peer_average_scores = peer_average_scores
        return final_score

    @property
    def peer_average_scores(self) -> Optional[PillarScores]:
        values = [getattr(self, f"peer_{pillar}") for pillar in PILLARS]
        if any(value is None for value in values):
            return None
        return PillarScores(*values)

    @peer_average_scores.setter
    def peer_average_scores(self, scores: Optional[PillarScores]):
        for pillar in PILLARS:
            setattr(self, f"peer_{pillar}", getattr(scores, pillar) if scores else None)

    @property
    def weighted(self) -> WeightedScore:
        return WeightedScore(self.weighted_score)

    @property
    def percentage_score(self) -> float:
        return self.weighted.percentage

    @property
    def bonus_tier(self) -> BonusTier:
        return self.weighted.bonus_tier

    @property
    def is_locked(self) -> bool:
        return bool(self.locked)

    def lock(self):
        if self.is_locked:
            return
        self.locked = True
        self.locked_at = datetime.now(timezone.utc)

    def unlock(self):
        if not self.is_locked:
            return
        self.locked = False
        self.locked_at = None

    def update_scores(self, pillar_scores: PillarScores, weighted_score: WeightedScore):
        if self.is_locked:
            raise FinalScoreLockedError("Cannot update scores when final score is locked")
        self.pillar_scores = pillar_scores
        self.weighted_score = weighted_score.value
        self.calculated_at = datetime.now(timezone.utc)

    def apply_recalculation(self, calculated: "FinalScore"):
        """
        Takes the calculated values of a freshly derived score.
        Identity, lock state and the feedback delivery record are kept.
        """
        self.update_scores(calculated.pillar_scores, calculated.weighted)
        self.final_level = calculated.final_level
        self.peer_average_scores = calculated.peer_average_scores
        self.peer_feedback_count = calculated.peer_feedback_count

    def mark_feedback_delivered(self, delivered_by: UserId, feedback_notes: Optional[str] = None):
        self.feedback_delivered = True
        self.feedback_delivered_at = datetime.now(timezone.utc)
        self.delivered_by = delivered_by
        if feedback_notes:
            self.feedback_notes = feedback_notes
