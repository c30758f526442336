from datetime import datetime, timezone
from typing import Optional

from sqlalchemy import Column, DateTime, Integer, Text
from sqlalchemy.orm import composite

from app.database import Base
from app.models.identifiers import EntityIdType, PeerFeedbackId, ReviewCycleId, UserId
from app.models.review_values import PillarScores


class PeerFeedback(Base):
    """
    A colleague's assessment of a reviewee. Immutable once created.
    The reviewer is never exposed to the reviewee.
    """
    __tablename__ = "peer_feedback"

    id = Column(EntityIdType(PeerFeedbackId), primary_key=True)
    cycle_id = Column(EntityIdType(ReviewCycleId), index=True, nullable=False)
    reviewee_id = Column(EntityIdType(UserId), index=True, nullable=False)
    reviewer_id = Column(EntityIdType(UserId), index=True, nullable=False)

    project_impact_score = Column(Integer, nullable=False)
    direction_score = Column(Integer, nullable=False)
    engineering_excellence_score = Column(Integer, nullable=False)
    operational_ownership_score = Column(Integer, nullable=False)
    people_impact_score = Column(Integer, nullable=False)
    scores = composite(
        PillarScores,
        project_impact_score,
        direction_score,
        engineering_excellence_score,
        operational_ownership_score,
        people_impact_score,
    )

    strengths = Column(Text, nullable=True)
    growth_areas = Column(Text, nullable=True)
    general_comments = Column(Text, nullable=True)
    submitted_at = Column(DateTime(timezone=True), nullable=False)

    @classmethod
    def create(
        cls,
        cycle_id: ReviewCycleId,
        reviewee_id: UserId,
        reviewer_id: UserId,
        scores: PillarScores,
        strengths: Optional[str] = None,
        growth_areas: Optional[str] = None,
        general_comments: Optional[str] = None,
        id: Optional[PeerFeedbackId] = None,
    ) -> "PeerFeedback":
        return cls(
            id=id or PeerFeedbackId.generate(),
            cycle_id=cycle_id,
            reviewee_id=reviewee_id,
            reviewer_id=reviewer_id,
            scores=scores,
            strengths=strengths,
            growth_areas=growth_areas,
            general_comments=general_comments,
            submitted_at=datetime.now(timezone.utc),
        )
