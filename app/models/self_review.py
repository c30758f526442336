from datetime import datetime, timezone
from typing import Optional

from sqlalchemy import Column, DateTime, Enum, Integer, Text, UniqueConstraint
from sqlalchemy.orm import composite

from app.core.exceptions import SelfReviewAlreadySubmittedError
from app.database import Base
from app.models.identifiers import EntityIdType, ReviewCycleId, SelfReviewId, UserId
from app.models.review_values import Narrative, PillarScores, ReviewStatus


class SelfReview(Base):
    """
    An employee's own assessment for a cycle.
    Editable while DRAFT; submit() freezes it for good.
    """
    __tablename__ = "self_reviews"
    __table_args__ = (UniqueConstraint("cycle_id", "user_id", name="uq_self_review_user_cycle"),)

    id = Column(EntityIdType(SelfReviewId), primary_key=True)
    cycle_id = Column(EntityIdType(ReviewCycleId), index=True, nullable=False)
    user_id = Column(EntityIdType(UserId), index=True, nullable=False)

    project_impact_score = Column(Integer, nullable=False, default=0)
    direction_score = Column(Integer, nullable=False, default=0)
    engineering_excellence_score = Column(Integer, nullable=False, default=0)
    operational_ownership_score = Column(Integer, nullable=False, default=0)
    people_impact_score = Column(Integer, nullable=False, default=0)
    scores = composite(
        PillarScores,
        project_impact_score,
        direction_score,
        engineering_excellence_score,
        operational_ownership_score,
        people_impact_score,
    )

    narrative_text = Column(Text, nullable=False, default="")
    status = Column(Enum(ReviewStatus), nullable=False, default=ReviewStatus.DRAFT)
    submitted_at = Column(DateTime(timezone=True), nullable=True)
    created_at = Column(DateTime(timezone=True), nullable=False)
    updated_at = Column(DateTime(timezone=True), nullable=False)

    @classmethod
    def create(
        cls,
        cycle_id: ReviewCycleId,
        user_id: UserId,
        scores: PillarScores,
        narrative: Narrative,
        id: Optional[SelfReviewId] = None,
    ) -> "SelfReview":
        now = datetime.now(timezone.utc)
        return cls(
            id=id or SelfReviewId.generate(),
            cycle_id=cycle_id,
            user_id=user_id,
            scores=scores,
            narrative_text=narrative.text,
            status=ReviewStatus.DRAFT,
            submitted_at=None,
            created_at=now,
            updated_at=now,
        )

    @property
    def narrative(self) -> Narrative:
        return Narrative(self.narrative_text or "")

    @property
    def is_submitted(self) -> bool:
        return self.status == ReviewStatus.SUBMITTED

    def _ensure_editable(self):
        if self.is_submitted:
            raise SelfReviewAlreadySubmittedError()

    def update_scores(self, scores: PillarScores):
        self._ensure_editable()
        self.scores = scores
        self.updated_at = datetime.now(timezone.utc)

    def update_narrative(self, narrative: Narrative):
        self._ensure_editable()
        self.narrative_text = narrative.text
        self.updated_at = datetime.now(timezone.utc)

    def submit(self):
        self._ensure_editable()
        now = datetime.now(timezone.utc)
        self.status = ReviewStatus.SUBMITTED
        self.submitted_at = now
        self.updated_at = now
