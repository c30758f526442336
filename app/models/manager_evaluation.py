"""
Manager evaluation entity.

Lifecycle: DRAFT -> SUBMITTED -> CALIBRATED. Field mutators only work before
submission. Calibration adjustments are the one way to replace scores after
submission and always leave the evaluation CALIBRATED.
"""
from datetime import datetime, timezone
from typing import Optional

from sqlalchemy import Column, DateTime, Enum, Integer, Text, UniqueConstraint
from sqlalchemy.orm import composite

from app.core.exceptions import InvalidStateTransitionError, ManagerEvaluationAlreadySubmittedError
from app.database import Base
from app.models.identifiers import EntityIdType, ManagerEvaluationId, ReviewCycleId, UserId
from app.models.review_values import EngineerLevel, Narrative, PillarScores, ReviewStatus


class ManagerEvaluation(Base):
    __tablename__ = "manager_evaluations"
    __table_args__ = (UniqueConstraint("cycle_id", "employee_id", name="uq_manager_evaluation_employee_cycle"),)

    id = Column(EntityIdType(ManagerEvaluationId), primary_key=True)
    cycle_id = Column(EntityIdType(ReviewCycleId), index=True, nullable=False)
    employee_id = Column(EntityIdType(UserId), index=True, nullable=False)
    manager_id = Column(EntityIdType(UserId), index=True, nullable=False)

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

    # Overall manager comments
    narrative = Column(Text, nullable=False, default="")
    strengths = Column(Text, nullable=False, default="")
    growth_areas = Column(Text, nullable=False, default="")
    development_plan = Column(Text, nullable=False, default="")

    status = Column(Enum(ReviewStatus), nullable=False, default=ReviewStatus.DRAFT, index=True)
    employee_level = Column(Enum(EngineerLevel), nullable=True)
    proposed_level = Column(Enum(EngineerLevel), nullable=True)
    performance_narrative = Column(Text, nullable=True)
    calibration_justification = Column(Text, nullable=True)

    submitted_at = Column(DateTime(timezone=True), nullable=True)
    calibrated_at = Column(DateTime(timezone=True), nullable=True)
    created_at = Column(DateTime(timezone=True), nullable=False)
    updated_at = Column(DateTime(timezone=True), nullable=False)

    @classmethod
    def create(
        cls,
        cycle_id: ReviewCycleId,
        employee_id: UserId,
        manager_id: UserId,
        scores: PillarScores,
        narrative: str = "",
        strengths: str = "",
        growth_areas: str = "",
        development_plan: str = "",
        employee_level: Optional[EngineerLevel] = None,
        proposed_level: Optional[EngineerLevel] = None,
        performance_narrative: Optional[str] = None,
        id: Optional[ManagerEvaluationId] = None,
        created_at: Optional[datetime] = None,
    ) -> "ManagerEvaluation":
        now = created_at or datetime.now(timezone.utc)
        return cls(
            id=id or ManagerEvaluationId.generate(),
            cycle_id=cycle_id,
            employee_id=employee_id,
            manager_id=manager_id,
            scores=scores,
            narrative=narrative or "",
            strengths=strengths or "",
            growth_areas=growth_areas or "",
            development_plan=development_plan or "",
            status=ReviewStatus.DRAFT,
            employee_level=employee_level,
            proposed_level=proposed_level,
            performance_narrative=performance_narrative,
            submitted_at=None,
            calibrated_at=None,
            created_at=now,
            updated_at=now,
        )

    @property
    def is_submitted(self) -> bool:
        return self.status in (ReviewStatus.SUBMITTED, ReviewStatus.CALIBRATED)

    @property
    def is_calibrated(self) -> bool:
        return self.status == ReviewStatus.CALIBRATED

    def _touch(self):
        self.updated_at = datetime.now(timezone.utc)

    def _ensure_editable(self, what: str):
        if self.is_submitted:
            raise ManagerEvaluationAlreadySubmittedError(f"Cannot update {what} after submission")

    # --- Draft mutators ---

    def update_scores(self, scores: PillarScores):
        self._ensure_editable("scores")
        self.scores = scores
        self._touch()

    def update_narrative(self, narrative: Narrative):
        self._ensure_editable("narrative")
        self.narrative = narrative.text
        self._touch()

    def update_performance_narrative(self, narrative: Narrative):
        self._ensure_editable("performance narrative")
        self.performance_narrative = narrative.text
        self._touch()

    def update_growth_areas(self, growth_areas: Narrative):
        self._ensure_editable("growth areas")
        self.growth_areas = growth_areas.text
        self._touch()

    def update_strengths(self, strengths: str):
        self._ensure_editable("strengths")
        self.strengths = strengths
        self._touch()

    def update_development_plan(self, development_plan: str):
        self._ensure_editable("development plan")
        self.development_plan = development_plan
        self._touch()

    def update_proposed_level(self, level: EngineerLevel):
        self._ensure_editable("proposed level")
        self.proposed_level = level
        self._touch()

    # --- Transitions ---

    def submit(self):
        if self.is_submitted:
            raise ManagerEvaluationAlreadySubmittedError()
        now = datetime.now(timezone.utc)
        self.status = ReviewStatus.SUBMITTED
        self.submitted_at = now
        self.updated_at = now

    def calibrate(self):
        if not self.is_submitted:
            raise InvalidStateTransitionError("Cannot calibrate evaluation that has not been submitted")
        now = datetime.now(timezone.utc)
        self.status = ReviewStatus.CALIBRATED
        self.calibrated_at = now
        self.updated_at = now

    def apply_calibration_adjustment(self, new_scores: PillarScores, justification: str):
        if not self.is_submitted:
            raise InvalidStateTransitionError("Cannot apply calibration to unsubmitted evaluation")
        self.scores = new_scores
        self.calibration_justification = justification
        self.calibrate()
