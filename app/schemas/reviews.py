from datetime import datetime
from typing import Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field

from app.models.manager_evaluation import ManagerEvaluation
from app.models.peer_feedback import PeerFeedback
from app.models.review_values import EngineerLevel, PillarScores, ReviewStatus
from app.models.self_review import SelfReview


class PillarScoresSchema(BaseModel):
    project_impact: int = Field(ge=0, le=4)
    direction: int = Field(ge=0, le=4)
    engineering_excellence: int = Field(ge=0, le=4)
    operational_ownership: int = Field(ge=0, le=4)
    people_impact: int = Field(ge=0, le=4)

    model_config = ConfigDict(strict=True)

    def to_value(self) -> PillarScores:
        return PillarScores.from_dict(self.model_dump())

    @classmethod
    def from_value(cls, scores: PillarScores) -> "PillarScoresSchema":
        return cls(**scores.to_dict())


# --- Self review ---

class SelfReviewUpdate(BaseModel):
    """Only the fields that are present are applied."""
    scores: Optional[PillarScoresSchema] = None
    narrative: Optional[str] = None


class SelfReviewResponse(BaseModel):
    id: str
    cycle_id: str
    user_id: str
    scores: PillarScoresSchema
    narrative: str
    word_count: int
    status: ReviewStatus
    submitted_at: Optional[datetime] = None
    created_at: datetime
    updated_at: datetime

    @classmethod
    def from_entity(cls, review: SelfReview) -> "SelfReviewResponse":
        narrative = review.narrative
        return cls(
            id=str(review.id),
            cycle_id=str(review.cycle_id),
            user_id=str(review.user_id),
            scores=PillarScoresSchema.from_value(review.scores),
            narrative=narrative.text,
            word_count=narrative.word_count,
            status=review.status,
            submitted_at=review.submitted_at,
            created_at=review.created_at,
            updated_at=review.updated_at,
        )


# --- Peer feedback ---

class PeerFeedbackCreate(BaseModel):
    reviewee_id: str
    scores: PillarScoresSchema
    strengths: Optional[str] = None
    growth_areas: Optional[str] = None
    general_comments: Optional[str] = None


class PeerFeedbackResponse(BaseModel):
    id: str
    cycle_id: str
    reviewee_id: str
    scores: PillarScoresSchema
    submitted_at: datetime

    @classmethod
    def from_entity(cls, feedback: PeerFeedback) -> "PeerFeedbackResponse":
        # reviewer_id is intentionally absent
        return cls(
            id=str(feedback.id),
            cycle_id=str(feedback.cycle_id),
            reviewee_id=str(feedback.reviewee_id),
            scores=PillarScoresSchema.from_value(feedback.scores),
            submitted_at=feedback.submitted_at,
        )


class AnonymizedCommentsSchema(BaseModel):
    strengths: List[str] = []
    growth_areas: List[str] = []
    general: List[str] = []


class AggregatedPeerFeedbackResponse(BaseModel):
    employee_id: str
    cycle_id: str
    feedback_count: int
    average_scores: PillarScoresSchema
    anonymized_comments: AnonymizedCommentsSchema


# --- Manager evaluation ---

class ManagerEvaluationUpdate(BaseModel):
    """
    Partial update. Each present field maps onto exactly one guarded mutator:
    scores -> update_scores, narrative -> update_narrative, and so on.
    """
    scores: Optional[PillarScoresSchema] = None
    narrative: Optional[str] = None
    performance_narrative: Optional[str] = None
    growth_areas: Optional[str] = None
    strengths: Optional[str] = None
    development_plan: Optional[str] = None
    proposed_level: Optional[EngineerLevel] = None


class ManagerEvaluationSubmit(BaseModel):
    scores: PillarScoresSchema
    narrative: str
    strengths: str = ""
    growth_areas: str = ""
    development_plan: str = ""
    proposed_level: Optional[EngineerLevel] = None
    performance_narrative: Optional[str] = None


class ManagerEvaluationResponse(BaseModel):
    id: str
    cycle_id: str
    employee_id: str
    manager_id: str
    scores: PillarScoresSchema
    narrative: str
    strengths: str
    growth_areas: str
    development_plan: str
    status: ReviewStatus
    employee_level: Optional[EngineerLevel] = None
    proposed_level: Optional[EngineerLevel] = None
    performance_narrative: Optional[str] = None
    calibration_justification: Optional[str] = None
    submitted_at: Optional[datetime] = None
    calibrated_at: Optional[datetime] = None
    created_at: datetime
    updated_at: datetime

    @classmethod
    def from_entity(cls, evaluation: ManagerEvaluation) -> "ManagerEvaluationResponse":
        return cls(
            id=str(evaluation.id),
            cycle_id=str(evaluation.cycle_id),
            employee_id=str(evaluation.employee_id),
            manager_id=str(evaluation.manager_id),
            scores=PillarScoresSchema.from_value(evaluation.scores),
            narrative=evaluation.narrative or "",
            strengths=evaluation.strengths or "",
            growth_areas=evaluation.growth_areas or "",
            development_plan=evaluation.development_plan or "",
            status=evaluation.status,
            employee_level=evaluation.employee_level,
            proposed_level=evaluation.proposed_level,
            performance_narrative=evaluation.performance_narrative,
            calibration_justification=evaluation.calibration_justification,
            submitted_at=evaluation.submitted_at,
            calibrated_at=evaluation.calibrated_at,
            created_at=evaluation.created_at,
            updated_at=evaluation.updated_at,
        )


class EmployeeSummary(BaseModel):
    id: str
    name: str
    email: str
    level: Optional[EngineerLevel] = None
    department: Optional[str] = None


class AttributedPeerFeedback(BaseModel):
    reviewer_id: str
    reviewer_name: str
    scores: PillarScoresSchema
    strengths: Optional[str] = None
    growth_areas: Optional[str] = None
    general_comments: Optional[str] = None


class EmployeeReviewResponse(BaseModel):
    employee: EmployeeSummary
    self_review: Optional[SelfReviewResponse] = None
    peer_feedback: AggregatedPeerFeedbackResponse
    attributed_peer_feedback: List[AttributedPeerFeedback] = []
    manager_evaluation: Optional[ManagerEvaluationResponse] = None


class TeamMemberReviewStatus(BaseModel):
    employee: EmployeeSummary
    self_review_status: str
    peer_feedback_count: int
    peer_feedback_status: str
    manager_evaluation_status: str
    has_submitted_evaluation: bool


# --- Calibration ---

class CalibrationAdjustmentRequest(BaseModel):
    adjusted_scores: PillarScoresSchema
    justification: str


class CalibrationAdjustmentResponse(BaseModel):
    evaluation_id: str
    employee_id: str
    status: ReviewStatus
    old_weighted_score: float
    new_weighted_score: float
    old_bonus_tier: str
    new_bonus_tier: str
    adjusted_scores: Dict[str, int]
    calibrated_at: Optional[datetime] = None
    final_score_updated: bool


class CalibrationEvaluationEntry(BaseModel):
    evaluation_id: str
    employee_id: str
    employee_name: str
    department: str
    level: EngineerLevel
    manager_id: str
    manager_name: str
    scores: PillarScoresSchema
    weighted_score: float
    percentage_score: float
    bonus_tier: str
    status: ReviewStatus
    # CALIBRATED or PENDING
    calibration_status: str


class CalibrationSummary(BaseModel):
    total_evaluations: int
    by_bonus_tier: Dict[str, int]
    by_department: Dict[str, Dict[str, int]]


class CalibrationDashboardResponse(BaseModel):
    cycle_id: str
    department: Optional[str] = None
    summary: CalibrationSummary
    evaluations: List[CalibrationEvaluationEntry]
