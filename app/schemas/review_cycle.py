from datetime import datetime
from typing import Optional

from pydantic import BaseModel, Field

from app.models.review_cycle import CycleDeadlines, CycleStatus, ReviewCycle


class CycleDeadlinesSchema(BaseModel):
    self_review: datetime
    peer_feedback: datetime
    manager_evaluation: datetime
    calibration: datetime
    feedback_delivery: datetime

    def to_value(self) -> CycleDeadlines:
        return CycleDeadlines(**self.model_dump())


class ReviewCycleCreate(BaseModel):
    name: str = Field(min_length=1)
    year: int = Field(ge=2000, le=2100)
    deadlines: CycleDeadlinesSchema
    start_date: Optional[datetime] = None


class ReviewCycleResponse(BaseModel):
    id: str
    name: str
    year: int
    status: CycleStatus
    deadlines: CycleDeadlinesSchema
    start_date: datetime
    end_date: Optional[datetime] = None

    @classmethod
    def from_entity(cls, cycle: ReviewCycle) -> "ReviewCycleResponse":
        return cls(
            id=str(cycle.id),
            name=cycle.name,
            year=cycle.year,
            status=cycle.status,
            deadlines=CycleDeadlinesSchema(
                self_review=cycle.self_review_deadline,
                peer_feedback=cycle.peer_feedback_deadline,
                manager_evaluation=cycle.manager_evaluation_deadline,
                calibration=cycle.calibration_deadline,
                feedback_delivery=cycle.feedback_delivery_deadline,
            ),
            start_date=cycle.start_date,
            end_date=cycle.end_date,
        )
