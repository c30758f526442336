from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Dict, Optional, Union

from sqlalchemy import Column, DateTime, Enum, Integer, String
import enum

from app.core.exceptions import InvalidCycleDeadlinesError, InvalidStateTransitionError
from app.database import Base
from app.models.identifiers import EntityIdType, ReviewCycleId
from app.models.review_values import ReviewPhase


def _as_utc(value: datetime) -> datetime:
    # SQLite hands back naive datetimes; they were written as UTC
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value


class CycleStatus(str, enum.Enum):
    DRAFT = "DRAFT"
    ACTIVE = "ACTIVE"
    CALIBRATION = "CALIBRATION"
    COMPLETED = "COMPLETED"


@dataclass(frozen=True)
class CycleDeadlines:
    """The five phase deadlines of a cycle, strictly chronological."""
    self_review: datetime
    peer_feedback: datetime
    manager_evaluation: datetime
    calibration: datetime
    feedback_delivery: datetime

    def __post_init__(self):
        ordered = [
            (ReviewPhase.SELF_REVIEW, self.self_review),
            (ReviewPhase.PEER_FEEDBACK, self.peer_feedback),
            (ReviewPhase.MANAGER_EVALUATION, self.manager_evaluation),
            (ReviewPhase.CALIBRATION, self.calibration),
            (ReviewPhase.FEEDBACK_DELIVERY, self.feedback_delivery),
        ]
        for (prev_phase, prev_date), (phase, date) in zip(ordered, ordered[1:]):
            if _as_utc(date) <= _as_utc(prev_date):
                raise InvalidCycleDeadlinesError(
                    f"{phase.label} deadline must be after {prev_phase.label} deadline"
                )

    def for_phase(self, phase: ReviewPhase) -> datetime:
        return {
            ReviewPhase.SELF_REVIEW: self.self_review,
            ReviewPhase.PEER_FEEDBACK: self.peer_feedback,
            ReviewPhase.MANAGER_EVALUATION: self.manager_evaluation,
            ReviewPhase.CALIBRATION: self.calibration,
            ReviewPhase.FEEDBACK_DELIVERY: self.feedback_delivery,
        }[phase]

    def has_passed(self, phase: ReviewPhase, now: Optional[datetime] = None) -> bool:
        now = now or datetime.now(timezone.utc)
        return _as_utc(now) > _as_utc(self.for_phase(phase))

    def to_dict(self) -> Dict[str, datetime]:
        return {phase.value: self.for_phase(phase) for phase in ReviewPhase}


class ReviewCycle(Base):
    """
    A bounded review period.
    Lifecycle: DRAFT -> ACTIVE -> CALIBRATION -> COMPLETED.
    """
    __tablename__ = "review_cycles"

    id = Column(EntityIdType(ReviewCycleId), primary_key=True)
    name = Column(String, nullable=False)
    year = Column(Integer, nullable=False)
    status = Column(Enum(CycleStatus), default=CycleStatus.DRAFT, nullable=False, index=True)

    self_review_deadline = Column(DateTime(timezone=True), nullable=False)
    peer_feedback_deadline = Column(DateTime(timezone=True), nullable=False)
    manager_evaluation_deadline = Column(DateTime(timezone=True), nullable=False)
    calibration_deadline = Column(DateTime(timezone=True), nullable=False)
    feedback_delivery_deadline = Column(DateTime(timezone=True), nullable=False)

    start_date = Column(DateTime(timezone=True), nullable=False)
    end_date = Column(DateTime(timezone=True), nullable=True)

    @classmethod
    def create(
        cls,
        name: str,
        year: int,
        deadlines: CycleDeadlines,
        start_date: Optional[datetime] = None,
        id: Optional[ReviewCycleId] = None,
    ) -> "ReviewCycle":
        return cls(
            id=id or ReviewCycleId.generate(),
            name=name,
            year=year,
            status=CycleStatus.DRAFT,
            self_review_deadline=deadlines.self_review,
            peer_feedback_deadline=deadlines.peer_feedback,
            manager_evaluation_deadline=deadlines.manager_evaluation,
            calibration_deadline=deadlines.calibration,
            feedback_delivery_deadline=deadlines.feedback_delivery,
            start_date=start_date or datetime.now(timezone.utc),
        )

    @property
    def deadlines(self) -> CycleDeadlines:
        return CycleDeadlines(
            self_review=self.self_review_deadline,
            peer_feedback=self.peer_feedback_deadline,
            manager_evaluation=self.manager_evaluation_deadline,
            calibration=self.calibration_deadline,
            feedback_delivery=self.feedback_delivery_deadline,
        )

    def has_deadline_passed(self, phase: Union[ReviewPhase, str], now: Optional[datetime] = None) -> bool:
        return self.deadlines.has_passed(ReviewPhase(phase), now)

    # --- Lifecycle ---

    def _transition(self, expected: CycleStatus, target: CycleStatus, verb: str):
        if self.status != expected:
            current = self.status.value if self.status else None
            raise InvalidStateTransitionError(
                f"Cannot {verb} cycle from {current} status. Must be {expected.value}"
            )
        self.status = target

    def start(self):
        self._transition(CycleStatus.DRAFT, CycleStatus.ACTIVE, "start")

    def enter_calibration(self):
        self._transition(CycleStatus.ACTIVE, CycleStatus.CALIBRATION, "enter calibration for")

    def complete(self):
        self._transition(CycleStatus.CALIBRATION, CycleStatus.COMPLETED, "complete")
        self.end_date = datetime.now(timezone.utc)

    @property
    def is_active(self) -> bool:
        return self.status == CycleStatus.ACTIVE

    @property
    def is_completed(self) -> bool:
        return self.status == CycleStatus.COMPLETED
