"""
Value objects shared by every review artifact.

All of them are immutable and compare by value. PillarScores is also mapped
as a SQLAlchemy composite by the review models.
"""
import enum
from dataclasses import dataclass, fields
from decimal import Decimal, ROUND_HALF_UP
from typing import Any, Dict, Mapping, Optional

from app.core.exceptions import (
    InvalidEngineerLevelError,
    InvalidPillarScoreError,
    InvalidWeightedScoreError,
    NarrativeExceedsWordLimitError,
)

MIN_PILLAR_SCORE = 0
MAX_PILLAR_SCORE = 4
MAX_NARRATIVE_WORDS = 1000


class ReviewStatus(str, enum.Enum):
    """
    Status shared by self-reviews and manager evaluations.
    Progression is strictly DRAFT -> SUBMITTED -> CALIBRATED.
    """
    DRAFT = "DRAFT"
    SUBMITTED = "SUBMITTED"
    CALIBRATED = "CALIBRATED"

    @classmethod
    def from_string(cls, status: str) -> "ReviewStatus":
        try:
            return cls(status.strip().upper())
        except (ValueError, AttributeError):
            raise ValueError(f"Invalid review status: {status}")

    @property
    def rank(self) -> int:
        return _STATUS_ORDER.index(self)

    @property
    def is_submitted(self) -> bool:
        return self in (ReviewStatus.SUBMITTED, ReviewStatus.CALIBRATED)

    def precedes(self, other: "ReviewStatus") -> bool:
        return self.rank < other.rank


_STATUS_ORDER = [ReviewStatus.DRAFT, ReviewStatus.SUBMITTED, ReviewStatus.CALIBRATED]


class EngineerLevel(str, enum.Enum):
    JUNIOR = "JUNIOR"
    MID = "MID"
    SENIOR = "SENIOR"
    LEAD = "LEAD"
    MANAGER = "MANAGER"

    @classmethod
    def from_string(cls, level: Optional[str]) -> "EngineerLevel":
        if isinstance(level, cls):
            return level
        if not level or not isinstance(level, str) or not level.strip():
            raise InvalidEngineerLevelError("Invalid engineer level: Level cannot be empty")
        try:
            return cls(level.strip().upper())
        except ValueError:
            valid = ", ".join(member.value for member in cls)
            raise InvalidEngineerLevelError(f"Invalid engineer level: {level}. Valid levels: {valid}")

    @property
    def rank(self) -> int:
        return list(EngineerLevel).index(self)


class BonusTier(str, enum.Enum):
    """Compensation band derived from the percentage of the weighted score."""
    EXCEEDS = "EXCEEDS"
    MEETS = "MEETS"
    BELOW = "BELOW"

    @classmethod
    def from_percentage(cls, percentage: float) -> "BonusTier":
        if percentage >= EXCEEDS_THRESHOLD:
            return cls.EXCEEDS
        if percentage >= MEETS_THRESHOLD:
            return cls.MEETS
        return cls.BELOW


EXCEEDS_THRESHOLD = 85
MEETS_THRESHOLD = 50


class ReviewPhase(str, enum.Enum):
    """Cycle phases that carry a deadline, in chronological order."""
    SELF_REVIEW = "selfReview"
    PEER_FEEDBACK = "peerFeedback"
    MANAGER_EVALUATION = "managerEvaluation"
    CALIBRATION = "calibration"
    FEEDBACK_DELIVERY = "feedbackDelivery"

    @property
    def label(self) -> str:
        return _PHASE_LABELS[self]


_PHASE_LABELS = {
    ReviewPhase.SELF_REVIEW: "Self-review",
    ReviewPhase.PEER_FEEDBACK: "Peer feedback",
    ReviewPhase.MANAGER_EVALUATION: "Manager evaluation",
    ReviewPhase.CALIBRATION: "Calibration",
    ReviewPhase.FEEDBACK_DELIVERY: "Feedback delivery",
}


@dataclass(frozen=True)
class PillarScores:
    project_impact: int
    direction: int
    engineering_excellence: int
    operational_ownership: int
    people_impact: int

    def __post_init__(self):
        for f in fields(self):
            value = getattr(self, f.name)
            if isinstance(value, bool) or not isinstance(value, int):
                raise InvalidPillarScoreError(f"Pillar score must be an integer, got {value!r} for {f.name}")
            if value < MIN_PILLAR_SCORE or value > MAX_PILLAR_SCORE:
                raise InvalidPillarScoreError(
                    f"Pillar score must be between {MIN_PILLAR_SCORE} and {MAX_PILLAR_SCORE}, got {value} for {f.name}"
                )

    @classmethod
    def zero(cls) -> "PillarScores":
        return cls(0, 0, 0, 0, 0)

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "PillarScores":
        return cls(**{f.name: data[f.name] for f in fields(cls)})

    def to_dict(self) -> Dict[str, int]:
        return {f.name: getattr(self, f.name) for f in fields(self)}

    # SQLAlchemy composite protocol
    def __composite_values__(self):
        return tuple(getattr(self, f.name) for f in fields(self))


PILLARS = tuple(f.name for f in fields(PillarScores))


@dataclass(frozen=True)
class Narrative:
    """Trimmed free text with a derived word count."""
    text: str = ""

    def __post_init__(self):
        text = "" if self.text is None else str(self.text).strip()
        object.__setattr__(self, "text", text)
        if self.word_count > MAX_NARRATIVE_WORDS:
            raise NarrativeExceedsWordLimitError(self.word_count, MAX_NARRATIVE_WORDS)

    @classmethod
    def from_text(cls, text: Optional[str]) -> "Narrative":
        return cls(text or "")

    @property
    def word_count(self) -> int:
        return len(self.text.split())

    @property
    def is_blank(self) -> bool:
        return self.text == ""

    def __str__(self) -> str:
        return self.text


@dataclass(frozen=True)
class WeightedScore:
    value: float

    def __post_init__(self):
        if self.value is None or isinstance(self.value, bool) or not isinstance(self.value, (int, float)):
            raise InvalidWeightedScoreError(f"Weighted score must be a valid number, got {self.value!r}")
        if self.value != self.value:
            raise InvalidWeightedScoreError("Weighted score must be a valid number, got NaN")
        if self.value < 0 or self.value > MAX_PILLAR_SCORE:
            raise InvalidWeightedScoreError(f"Weighted score must be between 0 and 4, got {self.value}")
        object.__setattr__(self, "value", float(self.value))

    @classmethod
    def from_raw(cls, raw: float) -> "WeightedScore":
        """Round half-up to two decimals before wrapping."""
        rounded = Decimal(str(raw)).quantize(Decimal("0.01"), rounding=ROUND_HALF_UP)
        return cls(float(rounded))

    @property
    def percentage(self) -> float:
        # value / 4 * 100, computed in decimal so 3.4 lands exactly on 85
        return float(Decimal(str(self.value)) * 25)

    @property
    def bonus_tier(self) -> BonusTier:
        return BonusTier.from_percentage(self.percentage)
