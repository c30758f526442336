"""
Peer feedback aggregation.

Averages each pillar independently across all feedback for one reviewee and
rounds half-up to the nearest integer so the result stays a valid PillarScores.
"""
from dataclasses import dataclass, field
from decimal import Decimal, ROUND_HALF_UP
from typing import Dict, List, Sequence

from app.core.exceptions import NoPeerFeedbackError
from app.models.peer_feedback import PeerFeedback
from app.models.review_values import PILLARS, PillarScores


@dataclass
class AnonymizedPeerFeedback:
    average_scores: PillarScores
    feedback_count: int
    strengths: List[str] = field(default_factory=list)
    growth_areas: List[str] = field(default_factory=list)
    general: List[str] = field(default_factory=list)

    def comments(self) -> List[Dict[str, str]]:
        return (
            [{"pillar": "strengths", "comment": c} for c in self.strengths]
            + [{"pillar": "growthAreas", "comment": c} for c in self.growth_areas]
            + [{"pillar": "general", "comment": c} for c in self.general]
        )


def _round_half_up(total: int, count: int) -> int:
    return int((Decimal(total) / Decimal(count)).quantize(Decimal("1"), rounding=ROUND_HALF_UP))


class PeerFeedbackAggregationService:
    def aggregate_peer_scores(self, feedbacks: Sequence[PeerFeedback]) -> PillarScores:
        if not feedbacks:
            raise NoPeerFeedbackError()

        count = len(feedbacks)
        averages = {}
        for pillar in PILLARS:
            total = sum(getattr(feedback.scores, pillar) for feedback in feedbacks)
            averages[pillar] = _round_half_up(total, count)
        return PillarScores(**averages)

    def anonymize_feedback(self, feedbacks: Sequence[PeerFeedback]) -> AnonymizedPeerFeedback:
        """Average scores plus comment lists with every reviewer reference dropped."""
        average_scores = self.aggregate_peer_scores(feedbacks)
        return AnonymizedPeerFeedback(
            average_scores=average_scores,
            feedback_count=len(feedbacks),
            strengths=[f.strengths for f in feedbacks if f.strengths],
            growth_areas=[f.growth_areas for f in feedbacks if f.growth_areas],
            general=[f.general_comments for f in feedbacks if f.general_comments],
        )
