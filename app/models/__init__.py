# Models package
# Importing modules here ensures they are registered with SQLAlchemy Base
from . import (
    user, review_cycle, self_review, peer_feedback,
    manager_evaluation, final_score
)

# Explicit class exports for cleaner imports
from .user import User, UserRole
from .review_cycle import ReviewCycle, CycleStatus, CycleDeadlines
from .self_review import SelfReview
from .peer_feedback import PeerFeedback
from .manager_evaluation import ManagerEvaluation
from .final_score import FinalScore

__all__ = [
    "User",
    "UserRole",
    "ReviewCycle",
    "CycleStatus",
    "CycleDeadlines",
    "SelfReview",
    "PeerFeedback",
    "ManagerEvaluation",
    "FinalScore",
]
