"""
Service factories wired onto the request-scoped session.
"""
from fastapi import Depends
from sqlalchemy.orm import Session

from app.database import get_db
from app.repositories.cycles import SqlAlchemyReviewCycleRepository
from app.repositories.final_scores import SqlAlchemyFinalScoreRepository
from app.repositories.reviews import (
    SqlAlchemyManagerEvaluationRepository,
    SqlAlchemyPeerFeedbackRepository,
    SqlAlchemySelfReviewRepository,
)
from app.repositories.users import SqlAlchemyUserRepository
from app.services.calibration_service import CalibrationService
from app.services.final_score_service import FinalScoreService
from app.services.manager_evaluation_service import ManagerEvaluationService
from app.services.peer_feedback_service import PeerFeedbackService
from app.services.review_cycle_service import ReviewCycleService
from app.services.self_review_service import SelfReviewService


def get_review_cycle_service(db: Session = Depends(get_db)) -> ReviewCycleService:
    return ReviewCycleService(SqlAlchemyReviewCycleRepository(db))


def get_self_review_service(db: Session = Depends(get_db)) -> SelfReviewService:
    return SelfReviewService(SqlAlchemyReviewCycleRepository(db), SqlAlchemySelfReviewRepository(db))


def get_peer_feedback_service(db: Session = Depends(get_db)) -> PeerFeedbackService:
    return PeerFeedbackService(
        SqlAlchemyReviewCycleRepository(db),
        SqlAlchemyUserRepository(db),
        SqlAlchemyPeerFeedbackRepository(db),
    )


def get_manager_evaluation_service(db: Session = Depends(get_db)) -> ManagerEvaluationService:
    return ManagerEvaluationService(
        SqlAlchemyReviewCycleRepository(db),
        SqlAlchemyUserRepository(db),
        SqlAlchemySelfReviewRepository(db),
        SqlAlchemyPeerFeedbackRepository(db),
        SqlAlchemyManagerEvaluationRepository(db),
    )


def get_calibration_service(db: Session = Depends(get_db)) -> CalibrationService:
    return CalibrationService(
        SqlAlchemyReviewCycleRepository(db),
        SqlAlchemyManagerEvaluationRepository(db),
        SqlAlchemyFinalScoreRepository(db),
        SqlAlchemyUserRepository(db),
    )


def get_final_score_service(db: Session = Depends(get_db)) -> FinalScoreService:
    return FinalScoreService(
        SqlAlchemyReviewCycleRepository(db),
        SqlAlchemyUserRepository(db),
        SqlAlchemyManagerEvaluationRepository(db),
        SqlAlchemyPeerFeedbackRepository(db),
        SqlAlchemyFinalScoreRepository(db),
    )
