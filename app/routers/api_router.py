from fastapi import APIRouter
from app.routers import (
    review_cycles, self_reviews, peer_feedback,
    manager_evaluations, calibration, final_scores
)

# Centralized API router hub
# Routers are aggregated here and main.py only imports this single hub.
api_router = APIRouter()

api_router.include_router(review_cycles.router)
api_router.include_router(self_reviews.router)
api_router.include_router(peer_feedback.router)
api_router.include_router(manager_evaluations.router)
api_router.include_router(calibration.router)
api_router.include_router(final_scores.router)
