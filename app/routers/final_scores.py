from typing import List

from fastapi import APIRouter, Depends

from app.models.identifiers import ReviewCycleId, UserId
from app.models.user import User
from app.routers.auth_deps import get_current_user, require_hr_admin, require_manager
from app.routers.deps import get_final_score_service
from app.schemas.final_score import (
    CalculateFinalScoresResponse,
    FeedbackDeliveryRequest,
    FinalScoreResponse,
    LockFinalScoresResponse,
)
from app.services.final_score_service import FinalScoreService

router = APIRouter(prefix="/review-cycles/{cycle_id}/final-scores", tags=["Final Scores"])


@router.post("/calculate", response_model=CalculateFinalScoresResponse)
async def calculate_final_scores(
    cycle_id: str,
    current_user: User = Depends(require_hr_admin()),
    service: FinalScoreService = Depends(get_final_score_service),
):
    results = await service.calculate_final_scores(ReviewCycleId.from_string(cycle_id))
    return CalculateFinalScoresResponse(cycle_id=cycle_id, calculated_count=len(results))


@router.post("/lock", response_model=LockFinalScoresResponse)
async def lock_final_scores(
    cycle_id: str,
    current_user: User = Depends(require_hr_admin()),
    service: FinalScoreService = Depends(get_final_score_service),
):
    locked = await service.lock_final_scores(ReviewCycleId.from_string(cycle_id))
    return LockFinalScoresResponse(cycle_id=cycle_id, locked_count=len(locked))


@router.get("/me", response_model=FinalScoreResponse)
async def get_my_final_score(
    cycle_id: str,
    current_user: User = Depends(get_current_user),
    service: FinalScoreService = Depends(get_final_score_service),
):
    final_score = await service.get_my_final_score(ReviewCycleId.from_string(cycle_id), current_user.id)
    return FinalScoreResponse.from_entity(final_score)


@router.get("/team", response_model=List[FinalScoreResponse])
async def get_team_final_scores(
    cycle_id: str,
    current_user: User = Depends(require_manager()),
    service: FinalScoreService = Depends(get_final_score_service),
):
    scores = await service.get_team_final_scores(ReviewCycleId.from_string(cycle_id), current_user.id)
    return [FinalScoreResponse.from_entity(score) for score in scores]


@router.post("/employees/{employee_id}/deliver", response_model=FinalScoreResponse)
async def mark_feedback_delivered(
    cycle_id: str,
    employee_id: str,
    request: FeedbackDeliveryRequest,
    current_user: User = Depends(require_manager()),
    service: FinalScoreService = Depends(get_final_score_service),
):
    final_score = await service.mark_feedback_delivered(
        ReviewCycleId.from_string(cycle_id),
        UserId.from_string(employee_id),
        current_user.id,
        request.feedback_notes,
    )
    return FinalScoreResponse.from_entity(final_score)
