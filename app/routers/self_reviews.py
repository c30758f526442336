from fastapi import APIRouter, Depends

from app.models.identifiers import ReviewCycleId
from app.models.user import User
from app.routers.auth_deps import get_current_user
from app.routers.deps import get_self_review_service
from app.schemas.reviews import SelfReviewResponse, SelfReviewUpdate
from app.services.self_review_service import SelfReviewService

router = APIRouter(prefix="/review-cycles/{cycle_id}/self-review", tags=["Self Reviews"])


@router.get("", response_model=SelfReviewResponse)
async def get_my_self_review(
    cycle_id: str,
    current_user: User = Depends(get_current_user),
    service: SelfReviewService = Depends(get_self_review_service),
):
    review = await service.get_my_self_review(ReviewCycleId.from_string(cycle_id), current_user.id)
    return SelfReviewResponse.from_entity(review)


@router.put("", response_model=SelfReviewResponse)
async def update_self_review(
    cycle_id: str,
    request: SelfReviewUpdate,
    current_user: User = Depends(get_current_user),
    service: SelfReviewService = Depends(get_self_review_service),
):
    review = await service.update_self_review(ReviewCycleId.from_string(cycle_id), current_user.id, request)
    return SelfReviewResponse.from_entity(review)


@router.post("/submit", response_model=SelfReviewResponse)
async def submit_self_review(
    cycle_id: str,
    current_user: User = Depends(get_current_user),
    service: SelfReviewService = Depends(get_self_review_service),
):
    review = await service.submit_self_review(ReviewCycleId.from_string(cycle_id), current_user.id)
    return SelfReviewResponse.from_entity(review)
