from fastapi import APIRouter, Depends, status

from app.models.identifiers import ReviewCycleId
from app.models.user import User
from app.routers.auth_deps import get_current_user, require_hr_admin
from app.routers.deps import get_review_cycle_service
from app.schemas.review_cycle import ReviewCycleCreate, ReviewCycleResponse
from app.services.review_cycle_service import ReviewCycleService

router = APIRouter(prefix="/review-cycles", tags=["Review Cycles"])


@router.post("", response_model=ReviewCycleResponse, status_code=status.HTTP_201_CREATED)
async def create_cycle(
    request: ReviewCycleCreate,
    current_user: User = Depends(require_hr_admin()),
    service: ReviewCycleService = Depends(get_review_cycle_service),
):
    cycle = await service.create_cycle(request)
    return ReviewCycleResponse.from_entity(cycle)


@router.get("/active", response_model=ReviewCycleResponse)
async def get_active_cycle(
    current_user: User = Depends(get_current_user),
    service: ReviewCycleService = Depends(get_review_cycle_service),
):
    return ReviewCycleResponse.from_entity(await service.get_active_cycle())


@router.get("/{cycle_id}", response_model=ReviewCycleResponse)
async def get_cycle(
    cycle_id: str,
    current_user: User = Depends(get_current_user),
    service: ReviewCycleService = Depends(get_review_cycle_service),
):
    return ReviewCycleResponse.from_entity(await service.get_cycle(ReviewCycleId.from_string(cycle_id)))


@router.post("/{cycle_id}/start", response_model=ReviewCycleResponse)
async def start_cycle(
    cycle_id: str,
    current_user: User = Depends(require_hr_admin()),
    service: ReviewCycleService = Depends(get_review_cycle_service),
):
    return ReviewCycleResponse.from_entity(await service.start_cycle(ReviewCycleId.from_string(cycle_id)))


@router.post("/{cycle_id}/enter-calibration", response_model=ReviewCycleResponse)
async def enter_calibration(
    cycle_id: str,
    current_user: User = Depends(require_hr_admin()),
    service: ReviewCycleService = Depends(get_review_cycle_service),
):
    return ReviewCycleResponse.from_entity(await service.enter_calibration(ReviewCycleId.from_string(cycle_id)))


@router.post("/{cycle_id}/complete", response_model=ReviewCycleResponse)
async def complete_cycle(
    cycle_id: str,
    current_user: User = Depends(require_hr_admin()),
    service: ReviewCycleService = Depends(get_review_cycle_service),
):
    return ReviewCycleResponse.from_entity(await service.complete_cycle(ReviewCycleId.from_string(cycle_id)))


@router.delete("/{cycle_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_cycle(
    cycle_id: str,
    current_user: User = Depends(require_hr_admin()),
    service: ReviewCycleService = Depends(get_review_cycle_service),
):
    await service.delete_cycle(ReviewCycleId.from_string(cycle_id))
