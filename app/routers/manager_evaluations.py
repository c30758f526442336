from typing import List

from fastapi import APIRouter, Depends

from app.models.identifiers import ReviewCycleId, UserId
from app.models.user import User
from app.routers.auth_deps import require_manager
from app.routers.deps import get_manager_evaluation_service
from app.schemas.reviews import (
    EmployeeReviewResponse,
    ManagerEvaluationResponse,
    ManagerEvaluationSubmit,
    ManagerEvaluationUpdate,
    TeamMemberReviewStatus,
)
from app.services.manager_evaluation_service import ManagerEvaluationService

router = APIRouter(prefix="/review-cycles/{cycle_id}", tags=["Manager Evaluations"])


@router.get("/team", response_model=List[TeamMemberReviewStatus])
async def get_team_reviews(
    cycle_id: str,
    current_user: User = Depends(require_manager()),
    service: ManagerEvaluationService = Depends(get_manager_evaluation_service),
):
    return await service.get_team_reviews(ReviewCycleId.from_string(cycle_id), current_user.id)


@router.get("/employees/{employee_id}/review", response_model=EmployeeReviewResponse)
async def get_employee_review(
    cycle_id: str,
    employee_id: str,
    current_user: User = Depends(require_manager()),
    service: ManagerEvaluationService = Depends(get_manager_evaluation_service),
):
    return await service.get_employee_review(
        ReviewCycleId.from_string(cycle_id), UserId.from_string(employee_id), current_user.id
    )


@router.get("/employees/{employee_id}/evaluation", response_model=ManagerEvaluationResponse)
async def get_manager_evaluation(
    cycle_id: str,
    employee_id: str,
    current_user: User = Depends(require_manager()),
    service: ManagerEvaluationService = Depends(get_manager_evaluation_service),
):
    evaluation = await service.get_manager_evaluation(
        ReviewCycleId.from_string(cycle_id), UserId.from_string(employee_id), current_user.id
    )
    return ManagerEvaluationResponse.from_entity(evaluation)


@router.post("/employees/{employee_id}/evaluation", response_model=ManagerEvaluationResponse)
async def start_manager_evaluation(
    cycle_id: str,
    employee_id: str,
    current_user: User = Depends(require_manager()),
    service: ManagerEvaluationService = Depends(get_manager_evaluation_service),
):
    evaluation = await service.start_manager_evaluation(
        ReviewCycleId.from_string(cycle_id), UserId.from_string(employee_id), current_user.id
    )
    return ManagerEvaluationResponse.from_entity(evaluation)


@router.patch("/employees/{employee_id}/evaluation", response_model=ManagerEvaluationResponse)
async def update_manager_evaluation(
    cycle_id: str,
    employee_id: str,
    request: ManagerEvaluationUpdate,
    current_user: User = Depends(require_manager()),
    service: ManagerEvaluationService = Depends(get_manager_evaluation_service),
):
    evaluation = await service.update_manager_evaluation(
        ReviewCycleId.from_string(cycle_id), UserId.from_string(employee_id), current_user.id, request
    )
    return ManagerEvaluationResponse.from_entity(evaluation)


@router.post("/employees/{employee_id}/evaluation/submit", response_model=ManagerEvaluationResponse)
async def submit_manager_evaluation(
    cycle_id: str,
    employee_id: str,
    request: ManagerEvaluationSubmit,
    current_user: User = Depends(require_manager()),
    service: ManagerEvaluationService = Depends(get_manager_evaluation_service),
):
    evaluation = await service.submit_manager_evaluation(
        ReviewCycleId.from_string(cycle_id), UserId.from_string(employee_id), current_user.id, request
    )
    return ManagerEvaluationResponse.from_entity(evaluation)
