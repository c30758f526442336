from typing import Optional

from fastapi import APIRouter, Depends, Query

from app.models.identifiers import ManagerEvaluationId, ReviewCycleId
from app.models.user import User
from app.routers.auth_deps import require_hr_admin
from app.routers.deps import get_calibration_service
from app.schemas.reviews import (
    CalibrationAdjustmentRequest,
    CalibrationAdjustmentResponse,
    CalibrationDashboardResponse,
)
from app.services.calibration_service import CalibrationService

router = APIRouter(prefix="/review-cycles/{cycle_id}/calibration", tags=["Calibration"])


@router.get("", response_model=CalibrationDashboardResponse)
async def get_calibration_dashboard(
    cycle_id: str,
    department: Optional[str] = Query(None),
    current_user: User = Depends(require_hr_admin()),
    service: CalibrationService = Depends(get_calibration_service),
):
    return await service.get_calibration_dashboard(ReviewCycleId.from_string(cycle_id), department)


@router.post("/evaluations/{evaluation_id}/adjust", response_model=CalibrationAdjustmentResponse)
async def apply_calibration_adjustment(
    cycle_id: str,
    evaluation_id: str,
    request: CalibrationAdjustmentRequest,
    current_user: User = Depends(require_hr_admin()),
    service: CalibrationService = Depends(get_calibration_service),
):
    return await service.apply_calibration_adjustment(
        ReviewCycleId.from_string(cycle_id), ManagerEvaluationId.from_string(evaluation_id), request
    )
