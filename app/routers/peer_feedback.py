from fastapi import APIRouter, Depends, status

from app.models.identifiers import ReviewCycleId
from app.models.user import User
from app.routers.auth_deps import get_current_user
from app.routers.deps import get_peer_feedback_service
from app.schemas.reviews import AggregatedPeerFeedbackResponse, PeerFeedbackCreate, PeerFeedbackResponse
from app.services.peer_feedback_service import PeerFeedbackService

router = APIRouter(prefix="/review-cycles/{cycle_id}/peer-feedback", tags=["Peer Feedback"])


@router.post("", response_model=PeerFeedbackResponse, status_code=status.HTTP_201_CREATED)
async def submit_peer_feedback(
    cycle_id: str,
    request: PeerFeedbackCreate,
    current_user: User = Depends(get_current_user),
    service: PeerFeedbackService = Depends(get_peer_feedback_service),
):
    feedback = await service.submit_peer_feedback(ReviewCycleId.from_string(cycle_id), current_user.id, request)
    return PeerFeedbackResponse.from_entity(feedback)


@router.get("/me", response_model=AggregatedPeerFeedbackResponse)
async def get_my_peer_feedback(
    cycle_id: str,
    current_user: User = Depends(get_current_user),
    service: PeerFeedbackService = Depends(get_peer_feedback_service),
):
    """Anonymised feedback received by the caller."""
    return await service.get_aggregated_peer_feedback(ReviewCycleId.from_string(cycle_id), current_user.id)
