"""
Cross-entity guards shared by the review use cases.

The guards are plain functions over already-loaded records. The async loaders
raise NotFound and are called in a fixed order: cycle, deadline, employee,
manager, artifact.
"""
from datetime import datetime
from typing import Optional

from app.core.exceptions import DeadlinePassedError, ReviewNotFoundError, UnauthorizedReviewAccessError
from app.models.identifiers import ReviewCycleId, UserId
from app.models.review_cycle import ReviewCycle
from app.models.review_values import ReviewPhase
from app.models.user import User
from app.repositories.ports import ReviewCycleRepository, UserRepository


async def load_cycle(cycles: ReviewCycleRepository, cycle_id: ReviewCycleId) -> ReviewCycle:
    cycle = await cycles.find_by_id(cycle_id)
    if cycle is None:
        raise ReviewNotFoundError(f"Review cycle with ID {cycle_id} not found")
    return cycle


async def load_employee(users: UserRepository, employee_id: UserId) -> User:
    employee = await users.find_by_id(employee_id)
    if employee is None:
        raise ReviewNotFoundError("Employee not found")
    return employee


async def load_authorized_employee(users: UserRepository, employee_id: UserId, manager_id: UserId) -> User:
    """Loads the employee then the acting manager and checks the reporting line."""
    employee = await load_employee(users, employee_id)
    manager = await users.find_by_id(manager_id)
    authorize_manager(employee, manager, manager_id)
    return employee


def ensure_deadline_not_passed(cycle: ReviewCycle, phase: ReviewPhase, now: Optional[datetime] = None) -> None:
    if cycle.has_deadline_passed(phase, now):
        raise DeadlinePassedError(phase.value, f"{phase.label} deadline has passed")


def authorize_manager(employee: User, manager: Optional[User], manager_id: UserId) -> None:
    """
    The acting manager must exist and be the employee's direct manager.
    A missing manager is reported before the relationship mismatch.
    """
    if manager is None:
        raise UnauthorizedReviewAccessError("Manager not found")
    if not employee.reports_to(manager_id):
        raise UnauthorizedReviewAccessError()


def peer_feedback_refusal(reviewer_id: UserId, reviewee_id: UserId, reviewee_manager_id: Optional[UserId]) -> Optional[str]:
    """Why the reviewer may not give this reviewee peer feedback, or None when allowed."""
    if reviewee_id == reviewer_id:
        return "You cannot submit peer feedback for yourself"
    # Managers rate their direct reports through the manager evaluation
    if reviewee_manager_id is not None and reviewee_manager_id == reviewer_id:
        return "Managers submit a manager evaluation instead of peer feedback"
    return None


def can_submit_peer_feedback(reviewer_id: UserId, reviewee_id: UserId, reviewee_manager_id: Optional[UserId]) -> bool:
    return peer_feedback_refusal(reviewer_id, reviewee_id, reviewee_manager_id) is None


def ensure_can_submit_peer_feedback(reviewer_id: UserId, reviewee: User) -> None:
    refusal = peer_feedback_refusal(reviewer_id, reviewee.id, reviewee.manager_id)
    if refusal is not None:
        raise UnauthorizedReviewAccessError(refusal)
