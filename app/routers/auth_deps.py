"""
Identity and role dependencies.

Authentication is handled upstream; the gateway forwards the caller's id in
the X-User-Id header. These dependencies resolve it to a User and enforce
roles for HR-only endpoints.
"""
import logging
from typing import Callable, List, Optional

from fastapi import Depends, Header
from sqlalchemy.orm import Session

from app.core.config import settings
from app.core.exceptions import AuthenticationError, InvalidIdentifierError, UnauthorizedReviewAccessError
from app.database import get_db
from app.models.identifiers import UserId
from app.models.user import User, UserRole

logger = logging.getLogger(__name__)


def get_current_user(
    user_id: Optional[str] = Header(None, alias=settings.user_id_header),
    db: Session = Depends(get_db),
) -> User:
    if not user_id:
        logger.warning("Authentication failed: missing user id header")
        raise AuthenticationError(f"Missing {settings.user_id_header} header")

    try:
        parsed = UserId.from_string(user_id)
    except InvalidIdentifierError:
        logger.warning(f"Authentication failed: malformed user id {user_id!r}")
        raise AuthenticationError("Invalid user id")

    user = db.get(User, parsed)
    if user is None:
        logger.warning(f"Authentication failed: user {parsed} not found")
        raise AuthenticationError("User not found")
    if not user.is_active:
        raise UnauthorizedReviewAccessError("User is inactive")
    return user


def require_role(allowed_roles: List[UserRole]) -> Callable:
    """
    Dependency factory that checks if the user has one of the allowed roles.

    Usage:
        @router.post("/cycles")
        def create_cycle(user: User = Depends(require_role([UserRole.HR_ADMIN]))):
            ...
    """
    def role_checker(current_user: User = Depends(get_current_user)) -> User:
        if current_user.role not in allowed_roles:
            raise UnauthorizedReviewAccessError(
                f"Access denied. Required roles: {[r.value for r in allowed_roles]}"
            )
        return current_user
    return role_checker


def require_hr_admin():
    return require_role([UserRole.HR_ADMIN])


def require_manager():
    """Shorthand for any role that can evaluate direct reports."""
    return require_role([UserRole.HR_ADMIN, UserRole.MANAGER])
