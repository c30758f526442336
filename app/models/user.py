"""
User model.
Only the attributes the review rules consume: identity, level and reporting line.
"""
from sqlalchemy import Column, String, Enum, DateTime, Boolean
from sqlalchemy.sql import func
import enum
from app.database import Base
from app.models.identifiers import EntityIdType, UserId
from app.models.review_values import EngineerLevel


class UserRole(str, enum.Enum):
    """
    Roles recognised by the review service.

    - HR_ADMIN: Runs review cycles, calibration and final score locking
    - MANAGER: Evaluates direct reports
    - EMPLOYEE: Self-review and peer feedback
    """
    HR_ADMIN = "HR_ADMIN"
    MANAGER = "MANAGER"
    EMPLOYEE = "EMPLOYEE"


class User(Base):
    __tablename__ = "users"

    id = Column(EntityIdType(UserId), primary_key=True, default=UserId.generate)
    email = Column(String, unique=True, index=True, nullable=False)
    full_name = Column(String, nullable=True)

    role = Column(Enum(UserRole), default=UserRole.EMPLOYEE, nullable=False)
    level = Column(Enum(EngineerLevel), nullable=True)
    department = Column(String, nullable=True)

    # Direct report: manager_id equals the manager's id
    manager_id = Column(EntityIdType(UserId), index=True, nullable=True)

    is_active = Column(Boolean, default=True, nullable=False)
    created_at = Column(DateTime(timezone=True), server_default=func.now())

    def __repr__(self):
        return f"<User {self.email} ({self.level.value if self.level else 'no level'})>"

    @property
    def name(self) -> str:
        return self.full_name or self.email

    @property
    def is_manager(self) -> bool:
        return self.role in [UserRole.HR_ADMIN, UserRole.MANAGER]

    def reports_to(self, manager_id: UserId) -> bool:
        return self.manager_id is not None and self.manager_id == manager_id
