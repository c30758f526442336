from typing import List, Optional

from app.models.identifiers import UserId
from app.models.user import User
from app.repositories.base import SqlAlchemyRepository
from app.repositories.ports import UserRepository


class SqlAlchemyUserRepository(SqlAlchemyRepository[User], UserRepository):
    model = User

    async def find_by_id(self, user_id: UserId) -> Optional[User]:
        return await self._get(user_id)

    async def find_by_manager_id(self, manager_id: UserId) -> List[User]:
        return await self._list(User.manager_id == manager_id, User.is_active.is_(True), order_by=User.email)

    async def save(self, user: User) -> User:
        return await self._save(user)
