from typing import Optional

from app.models.identifiers import ReviewCycleId
from app.models.review_cycle import CycleStatus, ReviewCycle
from app.repositories.base import SqlAlchemyRepository
from app.repositories.ports import ReviewCycleRepository


class SqlAlchemyReviewCycleRepository(SqlAlchemyRepository[ReviewCycle], ReviewCycleRepository):
    model = ReviewCycle

    async def find_by_id(self, cycle_id: ReviewCycleId) -> Optional[ReviewCycle]:
        return await self._get(cycle_id)

    async def find_active(self) -> Optional[ReviewCycle]:
        return await self._first(ReviewCycle.status == CycleStatus.ACTIVE, order_by=ReviewCycle.start_date.desc())

    async def save(self, cycle: ReviewCycle) -> ReviewCycle:
        return await self._save(cycle)

    async def delete(self, cycle_id: ReviewCycleId) -> None:
        await self._delete(cycle_id)
