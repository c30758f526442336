from typing import List, Optional

from app.models.final_score import FinalScore
from app.models.identifiers import FinalScoreId, ReviewCycleId, UserId
from app.repositories.base import SqlAlchemyRepository
from app.repositories.ports import FinalScoreRepository


class SqlAlchemyFinalScoreRepository(SqlAlchemyRepository[FinalScore], FinalScoreRepository):
    model = FinalScore

    async def find_by_id(self, final_score_id: FinalScoreId) -> Optional[FinalScore]:
        return await self._get(final_score_id)

    async def find_by_user_and_cycle(self, user_id: UserId, cycle_id: ReviewCycleId) -> Optional[FinalScore]:
        return await self._first(FinalScore.user_id == user_id, FinalScore.cycle_id == cycle_id)

    async def find_by_cycle(self, cycle_id: ReviewCycleId) -> List[FinalScore]:
        return await self._list(FinalScore.cycle_id == cycle_id, order_by=FinalScore.calculated_at)

    async def save(self, final_score: FinalScore) -> FinalScore:
        return await self._run(self._replace_and_save, final_score)

    async def delete(self, final_score_id: FinalScoreId) -> None:
        await self._delete(final_score_id)

    def _replace_and_save(self, final_score: FinalScore) -> FinalScore:
        existing = (
            self.db.query(FinalScore)
            .filter(FinalScore.user_id == final_score.user_id, FinalScore.cycle_id == final_score.cycle_id)
            .first()
        )
        if existing is not None and existing.id != final_score.id:
            # One final score per user and cycle: a score under a new id replaces the old row
            self.db.delete(existing)
            try:
                self.db.flush()
            except Exception:
                self.db.rollback()
                raise
        return self._save_sync(final_score)
