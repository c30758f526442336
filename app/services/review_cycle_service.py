import logging

from app.core.exceptions import InvalidStateTransitionError, ReviewNotFoundError
from app.models.identifiers import ReviewCycleId
from app.models.review_cycle import ReviewCycle
from app.repositories.ports import ReviewCycleRepository
from app.schemas.review_cycle import ReviewCycleCreate
from app.services.review_rules import load_cycle

logger = logging.getLogger(__name__)


class ReviewCycleService:
    """
    HR administration of review cycles.
    Only one cycle may be ACTIVE at a time.
    """

    def __init__(self, cycles: ReviewCycleRepository):
        self.cycles = cycles

    async def create_cycle(self, request: ReviewCycleCreate) -> ReviewCycle:
        cycle = ReviewCycle.create(
            name=request.name.strip(),
            year=request.year,
            deadlines=request.deadlines.to_value(),
            start_date=request.start_date,
        )
        cycle = await self.cycles.save(cycle)
        logger.info(f"Created review cycle {cycle.id} ({cycle.name})")
        return cycle

    async def start_cycle(self, cycle_id: ReviewCycleId) -> ReviewCycle:
        cycle = await load_cycle(self.cycles, cycle_id)

        active = await self.cycles.find_active()
        if active is not None and active.id != cycle.id:
            logger.warning(f"Cannot start cycle {cycle_id}: cycle {active.id} is already active")
            raise InvalidStateTransitionError(f"Review cycle {active.name} is already active")

        cycle.start()
        cycle = await self.cycles.save(cycle)
        logger.info(f"Review cycle {cycle.id} started")
        return cycle

    async def get_active_cycle(self) -> ReviewCycle:
        cycle = await self.cycles.find_active()
        if cycle is None:
            raise ReviewNotFoundError("No active review cycle")
        return cycle

    async def get_cycle(self, cycle_id: ReviewCycleId) -> ReviewCycle:
        return await load_cycle(self.cycles, cycle_id)

    async def enter_calibration(self, cycle_id: ReviewCycleId) -> ReviewCycle:
        cycle = await load_cycle(self.cycles, cycle_id)
        cycle.enter_calibration()
        cycle = await self.cycles.save(cycle)
        logger.info(f"Review cycle {cycle.id} entered calibration")
        return cycle

    async def complete_cycle(self, cycle_id: ReviewCycleId) -> ReviewCycle:
        cycle = await load_cycle(self.cycles, cycle_id)
        cycle.complete()
        cycle = await self.cycles.save(cycle)
        logger.info(f"Review cycle {cycle.id} completed")
        return cycle

    async def delete_cycle(self, cycle_id: ReviewCycleId) -> None:
        cycle = await load_cycle(self.cycles, cycle_id)
        if cycle.is_active:
            raise InvalidStateTransitionError("Cannot delete an active review cycle")
        await self.cycles.delete(cycle_id)
        logger.info(f"Review cycle {cycle_id} deleted")
