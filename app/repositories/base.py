import logging
import threading
from typing import Callable, Generic, List, Optional, Type, TypeVar

from sqlalchemy.orm import Session
from starlette.concurrency import run_in_threadpool

logger = logging.getLogger(__name__)

ModelT = TypeVar("ModelT")
ResultT = TypeVar("ResultT")

_SESSION_LOCK = "review_repository_lock"


class SqlAlchemyRepository(Generic[ModelT]):
    """
    Shared persistence plumbing for the review repositories.

    The session is synchronous, so every unit of work runs in the threadpool
    and never blocks the event loop. Repositories built on the same session
    share one lock because a Session must not be used from two threads at once.
    Each save/delete commits its own unit of work and rolls back on failure.
    """
    model: Type[ModelT]

    def __init__(self, db: Session):
        self.db = db
        self._lock = db.info.setdefault(_SESSION_LOCK, threading.Lock())

    async def _run(self, work: Callable[..., ResultT], *args, **kwargs) -> ResultT:
        return await run_in_threadpool(self._locked, work, *args, **kwargs)

    def _locked(self, work, *args, **kwargs):
        with self._lock:
            return work(*args, **kwargs)

    async def _get(self, entity_id) -> Optional[ModelT]:
        return await self._run(self.db.get, self.model, entity_id)

    async def _list(self, *criteria, order_by=None) -> List[ModelT]:
        def query():
            q = self.db.query(self.model).filter(*criteria)
            if order_by is not None:
                q = q.order_by(order_by)
            return q.all()
        return await self._run(query)

    async def _first(self, *criteria, order_by=None) -> Optional[ModelT]:
        def query():
            q = self.db.query(self.model).filter(*criteria)
            if order_by is not None:
                q = q.order_by(order_by)
            return q.first()
        return await self._run(query)

    async def _save(self, entity: ModelT) -> ModelT:
        return await self._run(self._save_sync, entity)

    async def _delete(self, entity_id) -> None:
        await self._run(self._delete_sync, entity_id)

    def _commit(self):
        try:
            self.db.commit()
        except Exception:
            self.db.rollback()
            raise

    def _save_sync(self, entity: ModelT) -> ModelT:
        # merge makes save an upsert keyed by primary key
        merged = self.db.merge(entity)
        self._commit()
        self.db.refresh(merged)
        return merged

    def _delete_sync(self, entity_id) -> None:
        entity = self.db.get(self.model, entity_id)
        if entity is None:
            return
        self.db.delete(entity)
        self._commit()
        logger.info(f"Deleted {self.model.__name__} {entity_id}")
