"""
Server-side task store

Every lookup is keyed on (owner, id). A record owned by someone else is
indistinguishable from one that does not exist: both are NotFoundError.
"""

from typing import Any, List, Mapping, Optional

from sqlalchemy import select, and_
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from farmlog.api.models.task import Task
from farmlog.errors import NotFoundError, StorageError
from farmlog.models.task_record import TaskRecordBase
from farmlog.models.validation import apply_patch, validate_task_record
from farmlog.utils.logger import get_logger

logger = get_logger(__name__)


class RemoteTaskStore:
    """Per-owner CRUD over the tasks table"""

    def __init__(self, db: AsyncSession):
        self.db = db

    async def _commit(self) -> None:
        try:
            await self.db.commit()
        except SQLAlchemyError as e:
            await self.db.rollback()
            logger.error(f"Task store commit failed: {e}")
            raise StorageError("Could not save task") from e

    async def _find(self, owner_id: str, task_id: str) -> Task:
        result = await self.db.execute(
            select(Task).where(
                and_(
                    Task.id == task_id,
                    Task.owner_id == owner_id
                )
            )
        )
        task = result.scalar_one_or_none()

        if not task:
            raise NotFoundError("Task not found")

        return task

    async def create(self, owner_id: str, payload: Mapping[str, Any]) -> TaskRecordBase:
        """
        Validate and store a new task

        type, date and field are required; id/owner in the payload are ignored.
        """
        record = validate_task_record(payload, require_date=True)

        task = Task(owner_id=owner_id)
        task.apply_record(record)

        self.db.add(task)
        await self._commit()
        await self.db.refresh(task)

        logger.info(f"Created task {task.id} ({task.type}) for owner {owner_id}")
        return task.to_record()

    async def list(
        self,
        owner_id: str,
        task_type: Optional[str] = None,
        day: Optional[str] = None
    ) -> List[TaskRecordBase]:
        """All tasks for the owner, newest date first"""
        query = select(Task).where(Task.owner_id == owner_id)

        # Apply filters
        filters = []
        if task_type:
            filters.append(Task.type == task_type)
        if day:
            filters.append(Task.date == day)

        if filters:
            query = query.where(and_(*filters))

        query = query.order_by(Task.date.desc(), Task.created_at.asc())

        result = await self.db.execute(query)
        return [task.to_record() for task in result.scalars().all()]

    async def get(self, owner_id: str, task_id: str) -> TaskRecordBase:
        task = await self._find(owner_id, task_id)
        return task.to_record()

    async def update(self, owner_id: str, task_id: str, patch: Mapping[str, Any]) -> TaskRecordBase:
        """Apply a partial update; the variant type cannot change"""
        task = await self._find(owner_id, task_id)

        record = apply_patch(task.to_record(), patch)
        task.apply_record(record)

        await self._commit()
        await self.db.refresh(task)

        return task.to_record()

    async def delete(self, owner_id: str, task_id: str) -> None:
        task = await self._find(owner_id, task_id)

        await self.db.delete(task)
        await self._commit()

        logger.info(f"Deleted task {task_id} for owner {owner_id}")
