"""
Task repository for database operations.
"""

from datetime import date
from typing import Optional, List, Set

from sqlalchemy import select, or_
from sqlalchemy.ext.asyncio import AsyncSession

from .base import BaseRepository
from .dependency_repository import DependencyRepository
from ..models import TaskModel


class TaskRepository(BaseRepository[TaskModel]):
    """Repository for Task operations."""

    def __init__(self, session: AsyncSession):
        super().__init__(session, TaskModel)

    async def get_with_filters(
        self,
        status: Optional[str] = None,
        assigned_to: Optional[int] = None,
        due_date_from: Optional[date] = None,
        due_date_to: Optional[date] = None,
        search: Optional[str] = None,
        limit: int = 50,
        offset: int = 0,
        order_by: str = "created_at",
        descending: bool = True,
    ) -> List[TaskModel]:
        """Get tasks with multiple filters."""
        query = select(TaskModel)

        # Apply filters
        if status:
            query = query.where(TaskModel.status == status)
        if assigned_to is not None:
            query = query.where(TaskModel.assigned_to == assigned_to)
        if due_date_from is not None:
            query = query.where(TaskModel.due_date >= due_date_from)
        if due_date_to is not None:
            query = query.where(TaskModel.due_date <= due_date_to)
        if search:
            search_pattern = f"%{search}%"
            query = query.where(
                or_(
                    TaskModel.title.ilike(search_pattern),
                    TaskModel.description.ilike(search_pattern),
                )
            )

        # Apply ordering, newest first; id breaks created_at ties
        if hasattr(TaskModel, order_by):
            order_column = getattr(TaskModel, order_by)
            query = query.order_by(
                order_column.desc() if descending else order_column.asc(),
                TaskModel.id.desc() if descending else TaskModel.id.asc(),
            )

        query = query.limit(limit).offset(offset)
        result = await self.session.execute(query)
        return list(result.scalars().all())

    async def get_status(self, task_id: int) -> Optional[str]:
        """Get the status of a task, or None if it does not exist."""
        result = await self.session.execute(
            select(TaskModel.status).where(TaskModel.id == task_id)
        )
        return result.scalar_one_or_none()

    async def get_statuses(self, task_ids: List[int]) -> dict:
        """Map task id -> status for the given ids (missing ids are absent)."""
        if not task_ids:
            return {}
        result = await self.session.execute(
            select(TaskModel.id, TaskModel.status).where(TaskModel.id.in_(task_ids))
        )
        return dict(result.all())

    async def list_all_ids(self) -> List[int]:
        """All task ids in ascending order."""
        result = await self.session.execute(
            select(TaskModel.id).order_by(TaskModel.id.asc())
        )
        return list(result.scalars().all())

    async def find_missing(self, task_ids: List[int]) -> Set[int]:
        """Return the subset of ``task_ids`` that does not exist."""
        wanted = set(task_ids)
        if not wanted:
            return set()
        result = await self.session.execute(
            select(TaskModel.id).where(TaskModel.id.in_(wanted))
        )
        return wanted - set(result.scalars().all())

    async def set_status(self, task_id: int, status: str) -> Optional[TaskModel]:
        """Set the status of a task."""
        return await self.update(task_id, status=status)

    async def delete(self, id: int) -> bool:
        """Delete a task together with every dependency edge touching it."""
        await DependencyRepository(self.session).delete_incident_edges(id)
        return await super().delete(id)
