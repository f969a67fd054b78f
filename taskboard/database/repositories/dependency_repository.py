"""
Dependency edge repository.

Raw edge storage for the dependency graph. Nothing here validates acyclicity;
callers go through ``taskboard.graph.DependencyGraphEngine``.
"""

from typing import List, Iterable

from sqlalchemy import select, delete, func, or_
from sqlalchemy.ext.asyncio import AsyncSession

from .base import BaseRepository
from ..models import TaskDependencyModel


class DependencyRepository(BaseRepository[TaskDependencyModel]):
    """Repository for TaskDependency operations."""

    def __init__(self, session: AsyncSession):
        super().__init__(session, TaskDependencyModel)

    async def list_dependencies(self, task_id: int) -> List[int]:
        """Ids ``task_id`` directly depends on, in edge insertion order."""
        result = await self.session.execute(
            select(TaskDependencyModel.depends_on_task_id)
            .where(TaskDependencyModel.task_id == task_id)
            .order_by(TaskDependencyModel.id.asc())
        )
        return list(result.scalars().all())

    async def list_dependents(self, task_id: int) -> List[int]:
        """Ids of tasks that directly depend on ``task_id``, in edge insertion order."""
        result = await self.session.execute(
            select(TaskDependencyModel.task_id)
            .where(TaskDependencyModel.depends_on_task_id == task_id)
            .order_by(TaskDependencyModel.id.asc())
        )
        return list(result.scalars().all())

    async def edge_exists(self, task_id: int, depends_on_task_id: int) -> bool:
        """Check if the edge ``task_id -> depends_on_task_id`` is stored."""
        result = await self.session.execute(
            select(func.count())
            .select_from(TaskDependencyModel)
            .where(TaskDependencyModel.task_id == task_id)
            .where(TaskDependencyModel.depends_on_task_id == depends_on_task_id)
        )
        return (result.scalar() or 0) > 0

    async def insert_edge(self, task_id: int, depends_on_task_id: int) -> TaskDependencyModel:
        """Store a new edge."""
        return await self.create(task_id=task_id, depends_on_task_id=depends_on_task_id)

    async def delete_edge(self, task_id: int, depends_on_task_id: int) -> int:
        """Delete one edge. Returns the number of rows removed (0 or 1)."""
        return await self.delete_edges(task_id, [depends_on_task_id])

    async def delete_edges(self, task_id: int, depends_on_task_ids: Iterable[int]) -> int:
        """Delete the given outgoing edges of ``task_id``."""
        ids = list(depends_on_task_ids)
        if not ids:
            return 0
        result = await self.session.execute(
            delete(TaskDependencyModel)
            .where(TaskDependencyModel.task_id == task_id)
            .where(TaskDependencyModel.depends_on_task_id.in_(ids))
        )
        await self.session.flush()
        return result.rowcount

    async def delete_all_edges(self, task_id: int) -> int:
        """Delete every outgoing edge of ``task_id``."""
        result = await self.session.execute(
            delete(TaskDependencyModel).where(TaskDependencyModel.task_id == task_id)
        )
        await self.session.flush()
        return result.rowcount

    async def delete_incident_edges(self, task_id: int) -> int:
        """Delete every edge touching ``task_id`` in either direction."""
        result = await self.session.execute(
            delete(TaskDependencyModel).where(
                or_(
                    TaskDependencyModel.task_id == task_id,
                    TaskDependencyModel.depends_on_task_id == task_id,
                )
            )
        )
        await self.session.flush()
        return result.rowcount
