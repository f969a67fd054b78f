"""
Task lifecycle manager.

Owns task status transitions. Any status may move to any other except that
entering ``completed`` requires every direct dependency to be completed
already. The check is deliberately one hop: each task enforced the same rule
on its own dependencies when it was completed.

Create / full update / delete live here as well because they have to run edge
replacement and the completion gate in the caller's single transaction.
"""

import logging
from datetime import date
from typing import Any, Dict, Iterable, List, Optional, Union

from sqlalchemy.ext.asyncio import AsyncSession

from ..database.models import TaskModel
from ..errors import (
    BlockedByDependenciesError,
    NotFoundError,
    ValidationError,
    translate_store_errors,
)
from ..graph import DependencyGraphEngine
from ..models.task import TaskStatus

logger = logging.getLogger(__name__)

UPDATABLE_FIELDS = ("title", "description", "due_date", "assigned_to")


class TaskLifecycleManager:
    """
    Status transitions gated by the dependency graph.

    Example:
        async with db.graph_transaction() as session:
            lifecycle = TaskLifecycleManager(session, performed_by="user:1")
            await lifecycle.request_transition(task_id, TaskStatus.COMPLETED)
    """

    def __init__(
        self,
        session: AsyncSession,
        performed_by: Optional[str] = None,
        graph: Optional[DependencyGraphEngine] = None,
    ):
        self.session = session
        self.performed_by = performed_by
        self.graph = graph or DependencyGraphEngine(session, performed_by=performed_by)
        self.tasks = self.graph.tasks
        self.audit = self.graph.audit

    async def _require_task(self, task_id: int) -> TaskModel:
        task = await self.tasks.get_by_id(task_id)
        if task is None:
            raise NotFoundError(task_id)
        return task

    @translate_store_errors()
    async def pending_dependencies(
        self,
        task_id: int,
        dependency_ids: Optional[List[int]] = None,
    ) -> List[int]:
        """
        Direct dependencies of ``task_id`` that are not completed, in edge
        order. ``dependency_ids`` checks a planned edge set instead of the
        stored one.
        """
        if dependency_ids is None:
            dep_ids = await self.graph.dependencies.list_dependencies(task_id)
        else:
            dep_ids = list(dict.fromkeys(dependency_ids))
        statuses = await self.tasks.get_statuses(dep_ids)
        return [
            dep_id for dep_id in dep_ids
            if statuses.get(dep_id) != TaskStatus.COMPLETED.value
        ]

    @translate_store_errors()
    async def can_complete(self, task_id: int) -> bool:
        """True iff every direct dependency of ``task_id`` is completed."""
        await self._require_task(task_id)
        return not await self.pending_dependencies(task_id)

    @translate_store_errors()
    async def request_transition(
        self,
        task_id: int,
        new_status: Union[TaskStatus, str],
    ) -> TaskModel:
        """
        Move ``task_id`` to ``new_status``.

        Raises:
            NotFoundError: Task does not exist
            BlockedByDependenciesError: Completion requested with incomplete
                direct dependencies; nothing is changed
        """
        task = await self._require_task(task_id)
        status = TaskStatus(new_status)

        if status == TaskStatus.COMPLETED:
            pending = await self.pending_dependencies(task_id)
            if pending:
                logger.warning(f"Task {task_id}: completion blocked by dependencies {pending}")
                raise BlockedByDependenciesError(task_id, pending)

        old_status = task.status
        if old_status == status.value:
            return task

        task = await self.tasks.set_status(task_id, status.value)
        await self.audit.log_status_change(task_id, old_status, status.value, self.performed_by)
        logger.info(f"Task {task_id}: status {old_status} -> {status.value}")
        return task

    @translate_store_errors()
    async def create_task(
        self,
        title: str,
        created_by: Optional[int],
        description: Optional[str] = None,
        due_date: Optional[date] = None,
        assigned_to: Optional[int] = None,
        dependencies: Optional[Iterable[int]] = None,
    ) -> TaskModel:
        """Create a pending task together with its dependency edges."""
        planned = list(dependencies or [])
        await self.graph.require_dependencies_exist(planned)

        task = await self.tasks.create(
            title=title,
            description=description,
            due_date=due_date,
            assigned_to=assigned_to,
            created_by=created_by,
            status=TaskStatus.PENDING.value,
        )

        if planned:
            await self.graph.replace_edges(task.id, planned)

        await self.audit.log_task_created(task.id, task.to_dict(), self.performed_by)
        logger.info(f"Task {task.id} created: {title}")
        return task

    @translate_store_errors()
    async def update_task(
        self,
        task_id: int,
        changes: Dict[str, Any],
        dependencies: Optional[Iterable[int]] = None,
    ) -> TaskModel:
        """
        Full update: plain fields, an optional status change and, when
        ``dependencies`` is not None, a replacement of the edge set.

        The completion gate sees the edge set this update installs.
        """
        task = await self._require_task(task_id)
        before = task.to_dict()

        unknown = set(changes) - set(UPDATABLE_FIELDS) - {"status"}
        if unknown:
            raise ValidationError(
                f"Fields cannot be updated: {', '.join(sorted(unknown))}",
                field=sorted(unknown)[0],
            )

        planned = None
        status = changes.get("status")

        # Reject before writing anything; cycles are reported ahead of the gate
        if dependencies is not None:
            planned = await self.graph.check_replacement(task_id, dependencies)
        if status is not None and TaskStatus(status) == TaskStatus.COMPLETED:
            pending = await self.pending_dependencies(task_id, planned)
            if pending:
                logger.warning(f"Task {task_id}: completion blocked by dependencies {pending}")
                raise BlockedByDependenciesError(task_id, pending)

        if planned is not None:
            await self.graph.replace_edges(task_id, planned)

        fields = {key: value for key, value in changes.items() if key in UPDATABLE_FIELDS}
        if fields:
            task = await self.tasks.update(task_id, **fields)

        if status is not None:
            task = await self.request_transition(task_id, status)

        after = task.to_dict()
        if after != before:
            await self.audit.log_task_updated(task_id, before, after, self.performed_by)
        return task

    @translate_store_errors()
    async def delete_task(self, task_id: int) -> None:
        """Delete a task; the store drops every edge touching it."""
        task = await self._require_task(task_id)
        snapshot = task.to_dict()
        await self.tasks.delete(task_id)
        await self.audit.log_task_deleted(task_id, snapshot, self.performed_by)
        logger.info(f"Task {task_id} deleted")
