"""
Audit log repository.

Every committed change to a task row or to its outgoing dependency edges
leaves one row here, written in the same transaction as the change.
"""

from typing import Optional, List

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from .base import BaseRepository
from ..models import AuditLogModel

TASK_ENTITY = "task"
DEPENDENCIES_ENTITY = "task_dependencies"


class AuditRepository(BaseRepository[AuditLogModel]):
    """Append-only audit trail."""

    def __init__(self, session: AsyncSession):
        super().__init__(session, AuditLogModel)

    async def record(
        self,
        entity_type: str,
        entity_id: int,
        action: str,
        before: Optional[dict] = None,
        after: Optional[dict] = None,
        performed_by: Optional[str] = None,
    ) -> AuditLogModel:
        """Append one audit row."""
        return await self.create(
            entity_type=entity_type,
            entity_id=entity_id,
            action=action,
            old_value=before,
            new_value=after,
            performed_by=performed_by,
        )

    async def history(
        self,
        entity_type: str,
        entity_id: int,
        limit: int = 50,
    ) -> List[AuditLogModel]:
        """Audit rows of one entity, newest first."""
        result = await self.session.execute(
            select(AuditLogModel)
            .where(
                AuditLogModel.entity_type == entity_type,
                AuditLogModel.entity_id == entity_id,
            )
            .order_by(AuditLogModel.id.desc())
            .limit(limit)
        )
        return list(result.scalars().all())

    async def log_task_created(self, task_id: int, snapshot: dict, performed_by: Optional[str] = None):
        return await self.record(TASK_ENTITY, task_id, "created", after=snapshot, performed_by=performed_by)

    async def log_task_updated(
        self,
        task_id: int,
        before: dict,
        after: dict,
        performed_by: Optional[str] = None,
    ):
        return await self.record(TASK_ENTITY, task_id, "updated", before, after, performed_by)

    async def log_task_deleted(self, task_id: int, snapshot: dict, performed_by: Optional[str] = None):
        return await self.record(TASK_ENTITY, task_id, "deleted", before=snapshot, performed_by=performed_by)

    async def log_status_change(
        self,
        task_id: int,
        old_status: str,
        new_status: str,
        performed_by: Optional[str] = None,
    ):
        return await self.record(
            TASK_ENTITY,
            task_id,
            "status_changed",
            {"status": old_status},
            {"status": new_status},
            performed_by,
        )

    async def log_dependencies_changed(
        self,
        task_id: int,
        action: str,
        old_dependencies: List[int],
        new_dependencies: List[int],
        performed_by: Optional[str] = None,
    ):
        """``action`` is one of dependencies_added / _removed / _replaced."""
        return await self.record(
            DEPENDENCIES_ENTITY,
            task_id,
            action,
            {"dependencies": list(old_dependencies)},
            {"dependencies": list(new_dependencies)},
            performed_by,
        )
