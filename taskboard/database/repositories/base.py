"""
Base repository shared by every table keyed by an integer ``id``.

Repositories only flush; committing or rolling back belongs to whoever
opened the session (``Database.session()`` / ``Database.graph_transaction()``).
"""

from typing import TypeVar, Generic, Optional, List, Type, Any
from datetime import datetime

from sqlalchemy import select, update, delete, func
from sqlalchemy.ext.asyncio import AsyncSession

from ..models import Base

ModelType = TypeVar("ModelType", bound=Base)


class BaseRepository(Generic[ModelType]):
    """Integer-keyed CRUD over one ORM model."""

    def __init__(self, session: AsyncSession, model: Type[ModelType]):
        self.session = session
        self.model = model

    async def create(self, **values: Any) -> ModelType:
        """Insert a row and return it with defaults populated."""
        row = self.model(**values)
        self.session.add(row)
        await self.session.flush()
        await self.session.refresh(row)
        return row

    async def get_by_id(self, id: int) -> Optional[ModelType]:
        return await self.session.scalar(select(self.model).where(self.model.id == id))

    async def get_many(self, ids: List[int]) -> List[ModelType]:
        """Rows whose id is in ``ids``, ascending by id. Unknown ids are skipped."""
        if not ids:
            return []
        result = await self.session.scalars(
            select(self.model)
            .where(self.model.id.in_(ids))
            .order_by(self.model.id.asc())
        )
        return list(result.all())

    async def update(self, id: int, **values: Any) -> Optional[ModelType]:
        """
        Write ``values`` to row ``id`` and return the fresh row.

        A key passed as None is written as NULL; leave a key out to keep it.
        """
        if hasattr(self.model, "updated_at"):
            values["updated_at"] = datetime.utcnow()

        await self.session.execute(
            update(self.model)
            .where(self.model.id == id)
            .values(**values)
            .execution_options(synchronize_session="fetch")
        )
        await self.session.flush()
        return await self.get_by_id(id)

    async def delete(self, id: int) -> bool:
        """Delete row ``id``. False if it did not exist."""
        result = await self.session.execute(delete(self.model).where(self.model.id == id))
        await self.session.flush()
        return result.rowcount > 0

    async def count(self) -> int:
        return await self.session.scalar(select(func.count()).select_from(self.model)) or 0

    async def exists(self, id: int) -> bool:
        found = await self.session.scalar(select(self.model.id).where(self.model.id == id))
        return found is not None
