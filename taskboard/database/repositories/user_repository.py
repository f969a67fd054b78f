"""
User repository for database operations.
"""

from typing import Optional, List

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from .base import BaseRepository
from ..models import UserModel


class UserRepository(BaseRepository[UserModel]):
    """Repository for User operations."""

    def __init__(self, session: AsyncSession):
        super().__init__(session, UserModel)

    async def get_by_email(self, email: str) -> Optional[UserModel]:
        """Get a user by email address."""
        result = await self.session.execute(
            select(UserModel).where(UserModel.email == email)
        )
        return result.scalar_one_or_none()

    async def get_by_role(self, role: str) -> List[UserModel]:
        """Get all users with a role, oldest first."""
        result = await self.session.execute(
            select(UserModel)
            .where(UserModel.role == role)
            .order_by(UserModel.id.asc())
        )
        return list(result.scalars().all())
