"""
User repository.

Data access layer for the User model.
"""

from sqlalchemy.ext.asyncio import AsyncSession

from routebase.shared.repository import BaseRepository
from .models import User


class UserRepository(BaseRepository[User]):
    """Repository for User operations."""

    def __init__(self, db: AsyncSession):
        super().__init__(db, User)

    async def get_active(self, user_id: str) -> User | None:
        """
        Get user by ID if the account is active.

        Args:
            user_id: User's UUID

        Returns:
            User if found and active, None otherwise
        """
        return await self.get_by(id=user_id, is_active=True)
