"""
User Repository

Lookups by email and role, and user creation with a hashed password.
Emails are stored lower-cased.
"""

from typing import Optional, List, Iterable
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import select

from app.repositories.base import BaseRepository
from app.models import User


class UserRepository(BaseRepository[User]):
    """Repository for User model."""

    def __init__(self, db: AsyncSession):
        super().__init__(User, db)

    async def get_by_email(self, email: str) -> Optional[User]:
        result = await self.db.execute(
            select(User).where(User.email == (email or "").strip().lower())
        )
        return result.scalar_one_or_none()

    async def list_by_roles(self, roles: Iterable[str]) -> List[User]:
        """Users whose role is one of ``roles``, newest first."""
        result = await self.db.execute(
            select(User)
            .where(User.role.in_(list(roles)))
            .order_by(User.created_at.desc())
        )
        return list(result.scalars().all())

    async def create_user(self, password: str, **fields) -> User:
        """Create a user; ``password`` is hashed before anything is stored."""
        user = User(**fields)
        user.set_password(password)
        return await self.save(user)
