"""
Catalog Repositories

Data access layer for classes, resources and books.
"""

from typing import Optional

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from app.repositories.base import BaseRepository
from app.models import SchoolClass, Resource, Book


class SchoolClassRepository(BaseRepository[SchoolClass]):
    """Repository for SchoolClass model."""

    def __init__(self, db: AsyncSession):
        super().__init__(SchoolClass, db)

    async def get_by_name(self, name: str) -> Optional[SchoolClass]:
        result = await self.db.execute(
            select(SchoolClass).where(SchoolClass.name == name)
        )
        return result.scalar_one_or_none()


class ResourceRepository(BaseRepository[Resource]):
    """Repository for Resource model."""

    def __init__(self, db: AsyncSession):
        super().__init__(Resource, db)


class BookRepository(BaseRepository[Book]):
    """Repository for Book model."""

    def __init__(self, db: AsyncSession):
        super().__init__(Book, db)
