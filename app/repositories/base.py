"""
Base Repository

Generic data access shared by every repository. Each write commits
immediately and refreshes the instance so eager relationships
(authors, moderators, answers) are loaded for the response.
"""

from typing import Generic, TypeVar, Type, Optional, List, Any
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import select

from app.db.database import Base

ModelType = TypeVar("ModelType", bound=Base)

# Catalog lists are small; this only guards against runaway responses
DEFAULT_LIST_LIMIT = 1000


class BaseRepository(Generic[ModelType]):
    """
    CRUD operations over one model class.
    """
    def __init__(self, model: Type[ModelType], db: AsyncSession):
        self.model = model
        self.db = db

    # -----------------------------
    # Reads
    # -----------------------------
    async def get_by_id(self, id: Any) -> Optional[ModelType]:
        return await self.db.get(self.model, id)

    async def list_ordered(self, order_by, limit: int = DEFAULT_LIST_LIMIT) -> List[ModelType]:
        result = await self.db.execute(
            select(self.model).order_by(order_by).limit(limit)
        )
        return list(result.scalars().all())

    async def list_newest(self, limit: int = DEFAULT_LIST_LIMIT) -> List[ModelType]:
        return await self.list_ordered(self.model.created_at.desc(), limit)

    # -----------------------------
    # Writes
    # -----------------------------
    async def create(self, **fields) -> ModelType:
        return await self.save(self.model(**fields))

    async def save(self, instance: ModelType) -> ModelType:
        """Persist a new or modified instance."""
        self.db.add(instance)
        await self.db.commit()
        await self.db.refresh(instance)
        return instance

    async def update(self, id: Any, **changes) -> Optional[ModelType]:
        """Apply ``changes`` to the record with this id; None if it does not exist."""
        instance = await self.get_by_id(id)
        if instance is None:
            return None
        for key, value in changes.items():
            setattr(instance, key, value)
        return await self.save(instance)

    async def delete(self, id: Any) -> bool:
        """Delete by id. Returns False if there was nothing to delete."""
        instance = await self.get_by_id(id)
        if instance is None:
            return False
        await self.db.delete(instance)
        await self.db.commit()
        return True
