"""
Base repository.

Generic async data access shared by the ledger repositories.
"""

from typing import Any, Generic, TypeVar

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from app.models.base import Base

# Generic type for model
ModelType = TypeVar("ModelType", bound=Base)


class BaseRepository(Generic[ModelType]):
    """
    Base repository bound to one model and one session.

    Repositories never commit; the caller owns the transaction.

    Example:
        class RewardRepository(BaseRepository[RewardRecord]):
            def __init__(self, session: AsyncSession):
                super().__init__(RewardRecord, session)
    """

    def __init__(self, model: type[ModelType], session: AsyncSession) -> None:
        self.model = model
        self.session = session

    async def get_by(self, **filters: Any) -> ModelType | None:
        """
        Get single entity by column filters.

        Returns:
            Matching entity or None
        """
        stmt = select(self.model).filter_by(**filters)
        result = await self.session.execute(stmt)
        return result.scalar_one_or_none()

    async def get_for_update(self, **filters: Any) -> ModelType | None:
        """Get single entity by column filters with a row lock (SELECT FOR UPDATE)."""
        stmt = select(self.model).filter_by(**filters).with_for_update()
        result = await self.session.execute(stmt)
        return result.scalar_one_or_none()

    async def create(self, **data: Any) -> ModelType:
        """
        Create new entity.

        Returns:
            Created entity (flushed, with primary key)
        """
        entity = self.model(**data)
        self.session.add(entity)
        await self.session.flush()
        return entity

    async def update(self, id: int, **data: Any) -> ModelType | None:
        """
        Update entity by primary key.

        Args:
            id: Entity ID
            **data: Column values to set

        Returns:
            Updated entity or None if not found
        """
        entity = await self.session.get(self.model, id)
        if entity is None:
            return None

        for key, value in data.items():
            setattr(entity, key, value)

        await self.session.flush()
        return entity

