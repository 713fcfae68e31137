"""
SQLAlchemy implementation of the CategoryStore.

Categories carry no balance, so the lookup takes no row lock.
"""

import uuid

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from app.models.category import Category


class SQLAlchemyCategoryRepository:

    async def find_by_id(
        self, session: AsyncSession, category_id: uuid.UUID, owner_id: uuid.UUID
    ) -> Category | None:
        result = await session.execute(
            select(Category)
            .where(Category.id == category_id)
            .where(Category.owner_id == owner_id)
        )
        return result.scalar_one_or_none()
