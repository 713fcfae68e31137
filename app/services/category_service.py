"""Category service — create and list the owner's categories."""

import uuid

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from app.models.category import Category


async def create_category(
    db: AsyncSession,
    owner_id: uuid.UUID,
    name: str,
    category_type: str,
) -> Category:
    category = Category(owner_id=owner_id, name=name, type=category_type)
    db.add(category)
    await db.flush()
    return category


async def get_categories(
    db: AsyncSession,
    owner_id: uuid.UUID,
    type_filter: str | None = None,
) -> list[Category]:
    query = (
        select(Category)
        .where(Category.owner_id == owner_id)
        .order_by(Category.name.asc())
    )
    if type_filter:
        query = query.where(Category.type == type_filter)

    result = await db.execute(query)
    return list(result.scalars().all())
