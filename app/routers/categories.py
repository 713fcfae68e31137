"""
Categories router.

  POST /categories              — Create a category
  GET  /categories?type=expense — List own categories, optionally by type
"""

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.ext.asyncio import AsyncSession

from app.database import get_db
from app.dependencies import get_current_user
from app.models.transaction import TransactionType
from app.models.user import User
from app.schemas.category import CategoryCreateRequest, CategoryResponse
from app.services import category_service

router = APIRouter()


@router.post(
    "",
    response_model=CategoryResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Create a category",
)
async def create_category(
    request: CategoryCreateRequest,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    return await category_service.create_category(
        db=db,
        owner_id=user.id,
        name=request.name,
        category_type=request.type,
    )


@router.get(
    "",
    response_model=list[CategoryResponse],
    summary="List your categories",
)
async def list_categories(
    type: TransactionType | None = Query(None, description="Only categories of this type"),
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    type_filter = type.value if type else None
    return await category_service.get_categories(db, user.id, type_filter)
