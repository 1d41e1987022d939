# app/crud/category.py
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.future import select
from sqlalchemy import func
from app.models.category import Category, CategoryType
from app.models.transaction import Transaction
from app.core.config import settings
from app.core.errors import BudgetNotApplicable, DuplicateSlug, ImmutableField, ResourceInUse
from app.schemas.category import CategoryCreate, CategoryUpdate
from app.utils.intervals import utcnow
from app.utils.slugs import slugify
from typing import List, Optional
import uuid

async def get_categories_for_user(user_id: uuid.UUID, db: AsyncSession) -> List[Category]:
    result = await db.execute(select(Category).where(Category.user_id == user_id).order_by(Category.name))
    return result.scalars().all()

async def get_category_by_id(category_id: uuid.UUID, user_id: uuid.UUID, db: AsyncSession) -> Optional[Category]:
    result = await db.execute(
        select(Category).where(Category.id == category_id, Category.user_id == user_id)
    )
    return result.scalar_one_or_none()

async def get_category_for_update(category_id: uuid.UUID, user_id: uuid.UUID, db: AsyncSession) -> Optional[Category]:
    result = await db.execute(
        select(Category)
        .where(Category.id == category_id, Category.user_id == user_id)
        .execution_options(populate_existing=True)
    )
    return result.scalar_one_or_none()

async def get_category_by_slug(slug: str, user_id: uuid.UUID, db: AsyncSession) -> Optional[Category]:
    result = await db.execute(
        select(Category).where(Category.user_id == user_id, Category.slug == slug)
    )
    return result.scalar_one_or_none()

def _savings_slug() -> str:
    return slugify(settings.SAVINGS_CATEGORY_NAME)

async def _check_slug(slug: str, user_id: uuid.UUID, db: AsyncSession, category_id=None) -> None:
    # The savings name stays free for the reserved goal bucket
    if slug == _savings_slug():
        raise DuplicateSlug("Category name is reserved for savings goals", slug=slug)
    existing = await get_category_by_slug(slug, user_id, db)
    if existing is not None and existing.id != category_id:
        raise DuplicateSlug("Category name already exists", slug=slug)

async def create_category_for_user(user_id: uuid.UUID, cat_in: CategoryCreate, db: AsyncSession) -> Category:
    slug = slugify(cat_in.name)
    await _check_slug(slug, user_id, db)
    now = utcnow()
    new_cat = Category(
        user_id=user_id,
        name=cat_in.name,
        slug=slug,
        category_type=cat_in.category_type,
        created_at=now,
        updated_at=now,
    )
    db.add(new_cat)
    await db.commit()
    return new_cat

async def update_category(category: Category, cat_in: CategoryUpdate, db: AsyncSession) -> Category:
    if category.is_reserved:
        raise ImmutableField("The savings category cannot be changed", category_id=category.id)
    data = cat_in.model_dump(exclude_unset=True)
    name = data.get("name")
    if name and name != category.name:
        slug = slugify(name)
        await _check_slug(slug, category.user_id, db, category.id)
        category.name = name
        category.slug = slug
    new_type = data.get("category_type")
    if new_type is not None and new_type != category.category_type:
        if category.on_track and new_type == CategoryType.income:
            raise BudgetNotApplicable("Remove the budget before turning this into an income category", category_id=category.id)
        if await count_category_transactions(category.id, db):
            raise ResourceInUse("Category type cannot change while transactions use it", category_id=category.id)
        category.category_type = new_type
    category.updated_at = utcnow()
    db.add(category)
    await db.commit()
    return category

async def delete_category(category: Category, db: AsyncSession) -> None:
    if category.is_reserved:
        raise ResourceInUse("The savings category holds goal contributions", category_id=category.id)
    if category.on_track:
        raise ResourceInUse("Delete the category budget first", category_id=category.id)
    if await count_category_transactions(category.id, db):
        raise ResourceInUse("Category still has transactions", category_id=category.id)
    await db.delete(category)
    await db.commit()

async def count_category_transactions(category_id: uuid.UUID, db: AsyncSession) -> int:
    result = await db.execute(
        select(func.count()).select_from(Transaction).where(Transaction.category_id == category_id)
    )
    return result.scalar_one() or 0

async def get_or_create_savings_category(user_id: uuid.UUID, db: AsyncSession) -> Category:
    """Return the reserved bucket goal contributions are booked to, creating it on first use.

    Does not commit; the caller's unit of work persists it with the contribution.
    """
    result = await db.execute(
        select(Category).where(Category.user_id == user_id, Category.is_reserved.is_(True))
    )
    existing = result.scalars().first()
    if existing is not None:
        return existing
    slug = _savings_slug()
    if await get_category_by_slug(slug, user_id, db) is not None:
        # A user category took the name before it was reserved
        slug = f"{slug}-goals"
    now = utcnow()
    savings = Category(
        user_id=user_id,
        name=settings.SAVINGS_CATEGORY_NAME,
        slug=slug,
        category_type=CategoryType.expense,
        is_reserved=True,
        created_at=now,
        updated_at=now,
    )
    db.add(savings)
    await db.flush()
    return savings
