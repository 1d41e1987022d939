# app/crud/budget.py
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.future import select
from sqlalchemy import func, update
from app.models.budget import Budget
from app.models.transaction import Transaction, TransactionStatus
from decimal import Decimal
from typing import List, Optional
import uuid

async def get_budgets_for_user(user_id: uuid.UUID, db: AsyncSession) -> List[Budget]:
    result = await db.execute(select(Budget).where(Budget.user_id == user_id))
    return result.scalars().all()

async def get_budget_by_id(budget_id: uuid.UUID, user_id: uuid.UUID, db: AsyncSession) -> Optional[Budget]:
    result = await db.execute(
        select(Budget).where(Budget.id == budget_id, Budget.user_id == user_id)
    )
    return result.scalar_one_or_none()

async def get_budget_for_update(budget_id: uuid.UUID, db: AsyncSession) -> Optional[Budget]:
    result = await db.execute(
        select(Budget)
        .where(Budget.id == budget_id)
        .with_for_update()
        .execution_options(populate_existing=True)
    )
    return result.scalar_one_or_none()

async def get_budget_for_category(user_id: uuid.UUID, category_id: uuid.UUID, db: AsyncSession, for_update: bool = False) -> Optional[Budget]:
    query = select(Budget).where(Budget.user_id == user_id, Budget.category_id == category_id)
    if for_update:
        query = query.with_for_update().execution_options(populate_existing=True)
    result = await db.execute(query)
    return result.scalar_one_or_none()

async def detach_budget_from_transactions(budget_id: uuid.UUID, db: AsyncSession) -> None:
    await db.execute(
        update(Transaction).where(Transaction.budget_id == budget_id).values(budget_id=None)
    )

async def get_budget_consumed(budget_id: uuid.UUID, db: AsyncSession) -> Decimal:
    """Sum of completed transactions currently charged against the budget."""
    result = await db.execute(
        select(func.coalesce(func.sum(Transaction.amount), 0)).where(
            Transaction.budget_id == budget_id,
            Transaction.status == TransactionStatus.completed,
        )
    )
    return Decimal(result.scalar_one()).quantize(Decimal("0.01"))
