# app/crud/account.py
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.future import select
from sqlalchemy import func
from app.models.account import Account
from app.models.transaction import Transaction
from app.models.goal import Goal
from typing import List, Optional
import uuid

async def get_accounts_for_user(user_id: uuid.UUID, db: AsyncSession) -> List[Account]:
    result = await db.execute(
        select(Account).where(Account.user_id == user_id).order_by(Account.created_at)
    )
    return result.scalars().all()

async def get_account_by_id(account_id: uuid.UUID, user_id: uuid.UUID, db: AsyncSession) -> Optional[Account]:
    result = await db.execute(
        select(Account).where(Account.id == account_id, Account.user_id == user_id)
    )
    return result.scalar_one_or_none()

async def get_account_for_update(account_id: uuid.UUID, db: AsyncSession, user_id: Optional[uuid.UUID] = None) -> Optional[Account]:
    """Fresh, row-locked read of an account about to be mutated."""
    query = select(Account).where(Account.id == account_id)
    if user_id is not None:
        query = query.where(Account.user_id == user_id)
    result = await db.execute(
        query.with_for_update().execution_options(populate_existing=True)
    )
    return result.scalar_one_or_none()

async def get_default_account(user_id: uuid.UUID, db: AsyncSession) -> Optional[Account]:
    result = await db.execute(
        select(Account).where(Account.user_id == user_id, Account.is_default.is_(True))
    )
    return result.scalars().first()

async def get_account_by_slug(slug: str, user_id: uuid.UUID, db: AsyncSession) -> Optional[Account]:
    result = await db.execute(
        select(Account).where(Account.user_id == user_id, Account.slug == slug)
    )
    return result.scalar_one_or_none()

async def count_account_references(account_id: uuid.UUID, db: AsyncSession) -> int:
    """Transactions plus goals, ongoing or completed, still pointing at the account."""
    tx_count = await db.execute(
        select(func.count()).select_from(Transaction).where(Transaction.account_id == account_id)
    )
    goal_count = await db.execute(
        select(func.count()).select_from(Goal).where(Goal.account_id == account_id)
    )
    return (tx_count.scalar_one() or 0) + (goal_count.scalar_one() or 0)
