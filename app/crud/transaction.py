# app/crud/transaction.py
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.future import select
from sqlalchemy import desc, delete, update
from app.models.transaction import Transaction, TransactionStatus, TransactionType
from typing import List, Optional
from datetime import datetime
import uuid

async def get_transactions_for_user(
    user_id: uuid.UUID,
    db: AsyncSession,
    account_id: Optional[uuid.UUID] = None,
    category_id: Optional[uuid.UUID] = None,
    status: Optional[TransactionStatus] = None,
    transaction_type: Optional[TransactionType] = None,
    start_date: Optional[datetime] = None,
    end_date: Optional[datetime] = None,
    offset: int = 0,
    limit: int = 50,
) -> List[Transaction]:
    query = select(Transaction).where(Transaction.user_id == user_id)
    if account_id is not None:
        query = query.where(Transaction.account_id == account_id)
    if category_id is not None:
        query = query.where(Transaction.category_id == category_id)
    if status is not None:
        query = query.where(Transaction.status == status)
    if transaction_type is not None:
        query = query.where(Transaction.transaction_type == transaction_type)
    if start_date is not None:
        query = query.where(Transaction.transaction_date >= start_date)
    if end_date is not None:
        query = query.where(Transaction.transaction_date <= end_date)
    result = await db.execute(
        query.order_by(desc(Transaction.transaction_date), desc(Transaction.created_at))
        .offset(offset)
        .limit(limit)
    )
    return result.scalars().all()

async def get_transaction_by_id(transaction_id: uuid.UUID, user_id: uuid.UUID, db: AsyncSession) -> Optional[Transaction]:
    result = await db.execute(
        select(Transaction).where(Transaction.id == transaction_id, Transaction.user_id == user_id)
    )
    return result.scalar_one_or_none()

async def get_transaction_for_update(
    transaction_id: uuid.UUID, db: AsyncSession, skip_locked: bool = False, lock: bool = True
) -> Optional[Transaction]:
    """Fresh read of a transaction; row-locked unless ``lock`` is False."""
    query = select(Transaction).where(Transaction.id == transaction_id)
    if lock:
        query = query.with_for_update(skip_locked=skip_locked)
    result = await db.execute(query.execution_options(populate_existing=True))
    return result.scalar_one_or_none()

async def get_due_pending_ids(now: datetime, db: AsyncSession) -> List[uuid.UUID]:
    result = await db.execute(
        select(Transaction.id)
        .where(
            Transaction.status == TransactionStatus.pending,
            Transaction.transaction_date <= now,
        )
        .order_by(Transaction.transaction_date)
    )
    return list(result.scalars().all())

async def get_due_recurring_ids(now: datetime, db: AsyncSession) -> List[uuid.UUID]:
    result = await db.execute(
        select(Transaction.id)
        .where(
            Transaction.is_recurring.is_(True),
            Transaction.next_recurring_date.is_not(None),
            Transaction.next_recurring_date <= now,
        )
        .order_by(Transaction.next_recurring_date)
    )
    return list(result.scalars().all())

async def get_goal_transactions(goal_id: uuid.UUID, db: AsyncSession) -> List[Transaction]:
    result = await db.execute(select(Transaction).where(Transaction.goal_id == goal_id))
    return result.scalars().all()

async def delete_goal_transactions(goal_id: uuid.UUID, db: AsyncSession) -> None:
    await db.execute(delete(Transaction).where(Transaction.goal_id == goal_id))

async def detach_goal_transactions(goal_id: uuid.UUID, db: AsyncSession) -> None:
    await db.execute(
        update(Transaction).where(Transaction.goal_id == goal_id).values(goal_id=None)
    )

async def get_completed_transactions_between(
    user_id: uuid.UUID, start: datetime, end: datetime, db: AsyncSession
) -> List[Transaction]:
    result = await db.execute(
        select(Transaction).where(
            Transaction.user_id == user_id,
            Transaction.status == TransactionStatus.completed,
            Transaction.transaction_date >= start,
            Transaction.transaction_date <= end,
        )
    )
    return result.scalars().all()

async def detach_recurring_children(parent_id: uuid.UUID, db: AsyncSession) -> None:
    await db.execute(
        update(Transaction)
        .where(Transaction.recurring_parent_id == parent_id)
        .values(recurring_parent_id=None)
    )
