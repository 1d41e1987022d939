# app/utils/notifications.py
from decimal import Decimal
from typing import Optional
from sqlalchemy.ext.asyncio import AsyncSession
from app.schemas.notification import NotificationCreate
from app.crud.notification import create_notification
import uuid
import logging

logger = logging.getLogger(__name__)

# Every helper stages a row in the caller's unit of work, so the message is
# persisted only if the ledger change that triggered it is.

async def notify_budget_warning(
    db: AsyncSession,
    user_id: uuid.UUID,
    category_id: uuid.UUID,
    category_name: str,
    remaining: Decimal,
    transaction_id: Optional[uuid.UUID] = None,
) -> str:
    message = f"You are about to exceed your budget for {category_name}: {remaining} left."
    await create_notification(db, NotificationCreate(
        user_id=user_id,
        title="Budget Alert",
        message=message,
        type="budget_warning",
        status="alert",
        category_id=category_id,
        transaction_id=transaction_id,
    ))
    logger.info(f"Budget warning for user {user_id} category {category_id}: {remaining} left")
    return message

async def notify_goal_completed(db: AsyncSession, user_id: uuid.UUID, goal_id: uuid.UUID, goal_name: str, total: Decimal) -> None:
    await create_notification(db, NotificationCreate(
        user_id=user_id,
        title="Savings Goal Achieved!",
        message=f"Congratulations! You've saved {total} for {goal_name}.",
        type="goal_completed",
        status="completed",
        goal_id=goal_id,
    ))

async def notify_settlement_failed(
    db: AsyncSession,
    user_id: uuid.UUID,
    transaction_id: uuid.UUID,
    amount: Decimal,
    reason: str,
) -> None:
    await create_notification(db, NotificationCreate(
        user_id=user_id,
        title="Scheduled Transaction Failed",
        message=f"Your scheduled transaction of {amount} could not be settled: {reason}.",
        type="settlement_failed",
        status="alert",
        transaction_id=transaction_id,
    ))
