# app/crud/goal.py
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.future import select
from app.models.goal import Goal, GoalStatus
from typing import List, Optional
from datetime import datetime
import uuid

async def get_goals_for_user(user_id: uuid.UUID, db: AsyncSession, status: Optional[GoalStatus] = None) -> List[Goal]:
    query = select(Goal).where(Goal.user_id == user_id)
    if status is not None:
        query = query.where(Goal.status == status)
    result = await db.execute(query.order_by(Goal.created_at))
    return result.scalars().all()

async def get_goal_by_id(goal_id: uuid.UUID, user_id: uuid.UUID, db: AsyncSession) -> Optional[Goal]:
    result = await db.execute(
        select(Goal).where(Goal.id == goal_id, Goal.user_id == user_id)
    )
    return result.scalar_one_or_none()

async def get_goal_for_update(
    goal_id: uuid.UUID, db: AsyncSession, skip_locked: bool = False, lock: bool = True
) -> Optional[Goal]:
    query = select(Goal).where(Goal.id == goal_id)
    if lock:
        query = query.with_for_update(skip_locked=skip_locked)
    result = await db.execute(query.execution_options(populate_existing=True))
    return result.scalar_one_or_none()

async def get_due_goal_ids(now: datetime, db: AsyncSession) -> List[uuid.UUID]:
    result = await db.execute(
        select(Goal.id)
        .where(
            Goal.status == GoalStatus.ongoing,
            Goal.next_contribution_date.is_not(None),
            Goal.next_contribution_date <= now,
        )
        .order_by(Goal.next_contribution_date)
    )
    return list(result.scalars().all())
