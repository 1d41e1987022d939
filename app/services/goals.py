"""
Goal Contribution Engine.

A goal moves a fixed contribution out of its account every interval until the
target is saved. Contributions are recorded as completed expense transactions
in the user's reserved savings category and never touch budgets.
"""
import logging
import uuid
from datetime import datetime
from decimal import ROUND_CEILING, Decimal
from typing import Optional

from sqlalchemy.ext.asyncio import AsyncSession

from app.core.db_utils import unit_of_work
from app.core.errors import GoalCompleted, GoalNotFound, ImmutableField, InvalidAmount
from app.core.locks import account_key, ledger_locks
from app.crud.account import get_account_for_update
from app.crud.category import get_or_create_savings_category
from app.crud.goal import get_goal_for_update
from app.crud.transaction import delete_goal_transactions, detach_goal_transactions
from app.models.goal import Goal, GoalStatus
from app.models.transaction import Transaction, TransactionStatus, TransactionType
from app.schemas.goal import GoalCreate, GoalUpdate
from app.services import ledger
from app.services.transactions import load_account, resolve_account_id
from app.utils.intervals import add_interval, parse_interval, start_of_day, utcnow
from app.utils.notifications import notify_goal_completed

logger = logging.getLogger(__name__)


def installments_for(amount: Decimal, contribution: Decimal) -> int:
    return int((Decimal(amount) / Decimal(contribution)).to_integral_value(rounding=ROUND_CEILING))


def _is_complete(goal: Goal) -> bool:
    return goal.balance <= 0 or goal.current_installment >= goal.no_of_installments


async def _record_contribution(db: AsyncSession, goal: Goal, amount: Decimal, now: datetime) -> Transaction:
    savings = await get_or_create_savings_category(goal.user_id, db)
    tx = Transaction(
        id=uuid.uuid4(),
        user_id=goal.user_id,
        account_id=goal.account_id,
        category_id=savings.id,
        transaction_type=TransactionType.expense,
        amount=amount,
        description=f"Contribution {goal.current_installment}/{goal.no_of_installments} to {goal.name}",
        transaction_date=start_of_day(now),
        status=TransactionStatus.completed,
        goal_id=goal.id,
        last_processed=now,
        created_at=now,
        updated_at=now,
    )
    db.add(tx)
    return tx


async def _complete(db: AsyncSession, goal: Goal) -> None:
    goal.status = GoalStatus.completed
    goal.next_contribution_date = None
    await notify_goal_completed(db, goal.user_id, goal.id, goal.name, goal.total_amount)
    logger.info(f"Goal {goal.id} completed for user {goal.user_id}")


async def create_goal(
    db: AsyncSession, user_id: uuid.UUID, goal_in: GoalCreate, now: Optional[datetime] = None
) -> Goal:
    now = now or utcnow()
    interval = parse_interval(goal_in.contribution_interval)
    account_id = await resolve_account_id(db, user_id, goal_in.account_id)

    async with ledger_locks.hold(account_key(account_id)):
        async with unit_of_work(db):
            account = await load_account(db, account_id, user_id)
            first = min(goal_in.contribution_amount, goal_in.total_amount)
            ledger.debit(account, first)
            account.updated_at = now

            goal = Goal(
                id=uuid.uuid4(),
                user_id=user_id,
                account_id=account.id,
                name=goal_in.name,
                description=goal_in.description,
                total_amount=goal_in.total_amount,
                contribution_amount=goal_in.contribution_amount,
                contribution_interval=interval,
                no_of_installments=installments_for(goal_in.total_amount, goal_in.contribution_amount),
                current_installment=1,
                balance=goal_in.total_amount - first,
                next_contribution_date=add_interval(now, interval),
                status=GoalStatus.ongoing,
                created_at=now,
                updated_at=now,
            )
            db.add(goal)
            await db.flush()
            await _record_contribution(db, goal, first, now)
            if _is_complete(goal):
                await _complete(db, goal)

        logger.info(f"Goal {goal.id} created for user {user_id}: {goal.total_amount} in {goal.no_of_installments} installments")
        return goal


async def process_installment(db: AsyncSession, goal_id: uuid.UUID, now: datetime) -> Optional[Goal]:
    """
    Take one due contribution for the goal.

    Returns the goal when a contribution was made. A missing account or a
    short balance skips this cycle; the goal stays due and is tried again on
    the next tick.
    """
    peek = await get_goal_for_update(goal_id, db, lock=False)
    if peek is None or peek.status != GoalStatus.ongoing:
        return None

    async with ledger_locks.hold(account_key(peek.account_id)):
        async with unit_of_work(db):
            goal = await get_goal_for_update(goal_id, db, skip_locked=True)
            if (
                goal is None
                or goal.status != GoalStatus.ongoing
                or goal.next_contribution_date is None
                or goal.next_contribution_date > now
            ):
                return None

            account = await get_account_for_update(goal.account_id, db, user_id=goal.user_id)
            if account is None:
                logger.warning(f"Goal {goal.id} account {goal.account_id} is gone; skipping installment")
                return None
            amount = min(goal.contribution_amount, goal.balance)
            if account.balance < amount:
                logger.info(f"Goal {goal.id} skipped: account {account.id} balance {account.balance} below {amount}")
                return None

            ledger.debit(account, amount)
            account.updated_at = now
            goal.balance = goal.balance - amount
            goal.current_installment += 1
            goal.updated_at = now
            await _record_contribution(db, goal, amount, now)

            if _is_complete(goal):
                await _complete(db, goal)
            else:
                goal.next_contribution_date = add_interval(now, goal.contribution_interval)

        logger.info(f"Goal {goal.id} installment {goal.current_installment}/{goal.no_of_installments}: {amount}")
        return goal


async def update_goal(
    db: AsyncSession, user_id: uuid.UUID, goal: Goal, goal_in: GoalUpdate, now: Optional[datetime] = None
) -> Goal:
    now = now or utcnow()
    data = goal_in.model_dump(exclude_unset=True)
    goal_id = goal.id

    async with ledger_locks.hold(account_key(goal.account_id)):
        async with unit_of_work(db):
            goal = await get_goal_for_update(goal_id, db)
            if goal is None or goal.user_id != user_id:
                raise GoalNotFound(goal_id=goal_id)
            if goal.status == GoalStatus.completed:
                raise GoalCompleted(goal_id=goal.id)
            if data.get("account_id") is not None and data["account_id"] != goal.account_id:
                raise ImmutableField("Goal account cannot be changed", field="account_id")

            if data.get("name") is not None:
                goal.name = data["name"]
            if "description" in data:
                goal.description = data["description"]

            if data.get("contribution_interval") is not None:
                interval = parse_interval(data["contribution_interval"])
                if interval != goal.contribution_interval:
                    goal.contribution_interval = interval
                    goal.next_contribution_date = add_interval(now, interval)

            if data.get("total_amount") is not None or data.get("contribution_amount") is not None:
                contributed = goal.contributed
                total = data.get("total_amount") or goal.total_amount
                contribution = data.get("contribution_amount") or goal.contribution_amount
                if total < contributed:
                    raise InvalidAmount(
                        "Goal total cannot be lower than the amount already saved",
                        total_amount=total,
                        contributed=contributed,
                    )
                goal.total_amount = total
                goal.contribution_amount = contribution
                goal.balance = total - contributed
                if goal.balance <= 0:
                    goal.no_of_installments = goal.current_installment
                    await _complete(db, goal)
                else:
                    goal.no_of_installments = goal.current_installment + installments_for(goal.balance, contribution)

            goal.updated_at = now
        return goal


async def delete_goal(db: AsyncSession, user_id: uuid.UUID, goal: Goal) -> None:
    """Ongoing goals give their savings back; completed ones leave their contributions as history."""
    goal_id = goal.id
    async with ledger_locks.hold(account_key(goal.account_id)):
        async with unit_of_work(db):
            goal = await get_goal_for_update(goal_id, db)
            if goal is None or goal.user_id != user_id:
                raise GoalNotFound(goal_id=goal_id)

            if goal.status == GoalStatus.ongoing:
                refund = goal.contributed
                account = await get_account_for_update(goal.account_id, db)
                if account is None:
                    logger.warning(f"Goal {goal.id} account {goal.account_id} is gone; {refund} not refunded")
                else:
                    ledger.credit(account, refund)
                    account.updated_at = utcnow()
                await delete_goal_transactions(goal.id, db)
            else:
                await detach_goal_transactions(goal.id, db)
            await db.delete(goal)
    logger.info(f"Goal {goal_id} deleted for user {user_id}")
