"""
Budget Tracker: owns ``Budget.remaining_limit`` for each (user, category).

``check_and_consume`` performs the limit check and the decrement as one step
while the caller holds the budget's lock, so two settlements can never both
pass the check against the same remaining amount.
"""
import logging
import uuid
from dataclasses import dataclass
from decimal import Decimal
from typing import Optional, Union

from sqlalchemy.ext.asyncio import AsyncSession

from app.core.config import settings
from app.core.db_utils import unit_of_work
from app.core.errors import (
    BudgetExceeded,
    BudgetNotApplicable,
    BudgetNotFound,
    CategoryNotFound,
    DuplicateBudget,
)
from app.core.locks import budget_key, ledger_locks
from app.crud.budget import (
    detach_budget_from_transactions,
    get_budget_consumed,
    get_budget_for_category,
    get_budget_for_update,
)
from app.crud.category import get_category_by_id, get_category_for_update
from app.models.budget import Budget
from app.models.category import Category, CategoryType
from app.schemas.budget import BudgetCreate, BudgetUpdate
from app.utils.intervals import utcnow

logger = logging.getLogger(__name__)

ZERO = Decimal("0.00")


@dataclass
class BudgetCheck:
    """Outcome of a consumption attempt that did not exceed the limit."""

    budget: Optional[Budget] = None
    consumed: Decimal = ZERO
    warning: Optional[str] = None

    @property
    def unbudgeted(self) -> bool:
        return self.budget is None


def _warning_ratio() -> Decimal:
    return Decimal(str(settings.BUDGET_WARNING_RATIO))


async def check_and_consume(
    db: AsyncSession,
    user_id: uuid.UUID,
    category: Union[Category, uuid.UUID],
    amount: Decimal,
) -> BudgetCheck:
    if not isinstance(category, Category):
        category = await get_category_by_id(category, user_id, db)
    if category is None or category.user_id != user_id:
        raise CategoryNotFound()
    if category.category_type == CategoryType.income:
        raise BudgetNotApplicable(category_id=category.id)

    budget = await get_budget_for_category(user_id, category.id, db, for_update=True)
    if budget is None:
        return BudgetCheck()

    amount = Decimal(amount)
    before = budget.remaining_limit
    if amount > before:
        raise BudgetExceeded(
            f"Your budget limit for {category.name} has been exceeded",
            category_id=category.id,
            remaining=before,
            amount=amount,
        )

    budget.remaining_limit = before - amount
    budget.updated_at = utcnow()

    warning = None
    if amount >= before * _warning_ratio():
        warning = f"You are about to exceed your budget for {category.name}"
        logger.info(f"Budget {budget.id} near threshold: {budget.remaining_limit} of {budget.limit_amount} left")
    return BudgetCheck(budget=budget, consumed=amount, warning=warning)


def revert(budget: Budget, amount: Decimal) -> Decimal:
    """Give back a previously consumed amount, never past the limit."""
    restored = budget.remaining_limit + Decimal(amount)
    if restored > budget.limit_amount:
        logger.warning(
            f"Budget {budget.id} revert of {amount} would exceed its limit "
            f"({restored} > {budget.limit_amount}); clamping"
        )
        restored = budget.limit_amount
    budget.remaining_limit = restored
    budget.updated_at = utcnow()
    return restored


async def create_budget(db: AsyncSession, user_id: uuid.UUID, budget_in: BudgetCreate) -> Budget:
    async with ledger_locks.hold(budget_key(user_id, budget_in.category_id)):
        async with unit_of_work(db):
            category = await get_category_for_update(budget_in.category_id, user_id, db)
            if category is None:
                raise CategoryNotFound()
            if category.category_type == CategoryType.income or category.is_reserved:
                raise BudgetNotApplicable(category_id=category.id)
            if await get_budget_for_category(user_id, category.id, db) is not None:
                raise DuplicateBudget(category_id=category.id)

            now = utcnow()
            budget = Budget(
                user_id=user_id,
                category_id=category.id,
                limit_amount=budget_in.limit_amount,
                remaining_limit=budget_in.limit_amount,
                created_at=now,
                updated_at=now,
            )
            db.add(budget)
            category.on_track = True
            category.updated_at = now
        logger.info(f"Budget {budget.id} created for category {category.id} with limit {budget.limit_amount}")
        return budget


async def update_budget(db: AsyncSession, budget: Budget, budget_in: BudgetUpdate) -> Budget:
    """Change the ceiling. Remaining is recomputed from the completed spending charged to the budget."""
    budget_id = budget.id
    async with ledger_locks.hold(budget_key(budget.user_id, budget.category_id)):
        async with unit_of_work(db):
            budget = await get_budget_for_update(budget_id, db)
            if budget is None:
                raise BudgetNotFound()
            new_limit = budget_in.limit_amount
            consumed = await get_budget_consumed(budget.id, db)
            budget.limit_amount = new_limit
            budget.remaining_limit = min(max(new_limit - consumed, ZERO), new_limit)
            logger.info(f"Budget {budget.id} limit set to {new_limit}; {consumed} already spent")
            budget.updated_at = utcnow()
        return budget


async def delete_budget(db: AsyncSession, budget: Budget) -> None:
    budget_id, user_id, category_id = budget.id, budget.user_id, budget.category_id
    async with ledger_locks.hold(budget_key(user_id, category_id)):
        async with unit_of_work(db):
            await detach_budget_from_transactions(budget_id, db)
            budget = await get_budget_for_update(budget_id, db)
            if budget is not None:
                await db.delete(budget)
            category = await get_category_for_update(category_id, user_id, db)
            if category is not None:
                category.on_track = False
                category.updated_at = utcnow()
    logger.info(f"Budget {budget_id} deleted; category {category_id} no longer on track")
