import uuid
from decimal import Decimal

import pytest

from app.crud.budget import get_budget_for_category
from app.core.errors import BudgetExceeded, BudgetNotApplicable, CategoryNotFound, DuplicateBudget
from app.models.category import CategoryType
from app.models.transaction import TransactionType
from app.schemas.budget import BudgetCreate, BudgetUpdate
from app.schemas.transaction import TransactionCreate
from app.services import budget_tracker
from app.services import transactions as tx_service
from tests.conftest import NOW


async def spend(db, user_id, category, amount):
    tx_in = TransactionCreate(
        category_id=category.id, amount=Decimal(amount), transaction_type=TransactionType.expense
    )
    return await tx_service.create_transaction(db, user_id, tx_in, now=NOW)


class TestBudgetManagement:
    async def test_create_marks_category_on_track(self, db, user, make_category, make_budget):
        groceries = await make_category()
        budget = await make_budget(groceries.id, "200.00")

        await db.refresh(groceries)
        assert groceries.on_track is True
        assert budget.limit_amount == Decimal("200.00")
        assert budget.remaining_limit == Decimal("200.00")

    async def test_income_category_cannot_carry_a_budget(self, db, user, make_category):
        salary = await make_category("Salary", CategoryType.income)
        with pytest.raises(BudgetNotApplicable):
            await budget_tracker.create_budget(
                db, user.id, BudgetCreate(category_id=salary.id, limit_amount=Decimal("10.00"))
            )

    async def test_one_budget_per_category(self, user, make_category, make_budget):
        groceries = await make_category()
        await make_budget(groceries.id)
        with pytest.raises(DuplicateBudget):
            await make_budget(groceries.id)

    async def test_limit_change_keeps_consumed_amount(self, db, user, make_account, make_category, make_budget):
        await make_account(balance="500.00")
        groceries = await make_category()
        budget = await make_budget(groceries.id, "100.00")
        await spend(db, user.id, groceries, "60.00")

        budget = await budget_tracker.update_budget(db, budget, BudgetUpdate(limit_amount=Decimal("150.00")))
        assert budget.remaining_limit == Decimal("90.00")

        budget = await budget_tracker.update_budget(db, budget, BudgetUpdate(limit_amount=Decimal("50.00")))
        assert budget.limit_amount == Decimal("50.00")
        assert budget.remaining_limit == Decimal("0.00")

    async def test_lowering_then_raising_limit_remembers_spending(
        self, db, user, make_account, make_category, make_budget
    ):
        await make_account(balance="500.00")
        groceries = await make_category()
        budget = await make_budget(groceries.id, "100.00")
        await spend(db, user.id, groceries, "80.00")

        budget = await budget_tracker.update_budget(db, budget, BudgetUpdate(limit_amount=Decimal("50.00")))
        assert budget.remaining_limit == Decimal("0.00")
        budget = await budget_tracker.update_budget(db, budget, BudgetUpdate(limit_amount=Decimal("100.00")))

        assert budget.remaining_limit == Decimal("20.00")
        with pytest.raises(BudgetExceeded):
            await spend(db, user.id, groceries, "20.01")

    async def test_delete_clears_on_track(self, db, user, make_category, make_budget):
        groceries = await make_category()
        budget = await make_budget(groceries.id)

        await budget_tracker.delete_budget(db, budget)

        await db.refresh(groceries)
        assert groceries.on_track is False
        assert await get_budget_for_category(user.id, groceries.id, db) is None


class TestCheckAndConsume:
    async def test_unbudgeted_category_is_a_no_op(self, db, user, make_category):
        groceries = await make_category()
        check = await budget_tracker.check_and_consume(db, user.id, groceries.id, Decimal("500.00"))
        assert check.unbudgeted
        assert check.warning is None

    async def test_consumes_and_warns_near_threshold(self, db, user, make_category, make_budget):
        groceries = await make_category()
        budget = await make_budget(groceries.id, "100.00")

        check = await budget_tracker.check_and_consume(db, user.id, groceries, Decimal("95.00"))

        assert check.budget.id == budget.id
        assert check.budget.remaining_limit == Decimal("5.00")
        assert check.warning is not None

    async def test_small_spend_does_not_warn(self, db, user, make_category, make_budget):
        groceries = await make_category()
        await make_budget(groceries.id, "100.00")
        check = await budget_tracker.check_and_consume(db, user.id, groceries, Decimal("50.00"))
        assert check.warning is None
        assert check.budget.remaining_limit == Decimal("50.00")

    async def test_exceeding_leaves_remaining_unchanged(self, db, user, make_category, make_budget):
        groceries = await make_category()
        budget = await make_budget(groceries.id, "100.00")
        with pytest.raises(BudgetExceeded):
            await budget_tracker.check_and_consume(db, user.id, groceries, Decimal("100.01"))
        assert budget.remaining_limit == Decimal("100.00")

    async def test_income_and_unknown_categories_are_rejected(self, db, user, make_category):
        salary = await make_category("Salary", CategoryType.income)
        with pytest.raises(BudgetNotApplicable):
            await budget_tracker.check_and_consume(db, user.id, salary, Decimal("1.00"))
        with pytest.raises(CategoryNotFound):
            await budget_tracker.check_and_consume(db, user.id, uuid.uuid4(), Decimal("1.00"))

    async def test_revert_is_clamped_to_limit(self, user, make_category, make_budget):
        groceries = await make_category()
        budget = await make_budget(groceries.id, "100.00")
        budget.remaining_limit = Decimal("80.00")

        assert budget_tracker.revert(budget, Decimal("15.00")) == Decimal("95.00")
        assert budget_tracker.revert(budget, Decimal("15.00")) == Decimal("100.00")
