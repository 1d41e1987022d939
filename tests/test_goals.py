from datetime import timedelta
from decimal import Decimal

import pytest
from sqlalchemy import select

from app.core.errors import GoalCompleted, ImmutableField, InsufficientFunds, InvalidAmount
from app.crud.category import get_category_by_id
from app.crud.transaction import get_goal_transactions
from app.models.goal import GoalStatus
from app.models.notification import Notification
from app.models.transaction import Transaction, TransactionStatus, TransactionType
from app.schemas.goal import GoalCreate, GoalUpdate
from app.schemas.transaction import TransactionUpdate
from app.services import goals as goal_service
from app.services import transactions as tx_service
from app.services.scheduler import SettlementScheduler
from tests.conftest import NOW


def goal_in(total="500.00", contribution="100.00", interval="daily", **kwargs):
    return GoalCreate(
        name="New laptop",
        total_amount=Decimal(total),
        contribution_amount=Decimal(contribution),
        contribution_interval=interval,
        **kwargs,
    )


class TestCreateGoal:
    async def test_first_installment_is_taken_immediately(self, db, user, make_account):
        account = await make_account(balance="500.00")

        goal = await goal_service.create_goal(db, user.id, goal_in(), now=NOW)

        await db.refresh(account)
        assert account.balance == Decimal("400.00")
        assert goal.balance == Decimal("400.00")
        assert goal.no_of_installments == 5
        assert goal.current_installment == 1
        assert goal.status == GoalStatus.ongoing
        assert goal.next_contribution_date == NOW + timedelta(days=1)

    async def test_contribution_is_booked_to_reserved_savings_category(self, db, user, make_account):
        await make_account(balance="500.00")
        goal = await goal_service.create_goal(db, user.id, goal_in(), now=NOW)

        contributions = await get_goal_transactions(goal.id, db)

        assert len(contributions) == 1
        tx = contributions[0]
        assert tx.transaction_type == TransactionType.expense
        assert tx.status == TransactionStatus.completed
        assert tx.amount == Decimal("100.00")
        assert tx.budget_id is None
        savings = await get_category_by_id(tx.category_id, user.id, db)
        assert savings.is_reserved is True

    async def test_uneven_total_rounds_installments_up(self, db, user, make_account):
        await make_account(balance="500.00")
        goal = await goal_service.create_goal(db, user.id, goal_in(total="250.00"), now=NOW)
        assert goal.no_of_installments == 3

    async def test_single_installment_goal_is_created_completed(self, db, user, make_account):
        account = await make_account(balance="500.00")
        goal = await goal_service.create_goal(db, user.id, goal_in(total="80.00"), now=NOW)

        await db.refresh(account)
        assert account.balance == Decimal("420.00")
        assert goal.status == GoalStatus.completed
        assert goal.balance == Decimal("0.00")
        assert goal.next_contribution_date is None

    async def test_insufficient_balance_creates_nothing(self, db, user, make_account):
        account = await make_account(balance="50.00")
        with pytest.raises(InsufficientFunds):
            await goal_service.create_goal(db, user.id, goal_in(), now=NOW)
        await db.refresh(account)
        assert account.balance == Decimal("50.00")


class TestInstallments:
    async def test_scheduler_completes_goal(self, db, session_factory, user, make_account):
        account = await make_account(balance="500.00")
        goal = await goal_service.create_goal(db, user.id, goal_in(), now=NOW)
        scheduler = SettlementScheduler(session_factory=session_factory)

        for day in range(1, 5):
            report = await scheduler.run_tick(now=NOW + timedelta(days=day))
            assert report.installments == 1

        await db.refresh(goal)
        await db.refresh(account)
        assert goal.current_installment == 5
        assert goal.balance == Decimal("0.00")
        assert goal.status == GoalStatus.completed
        assert account.balance == Decimal("0.00")
        assert len(await get_goal_transactions(goal.id, db)) == 5
        done = (await db.execute(
            select(Notification).where(Notification.type == "goal_completed")
        )).scalars().all()
        assert [n.goal_id for n in done] == [goal.id]

    async def test_not_yet_due_goal_is_left_alone(self, db, user, make_account):
        await make_account(balance="500.00")
        goal = await goal_service.create_goal(db, user.id, goal_in(), now=NOW)

        assert await goal_service.process_installment(db, goal.id, NOW + timedelta(hours=1)) is None

        await db.refresh(goal)
        assert goal.current_installment == 1

    async def test_short_balance_skips_the_cycle(self, db, user, make_account):
        account = await make_account(balance="150.00")
        goal = await goal_service.create_goal(db, user.id, goal_in(), now=NOW)
        due = NOW + timedelta(days=1)

        assert await goal_service.process_installment(db, goal.id, due) is None

        await db.refresh(goal)
        await db.refresh(account)
        assert goal.status == GoalStatus.ongoing
        assert goal.current_installment == 1
        assert goal.next_contribution_date == due
        assert account.balance == Decimal("50.00")

    async def test_last_installment_takes_only_what_is_left(self, db, user, make_account):
        account = await make_account(balance="1000.00")
        goal = await goal_service.create_goal(db, user.id, goal_in(total="250.00"), now=NOW)

        await goal_service.process_installment(db, goal.id, NOW + timedelta(days=1))
        goal = await goal_service.process_installment(db, goal.id, NOW + timedelta(days=2))

        await db.refresh(account)
        assert goal.status == GoalStatus.completed
        assert account.balance == Decimal("750.00")


class TestUpdateAndDeleteGoal:
    async def test_raising_total_recomputes_installments(self, db, user, make_account):
        await make_account(balance="500.00")
        goal = await goal_service.create_goal(db, user.id, goal_in(), now=NOW)

        goal = await goal_service.update_goal(
            db, user.id, goal, GoalUpdate(total_amount=Decimal("700.00")), now=NOW
        )

        assert goal.balance == Decimal("600.00")
        assert goal.no_of_installments == 7

    async def test_total_below_contributed_is_rejected(self, db, user, make_account):
        await make_account(balance="500.00")
        goal = await goal_service.create_goal(db, user.id, goal_in(), now=NOW)
        with pytest.raises(InvalidAmount):
            await goal_service.update_goal(db, user.id, goal, GoalUpdate(total_amount=Decimal("50.00")), now=NOW)

    async def test_lowering_total_to_contributed_completes_goal(self, db, user, make_account):
        await make_account(balance="500.00")
        goal = await goal_service.create_goal(db, user.id, goal_in(), now=NOW)

        goal = await goal_service.update_goal(
            db, user.id, goal, GoalUpdate(total_amount=Decimal("100.00")), now=NOW
        )

        assert goal.status == GoalStatus.completed
        with pytest.raises(GoalCompleted):
            await goal_service.update_goal(db, user.id, goal, GoalUpdate(name="Other"), now=NOW)

    async def test_interval_change_reschedules_from_now(self, db, user, make_account):
        await make_account(balance="500.00")
        goal = await goal_service.create_goal(db, user.id, goal_in(), now=NOW)
        later = NOW + timedelta(hours=5)

        goal = await goal_service.update_goal(db, user.id, goal, GoalUpdate(contribution_interval="weekly"), now=later)

        assert goal.next_contribution_date == later + timedelta(days=7)

    async def test_account_cannot_change(self, db, user, make_account):
        await make_account("Main", balance="500.00")
        spare = await make_account("Spare", balance="500.00")
        goal = await goal_service.create_goal(db, user.id, goal_in(), now=NOW)
        with pytest.raises(ImmutableField):
            await goal_service.update_goal(db, user.id, goal, GoalUpdate(account_id=spare.id), now=NOW)

    async def test_contribution_transactions_are_locked(self, db, user, make_account):
        await make_account(balance="500.00")
        goal = await goal_service.create_goal(db, user.id, goal_in(), now=NOW)
        tx = (await get_goal_transactions(goal.id, db))[0]

        with pytest.raises(ImmutableField):
            await tx_service.update_transaction(db, user.id, tx, TransactionUpdate(amount=Decimal("1.00")), now=NOW)
        with pytest.raises(ImmutableField):
            await tx_service.delete_transaction(db, user.id, tx)

    async def test_deleting_ongoing_goal_refunds_contributions(self, db, user, make_account):
        account = await make_account(balance="500.00")
        goal = await goal_service.create_goal(db, user.id, goal_in(), now=NOW)
        await goal_service.process_installment(db, goal.id, NOW + timedelta(days=1))
        await db.refresh(account)
        assert account.balance == Decimal("300.00")

        await goal_service.delete_goal(db, user.id, goal)

        await db.refresh(account)
        assert account.balance == Decimal("500.00")
        assert await get_goal_transactions(goal.id, db) == []

    async def test_deleting_completed_goal_keeps_history(self, db, user, make_account):
        account = await make_account(balance="500.00")
        goal = await goal_service.create_goal(db, user.id, goal_in(total="100.00"), now=NOW)
        tx_id = (await get_goal_transactions(goal.id, db))[0].id

        await goal_service.delete_goal(db, user.id, goal)

        await db.refresh(account)
        assert account.balance == Decimal("400.00")
        kept = await db.get(Transaction, tx_id, populate_existing=True)
        assert kept is not None
        assert kept.goal_id is None
