import asyncio
from datetime import timedelta
from decimal import Decimal

from sqlalchemy import select

from app.models.notification import Notification
from app.models.transaction import Transaction, TransactionStatus, TransactionType
from app.schemas.transaction import TransactionCreate
from app.services import transactions as tx_service
from app.services.scheduler import SettlementScheduler
from tests.conftest import NOW

TOMORROW = NOW + timedelta(days=1)


def expense(category, amount, **kwargs):
    return TransactionCreate(
        category_id=category.id,
        amount=Decimal(amount),
        transaction_type=TransactionType.expense,
        **kwargs,
    )


class TestPendingSweep:
    async def test_pending_settles_once_due(self, db, session_factory, user, make_account, make_category):
        account = await make_account(balance="100.00")
        groceries = await make_category()
        tx = (await tx_service.create_transaction(
            db, user.id, expense(groceries, "30.00", transaction_date=TOMORROW), now=NOW
        )).transaction
        scheduler = SettlementScheduler(session_factory=session_factory, interval_seconds=60)

        early = await scheduler.run_tick(now=NOW)
        assert early.settled == 0
        await db.refresh(account)
        assert account.balance == Decimal("100.00")

        report = await scheduler.run_tick(now=TOMORROW)

        assert report.settled == 1
        await db.refresh(account)
        await db.refresh(tx)
        assert account.balance == Decimal("70.00")
        assert tx.status == TransactionStatus.completed
        assert tx.last_processed == TOMORROW

    async def test_unaffordable_pending_fails_for_good(self, db, session_factory, user, make_account, make_category):
        account = await make_account(balance="10.00")
        groceries = await make_category()
        tx = (await tx_service.create_transaction(
            db, user.id, expense(groceries, "30.00", transaction_date=TOMORROW), now=NOW
        )).transaction
        scheduler = SettlementScheduler(session_factory=session_factory)

        report = await scheduler.run_tick(now=TOMORROW)

        assert report.failed == 1
        await db.refresh(tx)
        assert tx.status == TransactionStatus.failed
        assert tx.failure_reason == "INSUFFICIENT_FUNDS"
        failures = (await db.execute(
            select(Notification).where(Notification.type == "settlement_failed")
        )).scalars().all()
        assert [n.transaction_id for n in failures] == [tx.id]

        # Topping up the account does not revive a failed transaction
        account.balance = Decimal("500.00")
        await db.commit()
        again = await scheduler.run_tick(now=TOMORROW + timedelta(days=1))
        assert again.settled == 0 and again.failed == 0
        await db.refresh(tx)
        assert tx.status == TransactionStatus.failed

    async def test_budget_exceeded_marks_failed(
        self, db, session_factory, user, make_account, make_category, make_budget
    ):
        await make_account(balance="500.00")
        groceries = await make_category()
        budget = await make_budget(groceries.id, "20.00")
        tx = (await tx_service.create_transaction(
            db, user.id, expense(groceries, "30.00", transaction_date=TOMORROW), now=NOW
        )).transaction

        await SettlementScheduler(session_factory=session_factory).run_tick(now=TOMORROW)

        await db.refresh(tx)
        await db.refresh(budget)
        assert tx.failure_reason == "BUDGET_EXCEEDED"
        assert budget.remaining_limit == Decimal("20.00")


class TestRecurringSweep:
    async def test_spawns_child_and_advances_template(self, db, session_factory, user, make_account, make_category):
        account = await make_account(balance="100.00")
        groceries = await make_category()
        template = (await tx_service.create_transaction(
            db, user.id, expense(groceries, "10.00", is_recurring=True, recurring_interval="daily"), now=NOW
        )).transaction
        due = NOW + timedelta(days=1)

        report = await SettlementScheduler(session_factory=session_factory).run_tick(now=due)

        assert report.spawned == 1
        await db.refresh(template)
        await db.refresh(account)
        assert template.next_recurring_date == due.replace(hour=0, minute=0) + timedelta(days=1)
        assert account.balance == Decimal("80.00")
        children = (await db.execute(
            select(Transaction).where(Transaction.recurring_parent_id == template.id)
        )).scalars().all()
        assert len(children) == 1
        assert children[0].status == TransactionStatus.completed
        assert children[0].transaction_date == due.replace(hour=0, minute=0)
        assert children[0].is_recurring is False

    async def test_failed_spawn_leaves_template_for_next_tick(
        self, db, session_factory, user, make_account, make_category
    ):
        account = await make_account(balance="10.00")
        groceries = await make_category()
        template = (await tx_service.create_transaction(
            db, user.id, expense(groceries, "10.00", is_recurring=True, recurring_interval="weekly"), now=NOW
        )).transaction
        next_date = template.next_recurring_date
        scheduler = SettlementScheduler(session_factory=session_factory)

        report = await scheduler.run_tick(now=next_date)

        assert report.spawned == 0
        await db.refresh(template)
        assert template.next_recurring_date == next_date

        account.balance = Decimal("50.00")
        await db.commit()
        retry = await scheduler.run_tick(now=next_date + timedelta(hours=1))
        assert retry.spawned == 1


class TestTicks:
    async def test_overlapping_tick_is_skipped(self, session_factory):
        scheduler = SettlementScheduler(session_factory=session_factory)
        async with scheduler._tick_lock:
            report = await scheduler.run_tick(now=NOW)
        assert report.ran is False

    async def test_start_and_stop(self, session_factory):
        scheduler = SettlementScheduler(session_factory=session_factory, interval_seconds=3600)
        scheduler.start()
        assert scheduler.running
        await asyncio.sleep(0.05)
        await scheduler.stop()
        assert not scheduler.running
