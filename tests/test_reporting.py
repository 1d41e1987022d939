from datetime import date, timedelta
from decimal import Decimal

from app.models.category import CategoryType
from app.models.transaction import TransactionType
from app.schemas.goal import GoalCreate
from app.schemas.transaction import TransactionCreate
from app.services import goals as goal_service
from app.services import transactions as tx_service
from app.utils.reporting import generate_report
from tests.conftest import NOW


def tx(category, amount, kind, **kwargs):
    return TransactionCreate(category_id=category.id, amount=Decimal(amount), transaction_type=kind, **kwargs)


class TestReport:
    async def test_totals_top_categories_and_timeline(self, db, user, make_account, make_category):
        await make_account(balance="1000.00")
        salary = await make_category("Salary", CategoryType.income)
        food = await make_category("Food")
        rent = await make_category("Rent")
        yesterday = NOW - timedelta(days=1)

        await tx_service.create_transaction(db, user.id, tx(salary, "500.00", TransactionType.income), now=NOW)
        await tx_service.create_transaction(db, user.id, tx(food, "20.00", TransactionType.expense), now=NOW)
        await tx_service.create_transaction(
            db, user.id, tx(rent, "300.00", TransactionType.expense, transaction_date=yesterday), now=NOW
        )
        # Pending transactions are not part of the report
        await tx_service.create_transaction(
            db, user.id, tx(food, "99.00", TransactionType.expense, transaction_date=NOW + timedelta(days=1)), now=NOW
        )

        report = await generate_report(db, user.id, date(2026, 3, 1), date(2026, 3, 31))

        assert report.total_income == Decimal("500.00")
        assert report.total_expense == Decimal("320.00")
        assert report.net_savings == Decimal("180.00")
        assert [c.name for c in report.top_expense_categories] == ["Rent", "Food"]
        assert [d.date for d in report.transactions_over_time] == [date(2026, 3, 9), date(2026, 3, 10)]
        assert report.transactions_over_time[1].income == Decimal("500.00")
        assert report.transactions_over_time[1].expense == Decimal("20.00")

    async def test_range_excludes_outside_days(self, db, user, make_account, make_category):
        await make_account(balance="100.00")
        food = await make_category("Food")
        await tx_service.create_transaction(db, user.id, tx(food, "10.00", TransactionType.expense), now=NOW)

        report = await generate_report(db, user.id, date(2026, 3, 11), date(2026, 3, 31))

        assert report.total_expense == Decimal("0.00")
        assert report.top_expense_categories == []

    async def test_goal_progress(self, db, user, make_account):
        await make_account(balance="1000.00")
        await goal_service.create_goal(
            db, user.id,
            GoalCreate(
                name="Trip",
                total_amount=Decimal("400.00"),
                contribution_amount=Decimal("100.00"),
                contribution_interval="monthly",
            ),
            now=NOW,
        )

        report = await generate_report(db, user.id, date(2026, 3, 1), date(2026, 3, 31))

        assert [(g.name, g.progress) for g in report.goal_progress] == [("Trip", 25.0)]
        # Contributions are expenses in the Savings category
        assert report.total_expense == Decimal("100.00")
