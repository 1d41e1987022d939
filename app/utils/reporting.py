# app/utils/reporting.py
from collections import defaultdict
from datetime import date, datetime, time
from decimal import Decimal
from typing import Dict
import uuid

from sqlalchemy.ext.asyncio import AsyncSession

from app.crud.category import get_categories_for_user
from app.crud.goal import get_goals_for_user
from app.crud.transaction import get_completed_transactions_between
from app.models.transaction import TransactionType
from app.schemas.report import CategorySpend, DailyTotals, GoalProgress, ReportResponse

ZERO = Decimal("0.00")
TOP_CATEGORIES = 5


async def generate_report(db: AsyncSession, user_id: uuid.UUID, start: date, end: date) -> ReportResponse:
    """
    Summarize completed transactions dated between ``start`` and ``end`` (both inclusive):
    income/expense totals, the top expense categories, progress of every goal and a
    per-day income/expense timeline.
    """
    transactions = await get_completed_transactions_between(
        user_id,
        datetime.combine(start, time.min),
        datetime.combine(end, time.max),
        db,
    )

    total_income = ZERO
    total_expense = ZERO
    spent_by_category: Dict[uuid.UUID, Decimal] = defaultdict(lambda: ZERO)
    timeline: Dict[date, Dict[str, Decimal]] = defaultdict(lambda: {"income": ZERO, "expense": ZERO})

    for tx in transactions:
        day = tx.transaction_date.date()
        if tx.transaction_type == TransactionType.income:
            total_income += tx.amount
            timeline[day]["income"] += tx.amount
        else:
            total_expense += tx.amount
            spent_by_category[tx.category_id] += tx.amount
            timeline[day]["expense"] += tx.amount

    names = {c.id: c.name for c in await get_categories_for_user(user_id, db)}
    top = sorted(spent_by_category.items(), key=lambda item: item[1], reverse=True)[:TOP_CATEGORIES]

    goal_progress = []
    for goal in await get_goals_for_user(user_id, db):
        progress = float(goal.contributed / goal.total_amount * 100) if goal.total_amount else 0.0
        goal_progress.append(GoalProgress(goal_id=goal.id, name=goal.name, progress=round(progress, 2)))

    return ReportResponse(
        start_date=start,
        end_date=end,
        total_income=total_income,
        total_expense=total_expense,
        net_savings=total_income - total_expense,
        top_expense_categories=[
            CategorySpend(category_id=cid, name=names.get(cid, "Unknown"), total_spent=amount)
            for cid, amount in top
        ],
        goal_progress=goal_progress,
        transactions_over_time=[
            DailyTotals(date=day, income=totals["income"], expense=totals["expense"])
            for day, totals in sorted(timeline.items())
        ],
    )
