# app/schemas/report.py
from typing import List
from pydantic import BaseModel
from datetime import date
from decimal import Decimal
import uuid

class CategorySpend(BaseModel):
    category_id: uuid.UUID
    name: str
    total_spent: Decimal

class GoalProgress(BaseModel):
    goal_id: uuid.UUID
    name: str
    progress: float

class DailyTotals(BaseModel):
    date: date
    income: Decimal
    expense: Decimal

class ReportResponse(BaseModel):
    start_date: date
    end_date: date
    total_income: Decimal
    total_expense: Decimal
    net_savings: Decimal
    top_expense_categories: List[CategorySpend]
    goal_progress: List[GoalProgress]
    transactions_over_time: List[DailyTotals]
