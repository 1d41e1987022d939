# app/schemas/goal.py
from typing import Optional
from pydantic import BaseModel, Field
from datetime import datetime
from decimal import Decimal
import uuid

from app.models.goal import GoalStatus
from app.models.transaction import RecurrenceInterval

class GoalBase(BaseModel):
    name: str = Field(..., min_length=1, max_length=150)
    description: Optional[str] = Field(None, max_length=255)

class GoalCreate(GoalBase):
    total_amount: Decimal = Field(..., gt=0, decimal_places=2)
    contribution_amount: Decimal = Field(..., gt=0, decimal_places=2)
    contribution_interval: str = Field(..., description="daily, weekly, monthly or yearly")
    account_id: Optional[uuid.UUID] = Field(None, description="Defaults to the user's default account")

class GoalUpdate(BaseModel):
    name: Optional[str] = Field(None, min_length=1, max_length=150)
    description: Optional[str] = Field(None, max_length=255)
    total_amount: Optional[Decimal] = Field(None, gt=0, decimal_places=2)
    contribution_amount: Optional[Decimal] = Field(None, gt=0, decimal_places=2)
    contribution_interval: Optional[str] = None
    account_id: Optional[uuid.UUID] = None

class GoalRead(GoalBase):
    id: uuid.UUID
    user_id: uuid.UUID
    account_id: uuid.UUID
    total_amount: Decimal
    contribution_amount: Decimal
    contribution_interval: RecurrenceInterval
    no_of_installments: int
    current_installment: int
    balance: Decimal
    next_contribution_date: Optional[datetime] = None
    status: GoalStatus
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    class Config:
        from_attributes = True
