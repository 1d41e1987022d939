# app/schemas/transaction.py
from typing import Optional
from pydantic import BaseModel, Field
from datetime import datetime
from decimal import Decimal
import uuid

from app.models.transaction import RecurrenceInterval, TransactionType, TransactionStatus

class TransactionBase(BaseModel):
    description: Optional[str] = Field(None, max_length=255, description="E.g. Grocery at Costco")
    amount: Decimal = Field(..., gt=0, decimal_places=2)
    transaction_type: TransactionType
    category_id: uuid.UUID

class TransactionCreate(TransactionBase):
    account_id: Optional[uuid.UUID] = Field(None, description="Defaults to the user's default account")
    transaction_date: Optional[datetime] = Field(None, description="ISO 8601 date; defaults to today")
    is_recurring: bool = False
    # Kept as a plain string so an unknown value reaches the ledger as InvalidInterval
    recurring_interval: Optional[str] = Field(None, description="daily, weekly, monthly or yearly")

class TransactionUpdate(BaseModel):
    description: Optional[str] = Field(None, max_length=255)
    amount: Optional[Decimal] = Field(None, gt=0, decimal_places=2)
    transaction_type: Optional[TransactionType] = None
    category_id: Optional[uuid.UUID] = None
    account_id: Optional[uuid.UUID] = None
    # Present only so an attempted change is rejected explicitly
    transaction_date: Optional[datetime] = None
    is_recurring: Optional[bool] = None
    recurring_interval: Optional[str] = None

class TransactionRead(TransactionBase):
    id: uuid.UUID
    user_id: uuid.UUID
    account_id: uuid.UUID
    transaction_date: datetime
    status: TransactionStatus
    failure_reason: Optional[str] = None
    is_recurring: bool
    recurring_interval: Optional[RecurrenceInterval] = None
    next_recurring_date: Optional[datetime] = None
    recurring_parent_id: Optional[uuid.UUID] = None
    budget_id: Optional[uuid.UUID] = None
    goal_id: Optional[uuid.UUID] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    class Config:
        from_attributes = True

class TransactionResult(BaseModel):
    transaction: TransactionRead
    budget_warning: Optional[str] = None
