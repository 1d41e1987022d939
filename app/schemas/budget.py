# app/schemas/budget.py
from typing import Optional
from pydantic import BaseModel, Field
from datetime import datetime
from decimal import Decimal
import uuid

class BudgetCreate(BaseModel):
    category_id: uuid.UUID
    limit_amount: Decimal = Field(..., gt=0, decimal_places=2)

class BudgetUpdate(BaseModel):
    limit_amount: Decimal = Field(..., gt=0, decimal_places=2)

class BudgetRead(BaseModel):
    id: uuid.UUID
    user_id: uuid.UUID
    category_id: uuid.UUID
    limit_amount: Decimal
    remaining_limit: Decimal
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    class Config:
        from_attributes = True
