# app/schemas/account.py
from typing import Optional
from pydantic import BaseModel, Field
from datetime import datetime
from decimal import Decimal
import uuid

from app.models.account import AccountType

class AccountBase(BaseModel):
    name: str = Field(..., min_length=1, max_length=100, description="E.g. Main Current Account")
    account_type: AccountType = AccountType.current

class AccountCreate(AccountBase):
    balance: Decimal = Field(Decimal("0.00"), ge=0, decimal_places=2, description="Opening balance")
    is_default: bool = False

class AccountUpdate(BaseModel):
    name: Optional[str] = Field(None, min_length=1, max_length=100)
    account_type: Optional[AccountType] = None
    balance: Optional[Decimal] = Field(None, ge=0, decimal_places=2)
    is_default: Optional[bool] = None

class AccountRead(AccountBase):
    id: uuid.UUID
    user_id: uuid.UUID
    slug: str
    balance: Decimal
    is_default: bool
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    class Config:
        from_attributes = True
