# app/models/account.py
import uuid
import enum
from decimal import Decimal
from sqlalchemy import Column, String, ForeignKey, Boolean, DateTime, Enum, Integer, Numeric, UniqueConstraint, CheckConstraint
from sqlalchemy.dialects.postgresql import UUID as PG_UUID
from app.core.database import Base

class AccountType(str, enum.Enum):
    current = "current"
    savings = "savings"

class Account(Base):
    __tablename__ = "accounts"
    __table_args__ = (
        UniqueConstraint("user_id", "slug", name="uq_accounts_user_slug"),
        CheckConstraint("balance >= 0", name="ck_accounts_balance_non_negative"),
    )

    id = Column(PG_UUID(as_uuid=True), primary_key=True, default=uuid.uuid4)
    user_id = Column(PG_UUID(as_uuid=True), ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    name = Column(String(length=100), nullable=False)
    slug = Column(String(length=120), nullable=False)
    account_type = Column(Enum(AccountType), default=AccountType.current, nullable=False)
    # Spendable amount; only ever changed through app.services.ledger
    balance = Column(Numeric(14, 2), nullable=False, default=Decimal("0.00"))
    is_default = Column(Boolean(), default=False, nullable=False)
    version_id = Column(Integer, nullable=False)

    created_at = Column(DateTime, default=None)
    updated_at = Column(DateTime, default=None)

    __mapper_args__ = {"version_id_col": version_id}

    def __repr__(self):
        return f"<Account name={self.name} balance={self.balance} user_id={self.user_id}>"
