# app/models/transaction.py
import uuid
import enum
from sqlalchemy import Column, String, ForeignKey, Boolean, DateTime, Enum, Numeric, CheckConstraint
from sqlalchemy.dialects.postgresql import UUID as PG_UUID
from app.core.database import Base

class TransactionType(str, enum.Enum):
    income = "income"
    expense = "expense"

class TransactionStatus(str, enum.Enum):
    pending = "pending"
    completed = "completed"
    failed = "failed"

class RecurrenceInterval(str, enum.Enum):
    daily = "daily"
    weekly = "weekly"
    monthly = "monthly"
    yearly = "yearly"

class Transaction(Base):
    __tablename__ = "transactions"
    __table_args__ = (
        CheckConstraint("amount > 0", name="ck_transactions_amount_positive"),
    )

    id = Column(PG_UUID(as_uuid=True), primary_key=True, default=uuid.uuid4)
    user_id = Column(PG_UUID(as_uuid=True), ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    account_id = Column(PG_UUID(as_uuid=True), ForeignKey("accounts.id", ondelete="RESTRICT"), nullable=False, index=True)
    category_id = Column(PG_UUID(as_uuid=True), ForeignKey("categories.id", ondelete="RESTRICT"), nullable=False)
    transaction_type = Column(Enum(TransactionType), nullable=False)
    amount = Column(Numeric(14, 2), nullable=False)
    description = Column(String(length=255), nullable=True)
    # Day granularity, time-of-day zeroed
    transaction_date = Column(DateTime, nullable=False, index=True)
    status = Column(Enum(TransactionStatus), default=TransactionStatus.completed, nullable=False, index=True)
    failure_reason = Column(String(length=64), nullable=True)

    is_recurring = Column(Boolean, default=False, nullable=False)
    recurring_interval = Column(Enum(RecurrenceInterval), nullable=True)
    next_recurring_date = Column(DateTime, nullable=True, index=True)
    recurring_parent_id = Column(PG_UUID(as_uuid=True), ForeignKey("transactions.id", ondelete="SET NULL"), nullable=True)

    # Budget consumed when the transaction settled; reverts use this, never the current category state
    budget_id = Column(PG_UUID(as_uuid=True), ForeignKey("budgets.id", ondelete="SET NULL"), nullable=True)
    # Set for goal contributions
    goal_id = Column(PG_UUID(as_uuid=True), ForeignKey("goals.id", ondelete="SET NULL"), nullable=True, index=True)

    last_processed = Column(DateTime, default=None)
    created_at = Column(DateTime, default=None)
    updated_at = Column(DateTime, default=None)

    @property
    def is_completed(self) -> bool:
        return self.status == TransactionStatus.completed

    def __repr__(self):
        return f"<Transaction {self.transaction_type} amount={self.amount} status={self.status} user_id={self.user_id}>"
