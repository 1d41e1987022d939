# app/models/goal.py
import uuid
import enum
from sqlalchemy import Column, String, ForeignKey, DateTime, Enum, Integer, Numeric
from sqlalchemy.dialects.postgresql import UUID as PG_UUID
from app.core.database import Base
from app.models.transaction import RecurrenceInterval

class GoalStatus(str, enum.Enum):
    ongoing = "ongoing"
    completed = "completed"

class Goal(Base):
    __tablename__ = "goals"

    id = Column(PG_UUID(as_uuid=True), primary_key=True, default=uuid.uuid4)
    user_id = Column(PG_UUID(as_uuid=True), ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    account_id = Column(PG_UUID(as_uuid=True), ForeignKey("accounts.id", ondelete="RESTRICT"), nullable=False)
    name = Column(String(length=150), nullable=False)
    description = Column(String(length=255), nullable=True)
    total_amount = Column(Numeric(14, 2), nullable=False)
    contribution_amount = Column(Numeric(14, 2), nullable=False)
    contribution_interval = Column(Enum(RecurrenceInterval), nullable=False)
    no_of_installments = Column(Integer, nullable=False)
    current_installment = Column(Integer, nullable=False, default=0)
    # Amount still to be saved
    balance = Column(Numeric(14, 2), nullable=False)
    next_contribution_date = Column(DateTime, nullable=True, index=True)
    status = Column(Enum(GoalStatus), default=GoalStatus.ongoing, nullable=False, index=True)

    created_at = Column(DateTime, default=None)
    updated_at = Column(DateTime, default=None)

    @property
    def contributed(self):
        return self.total_amount - self.balance

    def __repr__(self):
        return f"<Goal name={self.name} balance={self.balance}/{self.total_amount} user_id={self.user_id}>"
