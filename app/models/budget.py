# app/models/budget.py
import uuid
from sqlalchemy import Column, ForeignKey, DateTime, Integer, Numeric, UniqueConstraint, CheckConstraint
from sqlalchemy.dialects.postgresql import UUID as PG_UUID
from app.core.database import Base

class Budget(Base):
    __tablename__ = "budgets"
    __table_args__ = (
        UniqueConstraint("user_id", "category_id", name="uq_budgets_user_category"),
        CheckConstraint(
            "remaining_limit >= 0 AND remaining_limit <= limit_amount",
            name="ck_budgets_remaining_within_limit",
        ),
    )

    id = Column(PG_UUID(as_uuid=True), primary_key=True, default=uuid.uuid4)
    user_id = Column(PG_UUID(as_uuid=True), ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    category_id = Column(PG_UUID(as_uuid=True), ForeignKey("categories.id", ondelete="CASCADE"), nullable=False)
    limit_amount = Column(Numeric(14, 2), nullable=False)
    # 0 <= remaining_limit <= limit_amount; only changed through app.services.budget_tracker
    remaining_limit = Column(Numeric(14, 2), nullable=False)
    version_id = Column(Integer, nullable=False)

    created_at = Column(DateTime, default=None)
    updated_at = Column(DateTime, default=None)

    __mapper_args__ = {"version_id_col": version_id}

    def __repr__(self):
        return f"<Budget category_id={self.category_id} remaining={self.remaining_limit}/{self.limit_amount}>"
