# app/models/category.py
import uuid
import enum
from sqlalchemy import Column, String, ForeignKey, Boolean, DateTime, Enum, UniqueConstraint
from sqlalchemy.dialects.postgresql import UUID as PG_UUID
from app.core.database import Base

class CategoryType(str, enum.Enum):
    income = "income"
    expense = "expense"

class Category(Base):
    __tablename__ = "categories"
    __table_args__ = (
        UniqueConstraint("user_id", "slug", name="uq_categories_user_slug"),
    )

    id = Column(PG_UUID(as_uuid=True), primary_key=True, default=uuid.uuid4)
    user_id = Column(PG_UUID(as_uuid=True), ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    name = Column(String(length=100), nullable=False)
    slug = Column(String(length=120), nullable=False)
    category_type = Column(Enum(CategoryType), nullable=False)
    # True while a budget exists for this category
    on_track = Column(Boolean(), default=False, nullable=False)
    # True for the auto-created bucket that goal contributions are booked to
    is_reserved = Column(Boolean(), default=False, nullable=False)

    created_at = Column(DateTime, default=None)
    updated_at = Column(DateTime, default=None)

    def __repr__(self):
        return f"<Category name={self.name} type={self.category_type} user_id={self.user_id}>"
