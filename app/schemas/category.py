# app/schemas/category.py
from typing import Optional
from pydantic import BaseModel, Field
from datetime import datetime
import uuid

from app.models.category import CategoryType

class CategoryBase(BaseModel):
    name: str = Field(..., min_length=1, max_length=100)
    category_type: CategoryType

class CategoryCreate(CategoryBase):
    pass

class CategoryUpdate(BaseModel):
    name: Optional[str] = Field(None, min_length=1, max_length=100)
    category_type: Optional[CategoryType] = None

class CategoryRead(CategoryBase):
    id: uuid.UUID
    user_id: uuid.UUID
    slug: str
    on_track: bool
    is_reserved: bool
    created_at: Optional[datetime] = None

    class Config:
        from_attributes = True
