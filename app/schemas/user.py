# app/schemas/user.py
from typing import Optional
from pydantic import BaseModel, Field

# Fields accepted on PATCH /users/me; passwords and flags go through fastapi-users
class ProfileUpdate(BaseModel):
    full_name: Optional[str] = Field(None, min_length=1, max_length=150)

    class Config:
        extra = "forbid"
