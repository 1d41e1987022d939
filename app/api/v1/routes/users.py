# app/api/v1/routes/users.py
import logging

from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy import select, update
from sqlalchemy.ext.asyncio import AsyncSession

from app.api.deps import get_current_user
from app.core.auth import User, UserRead
from app.core.database import get_async_session
from app.core.db_utils import unit_of_work
from app.schemas.user import ProfileUpdate

logger = logging.getLogger(__name__)

router = APIRouter(tags=["User Management"])

@router.get("/me", response_model=UserRead)
async def read_own_profile(user: User = Depends(get_current_user)):
    """Get current user's profile"""
    return user

@router.patch("/me", response_model=UserRead)
async def update_own_profile(
    profile_in: ProfileUpdate,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_async_session),
):
    """Update the display fields of the current user's profile"""
    update_dict = profile_in.model_dump(exclude_unset=True)
    if not update_dict:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="No fields provided for update"
        )

    async with unit_of_work(db):
        await db.execute(update(User).where(User.id == user.id).values(**update_dict))

    result = await db.execute(
        select(User).where(User.id == user.id).execution_options(populate_existing=True)
    )
    return result.scalars().first()

@router.delete("/me", status_code=status.HTTP_204_NO_CONTENT)
async def deactivate_own_profile(
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_async_session),
):
    """
    Deactivate the current user (soft delete). Accounts, transactions and goals
    are kept; an inactive user can no longer authenticate.
    """
    async with unit_of_work(db):
        await db.execute(update(User).where(User.id == user.id).values(is_active=False))
    logger.info(f"User {user.id} deactivated their account")
    return None
