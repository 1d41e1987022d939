# app/api/v1/routes/accounts.py
from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.ext.asyncio import AsyncSession
from typing import List
import uuid

from app.schemas.account import AccountCreate, AccountRead, AccountUpdate
from app.crud.account import get_accounts_for_user, get_account_by_id
from app.services import accounts as account_service
from app.core.database import get_async_session
from app.core.auth import User
from app.api.deps import get_current_user

router = APIRouter(prefix="/accounts", tags=["accounts"])

@router.get("", response_model=List[AccountRead])
async def read_accounts(
    db: AsyncSession = Depends(get_async_session),
    user: User = Depends(get_current_user),
):
    return await get_accounts_for_user(user.id, db)

@router.post("", response_model=AccountRead, status_code=status.HTTP_201_CREATED)
async def create_account(
    account_in: AccountCreate,
    db: AsyncSession = Depends(get_async_session),
    user: User = Depends(get_current_user),
):
    """
    Create an account. The user's first account always becomes the default one;
    passing ``is_default`` moves the default flag to the new account.
    """
    return await account_service.create_account(db, user.id, account_in)

@router.get("/{account_id}", response_model=AccountRead)
async def read_account(
    account_id: uuid.UUID,
    db: AsyncSession = Depends(get_async_session),
    user: User = Depends(get_current_user),
):
    account = await get_account_by_id(account_id, user.id, db)
    if not account:
        raise HTTPException(status.HTTP_404_NOT_FOUND, detail="Account not found")
    return account

@router.patch("/{account_id}", response_model=AccountRead)
async def update_account_endpoint(
    account_id: uuid.UUID,
    account_in: AccountUpdate,
    db: AsyncSession = Depends(get_async_session),
    user: User = Depends(get_current_user),
):
    account = await get_account_by_id(account_id, user.id, db)
    if not account:
        raise HTTPException(status.HTTP_404_NOT_FOUND, detail="Account not found")
    return await account_service.update_account(db, user.id, account, account_in)

@router.delete("/{account_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_account_endpoint(
    account_id: uuid.UUID,
    db: AsyncSession = Depends(get_async_session),
    user: User = Depends(get_current_user),
):
    account = await get_account_by_id(account_id, user.id, db)
    if not account:
        raise HTTPException(status.HTTP_404_NOT_FOUND, detail="Account not found")
    await account_service.delete_account(db, user.id, account)
    return None
