# app/api/v1/routes/transactions.py
from fastapi import APIRouter, Depends, HTTPException, status, Query
from sqlalchemy.ext.asyncio import AsyncSession
from typing import List, Optional
from datetime import datetime
import uuid

from app.schemas.transaction import (
    TransactionCreate,
    TransactionRead,
    TransactionResult,
    TransactionUpdate,
)
from app.crud.transaction import get_transactions_for_user, get_transaction_by_id
from app.models.transaction import TransactionStatus, TransactionType
from app.services import transactions as tx_service
from app.core.database import get_async_session
from app.core.auth import User
from app.api.deps import get_current_user

router = APIRouter(prefix="/transactions", tags=["transactions"])

@router.get("", response_model=List[TransactionRead])
async def read_transactions(
    account_id: Optional[uuid.UUID] = None,
    category_id: Optional[uuid.UUID] = None,
    status_filter: Optional[TransactionStatus] = Query(None, alias="status"),
    transaction_type: Optional[TransactionType] = None,
    start_date: Optional[datetime] = None,
    end_date: Optional[datetime] = None,
    offset: int = Query(0, ge=0),
    limit: int = Query(50, ge=1, le=500),
    db: AsyncSession = Depends(get_async_session),
    user: User = Depends(get_current_user),
):
    return await get_transactions_for_user(
        user.id,
        db,
        account_id=account_id,
        category_id=category_id,
        status=status_filter,
        transaction_type=transaction_type,
        start_date=start_date,
        end_date=end_date,
        offset=offset,
        limit=limit,
    )

@router.post("", response_model=TransactionResult, status_code=status.HTTP_201_CREATED)
async def create_transaction(
    tx_in: TransactionCreate,
    db: AsyncSession = Depends(get_async_session),
    user: User = Depends(get_current_user),
):
    """
    Record a transaction against the given account, or the default account.

    - A date after today creates a **pending** transaction that settles on that day.
    - Otherwise the account and budget are updated immediately; ``budget_warning``
      is set when the expense brings its category close to the limit.
    """
    outcome = await tx_service.create_transaction(db, user.id, tx_in)
    return TransactionResult(transaction=outcome.transaction, budget_warning=outcome.budget_warning)

@router.get("/{transaction_id}", response_model=TransactionRead)
async def read_transaction(
    transaction_id: uuid.UUID,
    db: AsyncSession = Depends(get_async_session),
    user: User = Depends(get_current_user),
):
    tx = await get_transaction_by_id(transaction_id, user.id, db)
    if not tx:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Transaction not found")
    return tx

@router.patch("/{transaction_id}", response_model=TransactionResult)
async def update_transaction_endpoint(
    transaction_id: uuid.UUID,
    tx_in: TransactionUpdate,
    db: AsyncSession = Depends(get_async_session),
    user: User = Depends(get_current_user),
):
    tx = await get_transaction_by_id(transaction_id, user.id, db)
    if not tx:
        raise HTTPException(status.HTTP_404_NOT_FOUND, detail="Transaction not found")
    outcome = await tx_service.update_transaction(db, user.id, tx, tx_in)
    return TransactionResult(transaction=outcome.transaction, budget_warning=outcome.budget_warning)

@router.delete("/{transaction_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_transaction_endpoint(
    transaction_id: uuid.UUID,
    db: AsyncSession = Depends(get_async_session),
    user: User = Depends(get_current_user),
):
    tx = await get_transaction_by_id(transaction_id, user.id, db)
    if not tx:
        raise HTTPException(status.HTTP_404_NOT_FOUND, detail="Transaction not found")
    await tx_service.delete_transaction(db, user.id, tx)
    return None
