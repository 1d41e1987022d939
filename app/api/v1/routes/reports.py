# app/api/v1/routes/reports.py
from fastapi import APIRouter, Depends, HTTPException, Query, status
from sqlalchemy.ext.asyncio import AsyncSession
from typing import Optional
from datetime import date

from app.schemas.report import ReportResponse
from app.utils.reporting import generate_report
from app.core.database import get_async_session
from app.core.auth import User
from app.api.deps import get_current_user

router = APIRouter(prefix="/reports", tags=["reports"])

@router.get("", response_model=ReportResponse)
async def get_report(
    start_date: Optional[date] = Query(None, description="First day of the report, inclusive"),
    end_date: Optional[date] = Query(None, description="Last day of the report, inclusive"),
    db: AsyncSession = Depends(get_async_session),
    user: User = Depends(get_current_user),
):
    """
    Income, spending and savings over a date range, built from completed transactions only.
    """
    if start_date is None or end_date is None:
        raise HTTPException(status.HTTP_400_BAD_REQUEST, detail="start_date and end_date are required")
    if start_date > end_date:
        raise HTTPException(status.HTTP_400_BAD_REQUEST, detail="start_date must not be after end_date")
    return await generate_report(db, user.id, start_date, end_date)
