from datetime import date
from typing import Optional

from fastapi import APIRouter, Body, Depends, Query, status
from sqlalchemy.ext.asyncio import AsyncSession

from leasedesk.api.v1.reports.schemas import (
    CarBrandItem,
    DashboardResponse,
    MonthlyItem,
    UpdateProfitRequest,
    UpdateProfitResponse,
)
from leasedesk.api.v1.reports.service import ReportService
from leasedesk.core.clock import Clock
from leasedesk.core.deps import get_clock, get_current_actor, get_db

router = APIRouter()


@router.get(
    "/dashboard",
    response_model=DashboardResponse,
    status_code=status.HTTP_200_OK,
    summary="Dashboard figures",
    description="Invested, collected, profit, unpaid and overdue figures, derived from the ledger at request time. Optional window on lease start / due dates.",
)
async def get_dashboard(
    start_date: Optional[date] = Query(None, alias="startDate"),
    end_date: Optional[date] = Query(None, alias="endDate"),
    actor: str = Depends(get_current_actor),
    db: AsyncSession = Depends(get_db),
    clock: Clock = Depends(get_clock),
):
    return await ReportService(db, clock).get_dashboard(start_date=start_date, end_date=end_date)


@router.get(
    "/car-brands",
    response_model=list[CarBrandItem],
    status_code=status.HTTP_200_OK,
    summary="Leases by car brand",
)
async def get_car_brands(
    actor: str = Depends(get_current_actor),
    db: AsyncSession = Depends(get_db),
    clock: Clock = Depends(get_clock),
):
    return await ReportService(db, clock).get_car_brands()


@router.get(
    "/monthly",
    response_model=list[MonthlyItem],
    status_code=status.HTTP_200_OK,
    summary="Monthly collection",
)
async def get_monthly(
    actor: str = Depends(get_current_actor),
    db: AsyncSession = Depends(get_db),
    clock: Clock = Depends(get_clock),
):
    return await ReportService(db, clock).get_monthly()


@router.post(
    "/update-profit",
    response_model=UpdateProfitResponse,
    status_code=status.HTTP_202_ACCEPTED,
    summary="Update profit (no-op)",
    description="Accepted for compatibility only. Profit is never taken from the client; the response carries the server-computed figure.",
)
async def update_profit(
    data: UpdateProfitRequest | None = Body(None),
    actor: str = Depends(get_current_actor),
    db: AsyncSession = Depends(get_db),
    clock: Clock = Depends(get_clock),
):
    return await ReportService(db, clock).update_profit(data.total_profit if data else None)
