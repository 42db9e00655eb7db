import logging
from dataclasses import asdict
from datetime import date

from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import joinedload

from leasedesk.api.v1.reports.schemas import (
    CarBrandItem,
    DashboardResponse,
    MonthlyItem,
    UpdateProfitResponse,
)
from leasedesk.core.clock import Clock
from leasedesk.core.financials import FinancialAggregator
from leasedesk.models.customer import Customer
from leasedesk.models.lease import Lease


class ReportService:
    def __init__(self, db: AsyncSession, clock: Clock):
        self.db = db
        self.clock = clock
        self.aggregator = FinancialAggregator(clock)
        self.logger = logging.getLogger(__name__)

    async def _accounts(self) -> list[tuple[Lease, list]]:
        """Every lease with its payments, read in a single statement so no report mixes two states."""
        result = await self.db.execute(
            select(Lease).options(joinedload(Lease.payments)).order_by(Lease.lease_start_date, Lease.id)
        )
        return [(lease, list(lease.payments)) for lease in result.unique().scalars().all()]

    async def get_dashboard(self, start_date: date | None = None, end_date: date | None = None) -> DashboardResponse:
        total_customers = (await self.db.execute(select(func.count(Customer.id)))).scalar() or 0
        figures = self.aggregator.portfolio(await self._accounts(), start=start_date, end=end_date)
        return DashboardResponse(
            total_customers=total_customers,
            active_leases=figures.active_leases,
            monthly_payments=figures.monthly_payments,
            overdue_payments=figures.overdue_count,
            overdue_amount=figures.overdue_amount,
            total_invested=figures.total_invested,
            total_collected=figures.total_collected,
            total_profit=figures.total_profit,
            total_unpaid=figures.total_unpaid,
            fully_paid_customers=figures.fully_paid_customers,
            credit_balance=figures.credit_balance,
        )

    async def get_car_brands(self) -> list[CarBrandItem]:
        return [CarBrandItem(**asdict(b)) for b in self.aggregator.by_car_brand(await self._accounts())]

    async def get_monthly(self) -> list[MonthlyItem]:
        return [MonthlyItem(**asdict(m)) for m in self.aggregator.monthly(await self._accounts())]

    async def update_profit(self, submitted) -> UpdateProfitResponse:
        """Kept for old clients. Profit is always derived from leases; a submitted figure is never stored."""
        figures = self.aggregator.portfolio(await self._accounts())
        if submitted is not None and submitted != figures.total_profit:
            self.logger.warning(
                "Ignoring client-submitted profit: submitted=%s computed=%s", submitted, figures.total_profit
            )
        return UpdateProfitResponse(
            message="Profit is computed on demand; the submitted value was not stored",
            total_profit=figures.total_profit,
        )
