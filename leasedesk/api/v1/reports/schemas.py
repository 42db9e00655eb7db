from __future__ import annotations

from decimal import Decimal

from pydantic import BaseModel, Field

from leasedesk.api.v1.base_schema import CamelModel


class DashboardResponse(CamelModel):
    """Portfolio snapshot; every figure is recomputed from the ledger for this request."""
    total_customers: int
    active_leases: int
    monthly_payments: Decimal = Field(..., description="Collected in the current calendar month")
    overdue_payments: int = Field(..., description="Installments whose derived status is overdue right now")
    overdue_amount: Decimal
    total_invested: Decimal
    total_collected: Decimal
    total_profit: Decimal = Field(..., description="Sum of installment x duration - leasing amount")
    total_unpaid: Decimal
    fully_paid_customers: int
    credit_balance: Decimal = Field(..., description="Overpayment held as customer credit")


# The two grouping views keep the admin panel's snake_case keys (car_brand, period, ...).
class CarBrandItem(BaseModel):
    car_brand: str
    count: int
    total_invested: Decimal
    total_profit: Decimal


class MonthlyItem(BaseModel):
    period: str = Field(..., description="YYYY-MM")
    expected_amount: Decimal
    collected_amount: Decimal
    overdue_amount: Decimal


class UpdateProfitRequest(CamelModel):
    total_profit: Decimal | None = None


class UpdateProfitResponse(CamelModel):
    message: str
    total_profit: Decimal = Field(..., description="Server-computed profit; the submitted figure is ignored")
