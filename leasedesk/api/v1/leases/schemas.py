from __future__ import annotations

from datetime import date
from decimal import Decimal
from uuid import UUID

from pydantic import Field

from leasedesk.api.v1.base_schema import CamelModel
from leasedesk.api.v1.payments.schemas import CustomerSummary, PaymentItem


class CreateLeaseRequest(CamelModel):
    """New lease. Duration and installment are checked when the schedule is built, not here."""
    customer_id: UUID
    car_brand: str | None = Field(None, max_length=100)
    car_model: str | None = Field(None, max_length=100)
    car_year: str | None = Field(None, max_length=10)
    car_purchase_cost: Decimal | None = None
    leasing_amount: Decimal = Field(..., description="Principal financed")
    monthly_installment: Decimal
    lease_duration: int = Field(..., description="Months")
    lease_start_date: date


class LeaseFiguresResponse(CamelModel):
    expected_total: Decimal
    profit: Decimal
    collected: Decimal
    unpaid: Decimal
    overdue_count: int
    overdue_amount: Decimal
    credit_balance: Decimal
    paid_count: int
    fully_paid: bool


class LeaseResponse(CamelModel):
    id: UUID
    customer_id: UUID
    car_brand: str | None = None
    car_model: str | None = None
    car_year: str | None = None
    car_purchase_cost: Decimal | None = None
    leasing_amount: Decimal
    monthly_installment: Decimal
    lease_duration: int
    lease_start_date: date


class LeaseDetailResponse(CamelModel):
    lease: LeaseResponse
    customer: CustomerSummary | None = None
    payments: list[PaymentItem] = Field(default_factory=list)
    figures: LeaseFiguresResponse
