from __future__ import annotations

from datetime import date, datetime
from decimal import Decimal
from uuid import UUID

from pydantic import Field

from leasedesk.api.v1.base_schema import CamelModel


class CustomerSummary(CamelModel):
    id: UUID
    full_name: str
    phone_number: str | None = None


class PaymentItem(CamelModel):
    """One installment with its live status (derived at response time)."""
    id: UUID
    lease_id: UUID
    sequence_index: int
    due_date: date
    amount: Decimal = Field(..., description="Scheduled installment amount")
    credited_amount: Decimal
    effective_amount: Decimal = Field(..., description="Scheduled amount minus credits from earlier overpayments")
    actual_amount_paid: Decimal | None = None
    payment_date: date | None = None
    proof_ref: str | None = None
    notes: str | None = None
    unallocated_excess: Decimal = Field(Decimal("0.00"), description="Overpayment no later installment could absorb")
    status: str = Field(..., description="pending | overdue | paid")
    days_overdue: int = 0
    customer: CustomerSummary | None = None


class CreditItem(CamelModel):
    payment_id: UUID
    sequence_index: int
    amount: Decimal


class MarkPaidResponse(CamelModel):
    payment: PaymentItem
    overpayment: Decimal = Field(..., description="Amount paid above the effective amount (0 if none)")
    unallocated_excess: Decimal = Field(..., description="Part of the overpayment kept as customer credit")
    credits: list[CreditItem] = Field(default_factory=list, description="Later installments reduced by the overpayment")


class RevertRequest(CamelModel):
    notes: str | None = Field(None, max_length=500, description="Reason for the status change")


class AuditEntryItem(CamelModel):
    id: UUID
    lease_id: UUID
    payment_id: UUID
    position: int
    kind: str
    from_status: str
    to_status: str
    amount: Decimal | None = None
    source_payment_id: UUID | None = None
    actor: str
    timestamp: datetime
    notes: str | None = None
