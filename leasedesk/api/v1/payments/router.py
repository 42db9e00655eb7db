import logging
from datetime import date, datetime, timezone
from typing import Literal, Optional
from uuid import UUID

from fastapi import APIRouter, Body, Depends, Form, Query, status
from sqlalchemy.ext.asyncio import AsyncSession

from leasedesk.api.v1.payments.schemas import AuditEntryItem, MarkPaidResponse, PaymentItem, RevertRequest
from leasedesk.api.v1.payments.service import PaymentService
from leasedesk.core.clock import Clock
from leasedesk.core.deps import get_clock, get_current_actor, get_db, get_lease_locks
from leasedesk.core.exceptions import AppException
from leasedesk.core.lease_locks import LeaseLocks

logger = logging.getLogger(__name__)

router = APIRouter()


def _parse_payment_date(value: str) -> date:
    """
    Accept a plain ISO date or the full ISO datetime the admin panel sends.
    A datetime with an offset is converted to UTC first, the same calendar the clock uses.
    """
    s = value.strip().replace("Z", "+00:00")
    try:
        if "T" in s:
            parsed = datetime.fromisoformat(s)
            if parsed.tzinfo is not None:
                parsed = parsed.astimezone(timezone.utc)
            return parsed.date()
        return date.fromisoformat(s)
    except ValueError:
        AppException().raise_400(f"Invalid paymentDate: {value!r}")


@router.get(
    "/",
    response_model=list[PaymentItem],
    status_code=status.HTTP_200_OK,
    summary="List payments",
    description="List installments with a customer summary. Status is derived at request time; filter by status, customer name, and due-date range.",
)
async def list_payments(
    status_filter: Optional[Literal["paid", "pending", "overdue"]] = Query(None, alias="status"),
    search: Optional[str] = Query(None, description="Customer name or phone substring"),
    start_date: Optional[date] = Query(None, alias="startDate", description="Due on or after"),
    end_date: Optional[date] = Query(None, alias="endDate", description="Due on or before"),
    actor: str = Depends(get_current_actor),
    db: AsyncSession = Depends(get_db),
    clock: Clock = Depends(get_clock),
    locks: LeaseLocks = Depends(get_lease_locks),
):
    service = PaymentService(db, clock, locks)
    return await service.list_payments(
        status=status_filter,
        search=search,
        start_date=start_date,
        end_date=end_date,
    )


@router.get(
    "/{payment_id}",
    response_model=PaymentItem,
    status_code=status.HTTP_200_OK,
    summary="Get payment",
)
async def get_payment(
    payment_id: UUID,
    actor: str = Depends(get_current_actor),
    db: AsyncSession = Depends(get_db),
    clock: Clock = Depends(get_clock),
    locks: LeaseLocks = Depends(get_lease_locks),
):
    return await PaymentService(db, clock, locks).get_payment(payment_id)


@router.post(
    "/{payment_id}/pay",
    response_model=MarkPaidResponse,
    status_code=status.HTTP_200_OK,
    summary="Mark payment as paid",
    description="Record an installment as paid. Any amount above the effective amount reduces later installments; what they cannot absorb is returned as unallocatedExcess. A payment can only be marked paid once.",
)
async def mark_paid(
    payment_id: UUID,
    payment_date: str = Form(..., alias="paymentDate"),
    actual_amount: Optional[str] = Form(None, alias="actualAmount"),
    notes: Optional[str] = Form(None, max_length=500),
    proof_ref: Optional[str] = Form(None, alias="proofRef", max_length=255),
    actor: str = Depends(get_current_actor),
    db: AsyncSession = Depends(get_db),
    clock: Clock = Depends(get_clock),
    locks: LeaseLocks = Depends(get_lease_locks),
):
    logger.info(
        "POST /payments/%s/pay: payment_date=%s actual_amount=%s proof_ref=%s actor=%s",
        payment_id,
        payment_date,
        actual_amount,
        proof_ref,
        actor,
    )
    service = PaymentService(db, clock, locks)
    return await service.mark_paid(
        payment_id=payment_id,
        payment_date=_parse_payment_date(payment_date),
        actor=actor,
        actual_amount=actual_amount if actual_amount and actual_amount.strip() else None,
        notes=notes,
        proof_ref=proof_ref,
    )


@router.post(
    "/{payment_id}/revert",
    response_model=PaymentItem,
    status_code=status.HTTP_200_OK,
    summary="Revert payment status",
    description="Toggle paid/unpaid. Reverting a paid installment also withdraws any credit its overpayment gave later installments. Returns the payment with its freshly derived status.",
)
async def revert_payment(
    payment_id: UUID,
    data: RevertRequest | None = Body(None),
    actor: str = Depends(get_current_actor),
    db: AsyncSession = Depends(get_db),
    clock: Clock = Depends(get_clock),
    locks: LeaseLocks = Depends(get_lease_locks),
):
    if data is None:
        data = RevertRequest()
    service = PaymentService(db, clock, locks)
    return await service.revert(payment_id, actor, notes=data.notes)


@router.get(
    "/{payment_id}/audit",
    response_model=list[AuditEntryItem],
    status_code=status.HTTP_200_OK,
    summary="Payment audit trail",
)
async def payment_audit(
    payment_id: UUID,
    actor: str = Depends(get_current_actor),
    db: AsyncSession = Depends(get_db),
    clock: Clock = Depends(get_clock),
    locks: LeaseLocks = Depends(get_lease_locks),
):
    return await PaymentService(db, clock, locks).audit_for_payment(payment_id)
