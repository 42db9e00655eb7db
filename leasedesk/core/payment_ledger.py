"""Scheduled payments of each lease and the only two operations that change them."""
import logging
import uuid
from dataclasses import dataclass
from datetime import date
from decimal import Decimal
from typing import Iterable
from uuid import UUID

from leasedesk.core.audit_log import ReconciliationAuditLog
from leasedesk.core.clock import Clock
from leasedesk.core.exceptions import (
    AllocationOverflowError,
    AlreadyPaidError,
    InvalidAmountError,
    InvalidLeaseError,
    PaymentNotFoundError,
)
from leasedesk.core.lease_locks import LeaseLocks
from leasedesk.core.lease_schedule import get_due_dates
from leasedesk.core.overpayment import Credit, OverpaymentAllocator
from leasedesk.core.payment_status import derive_status
from leasedesk.core.utils import ZERO, to_money, to_stored_money
from leasedesk.models.enums import PaymentStatus
from leasedesk.models.payment import Payment

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class MarkPaidResult:
    payment: Payment
    overpayment: Decimal
    credits: list[Credit]
    unallocated_excess: Decimal


@dataclass(frozen=True)
class PaymentSnapshot:
    id: UUID
    lease_id: UUID
    sequence_index: int
    due_date: date
    scheduled_amount: Decimal
    credited_amount: Decimal
    actual_amount_paid: Decimal | None
    payment_date: date | None
    paid_flag: bool
    unallocated_excess: Decimal

    @property
    def effective_amount(self) -> Decimal:
        return max(ZERO, self.scheduled_amount - self.credited_amount)


@dataclass(frozen=True)
class LeaseSnapshot:
    lease: object
    payments: tuple[PaymentSnapshot, ...]


class PaymentLedger:
    def __init__(
        self,
        clock: Clock,
        audit_log: ReconciliationAuditLog,
        allocator: OverpaymentAllocator | None = None,
        locks: LeaseLocks | None = None,
        allow_unallocated_excess: bool = True,
    ):
        self.clock = clock
        self.audit_log = audit_log
        self.allocator = allocator or OverpaymentAllocator(audit_log)
        self.locks = locks or LeaseLocks()
        self.allow_unallocated_excess = allow_unallocated_excess
        self._leases: dict[UUID, object] = {}
        self._payments: dict[UUID, Payment] = {}

    # --- registry ---

    def load(self, lease, payments: Iterable[Payment]) -> None:
        """Register a lease and its already-scheduled payments (e.g. rows read from the database)."""
        self._leases[lease.id] = lease
        for p in payments:
            self._payments[p.id] = p

    def get(self, payment_id: UUID) -> Payment:
        payment = self._payments.get(payment_id)
        if payment is None:
            raise PaymentNotFoundError(payment_id)
        return payment

    def payments_for(self, lease_id: UUID) -> list[Payment]:
        return sorted((p for p in self._payments.values() if p.lease_id == lease_id), key=lambda p: p.sequence_index)

    def snapshot(self, lease_id: UUID) -> LeaseSnapshot:
        """All payments of one lease as seen at a single instant, safe to read while writes go on."""
        with self.locks.hold(lease_id):
            return LeaseSnapshot(
                lease=self._leases.get(lease_id),
                payments=tuple(
                    PaymentSnapshot(
                        id=p.id,
                        lease_id=p.lease_id,
                        sequence_index=p.sequence_index,
                        due_date=p.due_date,
                        scheduled_amount=to_money(p.scheduled_amount),
                        credited_amount=to_money(p.credited_amount or ZERO),
                        actual_amount_paid=p.actual_amount_paid,
                        payment_date=p.payment_date,
                        paid_flag=bool(p.paid_flag),
                        unallocated_excess=to_money(p.unallocated_excess or ZERO),
                    )
                    for p in self.payments_for(lease_id)
                ),
            )

    # --- operations ---

    def schedule_payments(self, lease) -> list[Payment]:
        """
        Create the lease's full installment schedule: lease_duration unpaid payments of
        monthly_installment each, due lease_start_date + i months.
        """
        duration = lease.lease_duration
        if duration is None or int(duration) != duration or duration < 1:
            raise InvalidLeaseError(f"Lease duration must be a whole number of months >= 1, got {duration!r}")
        if lease.monthly_installment is None:
            raise InvalidLeaseError("Monthly installment is required")
        try:
            installment = to_stored_money(lease.monthly_installment)
            for field in ("leasing_amount", "car_purchase_cost"):
                if getattr(lease, field, None) is not None:
                    to_stored_money(getattr(lease, field))
        except ValueError as e:
            raise InvalidLeaseError(str(e))
        if installment < ZERO:
            raise InvalidLeaseError(f"Monthly installment cannot be negative, got {installment}")
        if lease.lease_start_date is None:
            raise InvalidLeaseError("Lease start date is required")
        if lease.id is None:
            lease.id = uuid.uuid4()

        payments = [
            Payment(
                id=uuid.uuid4(),
                lease_id=lease.id,
                sequence_index=i,
                due_date=due,
                scheduled_amount=installment,
                credited_amount=ZERO,
                actual_amount_paid=None,
                payment_date=None,
                proof_ref=None,
                paid_flag=False,
                unallocated_excess=ZERO,
            )
            for i, due in enumerate(get_due_dates(lease.lease_start_date, int(duration)))
        ]
        self.load(lease, payments)
        logger.info("Scheduled %s payments of %s for lease_id=%s", len(payments), installment, lease.id)
        return payments

    def mark_paid(
        self,
        payment_id: UUID,
        payment_date: date,
        actor: str,
        actual_amount_paid=None,
        proof_ref: str | None = None,
        notes: str | None = None,
    ) -> MarkPaidResult:
        """
        Record an installment as paid. Not idempotent: a second call fails with AlreadyPaidError
        and changes nothing. Any amount above the effective amount is credited to later installments.
        """
        payment = self.get(payment_id)
        with self.locks.hold(payment.lease_id):
            if payment.paid_flag:
                raise AlreadyPaidError(payment.id)
            today = self.clock.today()
            if payment_date is None:
                raise InvalidAmountError("Payment date is required")
            if payment_date > today:
                raise InvalidAmountError(f"Payment date {payment_date.isoformat()} is in the future")
            effective = payment.effective_amount
            if actual_amount_paid is None:
                amount = effective
            else:
                try:
                    amount = to_stored_money(actual_amount_paid)
                except ValueError as e:
                    raise InvalidAmountError(str(e))
            if amount < ZERO:
                raise InvalidAmountError(f"Amount paid cannot be negative, got {amount}")

            overpayment = max(ZERO, amount - effective)
            plan = self.allocator.plan(payment, self.payments_for(payment.lease_id), overpayment)
            if plan.unallocated_excess > ZERO and not self.allow_unallocated_excess:
                raise AllocationOverflowError(payment.id, plan.unallocated_excess)

            # validation done; from here on every change is recorded
            now = self.clock.now()
            previous = derive_status(payment, today)
            payment.paid_flag = True
            payment.payment_date = payment_date
            payment.actual_amount_paid = amount
            payment.proof_ref = proof_ref
            payment.notes = notes
            payment.unallocated_excess = plan.unallocated_excess
            self.audit_log.record_transition(payment, previous, PaymentStatus.paid, actor, now, notes)
            allocation = self.allocator.apply(plan, actor, now, today)

        logger.info(
            "Marked paid: payment_id=%s lease_id=%s amount=%s overpayment=%s actor=%s",
            payment.id,
            payment.lease_id,
            amount,
            overpayment,
            actor,
        )
        return MarkPaidResult(
            payment=payment,
            overpayment=overpayment,
            credits=allocation.credits,
            unallocated_excess=allocation.unallocated_excess,
        )

    def revert(self, payment_id: UUID, actor: str, notes: str | None = None) -> Payment:
        """
        Toggle the paid flag.
        paid -> unpaid withdraws every credit this payment granted and clears what mark_paid recorded;
        unpaid -> paid settles the installment at its effective amount, dated today, without allocation.
        """
        payment = self.get(payment_id)
        with self.locks.hold(payment.lease_id):
            today = self.clock.today()
            now = self.clock.now()
            previous = derive_status(payment, today)
            if payment.paid_flag:
                reverted_amount = payment.actual_amount_paid
                self.allocator.rollback(payment, self.payments_for(payment.lease_id), actor, now, today)
                payment.paid_flag = False
                payment.payment_date = None
                payment.actual_amount_paid = None
                payment.proof_ref = None
                payment.unallocated_excess = ZERO
                payment.notes = notes
                self.audit_log.record_transition(
                    payment, previous, derive_status(payment, today), actor, now, notes, amount=reverted_amount
                )
            else:
                payment.paid_flag = True
                payment.payment_date = today
                payment.actual_amount_paid = payment.effective_amount
                payment.notes = notes
                self.audit_log.record_transition(payment, previous, PaymentStatus.paid, actor, now, notes)

        logger.info(
            "Reverted: payment_id=%s lease_id=%s %s -> %s actor=%s",
            payment.id,
            payment.lease_id,
            previous.value,
            derive_status(payment, today).value,
            actor,
        )
        return payment
