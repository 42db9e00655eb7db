import logging
from datetime import date
from uuid import UUID

from sqlalchemy import or_, select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm.exc import StaleDataError

from leasedesk.api.v1.payments.schemas import (
    AuditEntryItem,
    CreditItem,
    CustomerSummary,
    MarkPaidResponse,
    PaymentItem,
)
from leasedesk.core.audit_log import ReconciliationAuditLog
from leasedesk.core.clock import Clock
from leasedesk.core.config import settings
from leasedesk.core.exceptions import ConcurrentModificationError, LeaseDeskError, PaymentNotFoundError
from leasedesk.core.lease_locks import LeaseLocks
from leasedesk.core.payment_ledger import PaymentLedger
from leasedesk.core.payment_status import days_overdue, derive_status
from leasedesk.core.utils import ZERO
from leasedesk.models.audit_entry import AuditEntry
from leasedesk.models.customer import Customer
from leasedesk.models.lease import Lease
from leasedesk.models.payment import Payment

logger = logging.getLogger(__name__)


def to_payment_item(payment: Payment, today: date, customer: Customer | None = None) -> PaymentItem:
    """Response shape for a payment; status is derived here, at read time."""
    return PaymentItem(
        id=payment.id,
        lease_id=payment.lease_id,
        sequence_index=payment.sequence_index,
        due_date=payment.due_date,
        amount=payment.scheduled_amount,
        credited_amount=payment.credited_amount or ZERO,
        effective_amount=payment.effective_amount,
        actual_amount_paid=payment.actual_amount_paid,
        payment_date=payment.payment_date,
        proof_ref=payment.proof_ref,
        notes=payment.notes,
        unallocated_excess=payment.unallocated_excess or ZERO,
        status=derive_status(payment, today).value,
        days_overdue=days_overdue(payment, today),
        customer=CustomerSummary.model_validate(customer) if customer is not None else None,
    )


class PaymentService:
    def __init__(self, db: AsyncSession, clock: Clock, locks: LeaseLocks):
        self.db = db
        self.clock = clock
        self.locks = locks

    async def _open_ledger(self, payment_id: UUID) -> tuple[PaymentLedger, Lease]:
        """
        Lock the payment's lease row, then load every payment and audit entry of that lease,
        so the ledger works on one consistent view that no other writer can change underneath.
        """
        lease_id = (
            await self.db.execute(select(Payment.lease_id).where(Payment.id == payment_id))
        ).scalar_one_or_none()
        if lease_id is None:
            raise PaymentNotFoundError(payment_id)
        lease = (
            await self.db.execute(select(Lease).where(Lease.id == lease_id).with_for_update())
        ).scalar_one()
        payments = (
            await self.db.execute(
                select(Payment)
                .where(Payment.lease_id == lease_id)
                .order_by(Payment.sequence_index)
                .execution_options(populate_existing=True)
            )
        ).scalars().all()
        entries = (
            await self.db.execute(select(AuditEntry).where(AuditEntry.lease_id == lease_id))
        ).scalars().all()
        ledger = PaymentLedger(
            self.clock,
            ReconciliationAuditLog(entries),
            locks=self.locks,
            allow_unallocated_excess=settings.ALLOW_UNALLOCATED_EXCESS,
        )
        ledger.load(lease, payments)
        return ledger, lease

    async def _commit(self, ledger: PaymentLedger, lease_id: UUID) -> None:
        self.db.add_all(ledger.audit_log.pending_entries())
        try:
            await self.db.commit()
        except (StaleDataError, IntegrityError) as e:
            await self.db.rollback()
            logger.warning("Concurrent write rejected: lease_id=%s error=%s", lease_id, e)
            raise ConcurrentModificationError(lease_id)
        ledger.audit_log.mark_persisted()

    async def mark_paid(
        self,
        payment_id: UUID,
        payment_date: date,
        actor: str,
        actual_amount=None,
        notes: str | None = None,
        proof_ref: str | None = None,
    ) -> MarkPaidResponse:
        lease_id = None
        try:
            ledger, lease = await self._open_ledger(payment_id)
            lease_id = lease.id
            result = ledger.mark_paid(
                payment_id,
                payment_date,
                actor,
                actual_amount_paid=actual_amount,
                proof_ref=proof_ref,
                notes=notes,
            )
            await self._commit(ledger, lease_id)
        except LeaseDeskError:
            await self.db.rollback()
            raise
        except Exception:
            logger.exception("Mark paid failed: payment_id=%s lease_id=%s actor=%s", payment_id, lease_id, actor)
            await self.db.rollback()
            raise
        return MarkPaidResponse(
            payment=to_payment_item(result.payment, self.clock.today()),
            overpayment=result.overpayment,
            unallocated_excess=result.unallocated_excess,
            credits=[
                CreditItem(payment_id=c.target_payment_id, sequence_index=c.sequence_index, amount=c.amount)
                for c in result.credits
            ],
        )

    async def revert(self, payment_id: UUID, actor: str, notes: str | None = None) -> PaymentItem:
        lease_id = None
        try:
            ledger, lease = await self._open_ledger(payment_id)
            lease_id = lease.id
            payment = ledger.revert(payment_id, actor, notes=notes)
            await self._commit(ledger, lease_id)
        except LeaseDeskError:
            await self.db.rollback()
            raise
        except Exception:
            logger.exception("Revert failed: payment_id=%s lease_id=%s actor=%s", payment_id, lease_id, actor)
            await self.db.rollback()
            raise
        return to_payment_item(payment, self.clock.today())

    async def list_payments(
        self,
        status: str | None = None,
        search: str | None = None,
        start_date: date | None = None,
        end_date: date | None = None,
    ) -> list[PaymentItem]:
        """Payments with a customer summary; status filter applies to the derived status."""
        query = (
            select(Payment, Customer)
            .join(Lease, Payment.lease_id == Lease.id)
            .join(Customer, Lease.customer_id == Customer.id)
        )
        if search and search.strip():
            term = f"%{search.strip()}%"
            query = query.where(or_(Customer.full_name.ilike(term), Customer.phone_number.ilike(term)))
        if start_date:
            query = query.where(Payment.due_date >= start_date)
        if end_date:
            query = query.where(Payment.due_date <= end_date)
        query = query.order_by(Payment.due_date, Payment.sequence_index)

        today = self.clock.today()
        result = await self.db.execute(query)
        items = [to_payment_item(payment, today, customer) for payment, customer in result.all()]
        if status:
            items = [i for i in items if i.status == status]
        return items

    async def get_payment(self, payment_id: UUID) -> PaymentItem:
        row = (
            await self.db.execute(
                select(Payment, Customer)
                .join(Lease, Payment.lease_id == Lease.id)
                .join(Customer, Lease.customer_id == Customer.id)
                .where(Payment.id == payment_id)
            )
        ).first()
        if row is None:
            raise PaymentNotFoundError(payment_id)
        payment, customer = row
        return to_payment_item(payment, self.clock.today(), customer)

    async def audit_for_payment(self, payment_id: UUID) -> list[AuditEntryItem]:
        """Entries recorded on the payment plus credits its overpayment moved onto other installments."""
        exists = (await self.db.execute(select(Payment.id).where(Payment.id == payment_id))).scalar_one_or_none()
        if exists is None:
            raise PaymentNotFoundError(payment_id)
        result = await self.db.execute(
            select(AuditEntry)
            .where(or_(AuditEntry.payment_id == payment_id, AuditEntry.source_payment_id == payment_id))
            .order_by(AuditEntry.timestamp, AuditEntry.position)
        )
        return [AuditEntryItem.model_validate(e) for e in result.scalars().all()]
