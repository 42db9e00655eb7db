import logging
import uuid
from dataclasses import asdict
from uuid import UUID

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from leasedesk.api.v1.leases.schemas import (
    CreateLeaseRequest,
    LeaseDetailResponse,
    LeaseFiguresResponse,
    LeaseResponse,
)
from leasedesk.api.v1.payments.schemas import AuditEntryItem, CustomerSummary
from leasedesk.api.v1.payments.service import to_payment_item
from leasedesk.core.audit_log import ReconciliationAuditLog
from leasedesk.core.clock import Clock
from leasedesk.core.exceptions import CustomerNotFoundError, LeaseNotFoundError
from leasedesk.core.financials import FinancialAggregator
from leasedesk.core.lease_locks import LeaseLocks
from leasedesk.core.payment_ledger import PaymentLedger
from leasedesk.models.audit_entry import AuditEntry
from leasedesk.models.customer import Customer
from leasedesk.models.lease import Lease
from leasedesk.models.payment import Payment


class LeaseService:
    def __init__(self, db: AsyncSession, clock: Clock, locks: LeaseLocks):
        self.db = db
        self.clock = clock
        self.locks = locks
        self.logger = logging.getLogger(__name__)

    async def create_lease(self, data: CreateLeaseRequest) -> LeaseDetailResponse:
        """Create the lease and its full payment schedule in one transaction."""
        customer = await self.db.get(Customer, data.customer_id)
        if not customer:
            raise CustomerNotFoundError(data.customer_id)

        lease = Lease(
            id=uuid.uuid4(),
            customer_id=data.customer_id,
            car_brand=data.car_brand,
            car_model=data.car_model,
            car_year=data.car_year,
            car_purchase_cost=data.car_purchase_cost,
            leasing_amount=data.leasing_amount,
            monthly_installment=data.monthly_installment,
            lease_duration=data.lease_duration,
            lease_start_date=data.lease_start_date,
        )
        ledger = PaymentLedger(self.clock, ReconciliationAuditLog(), locks=self.locks)
        payments = ledger.schedule_payments(lease)

        self.db.add(lease)
        self.db.add_all(payments)
        await self.db.commit()
        self.logger.info(
            "Lease created: lease_id=%s customer_id=%s payments=%s", lease.id, customer.id, len(payments)
        )
        return self._detail(lease, customer, payments)

    async def get_lease(self, lease_id: UUID) -> LeaseDetailResponse:
        row = (
            await self.db.execute(
                select(Lease, Customer).join(Customer, Lease.customer_id == Customer.id).where(Lease.id == lease_id)
            )
        ).first()
        if row is None:
            raise LeaseNotFoundError(lease_id)
        lease, customer = row
        payments = (
            await self.db.execute(
                select(Payment).where(Payment.lease_id == lease_id).order_by(Payment.sequence_index)
            )
        ).scalars().all()
        return self._detail(lease, customer, payments)

    async def audit_for_lease(self, lease_id: UUID) -> list[AuditEntryItem]:
        lease = await self.db.get(Lease, lease_id)
        if not lease:
            raise LeaseNotFoundError(lease_id)
        result = await self.db.execute(
            select(AuditEntry).where(AuditEntry.lease_id == lease_id).order_by(AuditEntry.position)
        )
        return [AuditEntryItem.model_validate(e) for e in result.scalars().all()]

    def _detail(self, lease: Lease, customer: Customer | None, payments) -> LeaseDetailResponse:
        today = self.clock.today()
        figures = FinancialAggregator(self.clock).lease_figures(lease, payments, today)
        figures_data = asdict(figures)
        figures_data.pop("lease_id")
        return LeaseDetailResponse(
            lease=LeaseResponse.model_validate(lease),
            customer=CustomerSummary.model_validate(customer) if customer is not None else None,
            payments=[to_payment_item(p, today) for p in payments],
            figures=LeaseFiguresResponse(**figures_data),
        )
