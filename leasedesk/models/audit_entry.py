"""Reconciliation audit trail rows. Append-only: updates and deletes are rejected at flush."""
import uuid

from sqlalchemy import Column, DateTime, ForeignKey, Integer, Numeric, String, UniqueConstraint, Uuid, event

from leasedesk.core.database import Base
from leasedesk.core.exceptions import ImmutableRecordError


class AuditEntry(Base):
    """
    One recorded event on a payment.
    kind=status_change: from_status -> to_status of payment_id.
    kind=credit_granted / credit_reversed: amount moved onto / off payment_id because of
    the overpayment recorded on source_payment_id.
    """
    __tablename__ = "audit_entries"

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    lease_id = Column(Uuid, ForeignKey("leases.id"), nullable=False, index=True)
    payment_id = Column(Uuid, ForeignKey("payments.id"), nullable=False, index=True)
    position = Column(Integer, nullable=False)  # order within the lease's trail
    kind = Column(String(20), nullable=False)
    from_status = Column(String(20), nullable=False)
    to_status = Column(String(20), nullable=False)
    amount = Column(Numeric(12, 2), nullable=True)
    source_payment_id = Column(Uuid, ForeignKey("payments.id"), nullable=True, index=True)
    actor = Column(String(255), nullable=False)
    timestamp = Column(DateTime, nullable=False)
    notes = Column(String(500), nullable=True)

    __table_args__ = (UniqueConstraint("lease_id", "position", name="uq_audit_lease_position"),)

    def __repr__(self) -> str:
        return (
            f"<AuditEntry {self.kind} payment={self.payment_id} "
            f"{self.from_status}->{self.to_status} amount={self.amount}>"
        )


@event.listens_for(AuditEntry, "before_update")
def _reject_audit_update(mapper, connection, target):
    raise ImmutableRecordError(f"Audit entry {target.id} is immutable")


@event.listens_for(AuditEntry, "before_delete")
def _reject_audit_delete(mapper, connection, target):
    raise ImmutableRecordError(f"Audit entry {target.id} cannot be deleted")
