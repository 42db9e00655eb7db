import uuid

from sqlalchemy import Boolean, Column, Date, DateTime, ForeignKey, Integer, Numeric, String, UniqueConstraint, Uuid
from sqlalchemy.orm import relationship

from leasedesk.core.database import Base
from leasedesk.core.utils import ZERO, utcnow


class Payment(Base):
    """One scheduled installment. Only PaymentLedger.mark_paid / revert change it."""

    __tablename__ = "payments"

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    lease_id = Column(Uuid, ForeignKey("leases.id"), nullable=False, index=True)
    sequence_index = Column(Integer, nullable=False)  # 0-based position in the schedule
    due_date = Column(Date, nullable=False, index=True)
    scheduled_amount = Column(Numeric(12, 2), nullable=False)
    credited_amount = Column(Numeric(12, 2), nullable=False, default=ZERO)  # forgiven by earlier overpayments
    actual_amount_paid = Column(Numeric(12, 2), nullable=True)
    payment_date = Column(Date, nullable=True)
    proof_ref = Column(String(255), nullable=True)  # opaque blob id
    paid_flag = Column(Boolean, nullable=False, default=False)
    unallocated_excess = Column(Numeric(12, 2), nullable=False, default=ZERO)  # overpayment no later installment absorbed
    notes = Column(String(500), nullable=True)
    version = Column(Integer, nullable=False)
    created_at = Column(DateTime, default=utcnow)
    updated_at = Column(DateTime, default=utcnow, onupdate=utcnow)

    lease = relationship("Lease", back_populates="payments")

    __table_args__ = (UniqueConstraint("lease_id", "sequence_index", name="uq_payment_lease_sequence"),)
    __mapper_args__ = {"version_id_col": version}

    @property
    def effective_amount(self):
        """Amount still owed for this installment after credits; never negative."""
        return max(ZERO, (self.scheduled_amount or ZERO) - (self.credited_amount or ZERO))
