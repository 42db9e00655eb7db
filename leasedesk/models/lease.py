import uuid

from sqlalchemy import Column, Date, DateTime, ForeignKey, Integer, Numeric, String, Uuid
from sqlalchemy.orm import relationship

from leasedesk.core.database import Base
from leasedesk.core.utils import utcnow


class Lease(Base):
    __tablename__ = "leases"

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    customer_id = Column(Uuid, ForeignKey("customers.id"), nullable=False, index=True)
    car_brand = Column(String, nullable=True, index=True)
    car_model = Column(String, nullable=True)
    car_year = Column(String, nullable=True)
    car_purchase_cost = Column(Numeric(12, 2), nullable=True)
    leasing_amount = Column(Numeric(12, 2), nullable=False)  # principal financed
    monthly_installment = Column(Numeric(12, 2), nullable=False)
    lease_duration = Column(Integer, nullable=False)  # months
    lease_start_date = Column(Date, nullable=False)
    created_at = Column(DateTime, default=utcnow)
    updated_at = Column(DateTime, default=utcnow, onupdate=utcnow)

    customer = relationship("Customer", back_populates="leases")
    payments = relationship("Payment", back_populates="lease", order_by="Payment.sequence_index")
