import uuid

from sqlalchemy import Column, DateTime, String, Uuid
from sqlalchemy.orm import relationship

from leasedesk.core.database import Base
from leasedesk.core.utils import utcnow


class Customer(Base):
    __tablename__ = "customers"

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    full_name = Column(String, nullable=False, index=True)
    phone_number = Column(String, nullable=True)
    created_at = Column(DateTime, default=utcnow)
    updated_at = Column(DateTime, default=utcnow, onupdate=utcnow)

    leases = relationship("Lease", back_populates="customer")
