import logging
import uuid
from uuid import UUID

from sqlalchemy import func, or_, select
from sqlalchemy.ext.asyncio import AsyncSession

from leasedesk.api.v1.customers.schemas import CreateCustomerRequest, UpdateCustomerRequest
from leasedesk.core.exceptions import AppException, CustomerNotFoundError
from leasedesk.models.customer import Customer


class CustomerService:
    def __init__(self, db: AsyncSession):
        self.db = db
        self.logger = logging.getLogger(__name__)

    async def create_customer(self, data: CreateCustomerRequest) -> Customer:
        customer = Customer(
            id=uuid.uuid4(),
            full_name=data.full_name.strip(),
            phone_number=data.phone_number,
        )
        self.db.add(customer)
        await self.db.commit()
        await self.db.refresh(customer)
        self.logger.info("Customer created: customer_id=%s", customer.id)
        return customer

    async def get_customer(self, customer_id: UUID) -> Customer:
        customer = await self.db.get(Customer, customer_id)
        if not customer:
            raise CustomerNotFoundError(customer_id)
        return customer

    async def update_customer(self, customer_id: UUID, data: UpdateCustomerRequest) -> Customer:
        """Update name and phone. Fields left out of the request are unchanged."""
        customer = await self.get_customer(customer_id)
        if data.full_name is not None:
            full_name = data.full_name.strip()
            if not full_name:
                AppException().raise_400("Full name cannot be empty")
            customer.full_name = full_name
        if data.phone_number is not None:
            customer.phone_number = data.phone_number.strip() or None
        await self.db.commit()
        await self.db.refresh(customer)
        self.logger.info("Customer updated: customer_id=%s", customer.id)
        return customer

    async def list_customers(self, skip: int = 0, limit: int = 100, search: str | None = None) -> tuple[list[Customer], int]:
        query = select(Customer)
        count_query = select(func.count(Customer.id))
        if search and search.strip():
            term = f"%{search.strip()}%"
            condition = or_(Customer.full_name.ilike(term), Customer.phone_number.ilike(term))
            query = query.where(condition)
            count_query = count_query.where(condition)
        total = (await self.db.execute(count_query)).scalar() or 0
        result = await self.db.execute(query.order_by(Customer.full_name).offset(skip).limit(limit))
        return list(result.scalars().all()), total
