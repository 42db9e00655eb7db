from typing import Optional
from uuid import UUID

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.ext.asyncio import AsyncSession

from leasedesk.api.v1.customers.schemas import (
    CreateCustomerRequest,
    CustomerListResponse,
    CustomerResponse,
    UpdateCustomerRequest,
)
from leasedesk.api.v1.customers.service import CustomerService
from leasedesk.core.deps import get_current_actor, get_db

router = APIRouter()


@router.post(
    "/",
    response_model=CustomerResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Create customer",
)
async def create_customer(
    data: CreateCustomerRequest,
    actor: str = Depends(get_current_actor),
    db: AsyncSession = Depends(get_db),
):
    customer = await CustomerService(db).create_customer(data)
    return CustomerResponse.model_validate(customer)


@router.get(
    "/",
    response_model=CustomerListResponse,
    status_code=status.HTTP_200_OK,
    summary="List customers",
    description="List customers with pagination and name/phone search.",
)
async def list_customers(
    skip: int = Query(0, ge=0, description="Number of records to skip"),
    limit: int = Query(100, ge=1, le=1000, description="Maximum number of records to return"),
    search: Optional[str] = Query(None, description="Search by name or phone"),
    actor: str = Depends(get_current_actor),
    db: AsyncSession = Depends(get_db),
):
    customers, total = await CustomerService(db).list_customers(skip=skip, limit=limit, search=search)
    return CustomerListResponse(items=[CustomerResponse.model_validate(c) for c in customers], total=total)


@router.get(
    "/{customer_id}",
    response_model=CustomerResponse,
    status_code=status.HTTP_200_OK,
    summary="Get customer by ID",
)
async def get_customer(
    customer_id: UUID,
    actor: str = Depends(get_current_actor),
    db: AsyncSession = Depends(get_db),
):
    customer = await CustomerService(db).get_customer(customer_id)
    return CustomerResponse.model_validate(customer)


@router.put(
    "/{customer_id}",
    response_model=CustomerResponse,
    status_code=status.HTTP_200_OK,
    summary="Update customer",
    description="Update the customer's name and phone number. Lease terms are not editable here.",
)
async def update_customer(
    customer_id: UUID,
    data: UpdateCustomerRequest,
    actor: str = Depends(get_current_actor),
    db: AsyncSession = Depends(get_db),
):
    customer = await CustomerService(db).update_customer(customer_id, data)
    return CustomerResponse.model_validate(customer)
