from __future__ import annotations

from datetime import datetime
from uuid import UUID

from pydantic import Field

from leasedesk.api.v1.base_schema import CamelModel


class CreateCustomerRequest(CamelModel):
    full_name: str = Field(..., min_length=1, max_length=255)
    phone_number: str | None = Field(None, max_length=50)


class CustomerResponse(CamelModel):
    id: UUID
    full_name: str
    phone_number: str | None = None
    created_at: datetime | None = None
    updated_at: datetime | None = None


class CustomerListResponse(CamelModel):
    items: list[CustomerResponse] = Field(default_factory=list)
    total: int = Field(..., description="Total count for pagination")


class UpdateCustomerRequest(CamelModel):
    """Only contact details are editable; lease terms are fixed once payments are scheduled."""
    full_name: str | None = Field(None, max_length=255)
    phone_number: str | None = Field(None, max_length=50)
