from uuid import UUID

from fastapi import APIRouter, Depends, status
from sqlalchemy.ext.asyncio import AsyncSession

from leasedesk.api.v1.leases.schemas import CreateLeaseRequest, LeaseDetailResponse
from leasedesk.api.v1.leases.service import LeaseService
from leasedesk.api.v1.payments.schemas import AuditEntryItem
from leasedesk.core.clock import Clock
from leasedesk.core.deps import get_clock, get_current_actor, get_db, get_lease_locks
from leasedesk.core.lease_locks import LeaseLocks

router = APIRouter()


@router.post(
    "/",
    response_model=LeaseDetailResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Create lease",
    description="Create a lease for an existing customer and schedule one payment per month of its duration.",
)
async def create_lease(
    data: CreateLeaseRequest,
    actor: str = Depends(get_current_actor),
    db: AsyncSession = Depends(get_db),
    clock: Clock = Depends(get_clock),
    locks: LeaseLocks = Depends(get_lease_locks),
):
    return await LeaseService(db, clock, locks).create_lease(data)


@router.get(
    "/{lease_id}",
    response_model=LeaseDetailResponse,
    status_code=status.HTTP_200_OK,
    summary="Get lease",
    description="Lease with its payments (statuses derived now) and its collection figures.",
)
async def get_lease(
    lease_id: UUID,
    actor: str = Depends(get_current_actor),
    db: AsyncSession = Depends(get_db),
    clock: Clock = Depends(get_clock),
    locks: LeaseLocks = Depends(get_lease_locks),
):
    return await LeaseService(db, clock, locks).get_lease(lease_id)


@router.get(
    "/{lease_id}/audit",
    response_model=list[AuditEntryItem],
    status_code=status.HTTP_200_OK,
    summary="Lease audit trail",
)
async def lease_audit(
    lease_id: UUID,
    actor: str = Depends(get_current_actor),
    db: AsyncSession = Depends(get_db),
    clock: Clock = Depends(get_clock),
    locks: LeaseLocks = Depends(get_lease_locks),
):
    return await LeaseService(db, clock, locks).audit_for_lease(lease_id)
