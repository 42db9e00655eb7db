from fastapi import APIRouter

from leasedesk.api.v1.health import router as health_router
from leasedesk.api.v1.customers.router import router as customers_router
from leasedesk.api.v1.leases.router import router as leases_router
from leasedesk.api.v1.payments.router import router as payments_router
from leasedesk.api.v1.reports.router import router as reports_router

api_router = APIRouter()
api_router.include_router(health_router, prefix="/health", tags=["health"])
api_router.include_router(customers_router, prefix="/customers", tags=["customers"])
api_router.include_router(leases_router, prefix="/leases", tags=["leases"])
api_router.include_router(payments_router, prefix="/payments", tags=["payments"])
api_router.include_router(reports_router, prefix="/reports", tags=["reports"])
