import os
import tempfile
import uuid
from datetime import date
from decimal import Decimal
from types import SimpleNamespace

# Settings are read at import time; point them at a throwaway SQLite file first.
_DB_DIR = tempfile.mkdtemp(prefix="leasedesk-tests-")
os.environ["DATABASE_URL"] = f"sqlite+aiosqlite:///{os.path.join(_DB_DIR, 'test.db')}"
os.environ["SECRET_KEY"] = "test-secret-key"
os.environ.setdefault("LOG_LEVEL", "WARNING")

import pytest  # noqa: E402
from httpx import ASGITransport, AsyncClient  # noqa: E402

from leasedesk.core.audit_log import ReconciliationAuditLog  # noqa: E402
from leasedesk.core.clock import FixedClock  # noqa: E402
from leasedesk.core.lease_locks import LeaseLocks  # noqa: E402
from leasedesk.core.payment_ledger import PaymentLedger  # noqa: E402


def make_lease(
    installment="100.00",
    duration=3,
    start=date(2024, 1, 1),
    leasing_amount="250.00",
    car_brand="Toyota",
):
    """Plain lease record; the ledger only reads attributes, so no ORM session is needed."""
    return SimpleNamespace(
        id=uuid.uuid4(),
        customer_id=uuid.uuid4(),
        car_brand=car_brand,
        car_model=None,
        car_year=None,
        car_purchase_cost=None,
        leasing_amount=Decimal(leasing_amount),
        monthly_installment=Decimal(installment),
        lease_duration=duration,
        lease_start_date=start,
    )


@pytest.fixture
def clock():
    return FixedClock(date(2024, 1, 5))


@pytest.fixture
def audit_log():
    return ReconciliationAuditLog()


@pytest.fixture
def ledger(clock, audit_log):
    return PaymentLedger(clock, audit_log, locks=LeaseLocks(timeout=1.0))


@pytest.fixture
def scheduled(ledger):
    """A 3 x 100 lease starting 2024-01-01, already scheduled on the ledger."""
    lease = make_lease()
    payments = ledger.schedule_payments(lease)
    return lease, payments


# --- API fixtures ---


@pytest.fixture
async def db_tables():
    from leasedesk.core.startup import drop_tables, ensure_tables

    await ensure_tables()
    yield
    await drop_tables()


@pytest.fixture
async def client(db_tables, clock):
    from leasedesk.core.deps import get_clock
    from leasedesk.main import app

    app.dependency_overrides[get_clock] = lambda: clock
    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as ac:
        yield ac
    app.dependency_overrides.clear()


@pytest.fixture
def auth_headers():
    from leasedesk.core.security import create_access_token

    token = create_access_token({"sub": "admin@leasedesk.test"})
    return {"Authorization": f"Bearer {token}"}
