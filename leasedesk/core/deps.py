from typing import AsyncGenerator

from fastapi import Depends
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from sqlalchemy.ext.asyncio import AsyncSession

from leasedesk.core.clock import Clock, SystemClock
from leasedesk.core.config import settings
from leasedesk.core.database import async_session_maker
from leasedesk.core.exceptions import AuthenticationRequired
from leasedesk.core.lease_locks import LeaseLocks
from leasedesk.core.security import decode_access_token


bearer_scheme = HTTPBearer(auto_error=False)

_system_clock = SystemClock()
# Shared by every request so writes on one lease serialize across the whole process.
_lease_locks = LeaseLocks(timeout=settings.LEASE_LOCK_TIMEOUT_SECONDS)


async def get_db() -> AsyncGenerator[AsyncSession, None]:
    async with async_session_maker() as session:
        yield session


def get_clock() -> Clock:
    return _system_clock


def get_lease_locks() -> LeaseLocks:
    return _lease_locks


async def get_current_actor(
    credentials: HTTPAuthorizationCredentials | None = Depends(bearer_scheme),
) -> str:
    """
    Actor id for the audit trail, taken from the bearer token's `sub` claim.
    Token issuance lives outside this service; only verification happens here.
    """
    if credentials is None or not credentials.credentials:
        raise AuthenticationRequired("Not authenticated")
    payload = decode_access_token(credentials.credentials)
    if payload is None:
        raise AuthenticationRequired("Could not validate credentials")
    actor = payload.get("sub")
    if not actor:
        raise AuthenticationRequired("Token missing subject")
    return str(actor)
