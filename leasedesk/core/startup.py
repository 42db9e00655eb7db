"""
Startup utilities for the application.
"""
import logging

from leasedesk.core.database import Base, engine
import leasedesk.models  # noqa: F401  registers every table on Base.metadata

logger = logging.getLogger(__name__)


async def ensure_tables():
    """
    Create any missing tables from the ORM metadata.
    Production schemas come from `alembic upgrade head`; this is for local runs and tests.
    """
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    logger.info("Tables ensured: %s", ", ".join(sorted(Base.metadata.tables)))


async def drop_tables():
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)
