from sqlalchemy.ext.asyncio import create_async_engine, async_sessionmaker, AsyncSession
from sqlalchemy.orm import declarative_base
from sqlalchemy.pool import NullPool

from leasedesk.core.config import settings


def get_database_url():
    db_url = settings.DATABASE_URL
    if "postgresql" in db_url and "sslmode" not in db_url and settings.ENVIRONMENT == "production":
        return f"{db_url}?sslmode=require"
    return db_url


def get_engine_options(db_url: str) -> dict:
    """SQLite connections are bound to the loop that opened them, so never pool them."""
    if db_url.startswith("sqlite"):
        return {"poolclass": NullPool}
    return {"pool_pre_ping": True}


DATABASE_URL = get_database_url()
engine = create_async_engine(DATABASE_URL, echo=settings.SQL_ECHO, **get_engine_options(DATABASE_URL))
async_session_maker = async_sessionmaker(engine, expire_on_commit=False, class_=AsyncSession)
Base = declarative_base()


def get_async_session_maker_instance():
    """Get the async session maker instance."""
    return async_session_maker
