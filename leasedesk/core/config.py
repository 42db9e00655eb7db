from pathlib import Path
from pydantic import Field
from pydantic_settings import BaseSettings
from dotenv import load_dotenv

# -------------------------------------------------
# Explicitly load .env before settings are read
# -------------------------------------------------

BASE_DIR = Path(__file__).resolve().parent.parent.parent
ENV_PATH = BASE_DIR / ".env"

load_dotenv(dotenv_path=ENV_PATH)


class Settings(BaseSettings):
    DATABASE_URL: str
    SECRET_KEY: str
    ENVIRONMENT: str = "development"
    ACCESS_TOKEN_EXPIRE_MINUTES: int = 60
    ALGORITHM: str = "HS256"

    LOG_LEVEL: str = Field(default="INFO", description="Root log level")
    SQL_ECHO: bool = Field(default=False, description="Echo SQL statements from the async engine")
    CORS_ORIGINS: list[str] = Field(default_factory=lambda: ["*"])

    # Ledger behaviour
    CURRENCY: str = Field(default="AZN", description="Single currency unit for every monetary field")
    LEASE_LOCK_TIMEOUT_SECONDS: float = Field(
        default=5.0, description="How long a write waits for the per-lease lock before failing"
    )
    ALLOW_UNALLOCATED_EXCESS: bool = Field(
        default=True,
        description="Keep overpayment that exceeds all later installments as customer credit instead of rejecting it",
    )
    AUTO_CREATE_TABLES: bool = Field(default=False, description="Run create_all on startup (dev/test only)")

    class Config:
        extra = "ignore"
        env_file = str(ENV_PATH)
        env_file_encoding = "utf-8"


settings = Settings()
