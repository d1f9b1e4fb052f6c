from pathlib import Path
from typing import List, Optional

from pydantic_settings import BaseSettings, SettingsConfigDict


class settings(BaseSettings):
    model_config = SettingsConfigDict(
        env_file=str(Path(__file__).resolve().parent.parent.parent / ".env"),
        extra="allow",
    )

    DJANGO_SECRET_KEY: str = "dev-only-insecure-secret-key-change-me"
    DJANGO_ENV: str = "development"
    DEBUG: bool = True
    LOG_LEVEL: str = "INFO"

    # PostgreSQL is used when DB_NAME is set, SQLite otherwise
    DB_NAME: Optional[str] = None
    DB_USER: Optional[str] = None
    DB_PASSWORD: Optional[str] = None
    DB_HOST: str = "localhost"
    DB_PORT: str = "5432"
    DB_SSLMODE: str = "prefer"
    SQLITE_PATH: str = "db.sqlite3"

    CORS_ALLOWED_ORIGINS: str = "http://localhost:3000,http://localhost:5173"

    JWT_ACCESS_MINUTES: int = 60
    JWT_REFRESH_DAYS: int = 14

    # Seconds to wait before each payroll attempt for one budget
    PAYROLL_RETRY_DELAYS: str = "0,0.75,2"
    DEFAULT_WINDOW_DAYS: int = 30
    TRANSACTION_PAGE_SIZE: int = 50
    TRANSACTION_PAGE_MAX: int = 500

    @property
    def is_production(self) -> bool:
        return self.DJANGO_ENV == "production"

    @property
    def payroll_retry_delays(self) -> List[float]:
        return [float(d) for d in self.PAYROLL_RETRY_DELAYS.split(",") if d.strip()]

    @property
    def cors_origins(self) -> List[str]:
        return [o.strip() for o in self.CORS_ALLOWED_ORIGINS.split(",") if o.strip()]


def get_setting():
    return settings()
