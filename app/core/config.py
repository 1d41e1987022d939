# app/core/config.py

from pathlib import Path
from pydantic import field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

# Get the project root directory (where .env should be located)
BASE_DIR = Path(__file__).resolve().parent.parent.parent

class Settings(BaseSettings):
    model_config = SettingsConfigDict(
        env_file=str(BASE_DIR / ".env"),
        env_file_encoding='utf-8',
        case_sensitive=True,
        extra="ignore"
    )

    # App Configuration
    APP_NAME: str = "Ledger Pay API"
    DEBUG: bool = False
    VERSION: str = "1.0.0"
    LOG_LEVEL: str = "INFO"

    # Database Configuration
    DATABASE_URL: str

    # JWT / Security Configuration
    SECRET_KEY: str
    ALGORITHM: str = "HS256"
    ACCESS_TOKEN_EXPIRE_MINUTES: int = 10080
    JWT_AUDIENCE: str = "fastapi-users:auth"

    # CORS Configuration
    FRONTEND_URL: str = "http://localhost:3000"

    # Settlement scheduler
    SCHEDULER_ENABLED: bool = True
    SCHEDULER_INTERVAL_SECONDS: int = 60

    # Ledger rules
    BUDGET_WARNING_RATIO: float = 0.9
    SAVINGS_CATEGORY_NAME: str = "Savings"

    # Optional: Environment
    ENVIRONMENT: str = "development"

    @field_validator("BUDGET_WARNING_RATIO")
    @classmethod
    def check_warning_ratio(cls, value: float) -> float:
        if not 0 < value <= 1:
            raise ValueError("BUDGET_WARNING_RATIO must be in (0, 1]")
        return value

    @field_validator("SCHEDULER_INTERVAL_SECONDS")
    @classmethod
    def check_interval(cls, value: int) -> int:
        if value <= 0:
            raise ValueError("SCHEDULER_INTERVAL_SECONDS must be positive")
        return value

    @property
    def is_supabase(self) -> bool:
        """Check if we're using Supabase database"""
        return any(d in self.DATABASE_URL for d in [
            "supabase.co",
            "supabase.com",
            "pooler.supabase",
        ])

    @property
    def is_sqlite(self) -> bool:
        return self.DATABASE_URL.startswith("sqlite")

# Create a global settings instance
settings = Settings()
