from pydantic_settings import BaseSettings
from functools import lru_cache
from typing import Optional


class Settings(BaseSettings):
    # Application
    APP_NAME: str = "D.N Express Logistics"
    APP_PORT: int = 5000
    APP_HOST: str = "0.0.0.0"
    DEBUG: bool = True
    ENVIRONMENT: str = "development"

    # Logging
    LOG_LEVEL: str = "INFO"
    LOGS_PATH: Optional[str] = None

    # Auth
    SECRET_KEY: str = "dnexpress-secret-key-change-in-production"
    REFRESH_SECRET_KEY: str = "dnexpress-refresh-secret-change-in-production"
    JWT_ALGORITHM: str = "HS256"
    ACCESS_TOKEN_EXPIRE_MINUTES: int = 60 * 24 * 7  # 7 days
    REFRESH_TOKEN_EXPIRE_DAYS: int = 30
    BCRYPT_ROUNDS: int = 10

    # Initial admin account, created on startup when both are set
    ADMIN_EMAIL: Optional[str] = None
    ADMIN_PASSWORD: Optional[str] = None

    # Persistence - leave empty to keep everything in memory
    DATABASE_URL: Optional[str] = None

    # Sethwan warehouse platform
    SETHWAN_API_URL: str = "https://api.sethwan.com"
    SETHWAN_API_KEY: Optional[str] = None
    SETHWAN_ACCOUNT_ID: Optional[str] = None
    SETHWAN_TIMEOUT: float = 10.0

    # Identifiers
    TRACKING_PREFIX: str = "DNE"
    CUSTOMER_PREFIX: str = "DNX"
    SKU_PREFIX: str = "SKU"
    MANIFEST_PREFIX: str = "MNF"

    # Forwarding warehouse (customers ship inbound packages here)
    WAREHOUSE_COMPANY: str = "D.N Express Logistics"
    WAREHOUSE_STREET: str = "4651 NW 72nd Avenue"
    WAREHOUSE_SUITE: str = "Suite 101"
    WAREHOUSE_CITY: str = "Miami"
    WAREHOUSE_STATE: str = "FL"
    WAREHOUSE_ZIP: str = "33166"
    WAREHOUSE_COUNTRY: str = "USA"

    # Business rules
    LOW_STOCK_THRESHOLD: int = 10
    STRICT_STATUS_TRANSITIONS: bool = True
    CURRENCY: str = "USD"

    @property
    def is_production(self) -> bool:
        return self.ENVIRONMENT.lower() == "production"

    class Config:
        env_file = ".env"
        extra = "ignore"


@lru_cache()
def get_settings() -> Settings:
    return Settings()
