from pydantic_settings import BaseSettings, SettingsConfigDict
from typing import List, Any
import os
import json
from pathlib import Path


def parse_cors_origins(v: Any) -> List[str]:
    """Parse CORS origins from string or list"""
    if isinstance(v, list):
        return v
    if isinstance(v, str):
        # Try JSON parsing first
        if v.startswith('['):
            try:
                return json.loads(v)
            except json.JSONDecodeError:
                pass
        # Fall back to comma-separated
        return [origin.strip() for origin in v.split(',') if origin.strip()]
    return []


def parse_csv_list(v: Any) -> List[str]:
    """Parse a comma-separated setting into a lowercase list"""
    if isinstance(v, list):
        return [str(item).strip().lower() for item in v]
    if isinstance(v, str):
        return [item.strip().lower() for item in v.split(',') if item.strip()]
    return []


class Settings(BaseSettings):
    """Application settings - all configurable via environment variables"""

    model_config = SettingsConfigDict(env_file=".env", case_sensitive=True, extra="ignore")

    # ==========================================
    # Application
    # ==========================================
    APP_NAME: str = "Shikkha Hub"
    ENVIRONMENT: str = "development"
    DEBUG: bool = True
    TESTING: bool = False
    SECRET_KEY: str
    API_PREFIX: str = "/api"
    API_VERSION: str = "1.0.0"

    # Server Configuration
    SERVER_HOST: str = "0.0.0.0"
    SERVER_PORT: int = 8000

    # ==========================================
    # Database
    # ==========================================
    DATABASE_URL: str
    DB_POOL_SIZE: int = 10
    DB_MAX_OVERFLOW: int = 20
    DB_POOL_TIMEOUT: int = 30
    DB_POOL_RECYCLE: int = 1800  # 30 minutes
    DB_ECHO: bool = False

    # ==========================================
    # Redis (rate limit storage)
    # ==========================================
    REDIS_URL: str = "memory://"

    # ==========================================
    # Authentication
    # ==========================================
    JWT_SECRET_KEY: str
    JWT_ALGORITHM: str = "HS256"
    ACCESS_TOKEN_EXPIRE_MINUTES: int = 1440  # 24 hours
    REFRESH_TOKEN_EXPIRE_DAYS: int = 30
    BCRYPT_ROUNDS: int = 12  # 4 for dev (fast), 12 for prod (secure)
    AUTH_COOKIE_NAME: str = "sb-access-token"
    AUTH_COOKIE_SECURE: bool = False

    # ==========================================
    # Frontend
    # ==========================================
    FRONTEND_URL: str = "http://localhost:5173"
    PUBLIC_VERIFY_BASE_URL: str = "http://localhost:5173/verify"

    # ==========================================
    # CORS (stored as comma-separated string, parsed to list)
    # ==========================================
    CORS_ORIGINS_STR: str = "http://localhost:5173,http://localhost:3000,http://127.0.0.1:5173,http://127.0.0.1:3000"

    @property
    def CORS_ORIGINS(self) -> List[str]:
        """Parse CORS origins from comma-separated string"""
        return parse_cors_origins(self.CORS_ORIGINS_STR)

    # ==========================================
    # Rate Limiting
    # ==========================================
    RATE_LIMIT_ENABLED: bool = True
    RATE_LIMIT_PER_MINUTE: int = 120

    # ==========================================
    # Request limits
    # ==========================================
    MAX_REQUEST_SIZE: int = 10485760  # 10MB

    # ==========================================
    # Logging
    # ==========================================
    LOG_LEVEL: str = "INFO"
    LOG_FILE: str = "logs/app.log"

    # ==========================================
    # Email
    # ==========================================
    SMTP_HOST: str = "smtp.gmail.com"
    SMTP_PORT: int = 587
    SMTP_USER: str = ""
    SMTP_PASSWORD: str = ""
    EMAIL_FROM: str = "noreply@shikkhahub.com.bd"
    EMAIL_FROM_NAME: str = "Shikkha Hub"

    # SendGrid Configuration (preferred for bulk emails)
    SENDGRID_API_KEY: str = ""
    USE_SENDGRID: bool = True  # Use SendGrid when API key is available

    # ==========================================
    # Storage Configuration
    # ==========================================
    STORAGE_MODE: str = "local"  # "local" or "s3"
    STORAGE_LOCAL_PATH: str = "storage"

    # AWS S3 / MinIO
    USE_MINIO: bool = False
    AWS_ACCESS_KEY_ID: str = ""
    AWS_SECRET_ACCESS_KEY: str = ""
    AWS_REGION: str = "ap-south-1"
    S3_BUCKET_NAME: str = "shikkhahub-documents"
    MINIO_ENDPOINT: str = "localhost:9000"

    # ==========================================
    # Credit System Configuration
    # ==========================================
    DEFAULT_SCHOOL_CREDITS: int = 500
    CREDIT_PAYMENT_METHODS_REQUIRING_REFERENCE_STR: str = "bkash,nagad,rocket,card"

    @property
    def CREDIT_PAYMENT_METHODS_REQUIRING_REFERENCE(self) -> List[str]:
        """Payment methods that must carry a payment number and transaction id"""
        return parse_csv_list(self.CREDIT_PAYMENT_METHODS_REQUIRING_REFERENCE_STR)

    # ==========================================
    # School Modules
    # ==========================================
    LIBRARY_LOAN_DAYS: int = 14
    LIBRARY_FINE_PER_DAY: int = 5  # BDT per overdue day
    ADMIT_CARD_VALIDITY_DAYS: int = 30
    INVENTORY_DEFAULT_MIN_THRESHOLD: int = 10

    # Optional TTF with Bangla glyphs (e.g. Kalpurush, SolaimanLipi); Helvetica is used otherwise
    PDF_BANGLA_FONT_PATH: str = ""

    # ==========================================
    # Paths
    # ==========================================
    BASE_DIR: Path = Path(__file__).resolve().parent.parent.parent

    @property
    def STORAGE_DIR(self) -> Path:
        path = Path(self.STORAGE_LOCAL_PATH)
        if not path.is_absolute():
            path = self.BASE_DIR / path
        return path

    # ==========================================
    # Helper Methods
    # ==========================================
    def is_dev_mode(self) -> bool:
        """Check if running in development mode"""
        return self.ENVIRONMENT == "development" or self.DEBUG

    def is_testing(self) -> bool:
        """Check if running under the test suite"""
        return self.TESTING or os.getenv("TESTING", "").lower() in ("1", "true", "yes")

    def get_verify_url(self, verification_code: str) -> str:
        """Public verification URL embedded in document QR codes"""
        return f"{self.PUBLIC_VERIFY_BASE_URL.rstrip('/')}/{verification_code}"


# Create settings instance
settings = Settings()
