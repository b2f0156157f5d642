"""
app/core/config.py

Purpose: Application configuration

- Loads environment variables
- Centralizes config values (DB URI, secrets, gateway keys)
- Validates configuration on startup
- Environment-specific settings
"""

from pydantic import Field, validator
from pydantic_settings import BaseSettings
from typing import Optional, Literal


DEFAULT_JWT_SECRET = "change-me-in-production"


class Settings(BaseSettings):
    """
    Application settings loaded from environment variables.
    Validates all required configs on startup.
    """

    # Environment
    ENVIRONMENT: Literal["development", "staging", "production"] = "development"

    # MongoDB
    MONGODB_URL: str = Field(
        default="mongodb://localhost:27017",
        description="MongoDB connection URI"
    )
    MONGODB_DB_NAME: str = Field(
        default="bookstore",
        description="MongoDB database name"
    )

    # Sessions
    JWT_SECRET: str = Field(
        default=DEFAULT_JWT_SECRET,
        description="Symmetric secret used to sign session tokens"
    )
    SESSION_TTL_DAYS: int = Field(
        default=7,
        description="Session token lifetime in days"
    )

    # OTP
    OTP_EXPIRY_MINUTES: int = Field(
        default=5,
        description="OTP challenge validity in minutes"
    )
    OTP_STORE_BACKEND: Literal["memory", "mongo"] = Field(
        default="memory",
        description="Where OTP challenges live (memory for single instance, mongo for multi-instance)"
    )
    BRAND_NAME: str = Field(
        default="ShyamBooks",
        description="Brand shown in SMS and invoice emails"
    )

    # Twilio SMS
    TWILIO_ACCOUNT_SID: Optional[str] = Field(
        default=None,
        description="Twilio account SID"
    )
    TWILIO_AUTH_TOKEN: Optional[str] = Field(
        default=None,
        description="Twilio auth token"
    )
    TWILIO_PHONE_NUMBER: Optional[str] = Field(
        default=None,
        description="Sender phone number for OTP SMS"
    )

    # Razorpay
    RAZORPAY_KEY_ID: Optional[str] = Field(
        default=None,
        description="Razorpay key id"
    )
    RAZORPAY_KEY_SECRET: Optional[str] = Field(
        default=None,
        description="Razorpay key secret (also the callback HMAC secret)"
    )
    RAZORPAY_BASE_URL: str = Field(
        default="https://api.razorpay.com/v1",
        description="Razorpay API base URL"
    )
    PAYMENT_CURRENCY: str = Field(
        default="INR",
        description="Currency for gateway orders"
    )
    GATEWAY_TIMEOUT_SECONDS: float = Field(
        default=10.0,
        description="Timeout for payment gateway and SMS API calls"
    )

    # Email
    SENDGRID_API_KEY: Optional[str] = Field(
        default=None,
        description="SendGrid API key for invoice emails"
    )
    EMAIL_FROM: str = Field(
        default="orders@shyambooks.example",
        description="Sender address for invoice emails"
    )
    UPLOADS_DIR: str = Field(
        default="uploads",
        description="Directory holding <bookId>.pdf files"
    )

    # Application
    DEBUG: bool = Field(
        default=False,
        description="Enable debug mode"
    )
    LOG_LEVEL: str = Field(
        default="INFO",
        description="Logging level (DEBUG, INFO, WARNING, ERROR, CRITICAL)"
    )
    API_PREFIX: str = Field(
        default="/api",
        description="API route prefix"
    )
    CORS_ORIGINS: list = Field(
        default=["*"],
        description="Allowed CORS origins"
    )

    @validator("JWT_SECRET")
    def validate_jwt_secret(cls, v, values):
        """Ensure the signing secret is changed in production."""
        if values.get("ENVIRONMENT") == "production" and v == DEFAULT_JWT_SECRET:
            raise ValueError("JWT_SECRET must be changed in production environment")
        return v

    @validator("RAZORPAY_KEY_SECRET")
    def validate_razorpay_secret(cls, v, values):
        """Ensure the gateway secret is set in production."""
        if values.get("ENVIRONMENT") == "production" and not v:
            raise ValueError("RAZORPAY_KEY_SECRET is required in production environment")
        return v

    @property
    def is_development(self) -> bool:
        """Check if running in development mode."""
        return self.ENVIRONMENT == "development"

    @property
    def is_production(self) -> bool:
        """Check if running in production mode."""
        return self.ENVIRONMENT == "production"

    class Config:
        env_file = ".env"
        case_sensitive = True
        env_file_encoding = "utf-8"


# Global settings instance
settings = Settings()


def validate_settings():
    """
    Validates critical settings on application startup.
    Raises ValueError if any required setting is missing or invalid.
    """
    errors = []

    if not settings.MONGODB_URL:
        errors.append("MONGODB_URL is required")

    if not settings.JWT_SECRET:
        errors.append("JWT_SECRET is required")

    # Production-specific validations
    if settings.is_production:
        if not settings.RAZORPAY_KEY_ID:
            errors.append("RAZORPAY_KEY_ID is required in production")
        if not (settings.TWILIO_ACCOUNT_SID and settings.TWILIO_AUTH_TOKEN):
            errors.append("Twilio credentials are required in production")
        if settings.OTP_STORE_BACKEND == "memory":
            errors.append("OTP_STORE_BACKEND must be 'mongo' in production")

    if errors:
        raise ValueError(f"Configuration validation failed: {', '.join(errors)}")

    return True
