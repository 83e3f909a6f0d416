from decimal import Decimal

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    model_config = SettingsConfigDict(env_file=".env", env_file_encoding="utf-8", extra="ignore")

    APP_NAME: str = "telebill"
    version: str = "0.1.0"
    DEBUG: bool = False
    APP_DATABASE_DSN: str = "sqlite:////tmp/telebill.db"
    REDIS_URL: str = "redis://localhost:6379"

    # Default rate table, in minor currency units
    PRICING_SETUP_FEE: int = 500
    PRICING_MONTHLY_BASE: int = 1000
    PRICING_INBOUND_CALL_PER_MINUTE: int = 2
    PRICING_OUTBOUND_CALL_PER_MINUTE: int = 3
    PRICING_SMS_INBOUND: int = 1
    PRICING_SMS_OUTBOUND: int = 2
    PRICING_VOICEMAIL_PER_MESSAGE: int = 5
    PRICING_CALL_FORWARDING_PER_MINUTE: int = 1

    # Billing
    TAX_RATE: Decimal = Decimal("0.08")
    INVOICE_DUE_DAYS: int = 30
    GRACE_PERIOD_DAYS: int = 7
    DEFAULT_CURRENCY: str = "USD"
    REGIONAL_PRICING_CACHE_TTL_SECONDS: int = 3600
    # State where the business is GST-registered; other states are interstate
    GST_HOME_STATE: str = "KA"

    # Invoice documents
    PDF_STORAGE_PATH: str = "./storage/invoices"
    PDF_STORAGE_URL: str = "http://localhost:3002/invoices"

    # Payment gateways
    DEFAULT_PAYMENT_GATEWAY: str = "stripe"
    stripe_api_key: str = ""
    stripe_webhook_secret: str = ""
    manual_webhook_secret: str = ""

    # CORS
    CORS_ORIGINS: str = "http://localhost:3000,http://localhost:5173"


settings = Settings()
