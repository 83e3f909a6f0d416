"""Regional rate cards, tax configuration and volume discount tiers."""

from enum import Enum

from sqlalchemy import JSON, Column, DateTime, Integer, Numeric, String, func

from telebill.core.database import Base
from telebill.models.shared import UUIDType, generate_uuid


class Region(str, Enum):
    IN = "IN"
    US = "US"
    EU = "EU"
    GLOBAL = "GLOBAL"


class TaxType(str, Enum):
    GST = "GST"
    VAT = "VAT"
    SALES_TAX = "SALES_TAX"


class UsageType(str, Enum):
    MINUTES = "minutes"
    SMS = "sms"
    MONTHLY_SPEND = "monthly_spend"


class RegionalPricing(Base):
    __tablename__ = "regional_pricing"

    id = Column(UUIDType, primary_key=True, default=generate_uuid)
    region = Column(String(10), nullable=False, index=True)
    currency = Column(String(3), nullable=False)

    # {"setup_fee": 0, "monthly_base": 19900, "inbound_call_per_minute": 50, ...}
    pricing = Column(JSON, nullable=False, default=dict)
    # {"rate": "0.18", "type": "GST", "cgst": "0.09", "sgst": "0.09", "igst": "0.18"}
    taxes = Column(JSON, nullable=False, default=dict)

    effective_from = Column(DateTime(timezone=True), nullable=False)
    effective_until = Column(DateTime(timezone=True), nullable=True)

    created_at = Column(DateTime(timezone=True), server_default=func.now())


class VolumeDiscount(Base):
    __tablename__ = "volume_discounts"

    id = Column(UUIDType, primary_key=True, default=generate_uuid)
    region = Column(String(10), nullable=False, index=True)
    usage_type = Column(String(20), nullable=False)
    tier_name = Column(String(100), nullable=False)

    min_usage = Column(Integer, nullable=False, default=0)
    max_usage = Column(Integer, nullable=True)
    discount_percent = Column(Numeric(5, 2), nullable=False)

    created_at = Column(DateTime(timezone=True), server_default=func.now())
