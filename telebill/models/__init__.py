from telebill.models.billing_account import BillingAccount, BillingPeriod
from telebill.models.billing_cycle import BillingCycle, BillingCycleStatus
from telebill.models.invoice import Invoice, InvoiceStatus
from telebill.models.invoice_item import InvoiceItem
from telebill.models.payment import Payment, PaymentGateway, PaymentStatus
from telebill.models.payment_method import PaymentMethod, PaymentMethodType
from telebill.models.regional_pricing import (
    Region,
    RegionalPricing,
    TaxType,
    UsageType,
    VolumeDiscount,
)
from telebill.models.usage_event import UsageEvent, UsageEventType

__all__ = [
    "BillingAccount",
    "BillingCycle",
    "BillingCycleStatus",
    "BillingPeriod",
    "Invoice",
    "InvoiceItem",
    "InvoiceStatus",
    "Payment",
    "PaymentGateway",
    "PaymentMethod",
    "PaymentMethodType",
    "PaymentStatus",
    "Region",
    "RegionalPricing",
    "TaxType",
    "UsageEvent",
    "UsageEventType",
    "UsageType",
    "VolumeDiscount",
]
