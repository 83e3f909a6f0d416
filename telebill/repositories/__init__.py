from telebill.repositories.billing_account_repository import BillingAccountRepository
from telebill.repositories.billing_cycle_repository import BillingCycleRepository
from telebill.repositories.invoice_item_repository import InvoiceItemRepository
from telebill.repositories.invoice_repository import InvoiceRepository
from telebill.repositories.payment_method_repository import PaymentMethodRepository
from telebill.repositories.payment_repository import PaymentRepository
from telebill.repositories.regional_pricing_repository import RegionalPricingRepository
from telebill.repositories.usage_event_repository import UsageEventRepository

__all__ = [
    "BillingAccountRepository",
    "BillingCycleRepository",
    "InvoiceItemRepository",
    "InvoiceRepository",
    "PaymentMethodRepository",
    "PaymentRepository",
    "RegionalPricingRepository",
    "UsageEventRepository",
]
