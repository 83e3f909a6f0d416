from telebill.schemas.billing_cycle import BillingCycleResponse
from telebill.schemas.cost import (
    AppliedDiscount,
    CostCalculationInput,
    CostCalculationResult,
    PricingInfo,
)
from telebill.schemas.invoice import (
    InvoiceDetailResponse,
    InvoiceGenerateRequest,
    InvoiceItemResponse,
    InvoiceResponse,
)
from telebill.schemas.payment import (
    PaymentMethodCreate,
    PaymentResponse,
    PaymentResultResponse,
    PayInvoiceRequest,
)
from telebill.schemas.regional_pricing import (
    CostEstimateBreakdown,
    GstBreakdown,
    MonthlyCostEstimate,
    PricingPlan,
    RegionalPricingResponse,
    RegionalTaxResult,
    UsageEstimateRequest,
)
from telebill.schemas.usage import (
    DailyUsage,
    UsageBreakdown,
    UsageEventCreate,
    UsageEventResponse,
    UsageStatistics,
)

__all__ = [
    "AppliedDiscount",
    "BillingCycleResponse",
    "CostCalculationInput",
    "CostCalculationResult",
    "CostEstimateBreakdown",
    "DailyUsage",
    "GstBreakdown",
    "InvoiceDetailResponse",
    "InvoiceGenerateRequest",
    "InvoiceItemResponse",
    "InvoiceResponse",
    "MonthlyCostEstimate",
    "PayInvoiceRequest",
    "PaymentMethodCreate",
    "PaymentResponse",
    "PaymentResultResponse",
    "PricingInfo",
    "PricingPlan",
    "RegionalPricingResponse",
    "RegionalTaxResult",
    "UsageBreakdown",
    "UsageEstimateRequest",
    "UsageEventCreate",
    "UsageEventResponse",
    "UsageStatistics",
]
