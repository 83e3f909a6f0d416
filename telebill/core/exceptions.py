"""Domain errors raised by the billing services.

All of them are ``ValueError`` subclasses so callers that only care about
"bad input or missing entity" can keep catching ``ValueError``.
"""


class BillingError(ValueError):
    """Base class for billing domain errors."""


class UnknownEventTypeError(BillingError):
    def __init__(self, event_type: object):
        self.event_type = event_type
        super().__init__(f"Unknown usage event type: {event_type}")


class AccountNotFoundError(BillingError):
    def __init__(self, account_id: object):
        self.account_id = account_id
        super().__init__(f"Billing account {account_id} not found")


class InvoiceNotFoundError(BillingError):
    def __init__(self, invoice_id: object):
        self.invoice_id = invoice_id
        super().__init__(f"Invoice {invoice_id} not found")


class UnknownBillingPeriodError(BillingError):
    def __init__(self, period: object):
        self.period = period
        super().__init__(f"Unknown billing period: {period}")


class InvalidInvoiceTransitionError(BillingError):
    def __init__(self, current: str, target: str):
        self.current = current
        self.target = target
        super().__init__(f"Cannot transition invoice from {current} to {target}")


class PricingError(BillingError):
    """Regional pricing could not be resolved."""


class PricingNotFoundError(PricingError):
    def __init__(self, region: str):
        self.region = region
        super().__init__(f"No pricing configuration found for region: {region}")


class PricingLookupError(PricingError):
    """The pricing store failed while resolving a region."""


class MissingRateError(PricingError):
    def __init__(self, region: str, rate_key: str):
        self.region = region
        self.rate_key = rate_key
        super().__init__(f"Pricing for region {region} has no {rate_key} rate")


class PricingPlanNotFoundError(PricingError):
    def __init__(self, region: str, plan: str):
        self.region = region
        self.plan = plan
        super().__init__(f"No pricing plan {plan} for region {region}")


class PaymentGatewayError(BillingError):
    """The payment gateway could not be reached or rejected the request."""
