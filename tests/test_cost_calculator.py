"""Tests for CostCalculator default pricing, tax and regional fallback."""

import logging
import math
from decimal import ROUND_HALF_UP, Decimal
from unittest.mock import MagicMock

import pytest

from telebill.core.exceptions import (
    PricingLookupError,
    PricingNotFoundError,
    UnknownEventTypeError,
)
from telebill.models.usage_event import UsageEventType
from telebill.schemas.cost import CostCalculationInput, CostCalculationResult
from telebill.services.cost_calculator import CostCalculator, billable_minutes


@pytest.fixture
def calculator():
    return CostCalculator()


class TestCallPricing:
    @pytest.mark.parametrize(
        "duration,minutes",
        [(0, 0), (1, 1), (59, 1), (60, 1), (61, 2), (120, 2), (121, 3), (3600, 60)],
    )
    def test_duration_rounds_up_to_whole_minutes(self, calculator, duration, minutes):
        result = calculator.calculate_cost(
            CostCalculationInput(event_type="inbound_call", duration=duration)
        )
        assert result.quantity == minutes
        assert result.total_cost == minutes * 2
        assert result.unit_cost == 2

    def test_minutes_match_ceiling_for_all_durations(self):
        for duration in range(0, 600):
            assert billable_minutes(duration) == math.ceil(duration / 60)

    def test_zero_duration_costs_nothing(self, calculator):
        result = calculator.calculate_cost(
            CostCalculationInput(event_type=UsageEventType.OUTBOUND_CALL, duration=0)
        )
        assert result.quantity == 0
        assert result.total_cost == 0

    def test_missing_duration_bills_zero_minutes(self, calculator):
        result = calculator.calculate_cost(CostCalculationInput(event_type="outbound_call"))
        assert result.quantity == 0
        assert result.total_cost == 0

    def test_description_includes_minutes(self, calculator):
        result = calculator.calculate_cost(
            CostCalculationInput(event_type="inbound_call", duration=150)
        )
        assert result.description == "Inbound call (3 min)"

    def test_outbound_and_forwarded_rates(self, calculator):
        outbound = calculator.calculate_cost(
            CostCalculationInput(event_type="outbound_call", duration=61)
        )
        forwarded = calculator.calculate_cost(
            CostCalculationInput(event_type="call_forwarded", duration=61)
        )
        assert outbound.total_cost == 6
        assert outbound.description == "Outbound call (2 min)"
        assert forwarded.total_cost == 2
        assert forwarded.description == "Call forwarded (2 min)"

    def test_negative_duration_rejected(self, calculator):
        with pytest.raises(ValueError, match="negative"):
            calculator.calculate_cost(
                CostCalculationInput(event_type="inbound_call", duration=-5)
            )


class TestUnitAndFlatPricing:
    def test_sms_uses_quantity(self, calculator):
        result = calculator.calculate_cost(CostCalculationInput(event_type="sms_sent", quantity=3))
        assert result.unit_cost == 2
        assert result.total_cost == 6
        assert result.quantity == 3
        assert result.description == "SMS sent"

    def test_sms_received_defaults_to_one(self, calculator):
        result = calculator.calculate_cost(CostCalculationInput(event_type="sms_received"))
        assert result.total_cost == 1
        assert result.quantity == 1

    def test_voicemail(self, calculator):
        result = calculator.calculate_cost(
            CostCalculationInput(event_type="voicemail_received", quantity=2)
        )
        assert result.total_cost == 10
        assert result.description == "Voicemail received"

    def test_subscription_forces_quantity_one(self, calculator):
        result = calculator.calculate_cost(
            CostCalculationInput(event_type="monthly_subscription", quantity=5)
        )
        assert result.quantity == 1
        assert result.total_cost == 1000
        assert result.description == "Monthly subscription"

    def test_setup_fee(self, calculator):
        result = calculator.calculate_setup_fee()
        assert result.quantity == 1
        assert result.total_cost == 500
        assert result.description == "Setup fee"

    def test_monthly_subscription_helper(self, calculator):
        assert calculator.calculate_monthly_subscription().total_cost == 1000

    def test_default_currency_and_region(self, calculator):
        result = calculator.calculate_cost(CostCalculationInput(event_type="sms_sent"))
        assert result.currency == "USD"
        assert result.region == "US"
        assert result.applied_discounts == []


class TestUnknownEventType:
    def test_default_path_raises(self, calculator):
        with pytest.raises(UnknownEventTypeError, match="Unknown usage event type: fax"):
            calculator.calculate_cost(CostCalculationInput(event_type="fax"))

    def test_regional_path_raises_and_is_not_swallowed(self):
        regional = MagicMock()
        calculator = CostCalculator(regional)
        with pytest.raises(UnknownEventTypeError):
            calculator.calculate_cost(CostCalculationInput(event_type="fax", region="IN"))
        regional.calculate_regional_cost.assert_not_called()

    def test_is_a_value_error(self, calculator):
        with pytest.raises(ValueError):
            calculator.calculate_cost(CostCalculationInput(event_type=""))


class TestTax:
    def test_tax_is_eight_percent(self, calculator):
        assert calculator.calculate_tax(1000) == 80
        assert calculator.calculate_total(1000) == 1080

    def test_tax_rounds_to_whole_units(self, calculator):
        # 7 * 0.08 = 0.56 -> 1
        assert calculator.calculate_tax(7) == 1
        # 6 * 0.08 = 0.48 -> 0
        assert calculator.calculate_tax(6) == 0

    def test_total_is_subtotal_plus_rounded_tax(self, calculator):
        for subtotal in range(0, 2000, 7):
            expected_tax = int(
                (Decimal(subtotal) * Decimal("0.08")).quantize(Decimal("1"), ROUND_HALF_UP)
            )
            assert calculator.calculate_total(subtotal) == subtotal + expected_tax

    def test_zero_subtotal(self, calculator):
        assert calculator.calculate_total(0) == 0


class TestRegionalDelegation:
    def test_delegates_when_region_given(self):
        regional = MagicMock()
        regional.calculate_regional_cost.return_value = CostCalculationResult(
            unit_cost=50,
            total_cost=100,
            quantity=2,
            description="Inbound call (2 min)",
            currency="INR",
            region="IN",
        )
        calculator = CostCalculator(regional)

        result = calculator.calculate_cost(
            CostCalculationInput(event_type="inbound_call", duration=90, region="IN")
        )

        assert result.currency == "INR"
        assert result.total_cost == 100
        regional.calculate_regional_cost.assert_called_once()

    def test_no_region_uses_defaults(self):
        regional = MagicMock()
        calculator = CostCalculator(regional)
        calculator.calculate_cost(CostCalculationInput(event_type="sms_sent"))
        regional.calculate_regional_cost.assert_not_called()

    @pytest.mark.parametrize(
        "error", [PricingNotFoundError("XX"), PricingLookupError("connection reset")]
    )
    def test_pricing_failure_falls_back_to_defaults(self, error, caplog):
        regional = MagicMock()
        regional.calculate_regional_cost.side_effect = error
        calculator = CostCalculator(regional)

        with caplog.at_level(logging.WARNING, logger="telebill.services.cost_calculator"):
            result = calculator.calculate_cost(
                CostCalculationInput(event_type="inbound_call", duration=61, region="XX")
            )

        assert result.currency == "USD"
        assert result.region == "US"
        assert result.total_cost == 4
        assert "using default pricing" in caplog.text

    def test_unexpected_errors_propagate(self):
        regional = MagicMock()
        regional.calculate_regional_cost.side_effect = RuntimeError("boom")
        calculator = CostCalculator(regional)
        with pytest.raises(RuntimeError):
            calculator.calculate_cost(
                CostCalculationInput(event_type="sms_sent", region="IN")
            )


class TestPricingInfo:
    def test_pricing_info(self, calculator):
        info = calculator.get_pricing_info()
        assert info.currency == "USD"
        assert info.tax_rate == Decimal("0.08")
        assert info.rates["inbound_call_per_minute"] == 2
        assert info.rates["setup_fee"] == 500

    def test_format_amount(self, calculator):
        assert calculator.format_amount(1234) == "$12.34"
        assert calculator.format_amount(19900, "INR") == "₹199.00"
        assert calculator.format_amount(5, "EUR") == "€0.05"
        assert calculator.format_amount(100000, "GBP") == "1,000.00 GBP"
