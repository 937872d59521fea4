"""Tests for platform fee and tip helpers."""

from order_pricing.pricing.fees import calculate_global_fee, calculate_tip, validate_global_fee_settings
from order_pricing.pricing.models import GlobalFee
from order_pricing.pricing.trace import PricingTrace


class TestCalculateGlobalFee:
    """Test cases for calculate_global_fee."""

    def test_below_threshold_charges_percentage(self, platform_fee_rule):
        result = calculate_global_fee(8.00, platform_fee_rule)

        assert result.platform_fee == 0.80
        assert result.applied_rule == "percentage"
        assert result.percentage_used == 10.0
        assert result.flat_amount_used is None

    def test_at_threshold_charges_flat(self, platform_fee_rule):
        result = calculate_global_fee(10.00, platform_fee_rule)

        assert result.platform_fee == 1.95
        assert result.applied_rule == "flat"
        assert result.flat_amount_used == 1.95

    def test_above_threshold_charges_flat(self, platform_fee_rule):
        assert calculate_global_fee(15.00, platform_fee_rule).platform_fee_cents == 195

    def test_just_below_threshold(self, platform_fee_rule):
        assert calculate_global_fee(9.99, platform_fee_rule).platform_fee_cents == 100

    def test_disabled_or_missing_rule(self, platform_fee_rule):
        platform_fee_rule.enabled = False
        trace = PricingTrace()

        assert calculate_global_fee(8.00, platform_fee_rule, trace=trace).platform_fee_cents == 0
        assert calculate_global_fee(8.00, None).applied_rule == "none"
        assert len(trace.find("platform_fee", "disabled")) == 1

    def test_branch_is_traced(self, platform_fee_rule):
        trace = PricingTrace()
        calculate_global_fee(8.00, platform_fee_rule, trace=trace)
        calculate_global_fee(20.00, platform_fee_rule, trace=trace)
        assert [e.event for e in trace.events] == ["below_threshold", "at_or_above_threshold"]


class TestTip:
    """Test cases for calculate_tip."""

    def test_percentage_presets(self):
        assert calculate_tip(13.50, 15) == 2.03
        assert calculate_tip(13.50, 18) == 2.43
        assert calculate_tip(13.50, 20) == 2.70
        assert calculate_tip(0, 20) == 0.0


class TestValidateGlobalFeeSettings:
    """Test cases for validate_global_fee_settings."""

    def test_valid(self, platform_fee_rule):
        assert validate_global_fee_settings(platform_fee_rule).valid

    def test_invalid(self):
        result = validate_global_fee_settings(GlobalFee(enabled=True, threshold=-1, below_percent=120, above_flat=-0.5))

        assert result.errors == (
            "Threshold cannot be negative",
            "Below threshold percentage must be between 0 and 100",
            "Above threshold flat fee cannot be negative",
        )
