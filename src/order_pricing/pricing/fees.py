"""Platform (global) fee: percentage below a threshold, flat at or above it."""

from __future__ import annotations

from typing import List, Optional

from .models import GlobalFee, GlobalFeeResult, ValidationResult
from .money import Number, percent_of, to_cents, to_dollars
from .trace import PricingTrace, record

STAGE = "platform_fee"

RULE_PERCENTAGE = "percentage"
RULE_FLAT = "flat"
RULE_NONE = "none"


def calculate_global_fee(
    subtotal: Number,
    rule: Optional[GlobalFee],
    trace: Optional[PricingTrace] = None,
) -> GlobalFeeResult:
    """
    Calculate the platform fee for an order subtotal.

    Exactly one branch applies: ``subtotal < threshold`` charges
    ``below_percent`` of the subtotal, anything else charges ``above_flat``.

    Example:
        >>> calculate_global_fee(8.00, GlobalFee(True, 10.0, 10.0, 1.95)).platform_fee
        0.8
        >>> calculate_global_fee(15.00, GlobalFee(True, 10.0, 10.0, 1.95)).platform_fee
        1.95
    """
    if rule is None or not rule.enabled:
        record(trace, STAGE, "disabled")
        return GlobalFeeResult(platform_fee_cents=0, applied_rule=RULE_NONE)

    subtotal_cents = to_cents(subtotal)
    threshold_cents = to_cents(rule.threshold)

    if subtotal_cents < threshold_cents:
        fee_cents = percent_of(subtotal_cents, rule.below_percent)
        record(trace, STAGE, "below_threshold", threshold_cents=threshold_cents,
               percent=rule.below_percent, fee_cents=fee_cents)
        return GlobalFeeResult(platform_fee_cents=fee_cents, applied_rule=RULE_PERCENTAGE,
                               percentage_used=rule.below_percent)

    fee_cents = to_cents(rule.above_flat)
    record(trace, STAGE, "at_or_above_threshold", threshold_cents=threshold_cents, fee_cents=fee_cents)
    return GlobalFeeResult(platform_fee_cents=fee_cents, applied_rule=RULE_FLAT,
                           flat_amount_used=rule.above_flat)


def calculate_tip(subtotal: Number, tip_percentage: Number) -> float:
    """Tip preset amount, e.g. 15/18/20 percent of the subtotal."""
    return to_dollars(percent_of(to_cents(subtotal), tip_percentage))


def validate_global_fee_settings(rule: GlobalFee) -> ValidationResult:
    errors: List[str] = []

    if rule.threshold < 0:
        errors.append("Threshold cannot be negative")

    if rule.below_percent < 0 or rule.below_percent > 100:
        errors.append("Below threshold percentage must be between 0 and 100")

    if rule.above_flat < 0:
        errors.append("Above threshold flat fee cannot be negative")

    return ValidationResult.from_errors(errors)
