"""Tax calculation for order subtotals and itemized lines."""

from __future__ import annotations

from dataclasses import dataclass
from typing import List, Optional, Sequence

from ..utils.logging import get_logger
from .models import (
    ENTIRE_ORDER,
    FIXED,
    PERCENTAGE,
    TAX_TARGETS,
    TaxBreakdown,
    TaxCalculationResult,
    TaxSetting,
    ValidationResult,
)
from .money import Number, percent_of, round2, to_cents, to_decimal, to_dollars
from .trace import PricingTrace, record

logger = get_logger(__name__)

STAGE = "tax"


@dataclass(frozen=True)
class TaxableItem:
    name: str
    price: float
    quantity: int
    total: float


def _tax_cents(tax: TaxSetting, subtotal_cents: int, items: Sequence[TaxableItem]) -> int:
    if tax.type == PERCENTAGE:
        if tax.apply_to == ENTIRE_ORDER:
            return percent_of(subtotal_cents, tax.rate)
        # Each line is rounded on its own; the sum may differ from the
        # entire-order figure by a cent or two.
        return sum(percent_of(to_cents(item.total), tax.rate) for item in items)

    if tax.apply_to == ENTIRE_ORDER:
        return to_cents(tax.rate)
    return sum(to_cents(tax.rate) * item.quantity for item in items)


def calculate_taxes(
    subtotal: Number,
    items: Sequence[TaxableItem],
    taxes: Sequence[TaxSetting],
    trace: Optional[PricingTrace] = None,
) -> TaxCalculationResult:
    """
    Apply a restaurant's tax configuration to an order.

    Args:
        subtotal: Order subtotal in currency units
        items: Itemized lines, used by per-item taxes
        taxes: Tax settings in the order they should be applied
        trace: Optional trace that receives one event per tax

    Returns:
        TaxCalculationResult with the total and one breakdown entry per enabled tax
    """
    subtotal_cents = to_cents(subtotal)
    total_tax_cents = 0
    breakdown: List[TaxBreakdown] = []

    for tax in taxes:
        if not tax.enabled:
            record(trace, STAGE, "skipped", name=tax.name, reason="disabled")
            continue

        amount_cents = _tax_cents(tax, subtotal_cents, items)
        is_percentage = tax.type == PERCENTAGE
        breakdown.append(TaxBreakdown(
            name=tax.name,
            rate=tax.rate if is_percentage else None,
            amount_cents=amount_cents,
            type=PERCENTAGE if is_percentage else FIXED,
        ))
        total_tax_cents += amount_cents
        record(trace, STAGE, "applied", name=tax.name, type=tax.type,
               apply_to=tax.apply_to, rate=tax.rate, amount_cents=amount_cents)

    result = TaxCalculationResult(
        total_tax_cents=total_tax_cents,
        breakdown=tuple(breakdown),
        subtotal_cents=subtotal_cents,
    )
    logger.debug(
        f"Taxes on ${result.subtotal_before_tax:.2f}: ${result.total_tax:.2f} "
        f"(total ${result.total_with_tax:.2f})"
    )
    return result


def calculate_single_tax(amount: Number, rate: Number, tax_type: str = PERCENTAGE) -> float:
    """Quick single-rate tax on an amount (percentage) or the fixed rate itself."""
    if tax_type == PERCENTAGE:
        return to_dollars(percent_of(to_cents(amount), rate))
    return round2(rate)


def calculate_effective_tax_rate(subtotal: Number, total_tax: Number) -> float:
    """Total tax as a percentage of the subtotal, 2 decimals."""
    subtotal_cents = to_cents(subtotal)
    if subtotal_cents == 0:
        return 0.0
    rate = to_decimal(to_cents(total_tax)) * 100 / subtotal_cents
    return round2(rate)


def validate_tax_settings(taxes: Sequence[TaxSetting]) -> ValidationResult:
    """Surface tax misconfiguration to administrators; never blocks pricing."""
    errors: List[str] = []

    for tax in taxes:
        if not tax.name:
            errors.append("Tax name is required")

        if tax.type == PERCENTAGE:
            if tax.rate < 0 or tax.rate > 100:
                errors.append(f'Tax "{tax.name}": Percentage rate must be between 0 and 100')
        elif tax.type == FIXED:
            if tax.rate < 0:
                errors.append(f'Tax "{tax.name}": Fixed amount cannot be negative')
        else:
            errors.append(f'Tax "{tax.name}": Invalid type {tax.type}')

        if tax.apply_to not in TAX_TARGETS:
            errors.append(f'Tax "{tax.name}": Invalid applyTo value')

    return ValidationResult.from_errors(errors)
