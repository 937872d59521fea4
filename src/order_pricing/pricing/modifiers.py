"""Modifier pricing: menu item base price plus nested choice selections.

Pricing runs in two passes over the selections, both in input order:

1. Direct pass: each selection's own price. A self-targeting ``fixed``
   adjustment (no target option) overrides the choice outright; otherwise
   ``(choice base + per-item price adjustment) * qty`` is run through the
   remaining self adjustments.
2. Cross pass: rules that target another option change *that* option's
   price. Deltas are computed against the target's direct-pass total, so
   two rules never compound through each other. A selection's rules fire
   whenever its menu rule exists, even if its own option or choice is
   missing from the catalog.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Dict, List, Optional, Sequence, Tuple

from ..utils.logging import get_logger
from .models import (
    ADDITION,
    ADJUSTMENT_TYPES,
    FIXED,
    MULTIPLIER,
    AppliedAdjustment,
    AppliedOption,
    Choice,
    ChoiceAdjustment,
    ChoicePricing,
    ItemPricing,
    Option,
    SelectedOption,
    ValidationResult,
)
from .money import round_cents, scale, to_cents, to_decimal
from .trace import PricingTrace, record

logger = get_logger(__name__)

STAGE = "modifiers"


@dataclass
class _ResolvedSelection:
    """Working state for one selection while both passes run."""

    selection: SelectedOption
    option: Option
    choice: Choice
    choice_adjustment: ChoiceAdjustment
    quantity: int
    direct_cents: int
    cross_cents: int = 0
    applied: List[AppliedAdjustment] = field(default_factory=list)

    def freeze(self) -> ChoicePricing:
        return ChoicePricing(
            option_id=self.option.id,
            choice_id=self.choice.id,
            option_name=self.option.name,
            choice_name=self.choice.name,
            quantity=self.quantity,
            direct_cents=self.direct_cents,
            cross_cents=self.cross_cents,
            adjustments_applied=tuple(self.applied),
        )


def _find_applied_option(applied_options: Sequence[AppliedOption], option_id: str) -> Optional[AppliedOption]:
    return next((ao for ao in applied_options if ao.option_id == option_id), None)


def _resolve(
    selection: SelectedOption,
    applied_options: Sequence[AppliedOption],
    options: Dict[str, Option],
    trace: Optional[PricingTrace],
) -> Optional[_ResolvedSelection]:
    """Look up everything a selection needs; ``None`` means skip it."""
    applied_option = _find_applied_option(applied_options, selection.option_id)
    if applied_option is None:
        record(trace, STAGE, "skip", option_id=selection.option_id,
               choice_id=selection.choice_id, reason="option not applied to menu item")
        return None

    option = options.get(selection.option_id)
    if option is None:
        record(trace, STAGE, "skip", option_id=selection.option_id,
               choice_id=selection.choice_id, reason="unknown option")
        return None

    choice = option.find_choice(selection.choice_id)
    if choice is None:
        record(trace, STAGE, "skip", option_id=selection.option_id,
               choice_id=selection.choice_id, reason="unknown choice")
        return None

    choice_adjustment = applied_option.find_choice_adjustment(selection.choice_id)
    if choice_adjustment is None:
        record(trace, STAGE, "skip", option_id=selection.option_id,
               choice_id=selection.choice_id, reason="no choice adjustment")
        return None

    return _ResolvedSelection(
        selection=selection,
        option=option,
        choice=choice,
        choice_adjustment=choice_adjustment,
        quantity=selection.quantity,
        direct_cents=0,
    )


def _direct_price(resolved: _ResolvedSelection, trace: Optional[PricingTrace]) -> int:
    """Price a choice from its own configuration only."""
    adjustments = resolved.choice_adjustment.adjustments
    qty = resolved.quantity

    self_fixed = next((adj for adj in adjustments if adj.is_self_fixed), None)
    if self_fixed is not None:
        total = to_cents(self_fixed.value) * qty
        record(trace, STAGE, "fixed_price", option_id=resolved.option.id,
               choice_id=resolved.choice.id, value=self_fixed.value, total_cents=total)
        return total

    total = (to_cents(resolved.choice.base_price) + to_cents(resolved.choice_adjustment.price_adjustment)) * qty
    for adj in adjustments:
        if adj.is_cross or adj.adjustment_type == FIXED:
            continue
        if adj.adjustment_type == MULTIPLIER:
            total = scale(total, adj.value)
        elif adj.adjustment_type == ADDITION:
            total += to_cents(adj.value) * qty

    record(trace, STAGE, "direct_price", option_id=resolved.option.id,
           choice_id=resolved.choice.id, quantity=qty, total_cents=total)
    return total


def _cross_delta(adjustment_type: str, value: float, original_cents: int, quantity: int) -> int:
    if adjustment_type == ADDITION:
        return to_cents(value) * quantity
    if adjustment_type == MULTIPLIER:
        return round_cents(original_cents * (to_decimal(value) - 1))
    if adjustment_type == FIXED:
        return to_cents(value) * quantity - original_cents
    return 0


def _rule_owners(
    selections: Sequence[SelectedOption],
    applied_options: Sequence[AppliedOption],
) -> List[Tuple[SelectedOption, ChoiceAdjustment]]:
    """Selections whose menu rule exists; the option catalog is not consulted."""
    owners = []
    for selection in selections:
        applied_option = _find_applied_option(applied_options, selection.option_id)
        if applied_option is None:
            continue
        choice_adjustment = applied_option.find_choice_adjustment(selection.choice_id)
        if choice_adjustment is not None:
            owners.append((selection, choice_adjustment))
    return owners


def _apply_cross_adjustments(
    owners: List[Tuple[SelectedOption, ChoiceAdjustment]],
    resolved: List[_ResolvedSelection],
    trace: Optional[PricingTrace],
) -> None:
    for owner, choice_adjustment in owners:
        for adj in choice_adjustment.adjustments:
            if not adj.is_cross:
                continue
            for target in resolved:
                if target.option.id != adj.target_option_id:
                    continue
                if adj.target_choice_id and target.choice.id != adj.target_choice_id:
                    continue

                delta = _cross_delta(adj.adjustment_type, adj.value, target.direct_cents, target.quantity)
                target.cross_cents += delta
                target.applied.append(AppliedAdjustment(
                    adjustment_type=adj.adjustment_type,
                    value=adj.value,
                    trigger_option_id=owner.option_id,
                    trigger_choice_id=owner.choice_id,
                    amount_cents=delta,
                ))
                record(trace, STAGE, "cross_adjustment",
                       trigger_option_id=owner.option_id, trigger_choice_id=owner.choice_id,
                       target_option_id=target.option.id, target_choice_id=target.choice.id,
                       type=adj.adjustment_type, value=adj.value, delta_cents=delta)


def price_item(
    base_price: float,
    applied_options: Sequence[AppliedOption],
    selections: Sequence[SelectedOption],
    options: Dict[str, Option],
    trace: Optional[PricingTrace] = None,
) -> ItemPricing:
    """
    Price one unit of a menu item with its modifier selections.

    Args:
        base_price: Menu item base price in currency units
        applied_options: Menu rules binding options to this menu item
        selections: Chosen option/choice pairs, in cart order
        options: Option catalog keyed by option id
        trace: Optional trace that receives every pricing decision

    Returns:
        ItemPricing with per-choice breakdown; ``item_total`` is
        ``base_price + modifier_delta``
    """
    base_cents = to_cents(base_price)
    if not selections:
        return ItemPricing(base_price_cents=base_cents)

    resolved: List[_ResolvedSelection] = []
    for selection in selections:
        entry = _resolve(selection, applied_options, options, trace)
        if entry is None:
            continue
        entry.direct_cents = _direct_price(entry, trace)
        resolved.append(entry)

    _apply_cross_adjustments(_rule_owners(selections, applied_options), resolved, trace)

    pricing = ItemPricing(base_price_cents=base_cents, choices=tuple(r.freeze() for r in resolved))
    logger.debug(
        f"Item priced: base {base_cents}c + modifiers {pricing.modifier_delta_cents}c "
        f"= {pricing.item_total_cents}c"
    )
    return pricing


def validate_menu_rules(applied_options: Sequence[AppliedOption]) -> ValidationResult:
    """Check a menu item's rules for configuration mistakes.

    Cross-rule targets are checked against the full set of applied options,
    so a rule may reference an option that appears later in the list.
    """
    errors: List[str] = []
    if not applied_options:
        return ValidationResult.from_errors(errors)

    option_ids = [ao.option_id for ao in applied_options]
    known = set(option_ids)
    seen = set()
    for index, applied in enumerate(applied_options):
        if applied.option_id in seen:
            errors.append(f"Duplicate option ID: {applied.option_id}")
        seen.add(applied.option_id)

        if not applied.choice_adjustments:
            errors.append(f"Option at index {index} has no choice adjustments")

        choice_ids = set()
        for ca in applied.choice_adjustments:
            if ca.choice_id in choice_ids:
                errors.append(f"Duplicate choice ID: {ca.choice_id} in option {applied.option_id}")
            choice_ids.add(ca.choice_id)

            for adj in ca.adjustments:
                if adj.adjustment_type not in ADJUSTMENT_TYPES:
                    errors.append(f"Invalid adjustment type: {adj.adjustment_type} for choice {ca.choice_id}")
                if adj.target_option_id and adj.target_option_id not in known:
                    errors.append(
                        f"Target option {adj.target_option_id} not found in applied options "
                        f"(referenced by choice {ca.choice_id})"
                    )

    return ValidationResult.from_errors(errors)


def get_default_selections(applied_options: Sequence[AppliedOption]) -> List[SelectedOption]:
    """Selections a fresh cart line starts with: default, available choices."""
    selections: List[SelectedOption] = []
    for applied in sorted(applied_options, key=lambda ao: ao.order):
        for ca in applied.choice_adjustments:
            if ca.is_default and ca.is_available:
                selections.append(SelectedOption(option_id=applied.option_id, choice_id=ca.choice_id, quantity=1))
    return selections


def validate_selections(
    applied_options: Sequence[AppliedOption],
    options: Dict[str, Option],
    selections: Sequence[SelectedOption],
) -> ValidationResult:
    """Strict pre-check for callers that must reject stale carts.

    Pricing itself skips anything reported here; this gives callers a way to
    surface the problem before an order is submitted.
    """
    errors: List[str] = []
    selected_options = {s.option_id for s in selections}

    for selection in selections:
        applied = _find_applied_option(applied_options, selection.option_id)
        if applied is None:
            errors.append(f"Option {selection.option_id} not found in menu rules")
            continue
        option = options.get(selection.option_id)
        if option is None or option.find_choice(selection.choice_id) is None:
            errors.append(f"Choice {selection.choice_id} not found in option {selection.option_id}")
            continue
        ca = applied.find_choice_adjustment(selection.choice_id)
        if ca is None:
            errors.append(f"Choice {selection.choice_id} not found in option {selection.option_id}")
        elif not ca.is_available:
            errors.append(f"Choice {selection.choice_id} is not available")
        if selection.quantity < 1:
            errors.append(f"Choice {selection.choice_id} has invalid quantity {selection.quantity}")

    for applied in applied_options:
        if applied.required and applied.option_id not in selected_options:
            errors.append(f"Required option {applied.option_id} has no selection")

    return ValidationResult.from_errors(errors)
