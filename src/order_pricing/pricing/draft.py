"""Order draft calculation: the single pricing pipeline for a cart.

Cart preview, order submission and order edit all call
:func:`calculate_order_draft`, so identical inputs give identical totals at
every step. The pipeline is fixed:

    items -> subtotal -> tax -> delivery -> platform fee -> tip -> total

All arithmetic is in integer cents; decimals appear only on the result's
properties and ``to_dict()``.
"""

from __future__ import annotations

from typing import Dict, List, Optional, Sequence, Tuple

from ..utils.logging import get_logger
from .delivery import DeliveryProvider, calculate_delivery_fee, check_delivery_distance, request_provider_estimate
from .errors import MenuItemNotFoundError
from .fees import calculate_global_fee
from .models import (
    DELIVERY,
    AppliedOption,
    DeliveryDetails,
    FormattedOption,
    ItemPricing,
    MenuItem,
    Option,
    OrderDraftInput,
    OrderDraftResult,
    OrderItemResult,
    TaxBreakdown,
)
from .modifiers import price_item
from .money import round_cents, to_cents, to_decimal, to_dollars
from .tax import TaxableItem, calculate_taxes
from .trace import PricingTrace

logger = get_logger(__name__)

DEFAULT_SEARCH_RADIUS = 100.0


def _formatted_options(pricing: ItemPricing) -> Tuple[FormattedOption, ...]:
    formatted = []
    for choice in pricing.choices:
        unit_cents = round_cents(to_decimal(choice.total_cents) / choice.quantity) if choice.quantity else 0
        formatted.append(FormattedOption(
            name=choice.option_name,
            choice=choice.choice_name,
            price_adjustment=to_dollars(unit_cents),
        ))
    return tuple(formatted)


def _price_items(
    order: OrderDraftInput,
    menu_items: Dict[str, MenuItem],
    menu_rules: Dict[str, List[AppliedOption]],
    options: Dict[str, Option],
    trace: PricingTrace,
) -> List[OrderItemResult]:
    results: List[OrderItemResult] = []
    for line in order.items:
        menu_item = menu_items.get(line.menu_item_id)
        if menu_item is None:
            raise MenuItemNotFoundError(line.menu_item_id)

        pricing = price_item(
            menu_item.price,
            menu_rules.get(line.menu_item_id, []),
            line.selected_options,
            options,
            trace=trace,
        )
        item = OrderItemResult(
            menu_item_id=menu_item.id,
            name=menu_item.name,
            base_price_cents=pricing.base_price_cents,
            adjustments_cents=pricing.modifier_delta_cents,
            quantity=line.quantity,
            options=_formatted_options(pricing),
            special_instructions=line.special_instructions,
        )
        trace.record("items", "line_priced", menu_item_id=item.menu_item_id,
                     final_price_cents=item.final_price_cents, quantity=item.quantity,
                     total_cents=item.total_cents)
        logger.debug(
            f'Item "{item.name}": base ${item.base_price:.2f} + adjustments ${item.adjustments:.2f} '
            f"= ${item.final_price:.2f} x {item.quantity} = ${item.total:.2f}"
        )
        results.append(item)
    return results


def _tax_stage(
    order: OrderDraftInput,
    items: Sequence[OrderItemResult],
    subtotal_cents: int,
    trace: PricingTrace,
) -> Tuple[int, Tuple[TaxBreakdown, ...]]:
    if not order.tax_settings:
        return 0, ()

    taxable = [
        TaxableItem(name=item.name, price=item.final_price, quantity=item.quantity, total=item.total)
        for item in items
    ]
    result = calculate_taxes(to_dollars(subtotal_cents), taxable, order.tax_settings, trace=trace)
    return result.total_tax_cents, result.breakdown


async def _delivery_stage(
    order: OrderDraftInput,
    delivery_provider: Optional[DeliveryProvider],
    search_radius: float,
    trace: PricingTrace,
) -> Tuple[int, Optional[DeliveryDetails]]:
    if order.order_type != DELIVERY:
        return 0, None

    has_locations = order.restaurant_location is not None and order.customer_location is not None

    if order.use_delivery_provider and delivery_provider is not None and has_locations:
        estimate = await request_provider_estimate(
            delivery_provider, order.restaurant_location, order.customer_location, trace=trace
        )
        if estimate is not None:
            return to_cents(estimate.fee), DeliveryDetails(
                distance=estimate.distance,
                unit=order.distance_unit,
                provider=estimate.provider,
            )

    if not order.delivery_pricing_tiers:
        trace.record("delivery", "unpriced", reason="no provider estimate and no tiers")
        return 0, None

    distance = order.delivery_distance or 0
    if not distance and has_locations:
        distance = check_delivery_distance(
            order.restaurant_location,
            order.customer_location,
            search_radius,
            order.distance_unit,
        ).distance

    fee = calculate_delivery_fee(distance, order.delivery_pricing_tiers, order.distance_unit, trace=trace)
    return fee.total_fee_cents, DeliveryDetails(
        distance=fee.distance,
        unit=fee.unit,
        tier_used=fee.tier_used,
    )


async def calculate_order_draft(
    order: OrderDraftInput,
    menu_items: Dict[str, MenuItem],
    menu_rules: Dict[str, List[AppliedOption]],
    options: Dict[str, Option],
    delivery_provider: Optional[DeliveryProvider] = None,
    search_radius: float = DEFAULT_SEARCH_RADIUS,
    trace: Optional[PricingTrace] = None,
) -> OrderDraftResult:
    """
    Price a cart end to end.

    Args:
        order: Cart plus the restaurant settings that apply to it
        menu_items: Menu items keyed by id
        menu_rules: Applied options keyed by menu item id
        options: Options (modifier groups) keyed by id
        delivery_provider: Already-resolved provider used when the order asks for one
        search_radius: Radius passed to the distance check when distance is derived
        trace: Trace to append to, e.g. one already holding catalog load events

    Returns:
        OrderDraftResult with itemized lines, aggregate totals and the decision trace

    Raises:
        MenuItemNotFoundError: a cart line references an unknown menu item
    """
    if trace is None:
        trace = PricingTrace()
    logger.debug(f"Order draft: {len(order.items)} item(s), order type {order.order_type}")

    items = _price_items(order, menu_items, menu_rules, options, trace)
    subtotal_cents = sum(item.total_cents for item in items)
    trace.record("subtotal", "computed", subtotal_cents=subtotal_cents)

    tax_cents, tax_breakdown = _tax_stage(order, items, subtotal_cents, trace)

    delivery_fee_cents, delivery_details = await _delivery_stage(order, delivery_provider, search_radius, trace)

    platform_fee_cents = calculate_global_fee(to_dollars(subtotal_cents), order.global_fee, trace=trace).platform_fee_cents

    tip_cents = to_cents(order.tip) if order.tip else 0
    if tip_cents:
        trace.record("tip", "added", tip_cents=tip_cents)

    total_cents = subtotal_cents + tax_cents + delivery_fee_cents + tip_cents + platform_fee_cents
    trace.record("total", "computed", total_cents=total_cents)

    result = OrderDraftResult(
        items=tuple(items),
        subtotal_cents=subtotal_cents,
        tax_cents=tax_cents,
        tax_breakdown=tax_breakdown,
        delivery_fee_cents=delivery_fee_cents,
        tip_cents=tip_cents,
        platform_fee_cents=platform_fee_cents,
        delivery_details=delivery_details,
        trace=trace.events,
    )
    logger.debug(
        f"Order draft total ${result.total:.2f} (subtotal ${result.subtotal:.2f}, tax ${result.tax:.2f}, "
        f"delivery ${result.delivery_fee:.2f}, platform ${result.platform_fee:.2f}, tip ${result.tip:.2f})"
    )
    return result
