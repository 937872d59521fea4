"""
Command-line interface for the Order Pricing engine.
"""

import argparse
import asyncio
import json
import sys
from typing import Any, Dict, List, Optional, Tuple

from . import __version__
from .pricing.delivery import validate_delivery_settings
from .pricing.draft import calculate_order_draft
from .pricing.fees import validate_global_fee_settings
from .pricing.loader import build_catalog, load_json_file, parse_order_draft_input, parse_restaurant_settings
from .pricing.models import OrderDraftResult
from .pricing.modifiers import validate_menu_rules
from .pricing.service import OrderPricingService
from .pricing.tax import validate_tax_settings
from .pricing.trace import PricingTrace
from .utils.config import Config
from .utils.logging import setup_logging


def create_parser() -> argparse.ArgumentParser:
    """Create and configure the argument parser."""
    parser = argparse.ArgumentParser(
        prog="order-pricing",
        description="Order Pricing - canonical order totals for restaurant carts",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  order-pricing price-order --order-file cart.json --catalog-file catalog.json
  order-pricing price-order --order-file cart.json --restaurant-id r_123 --env-file .env
  order-pricing verify-order --order-id o_456 --env-file .env
  order-pricing validate-settings --catalog-file catalog.json
        """,
    )

    parser.add_argument(
        "--version",
        action="version",
        version=f"Order Pricing {__version__}",
    )

    parser.add_argument(
        "--verbose", "-v",
        action="store_true",
        help="Enable verbose logging",
    )

    parser.add_argument(
        "--log-file",
        help="Log file path",
    )

    parser.add_argument(
        "--env-file",
        help="Load configuration from this .env file",
    )

    subparsers = parser.add_subparsers(
        dest="command",
        help="Available commands",
    )

    price_parser = subparsers.add_parser(
        "price-order",
        help="Calculate the order draft for a cart",
    )
    price_parser.add_argument(
        "--order-file",
        required=True,
        help="JSON cart payload (items, orderType, tip, locations)",
    )
    source = price_parser.add_mutually_exclusive_group(required=True)
    source.add_argument(
        "--catalog-file",
        help="JSON file with restaurant settings, menuItems, menuRules and options",
    )
    source.add_argument(
        "--restaurant-id",
        help="Load catalog and settings for this restaurant from MongoDB",
    )
    price_parser.add_argument(
        "--json",
        action="store_true",
        help="Print the result as JSON",
    )

    verify_parser = subparsers.add_parser(
        "verify-order",
        help="Reprice a stored order and compare it with its saved totals",
    )
    verify_parser.add_argument(
        "--order-id",
        required=True,
        help="ID of the stored order",
    )

    validate_parser = subparsers.add_parser(
        "validate-settings",
        help="Check tax, platform fee, delivery and menu rule configuration",
    )
    validate_parser.add_argument(
        "--catalog-file",
        required=True,
        help="JSON file with restaurant settings and menuRules",
    )

    return parser


def _print_box(lines: List[Tuple[str, Any]]) -> None:
    label_width = max(len(lbl) for lbl, _ in lines)
    inner_width = max(len(f" {lbl.ljust(label_width)} : {val}") for lbl, val in lines)
    print("┌" + "─" * inner_width + "┐")
    for lbl, val in lines:
        line = f" {lbl.ljust(label_width)} : {val}"
        print(f"│{line + ' ' * (inner_width - len(line))}│")
    print("└" + "─" * inner_width + "┘")


def print_draft(result: OrderDraftResult, restaurant_id: str, order_type: str) -> None:
    """Render an order draft as a receipt-style summary."""
    _print_box([
        ("Restaurant", restaurant_id or "-"),
        ("Order Type", order_type.upper()),
        ("Items", len(result.items)),
        ("Total", f"${result.total:.2f}"),
    ])

    print("\nITEMS:")
    print("=" * 60)
    for item in result.items:
        print(f"   {item.quantity} x {item.name:<30}{item.final_price:>10.2f}{item.total:>12.2f}")
        for opt in item.options:
            print(f"       - {opt.name}: {opt.choice} ({opt.price_adjustment:+.2f})")
        if item.special_instructions:
            print(f"       Note: {item.special_instructions}")

    print("\nTOTALS:")
    print("=" * 60)
    print(f"   {'Subtotal':<20}{result.subtotal:>12.2f}")
    for tax in result.tax_breakdown:
        label = f"{tax.name} ({tax.rate}%)" if tax.rate is not None else tax.name
        print(f"   {label:<20}{tax.amount:>12.2f}")
    if result.delivery_fee_cents:
        tier = result.delivery_details.tier_used if result.delivery_details else None
        provider = result.delivery_details.provider if result.delivery_details else None
        print(f"   {'Delivery':<20}{result.delivery_fee:>12.2f}  {tier or provider or ''}")
    if result.platform_fee_cents:
        print(f"   {'Platform Fee':<20}{result.platform_fee:>12.2f}")
    if result.tip_cents:
        print(f"   {'Tip':<20}{result.tip:>12.2f}")
    print(f"   {'TOTAL':<20}{result.total:>12.2f}")


def price_order(
    order_file: str,
    catalog_file: Optional[str] = None,
    restaurant_id: Optional[str] = None,
    as_json: bool = False,
    config: Optional[Config] = None,
) -> None:
    """
    Price a cart from a file against a catalog file or a stored restaurant.

    Args:
        order_file: Path to the JSON cart payload
        catalog_file: Path to a JSON catalog (restaurant, menuItems, menuRules, options)
        restaurant_id: Restaurant to load from MongoDB instead of a catalog file
        as_json: Print the decimal result as JSON instead of the summary
        config: Configuration used for MongoDB access
    """
    payload: Dict[str, Any] = load_json_file(order_file)

    if catalog_file:
        catalog = load_json_file(catalog_file)
        settings = parse_restaurant_settings(catalog.get("restaurant") or {})
        trace = PricingTrace()
        menu_items, menu_rules, options = build_catalog(
            catalog.get("menuItems"),
            catalog.get("menuRules"),
            catalog.get("options"),
            trace=trace,
        )
        order = parse_order_draft_input(payload, settings)
        result = asyncio.run(calculate_order_draft(order, menu_items, menu_rules, options, trace=trace))
        restaurant = order.restaurant_id
    else:
        service = OrderPricingService(config=config)
        result = asyncio.run(service.calculate(restaurant_id, payload))
        restaurant = restaurant_id

    if as_json:
        print(json.dumps(result.to_dict(), indent=2))
        return

    print_draft(result, restaurant, str(payload.get("orderType") or "pickup"))


def verify_order(order_id: str, config: Optional[Config] = None) -> bool:
    """Reprice a stored order and print a per-field comparison."""
    service = OrderPricingService(config=config)
    report = asyncio.run(service.verify_order_by_id(order_id))

    _print_box([
        ("Order ID", order_id),
        ("Restaurant", report["restaurant_id"] or "-"),
        ("Status", "PASSED" if report["is_valid"] else "FAILED"),
    ])

    header = f"{'Field':<16}{'Stored':>12}{'Recomputed':>14}{'Delta':>10}"
    print(f"\n   {header}")
    print(f"   {'-' * len(header)}")
    for comp in report["comparisons"]:
        icon = "✅" if comp["is_valid"] else "❌"
        delta = comp["difference_cents"] / 100
        print(f"{icon} {comp['field']:<16}{comp['stored']:>12.2f}{comp['recomputed']:>14.2f}{delta:>10.2f}")

    return report["is_valid"]


def validate_settings(catalog_file: str) -> bool:
    """Run every configuration validator and print what they report."""
    catalog = load_json_file(catalog_file)
    settings = parse_restaurant_settings(catalog.get("restaurant") or {})
    _, menu_rules, _ = build_catalog([], catalog.get("menuRules"), [], strict=True)

    checks = [
        ("Taxes", validate_tax_settings(settings.taxes)),
        ("Delivery", validate_delivery_settings(settings.distance_unit, settings.maximum_radius, settings.delivery_tiers)),
    ]
    if settings.global_fee is not None:
        checks.append(("Platform Fee", validate_global_fee_settings(settings.global_fee)))
    for menu_item_id, applied in sorted(menu_rules.items()):
        checks.append((f"Menu Rules {menu_item_id}", validate_menu_rules(applied)))

    print("\nSETTINGS VALIDATION:")
    print("=" * 60)
    all_valid = True
    for label, result in checks:
        status = "\033[1;32mPASSED\033[0m" if result.valid else "\033[1;31mFAILED\033[0m"
        print(f"   {label:<30}{status}")
        for error in result.errors:
            print(f"      - {error}")
        all_valid = all_valid and result.valid
    return all_valid


def main(args: Optional[list] = None) -> int:
    """
    Main entry point for the CLI.

    Args:
        args: Command line arguments (defaults to sys.argv[1:])

    Returns:
        Exit code
    """
    parser = create_parser()
    parsed_args = parser.parse_args(args)

    config = Config(parsed_args.env_file)
    log_level = "DEBUG" if parsed_args.verbose else config.get("log_level", "INFO")
    # --json output owns stdout
    stream = sys.stderr if getattr(parsed_args, "json", False) else sys.stdout
    logger = setup_logging(level=log_level, log_file=parsed_args.log_file, stream=stream)

    try:
        if parsed_args.command == "price-order":
            price_order(
                order_file=parsed_args.order_file,
                catalog_file=parsed_args.catalog_file,
                restaurant_id=parsed_args.restaurant_id,
                as_json=parsed_args.json,
                config=config,
            )

        elif parsed_args.command == "verify-order":
            if not verify_order(parsed_args.order_id, config=config):
                return 1

        elif parsed_args.command == "validate-settings":
            if not validate_settings(parsed_args.catalog_file):
                return 1

        elif not parsed_args.command:
            parser.print_help()
            return 1

    except Exception as e:
        logger.error(f"Error: {e}")
        return 1

    return 0


if __name__ == "__main__":
    sys.exit(main())
