"""Boundary loading of untyped catalog, settings and cart payloads.

Catalog entities arrive as JSON blobs (MongoDB documents or files) using the
storefront's camelCase keys. They are validated with the pydantic models in
:mod:`.schemas` and converted to engine dataclasses before they reach the
pricing engines.

Settings and cart payloads are all-or-nothing: any problem raises
:class:`CatalogValidationError` listing every problem found. Catalog entries
are loaded one by one; a malformed entry is dropped with a warning so one bad
document cannot block pricing for the rest of the menu.
"""

from __future__ import annotations

import json
from pathlib import Path
from typing import Any, Dict, List, Optional, Tuple, Type, TypeVar, Union

from pydantic import ValidationError

from ..utils.logging import get_logger
from .errors import CatalogValidationError
from .models import (
    MILES,
    AppliedOption,
    GeoLocation,
    MenuItem,
    Option,
    OrderDraftInput,
    PriceAdjustment,
    RestaurantSettings,
)
from .schemas import (
    Document,
    LocationDocument,
    MenuItemDocument,
    MenuRuleDocument,
    OptionDocument,
    OrderDraftDocument,
    PriceAdjustmentDocument,
    RestaurantDocument,
)
from .trace import PricingTrace, record

logger = get_logger(__name__)

STAGE = "catalog"

D = TypeVar("D", bound=Document)

Catalog = Tuple[Dict[str, MenuItem], Dict[str, List[AppliedOption]], Dict[str, Option]]


def format_errors(error: ValidationError, path: str) -> List[str]:
    """Flatten pydantic errors to ``path.key[0].sub: message`` strings."""
    messages = []
    for detail in error.errors():
        location = path
        for part in detail["loc"]:
            location += f"[{part}]" if isinstance(part, int) else f".{part}"
        messages.append(f"{location}: {detail['msg']}")
    return messages


def validate_document(schema: Type[D], doc: Any, path: str) -> D:
    try:
        return schema.model_validate(doc)
    except ValidationError as e:
        raise CatalogValidationError(format_errors(e, path)) from e


# ---------- Catalog ----------

def parse_price_adjustment(doc: Dict[str, Any], path: str = "adjustment") -> PriceAdjustment:
    return validate_document(PriceAdjustmentDocument, doc, path).to_model()


def _load_entries(docs: Optional[Any], schema: Type[D], path: str) -> Tuple[List[D], List[Tuple[str, List[str]]]]:
    """Validate each document on its own; returns the valid ones and the failures."""
    if docs is None:
        return [], []
    if not isinstance(docs, list):
        return [], [(path, [f"{path}: Input should be a valid list"])]

    loaded: List[D] = []
    failures: List[Tuple[str, List[str]]] = []
    for index, doc in enumerate(docs):
        entry_path = f"{path}[{index}]"
        try:
            loaded.append(validate_document(schema, doc, entry_path))
        except CatalogValidationError as e:
            failures.append((entry_path, e.errors))
    return loaded, failures


def build_catalog(
    menu_item_docs: Optional[List[Any]],
    menu_rule_docs: Optional[List[Any]],
    option_docs: Optional[List[Any]],
    trace: Optional[PricingTrace] = None,
    strict: bool = False,
) -> Catalog:
    """
    Build the three lookups the order draft needs.

    Args:
        menu_item_docs: Menu item documents
        menu_rule_docs: ``{"menuItemId": ..., "appliedOptions": [...]}`` documents
        option_docs: Option documents with nested choices
        trace: Optional trace receiving one ``entry_dropped`` event per bad document
        strict: Raise listing every malformed entry instead of dropping them

    Returns:
        (menu items by id, applied options by menu item id, options by id)

    Raises:
        CatalogValidationError: only when ``strict`` is set and an entry is malformed
    """
    menu_items, item_failures = _load_entries(menu_item_docs, MenuItemDocument, "menuItems")
    rules, rule_failures = _load_entries(menu_rule_docs, MenuRuleDocument, "menuRules")
    options, option_failures = _load_entries(option_docs, OptionDocument, "options")

    failures = item_failures + rule_failures + option_failures
    if failures and strict:
        raise CatalogValidationError([message for _, messages in failures for message in messages])

    for entry_path, messages in failures:
        logger.warning(f"Dropping malformed catalog entry {entry_path}: {'; '.join(messages)}")
        record(trace, STAGE, "entry_dropped", path=entry_path, errors=messages)

    return (
        {item.id: item.to_model() for item in menu_items},
        {rule.menu_item_id: rule.to_model() for rule in rules},
        {option.id: option.to_model() for option in options},
    )


# ---------- Settings ----------

def parse_location(doc: Optional[Dict[str, Any]], path: str = "location") -> Optional[GeoLocation]:
    """Accepts ``{lat, lng}`` or ``{latitude, longitude}``."""
    if not doc:
        return None
    return validate_document(LocationDocument, doc, path).to_model()


def parse_restaurant_settings(
    doc: Dict[str, Any],
    path: str = "restaurant",
    default_unit: str = MILES,
) -> RestaurantSettings:
    """Settings from a restaurant document's financial and delivery sections."""
    restaurant = validate_document(RestaurantDocument, doc, path)
    financial = restaurant.financial_settings
    delivery = restaurant.delivery_settings

    return RestaurantSettings(
        taxes=[tax.to_model() for tax in financial.taxes],
        delivery_tiers=[tier.to_model() for tier in delivery.pricing_tiers],
        global_fee=financial.global_fee.to_model() if financial.global_fee else None,
        distance_unit=delivery.distance_unit or default_unit,
        maximum_radius=delivery.maximum_radius,
        location=restaurant.location.to_model() if restaurant.location else None,
        use_delivery_provider=delivery.driver_provider.lower() != "local",
    )


# ---------- Cart ----------

def parse_order_draft_input(
    payload: Dict[str, Any],
    settings: Optional[RestaurantSettings] = None,
    path: str = "order",
) -> OrderDraftInput:
    """
    Build the orchestrator input from an order payload and restaurant settings.

    The payload may override ``useDeliveryProvider``; restaurant location comes
    from the payload when present, else from the settings.
    """
    settings = settings or RestaurantSettings()
    order = validate_document(OrderDraftDocument, payload, path)

    use_provider = order.use_delivery_provider
    if use_provider is None:
        use_provider = settings.use_delivery_provider

    return OrderDraftInput(
        restaurant_id=order.restaurant_id or "",
        items=[item.to_model() for item in order.items],
        order_type=order.order_type,
        tip=order.tip,
        restaurant_location=order.restaurant_location.to_model() if order.restaurant_location else settings.location,
        customer_location=order.customer_location.to_model() if order.customer_location else None,
        delivery_distance=order.delivery_distance,
        tax_settings=list(settings.taxes),
        delivery_pricing_tiers=list(settings.delivery_tiers),
        global_fee=settings.global_fee,
        distance_unit=settings.distance_unit,
        use_delivery_provider=use_provider,
    )


def load_json_file(path: Union[str, Path]) -> Any:
    p = Path(path)
    return json.loads(p.read_text(encoding="utf-8"))
