"""Order pricing module entry point."""

from .delivery import (
    DeliveryProvider,
    Geocoder,
    calculate_delivery_fee,
    check_delivery_distance,
    haversine_distance,
    validate_delivery_settings,
)
from .draft import calculate_order_draft
from .errors import CatalogValidationError, MenuItemNotFoundError, PricingError
from .fees import calculate_global_fee, validate_global_fee_settings
from .modifiers import get_default_selections, price_item, validate_menu_rules, validate_selections
from .service import OrderPricingService
from .tax import TaxableItem, calculate_taxes, validate_tax_settings
from .trace import PricingTrace

__all__ = [
    "CatalogValidationError",
    "DeliveryProvider",
    "Geocoder",
    "MenuItemNotFoundError",
    "OrderPricingService",
    "PricingError",
    "PricingTrace",
    "TaxableItem",
    "calculate_delivery_fee",
    "calculate_global_fee",
    "calculate_order_draft",
    "calculate_taxes",
    "check_delivery_distance",
    "get_default_selections",
    "haversine_distance",
    "price_item",
    "validate_delivery_settings",
    "validate_global_fee_settings",
    "validate_menu_rules",
    "validate_selections",
    "validate_tax_settings",
]
