"""Order pricing service: loads restaurant data and runs the order draft."""

from __future__ import annotations

from dataclasses import replace
from typing import Any, Dict, List, Optional

from ..utils.config import Config
from ..utils.logging import get_logger
from .delivery import DeliveryProvider, Geocoder
from .draft import calculate_order_draft
from .loader import build_catalog, parse_order_draft_input, parse_restaurant_settings
from .models import MILES, OrderDraftResult
from .money import to_cents
from .repository import RestaurantRepository
from .trace import PricingTrace

logger = get_logger(__name__)

# Stored order field -> OrderDraftResult cents attribute
VERIFIED_FIELDS = (
    ("subtotal", "subtotal_cents"),
    ("tax", "tax_cents"),
    ("deliveryFee", "delivery_fee_cents"),
    ("platformFee", "platform_fee_cents"),
    ("tip", "tip_cents"),
    ("total", "total_cents"),
)


class OrderPricingService:
    """High-level pricing used by cart preview, order submission and order edit.

    All three call sites go through :meth:`calculate` so that they share one
    code path and therefore one result for the same cart.
    """

    def __init__(
        self,
        db_name: Optional[str] = None,
        connection_url_env_key: Optional[str] = None,
        delivery_provider: Optional[DeliveryProvider] = None,
        geocoder: Optional[Geocoder] = None,
        config: Optional[Config] = None,
    ) -> None:
        self.config = config or Config(".env")
        self.db_name = db_name
        self.connection_url_env_key = connection_url_env_key
        self.delivery_provider = delivery_provider
        self.geocoder = geocoder

    def _repository(self) -> RestaurantRepository:
        return RestaurantRepository(
            db_name=self.db_name,
            connection_url_env_key=self.connection_url_env_key,
            config=self.config,
        )

    async def calculate(self, restaurant_id: str, order_payload: Dict[str, Any]) -> OrderDraftResult:
        """
        Price an order payload against a restaurant's stored catalog and settings.

        Args:
            restaurant_id: Restaurant the order belongs to
            order_payload: camelCase cart payload (items, orderType, tip, locations, ...)

        Returns:
            OrderDraftResult for the payload

        Raises:
            ValueError: restaurant not found, invalid payload, or unknown menu item
        """
        trace = PricingTrace()
        with self._repository() as repo:
            restaurant = repo.get_restaurant(restaurant_id)
            if not restaurant:
                raise ValueError(f"Restaurant {restaurant_id} not found")

            menu_item_ids = [str(item.get("menuItemId")) for item in order_payload.get("items") or []]
            menu_items, menu_rules, options = build_catalog(
                repo.get_menu_items(restaurant_id, menu_item_ids),
                repo.get_menu_rules(menu_item_ids),
                repo.get_options(restaurant_id),
                trace=trace,
            )

        settings = parse_restaurant_settings(restaurant, default_unit=self.config.get("distance_unit", MILES))
        order = parse_order_draft_input({"restaurantId": restaurant_id, **order_payload}, settings)

        if order.customer_location is None and order_payload.get("deliveryAddress") and self.geocoder is not None:
            logger.debug(f"Geocoding delivery address for restaurant {restaurant_id}")
            location = await self.geocoder.geocode(str(order_payload["deliveryAddress"]))
            order = replace(order, customer_location=location)

        return await calculate_order_draft(
            order,
            menu_items,
            menu_rules,
            options,
            delivery_provider=self.delivery_provider,
            search_radius=self.config.get("delivery_search_radius", 100.0),
            trace=trace,
        )

    async def verify_order_by_id(self, order_id: str) -> Dict[str, Any]:
        """Reprice a stored order and compare every stored total with the result."""
        with self._repository() as repo:
            order_doc = repo.get_order(order_id)
        if not order_doc:
            raise ValueError(f"Order with ID {order_id} not found")

        restaurant_id = str(order_doc.get("restaurantId") or "")
        draft = await self.calculate(restaurant_id, order_doc)

        comparisons: List[Dict[str, Any]] = []
        for stored_field, attribute in VERIFIED_FIELDS:
            stored_cents = to_cents(order_doc.get(stored_field) or 0)
            recomputed_cents = getattr(draft, attribute)
            comparisons.append({
                "field": stored_field,
                "stored": stored_cents / 100,
                "recomputed": recomputed_cents / 100,
                "difference_cents": stored_cents - recomputed_cents,
                "is_valid": stored_cents == recomputed_cents,
            })

        is_valid = all(c["is_valid"] for c in comparisons)
        if not is_valid:
            logger.warning(f"Order {order_id} totals differ from repriced draft")

        return {
            "order_id": order_id,
            "restaurant_id": restaurant_id,
            "is_valid": is_valid,
            "comparisons": comparisons,
            "draft": draft,
        }
