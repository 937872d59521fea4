"""Exceptions raised by the pricing engine."""

from __future__ import annotations

from typing import Iterable, List


class PricingError(ValueError):
    """Base class for pricing failures that must abort the calculation."""


class MenuItemNotFoundError(PricingError):
    """A cart line references a menu item the catalog does not contain."""

    def __init__(self, menu_item_id: str) -> None:
        self.menu_item_id = menu_item_id
        super().__init__(f"Menu item {menu_item_id} not found")


class CatalogValidationError(PricingError):
    """Catalog, settings or cart payload could not be loaded."""

    def __init__(self, errors: Iterable[str]) -> None:
        self.errors: List[str] = list(errors)
        super().__init__("Pricing data validation failed:\n" + "\n".join(self.errors))
