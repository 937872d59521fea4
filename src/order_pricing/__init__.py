"""
Order Pricing - canonical order total calculation for restaurant ordering

Prices carts with nested modifier selections, cross-modifier price rules,
taxes, distance-based delivery fees and tiered platform fees. The same
pipeline serves cart preview, order submission and order edit.
"""

__version__ = "0.1.0"

from . import pricing
from . import utils

__all__ = ["pricing", "utils"]
