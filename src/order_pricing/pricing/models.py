"""Typed data structures for catalog, settings, cart and pricing results.

Inputs are plain dataclasses built by :mod:`order_pricing.pricing.loader`.
Results are frozen: they carry integer cents and expose decimal views through
properties and ``to_dict()``.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Tuple

from .money import to_dollars
from .trace import TraceEvent

MULTIPLIER = "multiplier"
ADDITION = "addition"
FIXED = "fixed"
ADJUSTMENT_TYPES = (MULTIPLIER, ADDITION, FIXED)

PERCENTAGE = "percentage"
TAX_TYPES = (PERCENTAGE, FIXED)

ENTIRE_ORDER = "entire_order"
PER_ITEM = "per_item"
TAX_TARGETS = (ENTIRE_ORDER, PER_ITEM)

PICKUP = "pickup"
DELIVERY = "delivery"
DINE_IN = "dine_in"
ORDER_TYPES = (PICKUP, DELIVERY, DINE_IN)

KILOMETERS = "km"
MILES = "miles"
DISTANCE_UNITS = (KILOMETERS, MILES)


# ---------- Catalog ----------

@dataclass
class MenuItem:
    id: str
    name: str
    price: float


@dataclass
class Choice:
    id: str
    name: str
    base_price: float = 0.0


@dataclass
class Option:
    id: str
    name: str
    choices: List[Choice] = field(default_factory=list)

    def find_choice(self, choice_id: str) -> Optional[Choice]:
        return next((c for c in self.choices if c.id == choice_id), None)


@dataclass
class PriceAdjustment:
    adjustment_type: str
    value: float
    target_option_id: Optional[str] = None
    target_choice_id: Optional[str] = None

    @property
    def is_cross(self) -> bool:
        return bool(self.target_option_id)

    @property
    def is_self_fixed(self) -> bool:
        return self.adjustment_type == FIXED and not self.target_option_id


@dataclass
class ChoiceAdjustment:
    choice_id: str
    price_adjustment: float = 0.0
    is_available: bool = True
    is_default: bool = False
    adjustments: List[PriceAdjustment] = field(default_factory=list)


@dataclass
class AppliedOption:
    option_id: str
    required: bool = False
    order: int = 0
    choice_adjustments: List[ChoiceAdjustment] = field(default_factory=list)

    def find_choice_adjustment(self, choice_id: str) -> Optional[ChoiceAdjustment]:
        return next((ca for ca in self.choice_adjustments if ca.choice_id == choice_id), None)


# ---------- Settings ----------

@dataclass
class TaxSetting:
    name: str
    rate: float
    type: str = PERCENTAGE
    apply_to: str = ENTIRE_ORDER
    enabled: bool = True


@dataclass
class DeliveryPricingTier:
    name: str
    distance_covered: float
    base_fee: float
    additional_fee_per_unit: float = 0.0
    is_default: bool = False


@dataclass
class GlobalFee:
    enabled: bool
    threshold: float = 0.0
    below_percent: float = 0.0
    above_flat: float = 0.0


@dataclass
class GeoLocation:
    lat: float
    lng: float


@dataclass
class RestaurantSettings:
    taxes: List[TaxSetting] = field(default_factory=list)
    delivery_tiers: List[DeliveryPricingTier] = field(default_factory=list)
    global_fee: Optional[GlobalFee] = None
    distance_unit: str = MILES
    maximum_radius: float = 0.0
    location: Optional[GeoLocation] = None
    use_delivery_provider: bool = False


# ---------- Cart ----------

@dataclass
class SelectedOption:
    option_id: str
    choice_id: str
    quantity: int = 1


@dataclass
class OrderItemInput:
    menu_item_id: str
    quantity: int = 1
    selected_options: List[SelectedOption] = field(default_factory=list)
    special_instructions: Optional[str] = None


@dataclass
class OrderDraftInput:
    restaurant_id: str
    items: List[OrderItemInput]
    order_type: str = PICKUP
    tip: float = 0.0
    restaurant_location: Optional[GeoLocation] = None
    customer_location: Optional[GeoLocation] = None
    delivery_distance: Optional[float] = None
    tax_settings: List[TaxSetting] = field(default_factory=list)
    delivery_pricing_tiers: List[DeliveryPricingTier] = field(default_factory=list)
    global_fee: Optional[GlobalFee] = None
    distance_unit: str = MILES
    use_delivery_provider: bool = False


# ---------- Collaborator payloads ----------

@dataclass(frozen=True)
class DeliveryEstimate:
    fee: float
    provider: str
    distance: Optional[float] = None


@dataclass(frozen=True)
class ValidationResult:
    valid: bool
    errors: Tuple[str, ...] = ()

    @classmethod
    def from_errors(cls, errors: List[str]) -> "ValidationResult":
        return cls(valid=not errors, errors=tuple(errors))


# ---------- Results ----------

@dataclass(frozen=True)
class AppliedAdjustment:
    """A cross-modifier rule that changed a selected choice's price."""

    adjustment_type: str
    value: float
    trigger_option_id: str
    trigger_choice_id: str
    amount_cents: int

    def to_dict(self) -> Dict[str, Any]:
        return {
            "type": self.adjustment_type,
            "value": self.value,
            "trigger_option_id": self.trigger_option_id,
            "trigger_choice_id": self.trigger_choice_id,
            "amount": to_dollars(self.amount_cents),
        }


@dataclass(frozen=True)
class ChoicePricing:
    option_id: str
    choice_id: str
    option_name: str
    choice_name: str
    quantity: int
    direct_cents: int
    cross_cents: int = 0
    adjustments_applied: Tuple[AppliedAdjustment, ...] = ()

    @property
    def total_cents(self) -> int:
        return self.direct_cents + self.cross_cents

    @property
    def total(self) -> float:
        return to_dollars(self.total_cents)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "option_id": self.option_id,
            "choice_id": self.choice_id,
            "option_name": self.option_name,
            "choice_name": self.choice_name,
            "quantity": self.quantity,
            "direct_price": to_dollars(self.direct_cents),
            "cross_adjustment": to_dollars(self.cross_cents),
            "total": self.total,
            "adjustments_applied": [a.to_dict() for a in self.adjustments_applied],
        }


@dataclass(frozen=True)
class ItemPricing:
    base_price_cents: int
    choices: Tuple[ChoicePricing, ...] = ()

    @property
    def modifier_delta_cents(self) -> int:
        return sum(c.total_cents for c in self.choices)

    @property
    def item_total_cents(self) -> int:
        return self.base_price_cents + self.modifier_delta_cents

    @property
    def modifier_delta(self) -> float:
        return to_dollars(self.modifier_delta_cents)

    @property
    def item_total(self) -> float:
        return to_dollars(self.item_total_cents)


@dataclass(frozen=True)
class FormattedOption:
    """Option selection as shown on receipts and persisted on the order."""

    name: str
    choice: str
    price_adjustment: float

    def to_dict(self) -> Dict[str, Any]:
        return {"name": self.name, "choice": self.choice, "price_adjustment": self.price_adjustment}


@dataclass(frozen=True)
class OrderItemResult:
    menu_item_id: str
    name: str
    base_price_cents: int
    adjustments_cents: int
    quantity: int
    options: Tuple[FormattedOption, ...] = ()
    special_instructions: Optional[str] = None

    @property
    def final_price_cents(self) -> int:
        return self.base_price_cents + self.adjustments_cents

    @property
    def total_cents(self) -> int:
        return self.final_price_cents * self.quantity

    @property
    def base_price(self) -> float:
        return to_dollars(self.base_price_cents)

    @property
    def adjustments(self) -> float:
        return to_dollars(self.adjustments_cents)

    @property
    def final_price(self) -> float:
        return to_dollars(self.final_price_cents)

    @property
    def total(self) -> float:
        return to_dollars(self.total_cents)

    def to_dict(self) -> Dict[str, Any]:
        data: Dict[str, Any] = {
            "menu_item_id": self.menu_item_id,
            "name": self.name,
            "base_price": self.base_price,
            "adjustments": self.adjustments,
            "final_price": self.final_price,
            "quantity": self.quantity,
            "total": self.total,
            "options": [o.to_dict() for o in self.options],
        }
        if self.special_instructions is not None:
            data["special_instructions"] = self.special_instructions
        return data


@dataclass(frozen=True)
class TaxBreakdown:
    name: str
    rate: Optional[float]
    amount_cents: int
    type: str

    @property
    def amount(self) -> float:
        return to_dollars(self.amount_cents)

    def to_dict(self) -> Dict[str, Any]:
        return {"name": self.name, "rate": self.rate, "amount": self.amount, "type": self.type}


@dataclass(frozen=True)
class TaxCalculationResult:
    total_tax_cents: int
    breakdown: Tuple[TaxBreakdown, ...]
    subtotal_cents: int

    @property
    def total_tax(self) -> float:
        return to_dollars(self.total_tax_cents)

    @property
    def subtotal_before_tax(self) -> float:
        return to_dollars(self.subtotal_cents)

    @property
    def total_with_tax(self) -> float:
        return to_dollars(self.subtotal_cents + self.total_tax_cents)


@dataclass(frozen=True)
class DeliveryFeeResult:
    base_fee_cents: int
    distance_fee_cents: int
    distance: float
    unit: str
    tier_used: Optional[str] = None

    @property
    def total_fee_cents(self) -> int:
        return self.base_fee_cents + self.distance_fee_cents

    @property
    def base_fee(self) -> float:
        return to_dollars(self.base_fee_cents)

    @property
    def distance_fee(self) -> float:
        return to_dollars(self.distance_fee_cents)

    @property
    def total_fee(self) -> float:
        return to_dollars(self.total_fee_cents)


@dataclass(frozen=True)
class DistanceCheck:
    distance: float
    within_radius: bool
    unit: str


@dataclass(frozen=True)
class GlobalFeeResult:
    platform_fee_cents: int
    applied_rule: str
    percentage_used: Optional[float] = None
    flat_amount_used: Optional[float] = None

    @property
    def platform_fee(self) -> float:
        return to_dollars(self.platform_fee_cents)


@dataclass(frozen=True)
class DeliveryDetails:
    distance: Optional[float] = None
    unit: Optional[str] = None
    tier_used: Optional[str] = None
    provider: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        return {k: v for k, v in (
            ("distance", self.distance),
            ("unit", self.unit),
            ("tier_used", self.tier_used),
            ("provider", self.provider),
        ) if v is not None}


@dataclass(frozen=True)
class OrderDraftResult:
    items: Tuple[OrderItemResult, ...]
    subtotal_cents: int
    tax_cents: int
    tax_breakdown: Tuple[TaxBreakdown, ...]
    delivery_fee_cents: int
    tip_cents: int
    platform_fee_cents: int
    delivery_details: Optional[DeliveryDetails] = None
    trace: Tuple[TraceEvent, ...] = ()

    @property
    def total_cents(self) -> int:
        return (
            self.subtotal_cents
            + self.tax_cents
            + self.delivery_fee_cents
            + self.tip_cents
            + self.platform_fee_cents
        )

    @property
    def subtotal(self) -> float:
        return to_dollars(self.subtotal_cents)

    @property
    def tax(self) -> float:
        return to_dollars(self.tax_cents)

    @property
    def delivery_fee(self) -> float:
        return to_dollars(self.delivery_fee_cents)

    @property
    def tip(self) -> float:
        return to_dollars(self.tip_cents)

    @property
    def platform_fee(self) -> float:
        return to_dollars(self.platform_fee_cents)

    @property
    def total(self) -> float:
        return to_dollars(self.total_cents)

    def to_dict(self) -> Dict[str, Any]:
        """Decimal form persisted with the order and sent to payment capture."""
        return {
            "items": [i.to_dict() for i in self.items],
            "subtotal": self.subtotal,
            "tax": self.tax,
            "tax_breakdown": [t.to_dict() for t in self.tax_breakdown],
            "delivery_fee": self.delivery_fee,
            "delivery_details": self.delivery_details.to_dict() if self.delivery_details else {},
            "tip": self.tip,
            "platform_fee": self.platform_fee,
            "total": self.total,
        }
