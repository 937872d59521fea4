"""Pydantic models for catalog, settings and cart documents.

Documents use the storefront's camelCase keys. Each model validates one
document and converts it to the engine dataclass with ``to_model()``; the
engines never see a pydantic object.
"""

from __future__ import annotations

from typing import Annotated, Any, List, Literal, Optional

from pydantic import (
    AliasChoices,
    BaseModel,
    BeforeValidator,
    ConfigDict,
    Field,
    PositiveInt,
    field_validator,
    model_validator,
)
from pydantic.alias_generators import to_camel

from .models import (
    AppliedOption,
    Choice,
    ChoiceAdjustment,
    DeliveryPricingTier,
    GeoLocation,
    GlobalFee,
    MenuItem,
    Option,
    OrderItemInput,
    PriceAdjustment,
    SelectedOption,
    TaxSetting,
)


def _object_id(value: Any) -> Any:
    """Mongo ObjectIds, ``{"$oid": ...}`` and numbers become strings; blank is missing."""
    if isinstance(value, dict) and "$oid" in value:
        value = value["$oid"]
    if value is None or isinstance(value, (bool, str)):
        return value or None
    return str(value)


def _reject_bool(value: Any) -> Any:
    if isinstance(value, bool):
        raise ValueError("must be a number, not a boolean")
    return value


Id = Annotated[str, BeforeValidator(_object_id)]
OptionalId = Annotated[Optional[str], BeforeValidator(_object_id)]
Amount = Annotated[float, BeforeValidator(_reject_bool)]
Quantity = Annotated[PositiveInt, BeforeValidator(_reject_bool)]


class Document(BaseModel):
    """Base for all boundary models; a ``null`` key counts as missing."""

    model_config = ConfigDict(alias_generator=to_camel, allow_inf_nan=False)

    @model_validator(mode="before")
    @classmethod
    def drop_nulls(cls, data: Any) -> Any:
        if isinstance(data, dict):
            return {key: value for key, value in data.items() if value is not None}
        return data


# ---------- Catalog ----------

class MenuItemDocument(Document):
    id: Id = Field(validation_alias=AliasChoices("id", "_id"))
    name: str = ""
    price: Amount

    def to_model(self) -> MenuItem:
        return MenuItem(id=self.id, name=self.name, price=self.price)


class ChoiceDocument(Document):
    id: Id = Field(validation_alias=AliasChoices("id", "_id"))
    name: str = ""
    base_price: Amount = 0.0

    def to_model(self) -> Choice:
        return Choice(id=self.id, name=self.name, base_price=self.base_price)


class OptionDocument(Document):
    id: Id = Field(validation_alias=AliasChoices("id", "_id"))
    name: str = ""
    choices: List[ChoiceDocument] = Field(default_factory=list)

    def to_model(self) -> Option:
        return Option(id=self.id, name=self.name, choices=[c.to_model() for c in self.choices])


class PriceAdjustmentDocument(Document):
    adjustment_type: Literal["multiplier", "addition", "fixed"]
    value: Amount
    target_option_id: OptionalId = None
    target_choice_id: OptionalId = None

    def to_model(self) -> PriceAdjustment:
        return PriceAdjustment(
            adjustment_type=self.adjustment_type,
            value=self.value,
            target_option_id=self.target_option_id,
            target_choice_id=self.target_choice_id,
        )


class ChoiceAdjustmentDocument(Document):
    choice_id: Id
    price_adjustment: Amount = 0.0
    is_available: bool = True
    is_default: bool = False
    adjustments: List[PriceAdjustmentDocument] = Field(default_factory=list)

    def to_model(self) -> ChoiceAdjustment:
        return ChoiceAdjustment(
            choice_id=self.choice_id,
            price_adjustment=self.price_adjustment,
            is_available=self.is_available,
            is_default=self.is_default,
            adjustments=[a.to_model() for a in self.adjustments],
        )


class AppliedOptionDocument(Document):
    option_id: Id
    required: bool = False
    order: int = 0
    choice_adjustments: List[ChoiceAdjustmentDocument] = Field(default_factory=list)

    def to_model(self) -> AppliedOption:
        return AppliedOption(
            option_id=self.option_id,
            required=self.required,
            order=self.order,
            choice_adjustments=[ca.to_model() for ca in self.choice_adjustments],
        )


class MenuRuleDocument(Document):
    """Binds options to one menu item."""

    menu_item_id: Id
    applied_options: List[AppliedOptionDocument] = Field(default_factory=list)

    def to_model(self) -> List[AppliedOption]:
        return [ao.to_model() for ao in self.applied_options]


# ---------- Settings ----------

class TaxSettingDocument(Document):
    name: str = ""
    rate: Amount
    type: Literal["percentage", "fixed"] = "percentage"
    apply_to: Literal["entire_order", "per_item"] = "entire_order"
    enabled: bool = True

    def to_model(self) -> TaxSetting:
        return TaxSetting(name=self.name, rate=self.rate, type=self.type, apply_to=self.apply_to, enabled=self.enabled)


class DeliveryTierDocument(Document):
    name: str = ""
    distance_covered: Amount
    base_fee: Amount
    additional_fee_per_unit: Amount = 0.0
    is_default: bool = False

    def to_model(self) -> DeliveryPricingTier:
        return DeliveryPricingTier(
            name=self.name,
            distance_covered=self.distance_covered,
            base_fee=self.base_fee,
            additional_fee_per_unit=self.additional_fee_per_unit,
            is_default=self.is_default,
        )


class GlobalFeeDocument(Document):
    enabled: bool = False
    threshold: Amount = 0.0
    below_percent: Amount = 0.0
    above_flat: Amount = 0.0

    def to_model(self) -> GlobalFee:
        return GlobalFee(
            enabled=self.enabled,
            threshold=self.threshold,
            below_percent=self.below_percent,
            above_flat=self.above_flat,
        )


class LocationDocument(Document):
    """Accepts ``{lat, lng}`` or ``{latitude, longitude}``."""

    lat: Amount = Field(validation_alias=AliasChoices("lat", "latitude"))
    lng: Amount = Field(validation_alias=AliasChoices("lng", "longitude"))

    def to_model(self) -> GeoLocation:
        return GeoLocation(lat=self.lat, lng=self.lng)


class FinancialSettingsDocument(Document):
    taxes: List[TaxSettingDocument] = Field(default_factory=list)
    global_fee: Optional[GlobalFeeDocument] = None

    @field_validator("global_fee", mode="before")
    @classmethod
    def empty_fee_is_none(cls, value: Any) -> Any:
        return value or None


class DeliverySettingsDocument(Document):
    pricing_tiers: List[DeliveryTierDocument] = Field(default_factory=list)
    distance_unit: Optional[Literal["miles", "km"]] = None
    maximum_radius: Amount = 0.0
    driver_provider: str = "local"


class RestaurantDocument(Document):
    financial_settings: FinancialSettingsDocument = Field(default_factory=FinancialSettingsDocument)
    delivery_settings: DeliverySettingsDocument = Field(default_factory=DeliverySettingsDocument)
    location: Optional[LocationDocument] = None

    @field_validator("location", mode="before")
    @classmethod
    def empty_location_is_none(cls, value: Any) -> Any:
        return value or None


# ---------- Cart ----------

class SelectedOptionDocument(Document):
    option_id: Id
    choice_id: Id
    quantity: Quantity = 1

    def to_model(self) -> SelectedOption:
        return SelectedOption(option_id=self.option_id, choice_id=self.choice_id, quantity=self.quantity)


class OrderItemDocument(Document):
    menu_item_id: Id
    quantity: Quantity = 1
    selected_options: List[SelectedOptionDocument] = Field(default_factory=list)
    special_instructions: Optional[str] = None

    def to_model(self) -> OrderItemInput:
        return OrderItemInput(
            menu_item_id=self.menu_item_id,
            quantity=self.quantity,
            selected_options=[s.to_model() for s in self.selected_options],
            special_instructions=self.special_instructions or None,
        )


class OrderDraftDocument(Document):
    restaurant_id: OptionalId = None
    items: List[OrderItemDocument] = Field(default_factory=list)
    order_type: Literal["pickup", "delivery", "dine_in"] = "pickup"
    tip: Amount = 0.0
    restaurant_location: Optional[LocationDocument] = None
    customer_location: Optional[LocationDocument] = None
    delivery_distance: Optional[Amount] = None
    use_delivery_provider: Optional[bool] = None

    @field_validator("restaurant_location", "customer_location", mode="before")
    @classmethod
    def empty_locations_are_none(cls, value: Any) -> Any:
        return value or None
