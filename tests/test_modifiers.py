"""Tests for modifier pricing and menu rule helpers."""

from order_pricing.pricing.models import (
    AppliedOption,
    Choice,
    ChoiceAdjustment,
    Option,
    PriceAdjustment,
    SelectedOption,
)
from order_pricing.pricing.modifiers import (
    get_default_selections,
    price_item,
    validate_menu_rules,
    validate_selections,
)
from order_pricing.pricing.trace import PricingTrace


def _catalog(size_adjustments=None, size_price=2.00, sauce_base=1.00, sauce_adjustments=None):
    options = {
        "size": Option(id="size", name="Size", choices=[Choice(id="large", name="Large")]),
        "sauce": Option(id="sauce", name="Sauce", choices=[Choice(id="extra", name="Extra", base_price=sauce_base)]),
    }
    applied = [
        AppliedOption(option_id="size", choice_adjustments=[
            ChoiceAdjustment(choice_id="large", price_adjustment=size_price, adjustments=size_adjustments or []),
        ]),
        AppliedOption(option_id="sauce", choice_adjustments=[
            ChoiceAdjustment(choice_id="extra", adjustments=sauce_adjustments or []),
        ]),
    ]
    return applied, options


class TestPriceItem:
    """Test cases for price_item."""

    def test_cross_addition_end_to_end(self, burger_catalog):
        """Large size adds $1.00 to Extra sauce: 10 + 2 + 0.50 + 1 = 13.50."""
        _, menu_rules, options = burger_catalog
        selections = [
            SelectedOption(option_id="size", choice_id="large"),
            SelectedOption(option_id="sauce", choice_id="extra"),
        ]

        pricing = price_item(10.00, menu_rules["burger"], selections, options)

        assert pricing.item_total == 13.50
        assert pricing.modifier_delta == 3.50
        sauce = pricing.choices[1]
        assert sauce.direct_cents == 50
        assert sauce.cross_cents == 100
        assert sauce.adjustments_applied[0].trigger_choice_id == "large"

    def test_no_selections_returns_base_price(self, burger_catalog):
        _, menu_rules, options = burger_catalog

        pricing = price_item(10.00, menu_rules["burger"], [], options)

        assert pricing.item_total_cents == 1000
        assert pricing.modifier_delta_cents == 0
        assert pricing.choices == ()

    def test_cross_rule_owner_listed_after_target(self):
        """Cross rules apply regardless of selection order."""
        applied, options = _catalog(sauce_adjustments=[])
        applied[0].choice_adjustments[0].adjustments = [
            PriceAdjustment(adjustment_type="addition", value=0.25, target_option_id="sauce"),
        ]
        selections = [
            SelectedOption(option_id="sauce", choice_id="extra"),
            SelectedOption(option_id="size", choice_id="large"),
        ]

        pricing = price_item(5.00, applied, selections, options)

        assert pricing.item_total_cents == 500 + 100 + 25 + 200

    def test_cross_multiplier(self):
        applied, options = _catalog(size_adjustments=[
            PriceAdjustment(adjustment_type="multiplier", value=1.5, target_option_id="sauce", target_choice_id="extra"),
        ])
        selections = [
            SelectedOption(option_id="size", choice_id="large"),
            SelectedOption(option_id="sauce", choice_id="extra", quantity=3),
        ]

        pricing = price_item(0, applied, selections, options)

        sauce = pricing.choices[1]
        assert sauce.direct_cents == 300
        assert sauce.cross_cents == 150
        assert sauce.total_cents == 450

    def test_cross_fixed_replaces_target_price(self):
        applied, options = _catalog(size_adjustments=[
            PriceAdjustment(adjustment_type="fixed", value=0.25, target_option_id="sauce"),
        ])
        selections = [
            SelectedOption(option_id="size", choice_id="large"),
            SelectedOption(option_id="sauce", choice_id="extra", quantity=2),
        ]

        pricing = price_item(0, applied, selections, options)

        sauce = pricing.choices[1]
        assert sauce.cross_cents == -150
        assert sauce.total_cents == 50

    def test_cross_addition_scales_with_target_quantity(self):
        applied, options = _catalog(size_adjustments=[
            PriceAdjustment(adjustment_type="addition", value=1.00, target_option_id="sauce"),
        ])
        selections = [
            SelectedOption(option_id="size", choice_id="large"),
            SelectedOption(option_id="sauce", choice_id="extra", quantity=2),
        ]

        pricing = price_item(0, applied, selections, options)

        assert pricing.choices[1].cross_cents == 200

    def test_cross_rules_do_not_compound(self):
        """Two multipliers are both computed against the direct-pass price."""
        applied, options = _catalog(size_adjustments=[
            PriceAdjustment(adjustment_type="multiplier", value=2, target_option_id="sauce"),
            PriceAdjustment(adjustment_type="multiplier", value=2, target_option_id="sauce"),
        ])
        selections = [
            SelectedOption(option_id="size", choice_id="large"),
            SelectedOption(option_id="sauce", choice_id="extra"),
        ]

        pricing = price_item(0, applied, selections, options)

        assert pricing.choices[1].total_cents == 300

    def test_cross_rule_scoped_to_other_choice_is_ignored(self):
        applied, options = _catalog(size_adjustments=[
            PriceAdjustment(adjustment_type="addition", value=1.00, target_option_id="sauce", target_choice_id="light"),
        ])
        selections = [
            SelectedOption(option_id="size", choice_id="large"),
            SelectedOption(option_id="sauce", choice_id="extra"),
        ]

        pricing = price_item(0, applied, selections, options)

        assert pricing.choices[1].cross_cents == 0
        assert pricing.choices[1].adjustments_applied == ()

    def test_self_fixed_overrides_choice_price(self):
        applied, options = _catalog(sauce_base=5.00, sauce_adjustments=[
            PriceAdjustment(adjustment_type="fixed", value=2.00),
            PriceAdjustment(adjustment_type="addition", value=9.00),
        ])
        selections = [SelectedOption(option_id="sauce", choice_id="extra", quantity=2)]

        pricing = price_item(0, applied, selections, options)

        assert pricing.choices[0].direct_cents == 400

    def test_self_multiplier_and_addition(self):
        applied, options = _catalog(sauce_base=2.00, sauce_adjustments=[
            PriceAdjustment(adjustment_type="multiplier", value=1.5),
            PriceAdjustment(adjustment_type="addition", value=0.10),
        ])
        selections = [SelectedOption(option_id="sauce", choice_id="extra", quantity=2)]

        pricing = price_item(0, applied, selections, options)

        # (2.00 * 2) * 1.5 + 0.10 * 2
        assert pricing.choices[0].direct_cents == 620

    def test_unknown_selections_are_skipped_and_traced(self):
        applied, options = _catalog()
        trace = PricingTrace()
        selections = [
            SelectedOption(option_id="drink", choice_id="cola"),
            SelectedOption(option_id="sauce", choice_id="missing"),
            SelectedOption(option_id="size", choice_id="large"),
        ]

        pricing = price_item(1.00, applied, selections, options, trace=trace)

        assert pricing.item_total_cents == 300
        reasons = [e.details["reason"] for e in trace.find("modifiers", "skip")]
        assert reasons == ["option not applied to menu item", "unknown choice"]

    def test_rule_owner_missing_from_catalog_still_fires(self):
        """Size is gone from the option catalog but its menu rule still applies."""
        applied, options = _catalog(sauce_base=0.50, size_adjustments=[
            PriceAdjustment(adjustment_type="addition", value=1.00, target_option_id="sauce"),
        ])
        del options["size"]
        trace = PricingTrace()
        selections = [
            SelectedOption(option_id="size", choice_id="large"),
            SelectedOption(option_id="sauce", choice_id="extra"),
        ]

        pricing = price_item(10.00, applied, selections, options, trace=trace)

        assert pricing.item_total_cents == 1000 + 50 + 100
        assert [c.option_id for c in pricing.choices] == ["sauce"]
        assert trace.find("modifiers", "skip")[0].details["reason"] == "unknown option"
        assert trace.find("modifiers", "cross_adjustment")[0].details["trigger_option_id"] == "size"

    def test_selection_without_menu_rule_does_not_fire(self):
        applied, options = _catalog(size_adjustments=[
            PriceAdjustment(adjustment_type="addition", value=1.00, target_option_id="sauce"),
        ])
        selections = [
            SelectedOption(option_id="size", choice_id="small"),
            SelectedOption(option_id="sauce", choice_id="extra"),
        ]

        pricing = price_item(0, applied, selections, options)

        assert pricing.modifier_delta_cents == 100

    def test_cross_rules_from_two_owners_add_up(self):
        """Deltas from different owners sum, independent of selection order."""
        options = {
            "size": Option(id="size", name="Size", choices=[Choice(id="large", name="Large")]),
            "crust": Option(id="crust", name="Crust", choices=[Choice(id="thin", name="Thin")]),
            "sauce": Option(id="sauce", name="Sauce", choices=[Choice(id="extra", name="Extra", base_price=0.80)]),
        }
        addition = PriceAdjustment(adjustment_type="addition", value=0.50,
                                   target_option_id="sauce", target_choice_id="extra")
        fixed = PriceAdjustment(adjustment_type="fixed", value=0.30,
                                target_option_id="sauce", target_choice_id="extra")

        def rules(size_rules, crust_rules):
            return [
                AppliedOption(option_id="size", choice_adjustments=[
                    ChoiceAdjustment(choice_id="large", adjustments=size_rules)]),
                AppliedOption(option_id="crust", choice_adjustments=[
                    ChoiceAdjustment(choice_id="thin", adjustments=crust_rules)]),
                AppliedOption(option_id="sauce", choice_adjustments=[
                    ChoiceAdjustment(choice_id="extra", price_adjustment=0.20)]),
            ]

        selections = [
            SelectedOption(option_id="size", choice_id="large"),
            SelectedOption(option_id="crust", choice_id="thin"),
            SelectedOption(option_id="sauce", choice_id="extra", quantity=2),
        ]

        def sauce_cross(applied, cart):
            pricing = price_item(0, applied, cart, options)
            return next(c for c in pricing.choices if c.option_id == "sauce").cross_cents

        addition_only = sauce_cross(rules([addition], []), selections)
        fixed_only = sauce_cross(rules([], [fixed]), selections)
        both = sauce_cross(rules([addition], [fixed]), selections)
        both_reversed = sauce_cross(rules([addition], [fixed]), list(reversed(selections)))

        # sauce direct = (0.80 + 0.20) * 2 = 200c
        assert addition_only == 100
        assert fixed_only == 60 - 200
        assert both == addition_only + fixed_only
        assert both_reversed == both


class TestValidateMenuRules:
    """Test cases for validate_menu_rules."""

    def test_valid_rules(self, burger_catalog):
        _, menu_rules, _ = burger_catalog
        result = validate_menu_rules(menu_rules["burger"])
        assert result.valid
        assert result.errors == ()

    def test_empty_rules_are_valid(self):
        assert validate_menu_rules([]).valid

    def test_reports_configuration_mistakes(self):
        applied = [
            AppliedOption(option_id="size", choice_adjustments=[
                ChoiceAdjustment(choice_id="large", adjustments=[
                    PriceAdjustment(adjustment_type="discount", value=1),
                    PriceAdjustment(adjustment_type="addition", value=1, target_option_id="cheese"),
                ]),
                ChoiceAdjustment(choice_id="large"),
            ]),
            AppliedOption(option_id="size"),
        ]

        result = validate_menu_rules(applied)

        assert not result.valid
        assert "Duplicate option ID: size" in result.errors
        assert "Option at index 1 has no choice adjustments" in result.errors
        assert "Duplicate choice ID: large in option size" in result.errors
        assert "Invalid adjustment type: discount for choice large" in result.errors
        assert any("Target option cheese not found" in e for e in result.errors)


class TestDefaultSelections:
    """Test cases for get_default_selections."""

    def test_defaults_follow_display_order(self):
        applied = [
            AppliedOption(option_id="sauce", order=2, choice_adjustments=[
                ChoiceAdjustment(choice_id="bbq", is_default=True),
            ]),
            AppliedOption(option_id="size", order=1, choice_adjustments=[
                ChoiceAdjustment(choice_id="small"),
                ChoiceAdjustment(choice_id="regular", is_default=True),
            ]),
        ]

        selections = get_default_selections(applied)

        assert [(s.option_id, s.choice_id) for s in selections] == [("size", "regular"), ("sauce", "bbq")]
        assert all(s.quantity == 1 for s in selections)

    def test_unavailable_default_is_not_selected(self):
        applied = [AppliedOption(option_id="size", choice_adjustments=[
            ChoiceAdjustment(choice_id="regular", is_default=True, is_available=False),
        ])]
        assert get_default_selections(applied) == []


class TestValidateSelections:
    """Test cases for validate_selections."""

    def test_valid_cart(self, burger_catalog):
        _, menu_rules, options = burger_catalog
        selections = [SelectedOption(option_id="size", choice_id="large")]
        assert validate_selections(menu_rules["burger"], options, selections).valid

    def test_reports_stale_cart(self, burger_catalog):
        _, menu_rules, options = burger_catalog
        selections = [
            SelectedOption(option_id="drink", choice_id="cola"),
            SelectedOption(option_id="sauce", choice_id="ranch"),
            SelectedOption(option_id="sauce", choice_id="light"),
        ]

        result = validate_selections(menu_rules["burger"], options, selections)

        assert result.errors == (
            "Option drink not found in menu rules",
            "Choice ranch not found in option sauce",
            "Choice light is not available",
            "Required option size has no selection",
        )
