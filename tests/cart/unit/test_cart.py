"""
Unit Tests: Cart aggregator

Covers:
- add_item() / add_session_pack() uniqueness rules and result codes
- frozen prices (no retroactive re-pricing)
- get_total_price() / get_item_count() consistency
- get_dynamic_pricing() savings breakdown
"""

import pytest
from pydantic import ValidationError

from app.core.exceptions import InvalidCartItemError
from app.models.cart import (
    AddResult,
    CartItem,
    DeliveryOption,
    ProductType,
    SESSION_PACK_PHOTO_ID,
)
from app.services.cart import Cart
from app.services.pricing_service import PricingService, delivery_fee


@pytest.fixture
def pricing():
    return PricingService()


@pytest.fixture
def cart():
    return Cart()


def add_priced(cart, pricing, photo_id, product_type, option=None):
    """Price the next unit from current counts, then add it, like the UI does."""
    unit_price = pricing.next_unit_price(
        cart.count_for(product_type),
        product_type,
        cart.total_for(product_type),
        session_pack_in_cart=cart.has_session_pack(),
    )
    fee = delivery_fee(product_type, option) if option else 0.0
    item = CartItem(
        photo_id=photo_id,
        product_type=product_type,
        unit_price=unit_price,
        delivery_option=option,
        delivery_fee=fee,
    )
    if product_type is ProductType.SESSION_PACK:
        return cart.add_session_pack(item), item
    return cart.add_item(item), item


def add_pack(cart, pricing):
    return add_priced(cart, pricing, SESSION_PACK_PHOTO_ID, ProductType.SESSION_PACK)


class TestCartItem:

    def test_frozen(self):
        item = CartItem(photo_id="p1", product_type=ProductType.DIGITAL, unit_price=10.0)
        with pytest.raises(ValidationError):
            item.unit_price = 0.0

    def test_negative_price_rejected(self):
        with pytest.raises(ValidationError):
            CartItem(photo_id="p1", product_type=ProductType.DIGITAL, unit_price=-1.0)

    def test_digital_cannot_carry_delivery_fee(self):
        with pytest.raises(ValidationError):
            CartItem(
                photo_id="p1",
                product_type=ProductType.DIGITAL,
                unit_price=10.0,
                delivery_fee=5.0,
            )

    def test_delivery_option_only_for_prints(self):
        with pytest.raises(ValidationError):
            CartItem(
                photo_id=SESSION_PACK_PHOTO_ID,
                product_type=ProductType.SESSION_PACK,
                unit_price=40.0,
                delivery_option=DeliveryOption.DELIVERY,
            )

    def test_line_total(self):
        item = CartItem(
            photo_id="p1",
            product_type=ProductType.PRINT_A3,
            unit_price=50.0,
            delivery_option=DeliveryOption.DELIVERY,
            delivery_fee=9.0,
        )
        assert item.line_total == 59.0


class TestScenarios:

    def test_three_digital_photos(self, cart, pricing):
        """Scenario A: 10 + 7 + 5."""
        for pid in ("p1", "p2", "p3"):
            result, _ = add_priced(cart, pricing, pid, ProductType.DIGITAL)
            assert result is AddResult.ADDED

        assert [i.unit_price for i in cart.items] == [10.0, 7.0, 5.0]
        assert cart.get_total_price() == 22.0
        assert cart.get_item_count() == 3

    def test_session_pack_after_two_digital(self, cart, pricing):
        """Scenario B: earlier digital items keep their prices, later ones are free."""
        add_priced(cart, pricing, "p1", ProductType.DIGITAL)
        add_priced(cart, pricing, "p2", ProductType.DIGITAL)
        result, pack = add_pack(cart, pricing)
        assert result is AddResult.ADDED
        assert pack.unit_price == 40.0

        _, third = add_priced(cart, pricing, "p3", ProductType.DIGITAL)

        assert third.unit_price == 0.0
        assert [i.unit_price for i in cart.items] == [10.0, 7.0, 40.0, 0.0]
        assert cart.get_total_price() == 57.0
        assert cart.get_item_count() == 4

    def test_print_delivery_then_pickup(self, cart, pricing):
        """Scenario C: switching to pickup zeroes the fee, unit price unchanged."""
        _, shipped = add_priced(cart, pricing, "p1", ProductType.PRINT_A4, DeliveryOption.DELIVERY)
        assert shipped.unit_price == 30.0
        assert shipped.delivery_fee == 7.0
        assert cart.get_total_price() == 37.0

        cart.remove_item("p1", ProductType.PRINT_A4)
        _, picked_up = add_priced(cart, pricing, "p1", ProductType.PRINT_A4, DeliveryOption.PICKUP)

        assert picked_up.unit_price == 30.0
        assert picked_up.delivery_fee == 0.0
        assert cart.get_total_price() == 30.0

    def test_duplicate_digital_rejected(self, cart, pricing):
        """Scenario D: same photo twice in the same category."""
        add_priced(cart, pricing, "p1", ProductType.DIGITAL)

        result, _ = add_priced(cart, pricing, "p1", ProductType.DIGITAL)

        assert result is AddResult.DUPLICATE
        assert len(cart) == 1


class TestUniqueness:

    def test_same_photo_different_categories(self, cart, pricing):
        add_priced(cart, pricing, "p1", ProductType.DIGITAL)
        result, _ = add_priced(cart, pricing, "p1", ProductType.PRINT_A5, DeliveryOption.PICKUP)
        assert result is AddResult.ADDED
        assert len(cart) == 2

    def test_second_pack_is_noop(self, cart, pricing):
        first, _ = add_pack(cart, pricing)
        second, again = add_pack(cart, pricing)

        assert first is AddResult.ADDED
        assert second is AddResult.PACK_ALREADY_IN_CART
        assert again.unit_price == 0.0
        assert cart.count_for(ProductType.SESSION_PACK) == 1
        assert cart.get_total_price() == 40.0

    def test_add_item_also_guards_pack(self, cart):
        pack = CartItem(photo_id="g1", product_type=ProductType.SESSION_PACK, unit_price=40.0)
        other = CartItem(photo_id="g2", product_type=ProductType.SESSION_PACK, unit_price=40.0)
        assert cart.add_item(pack) is AddResult.ADDED
        assert cart.add_item(other) is AddResult.PACK_ALREADY_IN_CART

    def test_add_session_pack_rejects_other_types(self, cart):
        item = CartItem(photo_id="p1", product_type=ProductType.DIGITAL, unit_price=10.0)
        with pytest.raises(InvalidCartItemError):
            cart.add_session_pack(item)


class TestCategoryCounts:

    def test_print_formats_tracked_independently(self, cart, pricing):
        add_priced(cart, pricing, "p1", ProductType.PRINT_A4, DeliveryOption.PICKUP)
        add_priced(cart, pricing, "p2", ProductType.PRINT_A4, DeliveryOption.PICKUP)
        _, a3 = add_priced(cart, pricing, "p3", ProductType.PRINT_A3, DeliveryOption.PICKUP)

        assert a3.unit_price == 50.0
        assert cart.count_for(ProductType.PRINT_A4) == 2
        assert cart.total_for(ProductType.PRINT_A4) == 55.0

    def test_removal_does_not_reprice_remaining(self, cart, pricing):
        add_priced(cart, pricing, "p1", ProductType.DIGITAL)
        add_priced(cart, pricing, "p2", ProductType.DIGITAL)

        cart.remove_item("p1", ProductType.DIGITAL)

        assert [i.unit_price for i in cart.items] == [7.0]

    def test_pack_removal_keeps_free_digital_at_zero(self, cart, pricing):
        add_pack(cart, pricing)
        add_priced(cart, pricing, "p1", ProductType.DIGITAL)

        cart.remove_item(SESSION_PACK_PHOTO_ID, ProductType.SESSION_PACK)

        assert [i.unit_price for i in cart.items] == [0.0]
        assert not cart.has_session_pack()


class TestTotals:

    def test_total_equals_sum_of_lines(self, cart, pricing):
        add_priced(cart, pricing, "p1", ProductType.DIGITAL)
        add_priced(cart, pricing, "p2", ProductType.PRINT_A2, DeliveryOption.DELIVERY)
        add_priced(cart, pricing, "p3", ProductType.PRINT_POLAROID_3, DeliveryOption.DELIVERY)

        assert cart.get_total_price() == round(sum(i.line_total for i in cart.items), 2)

    def test_removing_item_decreases_total_by_its_line(self, cart, pricing):
        add_priced(cart, pricing, "p1", ProductType.DIGITAL)
        _, print_item = add_priced(cart, pricing, "p2", ProductType.PRINT_A5, DeliveryOption.DELIVERY)
        before = cart.get_total_price()

        removed = cart.remove_item("p2", ProductType.PRINT_A5)

        assert removed == print_item
        assert cart.get_total_price() == round(before - print_item.line_total, 2)

    def test_remove_absent_is_noop(self, cart, pricing):
        add_priced(cart, pricing, "p1", ProductType.DIGITAL)
        assert cart.remove_item("nope", ProductType.DIGITAL) is None
        assert len(cart) == 1

    def test_clear(self, cart, pricing):
        add_priced(cart, pricing, "p1", ProductType.DIGITAL)
        add_pack(cart, pricing)

        cart.clear()

        assert cart.get_item_count() == 0
        assert cart.get_total_price() == 0.0
        assert not cart.has_session_pack()


class TestDynamicPricing:

    def test_empty_cart(self, cart):
        pricing = cart.get_dynamic_pricing()
        assert pricing.total == 0.0
        assert pricing.total_savings == 0.0
        assert pricing.package_savings == 0.0
        assert pricing.categories == []

    def test_tier_savings_against_first_tier(self, cart, pricing):
        for pid in ("p1", "p2", "p3"):
            add_priced(cart, pricing, pid, ProductType.DIGITAL)

        view = cart.get_dynamic_pricing()

        assert view.total == 22.0
        assert view.subtotal == 30.0
        assert view.total_savings == 8.0
        assert view.package_savings == 0.0
        assert [(c.product_type, c.count, c.total) for c in view.categories] == [
            (ProductType.DIGITAL, 3, 22.0)
        ]

    def test_pack_granted_items_are_package_savings(self, cart, pricing):
        add_priced(cart, pricing, "p1", ProductType.DIGITAL)
        add_priced(cart, pricing, "p2", ProductType.DIGITAL)
        add_pack(cart, pricing)
        for pid in ("p3", "p4", "p5", "p6", "p7"):
            add_priced(cart, pricing, pid, ProductType.DIGITAL)

        view = cart.get_dynamic_pricing()

        assert view.total == 57.0
        # only the 2nd digital photo was tier-discounted
        assert view.total_savings == 3.0
        # five photos worth 10 each, against a 40 pack
        assert view.package_savings == 10.0

    def test_pack_not_yet_paying_off(self, cart, pricing):
        add_pack(cart, pricing)
        add_priced(cart, pricing, "p1", ProductType.DIGITAL)

        assert cart.get_dynamic_pricing().package_savings == 0.0

    def test_delivery_fees_are_not_savings(self, cart, pricing):
        add_priced(cart, pricing, "p1", ProductType.PRINT_A4, DeliveryOption.DELIVERY)

        view = cart.get_dynamic_pricing()

        assert view.total == 37.0
        assert view.subtotal == 37.0
        assert view.total_savings == 0.0

    def test_free_digital_left_after_pack_removal_is_not_savings(self, cart, pricing):
        add_pack(cart, pricing)
        add_priced(cart, pricing, "p1", ProductType.DIGITAL)
        add_priced(cart, pricing, "p2", ProductType.DIGITAL)

        cart.remove_item(SESSION_PACK_PHOTO_ID, ProductType.SESSION_PACK)
        view = cart.get_dynamic_pricing()

        assert view.total == 0.0
        assert view.subtotal == 0.0
        assert view.total_savings == 0.0
        assert view.package_savings == 0.0


class TestSnapshot:

    def test_snapshot_is_detached_from_cart(self, cart, pricing):
        add_priced(cart, pricing, "p1", ProductType.DIGITAL)
        snapshot = cart.snapshot()

        add_priced(cart, pricing, "p2", ProductType.DIGITAL)
        cart.remove_item("p1", ProductType.DIGITAL)

        assert snapshot.cart_id == cart.id
        assert [i.photo_id for i in snapshot.items] == ["p1"]
        assert snapshot.get_total_price() == 10.0
