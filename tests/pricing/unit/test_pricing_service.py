"""
PricingService Unit Tests

Tier schedule per category, session pack pricing, delivery fees and the
display helpers.

Run with:
    pytest tests/pricing/unit/test_pricing_service.py -v
"""

import pytest

from app.core.exceptions import (
    InvalidCountError,
    InvalidDeliveryOptionError,
    UnknownProductTypeError,
)
from app.models.cart import DeliveryOption, PRINT_TYPES, ProductType
from app.services.pricing_service import (
    BOUTIQUE_PRICE_LIST,
    GALLERY_PRICE_LIST,
    PRINT_SIZE_ORDER,
    PricingService,
    calculate_savings_percentage,
    delivery_fee,
    format_price,
)

TIERED_TYPES = [ProductType.DIGITAL, *sorted(PRINT_TYPES, key=lambda p: p.value)]


class TestNextUnitPrice:
    """Test PricingService.next_unit_price()"""

    @pytest.fixture
    def pricing(self):
        return PricingService()

    def test_digital_tiers(self, pricing):
        prices = [pricing.next_unit_price(n, ProductType.DIGITAL) for n in range(5)]
        assert prices == [10.0, 7.0, 5.0, 5.0, 5.0]

    def test_a4_tiers(self, pricing):
        assert pricing.next_unit_price(0, ProductType.PRINT_A4) == 30.0
        assert pricing.next_unit_price(1, ProductType.PRINT_A4) == 25.0
        assert pricing.next_unit_price(2, ProductType.PRINT_A4) == 20.0

    @pytest.mark.parametrize("product_type", TIERED_TYPES)
    def test_schedule_descends_then_floors(self, pricing, product_type):
        first = pricing.next_unit_price(0, product_type)
        second = pricing.next_unit_price(1, product_type)
        floor = pricing.next_unit_price(2, product_type)

        assert first > second > floor
        for k in (3, 4, 10, 100):
            assert pricing.next_unit_price(k, product_type) == floor

    def test_accepts_string_product_type(self, pricing):
        assert pricing.next_unit_price(1, "printA5") == 16.0

    def test_category_total_does_not_change_price(self, pricing):
        assert pricing.next_unit_price(1, ProductType.DIGITAL, 999.0) == 7.0

    def test_session_pack_fixed_price_once(self, pricing):
        assert pricing.next_unit_price(0, ProductType.SESSION_PACK) == 40.0
        assert pricing.next_unit_price(1, ProductType.SESSION_PACK) == 0.0

    def test_digital_is_free_with_session_pack(self, pricing):
        for n in (0, 1, 2, 7):
            assert pricing.next_unit_price(n, ProductType.DIGITAL, session_pack_in_cart=True) == 0.0

    def test_session_pack_does_not_affect_prints(self, pricing):
        price = pricing.next_unit_price(0, ProductType.PRINT_A3, session_pack_in_cart=True)
        assert price == 50.0

    @pytest.mark.parametrize("count", [-1, 1.5, "2", None, True])
    def test_invalid_count_rejected(self, pricing, count):
        with pytest.raises(InvalidCountError):
            pricing.next_unit_price(count, ProductType.DIGITAL)

    def test_unknown_product_type_rejected(self, pricing):
        with pytest.raises(UnknownProductTypeError):
            pricing.next_unit_price(0, "poster")

    def test_category_missing_from_price_list(self):
        boutique = PricingService(BOUTIQUE_PRICE_LIST)
        with pytest.raises(UnknownProductTypeError) as exc:
            boutique.next_unit_price(0, ProductType.PRINT_A2)
        assert exc.value.price_list == "boutique"

    def test_boutique_list_is_flat(self):
        boutique = PricingService(BOUTIQUE_PRICE_LIST)
        assert [boutique.next_unit_price(n, ProductType.DIGITAL) for n in range(3)] == [15.0] * 3
        assert boutique.next_unit_price(4, ProductType.PRINT_A4) == 25.0


class TestPriceListSummary:

    def test_gallery_summary(self):
        summary = PricingService(GALLERY_PRICE_LIST).price_list_summary()
        assert summary["name"] == "gallery"
        assert summary["session_pack_price"] == 40.0
        digital = next(c for c in summary["categories"] if c["product_type"] == "digital")
        assert digital == {"product_type": "digital", "tiers": [10.0, 7.0, 5.0], "delivery_fee": 0.0}

    def test_boutique_summary_has_bundle(self):
        summary = PricingService(BOUTIQUE_PRICE_LIST).price_list_summary()
        assert summary["bundle_price"] == 35.0
        assert summary["session_pack_price"] is None


class TestDeliveryFee:
    """Test delivery_fee()"""

    @pytest.mark.parametrize("product_type", sorted(PRINT_TYPES, key=lambda p: p.value))
    def test_pickup_is_free(self, product_type):
        assert delivery_fee(product_type, DeliveryOption.PICKUP) == 0.0

    def test_delivery_grows_with_print_size(self):
        fees = [delivery_fee(p, DeliveryOption.DELIVERY) for p in PRINT_SIZE_ORDER]
        assert fees == sorted(fees)
        assert fees[0] < fees[-1]

    def test_a4_delivery(self):
        assert delivery_fee(ProductType.PRINT_A4, "delivery") == 7.0

    @pytest.mark.parametrize("product_type", [ProductType.DIGITAL, ProductType.SESSION_PACK])
    def test_non_print_never_pays_delivery(self, product_type):
        assert delivery_fee(product_type, DeliveryOption.DELIVERY) == 0.0

    def test_unknown_option_rejected(self):
        with pytest.raises(InvalidDeliveryOptionError):
            delivery_fee(ProductType.PRINT_A4, "drone")

    def test_unknown_product_type_rejected(self):
        with pytest.raises(UnknownProductTypeError):
            delivery_fee("printA0", DeliveryOption.DELIVERY)


class TestFormatting:

    @pytest.mark.parametrize(
        "amount, expected",
        [
            (0, "0,00\u00a0€"),
            (5, "5,00\u00a0€"),
            (22.5, "22,50\u00a0€"),
            (1234.5, "1\u202f234,50\u00a0€"),
            (0.125, "0,13\u00a0€"),
        ],
    )
    def test_format_price(self, amount, expected):
        assert format_price(amount) == expected

    def test_savings_percentage(self):
        assert calculate_savings_percentage(10, 7) == 30
        assert calculate_savings_percentage(30, 25) == 17
        assert calculate_savings_percentage(10, 10) == 0

    def test_savings_percentage_zero_original(self):
        assert calculate_savings_percentage(0, 0) == 0
