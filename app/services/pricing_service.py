# app/services/pricing_service.py
from decimal import Decimal, ROUND_HALF_UP

from pydantic import BaseModel, ConfigDict

from app.core.exceptions import (
    InvalidCountError,
    InvalidDeliveryOptionError,
    UnknownProductTypeError,
)
from app.models.cart import DeliveryOption, ProductType


class PriceList(BaseModel):
    """
    A named, independently configured set of prices.

    tiers maps each category to (1st unit, 2nd unit, 3rd and later units).
    A flat list simply repeats the same price three times.
    """

    model_config = ConfigDict(frozen=True)

    name: str
    tiers: dict[ProductType, tuple[float, float, float]]
    session_pack_price: float | None = None
    bundle_price: float | None = None


# In-gallery list used by the cart.
GALLERY_PRICE_LIST = PriceList(
    name="gallery",
    tiers={
        ProductType.DIGITAL: (10.0, 7.0, 5.0),
        ProductType.PRINT_A5: (20.0, 16.0, 13.0),
        ProductType.PRINT_A4: (30.0, 25.0, 20.0),
        ProductType.PRINT_A3: (50.0, 42.0, 35.0),
        ProductType.PRINT_A2: (80.0, 68.0, 56.0),
        ProductType.PRINT_POLAROID_3: (15.0, 12.0, 10.0),
        ProductType.PRINT_POLAROID_6: (20.0, 16.0, 13.0),
    },
    session_pack_price=40.0,
)

# Product-card ("boutique") list: flat prices, digital + A4 bundle.
BOUTIQUE_PRICE_LIST = PriceList(
    name="boutique",
    tiers={
        ProductType.DIGITAL: (15.0, 15.0, 15.0),
        ProductType.PRINT_A4: (25.0, 25.0, 25.0),
    },
    bundle_price=35.0,
)

# Smallest to largest physical format.
PRINT_SIZE_ORDER: tuple[ProductType, ...] = (
    ProductType.PRINT_POLAROID_3,
    ProductType.PRINT_POLAROID_6,
    ProductType.PRINT_A5,
    ProductType.PRINT_A4,
    ProductType.PRINT_A3,
    ProductType.PRINT_A2,
)

DELIVERY_FEES: dict[ProductType, float] = {
    ProductType.PRINT_POLAROID_3: 5.0,
    ProductType.PRINT_POLAROID_6: 5.0,
    ProductType.PRINT_A5: 6.0,
    ProductType.PRINT_A4: 7.0,
    ProductType.PRINT_A3: 9.0,
    ProductType.PRINT_A2: 12.0,
}


def _coerce_product_type(product_type: ProductType | str) -> ProductType:
    try:
        return ProductType(product_type)
    except ValueError:
        raise UnknownProductTypeError(product_type)


def delivery_fee(
    product_type: ProductType | str,
    option: DeliveryOption | str,
) -> float:
    """
    Shipping surcharge for one item.

    pickup is always free; delivery is a flat fee per print format that
    grows with the physical size. Digital and session pack items never
    carry a fee.
    """
    product_type = _coerce_product_type(product_type)
    try:
        option = DeliveryOption(option)
    except ValueError:
        raise InvalidDeliveryOptionError(option)

    if option is DeliveryOption.PICKUP or not product_type.is_print:
        return 0.0
    return DELIVERY_FEES[product_type]


def format_price(amount: float) -> str:
    """
    Format an amount the way the storefront shows euros (fr-FR):

        1234.5 -> '1 234,50 €'
    """
    quantized = Decimal(str(amount)).quantize(Decimal("0.01"), rounding=ROUND_HALF_UP)
    raw = f"{quantized:,.2f}"
    # U+202F narrow no-break space for thousands, U+00A0 before the symbol
    return raw.replace(",", "\u202f").replace(".", ",") + "\u00a0€"


def calculate_savings_percentage(original_price: float, new_price: float) -> int:
    """Discount in whole percent, rounded half-up. 0 when original is 0."""
    if original_price == 0:
        return 0
    ratio = Decimal(str(original_price - new_price)) / Decimal(str(original_price)) * 100
    return int(ratio.quantize(Decimal("1"), rounding=ROUND_HALF_UP))


class PricingService:
    """
    Tier pricing engine.

    Answers "how much does the next unit of this category cost?" given how
    many units of that category the cart already holds. Each category has
    its own three-step schedule; counts are never pooled across categories.
    """

    def __init__(self, price_list: PriceList = GALLERY_PRICE_LIST):
        self.price_list = price_list

    # ---- internal helpers ----

    @staticmethod
    def _validate_count(category_count: int) -> None:
        if isinstance(category_count, bool) or not isinstance(category_count, int):
            raise InvalidCountError(category_count)
        if category_count < 0:
            raise InvalidCountError(category_count)

    def _session_pack_price(self) -> float:
        if self.price_list.session_pack_price is None:
            raise UnknownProductTypeError(ProductType.SESSION_PACK, self.price_list.name)
        return self.price_list.session_pack_price

    # ---- public operations ----

    def tier_schedule(self, product_type: ProductType | str) -> tuple[float, float, float]:
        product_type = _coerce_product_type(product_type)
        if product_type is ProductType.SESSION_PACK:
            price = self._session_pack_price()
            return (price, 0.0, 0.0)
        schedule = self.price_list.tiers.get(product_type)
        if schedule is None:
            raise UnknownProductTypeError(product_type, self.price_list.name)
        return schedule

    def first_tier_price(self, product_type: ProductType | str) -> float:
        return self.tier_schedule(product_type)[0]

    def next_unit_price(
        self,
        category_count: int,
        product_type: ProductType | str,
        current_category_total: float = 0.0,
        *,
        session_pack_in_cart: bool = False,
    ) -> float:
        """
        Price of the (n+1)-th unit of a category.

        Args:
            category_count: units of this category already in the cart
            product_type: category being added
            current_category_total: amount already accrued in the category;
                accepted for interface compatibility, the schedule is
                purely count based
            session_pack_in_cart: when true, digital units are free

        Returns:
            1st tier for the first unit, 2nd tier for the second, the floor
            tier for every unit after that. The session pack costs its fixed
            price once and 0 when already present.

        Raises:
            InvalidCountError: negative or non-integer count
            UnknownProductTypeError: category not in this price list
        """
        self._validate_count(category_count)
        product_type = _coerce_product_type(product_type)

        if product_type is ProductType.SESSION_PACK:
            return self._session_pack_price() if category_count == 0 else 0.0

        schedule = self.tier_schedule(product_type)

        if product_type is ProductType.DIGITAL and session_pack_in_cart:
            return 0.0

        return schedule[min(category_count, len(schedule) - 1)]

    def price_list_summary(self) -> dict:
        """
        Serializable view of the active price list for display.
        """
        categories = []
        for product_type, (first, second, floor) in self.price_list.tiers.items():
            categories.append(
                {
                    "product_type": product_type.value,
                    "tiers": [first, second, floor],
                    "delivery_fee": DELIVERY_FEES.get(product_type, 0.0),
                }
            )
        return {
            "name": self.price_list.name,
            "categories": categories,
            "session_pack_price": self.price_list.session_pack_price,
            "bundle_price": self.price_list.bundle_price,
        }
