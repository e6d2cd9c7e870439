# app/services/cart.py
import uuid
from datetime import datetime, timezone

from pydantic import BaseModel, ConfigDict, Field

from app.core.exceptions import InvalidCartItemError
from app.models.cart import AddResult, CartItem, ProductType
from app.schemas.cart import CategoryBreakdown, DynamicPricing
from app.services.pricing_service import GALLERY_PRICE_LIST, PriceList, PricingService


class CartSnapshot(BaseModel):
    """
    The items of a cart as they were sent to payment.

    Orders are recorded from the snapshot, so changes made to the live cart
    after checkout started never reach the order.
    """

    model_config = ConfigDict(frozen=True)

    cart_id: str
    items: tuple[CartItem, ...]
    taken_at: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))

    def get_total_price(self) -> float:
        return round(sum(i.unit_price + i.delivery_fee for i in self.items), 2)


class Cart:
    """
    Ordered collection of CartItems for one shopping session.

    The cart never prices anything: items arrive with their price already
    frozen. It enforces two uniqueness rules, one item per
    (photo_id, product_type) and at most one session pack, and reports
    violations through AddResult instead of raising.
    """

    def __init__(self, cart_id: str | None = None):
        self.id = cart_id or uuid.uuid4().hex
        self.created_at = datetime.now(timezone.utc)
        self._items: list[CartItem] = []

    def __len__(self) -> int:
        return len(self._items)

    @property
    def items(self) -> tuple[CartItem, ...]:
        return tuple(self._items)

    # ---- read helpers ----

    def has_session_pack(self) -> bool:
        return any(i.product_type is ProductType.SESSION_PACK for i in self._items)

    def count_for(self, product_type: ProductType) -> int:
        return sum(1 for i in self._items if i.product_type is product_type)

    def total_for(self, product_type: ProductType) -> float:
        return round(
            sum(i.unit_price for i in self._items if i.product_type is product_type), 2
        )

    def contains(self, photo_id: str, product_type: ProductType) -> bool:
        return self._find(photo_id, product_type) is not None

    def _find(self, photo_id: str, product_type: ProductType) -> CartItem | None:
        for item in self._items:
            if item.photo_id == photo_id and item.product_type is product_type:
                return item
        return None

    # ---- mutations ----

    def add_item(self, item: CartItem) -> AddResult:
        if item.product_type is ProductType.SESSION_PACK and self.has_session_pack():
            return AddResult.PACK_ALREADY_IN_CART
        if self.contains(item.photo_id, item.product_type):
            return AddResult.DUPLICATE
        self._items.append(item)
        return AddResult.ADDED

    def add_session_pack(self, item: CartItem) -> AddResult:
        if item.product_type is not ProductType.SESSION_PACK:
            raise InvalidCartItemError(
                f"add_session_pack expects a session pack, got {item.product_type.value}"
            )
        if self.has_session_pack():
            return AddResult.PACK_ALREADY_IN_CART
        self._items.append(item)
        return AddResult.ADDED

    def remove_item(self, photo_id: str, product_type: ProductType) -> CartItem | None:
        """Remove the matching item; returns it, or None when absent."""
        item = self._find(photo_id, product_type)
        if item is not None:
            self._items.remove(item)
        return item

    def clear(self) -> None:
        self._items.clear()

    # ---- derived views ----

    def get_total_price(self) -> float:
        return round(sum(i.unit_price + i.delivery_fee for i in self._items), 2)

    def get_item_count(self) -> int:
        return len(self._items)

    def snapshot(self) -> CartSnapshot:
        return CartSnapshot(cart_id=self.id, items=tuple(self._items))

    def get_dynamic_pricing(self, price_list: PriceList = GALLERY_PRICE_LIST) -> DynamicPricing:
        """
        Recompute display totals from the frozen prices.

        Reference prices come from price_list's 1st tier. Digital items
        priced at 0 while the pack is in the cart were granted by the pack:
        they count toward package_savings, never toward total_savings.
        """
        pricing = PricingService(price_list)
        pack_present = self.has_session_pack()

        tier_savings = 0.0
        granted_value = 0.0
        pack_price = 0.0
        per_category: dict[ProductType, list[float]] = {}

        for item in self._items:
            per_category.setdefault(item.product_type, []).append(item.unit_price)

            if item.product_type is ProductType.SESSION_PACK:
                pack_price += item.unit_price
                continue

            reference = pricing.first_tier_price(item.product_type)
            if item.product_type is ProductType.DIGITAL and item.unit_price == 0:
                # granted by a pack; once the pack is gone they are neither
                # tier savings nor package savings
                if pack_present:
                    granted_value += reference
                continue

            tier_savings += max(reference - item.unit_price, 0.0)

        total = self.get_total_price()
        package_savings = max(granted_value - pack_price, 0.0) if pack_present else 0.0

        return DynamicPricing(
            total=total,
            subtotal=round(total + tier_savings, 2),
            total_savings=round(tier_savings, 2),
            package_savings=round(package_savings, 2),
            categories=[
                CategoryBreakdown(
                    product_type=product_type,
                    count=len(prices),
                    total=round(sum(prices), 2),
                )
                for product_type, prices in per_category.items()
            ],
        )
