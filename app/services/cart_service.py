# app/services/cart_service.py
import logging

from fastapi import HTTPException, status
from sqlmodel import Session

from app.models.cart import (
    AddResult,
    CartItem,
    DeliveryOption,
    ProductType,
    SESSION_PACK_PHOTO_ID,
)
from app.repositories.cart_repo import CartRepository
from app.repositories.photo_repo import PhotoRepository
from app.schemas.cart import (
    AddToCartRequest,
    AddToCartResponse,
    CartItemRead,
    CartSummary,
    LegacyImportResult,
)
from app.services.cart import Cart
from app.services.legacy_cart import normalize_legacy_item
from app.services.pricing_service import PricingService, delivery_fee

logger = logging.getLogger(__name__)


class CartService:
    """
    Business logic for cart operations.

    Responsibilities:
      - resolve photos and snapshot their preview / display name
      - ask the pricing engine for the next unit price from current counts
      - compute the delivery fee once, at add time
      - hand the frozen item to the Cart and report the outcome
    """

    def __init__(
        self,
        cart_repo: CartRepository,
        photo_repo: PhotoRepository,
        pricing: PricingService | None = None,
    ):
        self.cart_repo = cart_repo
        self.photo_repo = photo_repo
        self.pricing = pricing or PricingService()

    # ---- internal helpers ----

    def _get_valid_photo(self, session: Session, photo_id: str):
        photo = self.photo_repo.get_by_id(session, photo_id)
        if not photo:
            raise HTTPException(
                status_code=status.HTTP_404_NOT_FOUND,
                detail="Photo not found",
            )
        if not photo.is_published:
            raise HTTPException(
                status_code=status.HTTP_400_BAD_REQUEST,
                detail="Photo is not for sale",
            )
        return photo

    @staticmethod
    def _to_read(item: CartItem) -> CartItemRead:
        return CartItemRead(
            photo_id=item.photo_id,
            product_type=item.product_type,
            unit_price=item.unit_price,
            delivery_option=item.delivery_option,
            delivery_fee=item.delivery_fee,
            preview_url=item.preview_url,
            display_name=item.display_name,
            line_total=item.line_total,
            added_at=item.added_at,
        )

    def price_next_item(
        self,
        cart: Cart,
        product_type: ProductType,
        delivery_option: DeliveryOption | None = None,
    ) -> tuple[float, float]:
        """
        (unit_price, delivery_fee) the next item of product_type would get.
        """
        unit_price = self.pricing.next_unit_price(
            cart.count_for(product_type),
            product_type,
            cart.total_for(product_type),
            session_pack_in_cart=cart.has_session_pack(),
        )
        fee = 0.0
        if product_type.is_print:
            fee = delivery_fee(product_type, delivery_option or DeliveryOption.PICKUP)
        return unit_price, fee

    # ---- public operations ----

    def get_cart_summary(self, cart: Cart) -> CartSummary:
        return CartSummary(
            cart_id=cart.id,
            items=[self._to_read(it) for it in cart.items],
            item_count=cart.get_item_count(),
            total_price=cart.get_total_price(),
            has_session_pack=cart.has_session_pack(),
            pricing=cart.get_dynamic_pricing(self.pricing.price_list),
        )

    def add_to_cart(
        self,
        session: Session,
        cart: Cart,
        payload: AddToCartRequest,
    ) -> AddToCartResponse:
        """
        Price and add one item.

        Rules:
          - photo must exist and be published (session pack excepted)
          - duplicates and a second pack are rejected with a result code
          - the price is frozen on the item; existing items are untouched
        """
        product_type = payload.product_type

        if product_type is ProductType.SESSION_PACK:
            photo_id = SESSION_PACK_PHOTO_ID
            preview_url = None
            display_name = "Pack session illimité"
        else:
            photo = self._get_valid_photo(session, payload.photo_id)
            photo_id = str(photo.id)
            preview_url = photo.preview_url
            display_name = photo.filename

        # Checked before pricing so a rejected add never consumes a tier.
        if product_type is ProductType.SESSION_PACK and cart.has_session_pack():
            result = AddResult.PACK_ALREADY_IN_CART
        elif cart.contains(photo_id, product_type):
            result = AddResult.DUPLICATE
        else:
            unit_price, fee = self.price_next_item(cart, product_type, payload.delivery_option)
            delivery_option = None
            if product_type.is_print:
                delivery_option = payload.delivery_option or DeliveryOption.PICKUP
            item = CartItem(
                photo_id=photo_id,
                product_type=product_type,
                unit_price=unit_price,
                preview_url=preview_url,
                display_name=display_name,
                delivery_option=delivery_option,
                delivery_fee=fee,
            )
            if product_type is ProductType.SESSION_PACK:
                result = cart.add_session_pack(item)
            else:
                result = cart.add_item(item)

            if result is AddResult.ADDED:
                logger.info(
                    f"Cart {cart.id}: added {product_type.value} {photo_id} "
                    f"at {unit_price:.2f} (+{fee:.2f} delivery)"
                )
                return AddToCartResponse(
                    result=result,
                    item=self._to_read(item),
                    cart=self.get_cart_summary(cart),
                )

        logger.info(f"Cart {cart.id}: rejected {product_type.value} {photo_id} ({result.value})")
        return AddToCartResponse(result=result, item=None, cart=self.get_cart_summary(cart))

    def import_legacy_items(self, cart: Cart, raw_items: list[dict]) -> LegacyImportResult:
        """
        Load items saved by older storefront versions.

        Each raw item is normalized into canonical CartItems carrying the
        price they were saved with. Malformed items raise
        InvalidCartItemError; duplicates are counted as rejected.
        """
        added = rejected = 0
        for raw in raw_items:
            for item in normalize_legacy_item(raw):
                if item.product_type is ProductType.SESSION_PACK:
                    result = cart.add_session_pack(item)
                else:
                    result = cart.add_item(item)
                if result is AddResult.ADDED:
                    added += 1
                else:
                    rejected += 1

        logger.info(f"Cart {cart.id}: imported {added} legacy items, {rejected} rejected")
        return LegacyImportResult(
            added=added,
            rejected=rejected,
            cart=self.get_cart_summary(cart),
        )

    def remove_item(
        self,
        cart: Cart,
        photo_id: str,
        product_type: ProductType,
    ) -> CartSummary:
        """
        Remove an item (if present), and return updated summary.
        """
        removed = cart.remove_item(photo_id, product_type)
        if removed is not None:
            logger.info(f"Cart {cart.id}: removed {product_type.value} {photo_id}")
        return self.get_cart_summary(cart)

    def clear_cart(self, cart: Cart) -> CartSummary:
        """
        Clear all items and discard the cart from the store.
        """
        cart.clear()
        self.cart_repo.delete(cart.id)
        return self.get_cart_summary(cart)
