# app/routers/pricing.py
from fastapi import APIRouter, Depends

from app.core.cart_session import get_cart_service, peek_cart
from app.models.cart import DeliveryOption, ProductType
from app.schemas.cart import NextPriceRead
from app.services.cart import Cart
from app.services.cart_service import CartService
from app.services.pricing_service import (
    BOUTIQUE_PRICE_LIST,
    GALLERY_PRICE_LIST,
    PricingService,
    format_price,
)

router = APIRouter(prefix="/pricing", tags=["Pricing"])


@router.get("")
def list_price_lists():
    """
    Published price lists: gallery tiers and boutique flat prices.
    """
    return [
        PricingService(GALLERY_PRICE_LIST).price_list_summary(),
        PricingService(BOUTIQUE_PRICE_LIST).price_list_summary(),
    ]


@router.get("/next", response_model=NextPriceRead)
def next_price(
    product_type: ProductType,
    delivery_option: DeliveryOption | None = None,
    cart: Cart = Depends(peek_cart),
    service: CartService = Depends(get_cart_service),
):
    """
    Price the next unit of a category would get in the current cart,
    without adding anything. Used to label add-to-cart buttons.
    """
    unit_price, fee = service.price_next_item(cart, product_type, delivery_option)
    return NextPriceRead(
        product_type=product_type,
        category_count=cart.count_for(product_type),
        unit_price=unit_price,
        delivery_fee=fee,
        formatted=format_price(unit_price + fee),
    )
