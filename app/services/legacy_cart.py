# app/services/legacy_cart.py
"""
Normalization of cart items saved by older storefront versions.

Three shapes reach the backend:

  canonical      {"photoId" | "photo_id", "productType", "unitPrice", ...}
  gallery store  {"photo_id", "product_type": digital|print|bundle,
                  "price" (euros), "preview_url", "filename"}
  product card   {"photo": {"id", ...}, "productType": digital|print,
                  "quantity", "price" (cents)}

Every shape is turned into canonical CartItems before it reaches the cart.
"""
from typing import Any

from pydantic import ValidationError

from app.core.exceptions import InvalidCartItemError
from app.models.cart import CartItem, DeliveryOption, ProductType, SESSION_PACK_PHOTO_ID
from app.services.pricing_service import BOUTIQUE_PRICE_LIST

# snake_case names used by the payment metadata and older pricing helpers
_SNAKE_CASE_TYPES: dict[str, ProductType] = {
    "digital": ProductType.DIGITAL,
    "print_a5": ProductType.PRINT_A5,
    "print_a4": ProductType.PRINT_A4,
    "print_a3": ProductType.PRINT_A3,
    "print_a2": ProductType.PRINT_A2,
    "print_polaroid_3": ProductType.PRINT_POLAROID_3,
    "print_polaroid_6": ProductType.PRINT_POLAROID_6,
    "session_pack": ProductType.SESSION_PACK,
}

# the legacy surfaces only sold one print format
_LEGACY_PRINT = ProductType.PRINT_A4


def parse_product_type(raw: Any) -> ProductType:
    """Accept camelCase, snake_case and the legacy 'print' alias."""
    if isinstance(raw, ProductType):
        return raw
    if not isinstance(raw, str):
        raise InvalidCartItemError(f"Invalid product type: {raw!r}")
    if raw == "print":
        return _LEGACY_PRINT
    try:
        return ProductType(raw)
    except ValueError:
        pass
    product_type = _SNAKE_CASE_TYPES.get(raw.lower())
    if product_type is None:
        raise InvalidCartItemError(f"Invalid product type: {raw!r}")
    return product_type


def _build(**fields: Any) -> CartItem:
    try:
        return CartItem(**{k: v for k, v in fields.items() if v is not None})
    except ValidationError as e:
        raise InvalidCartItemError(f"Invalid cart item: {e.errors()[0]['msg']}")


def _photo_id(product_type: ProductType, raw_id: Any) -> Any:
    # the pack is never tied to a photo, whatever id was stored with it
    return SESSION_PACK_PHOTO_ID if product_type is ProductType.SESSION_PACK else raw_id


def _price(raw: Any, *, cents: bool) -> float:
    if isinstance(raw, bool) or not isinstance(raw, (int, float)):
        raise InvalidCartItemError(f"Invalid price: {raw!r}")
    amount = raw / 100 if cents else raw
    return round(float(amount), 2)


def _from_canonical(raw: dict[str, Any]) -> list[CartItem]:
    product_type = parse_product_type(raw.get("productType", raw.get("product_type")))
    return [
        _build(
            photo_id=_photo_id(product_type, raw.get("photoId", raw.get("photo_id"))),
            product_type=product_type,
            unit_price=_price(raw.get("unitPrice", raw.get("unit_price")), cents=False),
            preview_url=raw.get("previewUrl", raw.get("preview_url")),
            display_name=raw.get("displayName", raw.get("display_name")),
            delivery_option=raw.get("deliveryOption", raw.get("delivery_option")),
            delivery_fee=raw.get("deliveryFee", raw.get("delivery_fee")),
        )
    ]


def _split_bundle(photo_id: str, price: float, preview_url: Any, name: Any) -> list[CartItem]:
    """
    A bundle is a digital copy plus an A4 print. The digital part keeps the
    boutique digital price; the print carries the remainder.
    """
    digital_price = BOUTIQUE_PRICE_LIST.tiers[ProductType.DIGITAL][0]
    if price < digital_price:
        raise InvalidCartItemError(
            f"Bundle price {price} is below the digital price {digital_price}"
        )
    return [
        _build(
            photo_id=photo_id,
            product_type=ProductType.DIGITAL,
            unit_price=digital_price,
            preview_url=preview_url,
            display_name=name,
        ),
        _build(
            photo_id=photo_id,
            product_type=_LEGACY_PRINT,
            unit_price=round(price - digital_price, 2),
            preview_url=preview_url,
            display_name=name,
            delivery_option=DeliveryOption.PICKUP,
        ),
    ]


def _from_gallery_store(raw: dict[str, Any]) -> list[CartItem]:
    photo_id = raw.get("photo_id")
    price = _price(raw.get("price"), cents=False)
    preview_url = raw.get("preview_url")
    name = raw.get("filename")

    if raw.get("product_type") == "bundle":
        return _split_bundle(photo_id, price, preview_url, name)

    product_type = parse_product_type(raw.get("product_type"))
    return [
        _build(
            photo_id=_photo_id(product_type, photo_id),
            product_type=product_type,
            unit_price=price,
            preview_url=preview_url,
            display_name=name,
            delivery_option=DeliveryOption.PICKUP if product_type.is_print else None,
        )
    ]


def _from_product_card(raw: dict[str, Any]) -> list[CartItem]:
    photo = raw.get("photo")
    if not isinstance(photo, dict) or not photo.get("id"):
        raise InvalidCartItemError("Legacy item is missing photo.id")

    quantity = raw.get("quantity", 1)
    if quantity != 1:
        raise InvalidCartItemError(
            f"Legacy quantity {quantity!r} not supported, each photo is sold once per format"
        )

    product_type = parse_product_type(raw.get("productType"))
    return [
        _build(
            photo_id=_photo_id(product_type, str(photo["id"])),
            product_type=product_type,
            unit_price=_price(raw.get("price"), cents=True),
            preview_url=photo.get("preview_url") or photo.get("thumbnail_url"),
            display_name=photo.get("filename"),
            delivery_option=DeliveryOption.PICKUP if product_type.is_print else None,
        )
    ]


def normalize_legacy_item(raw: dict[str, Any]) -> list[CartItem]:
    """
    Map any known cart item shape to canonical CartItems.

    Raises:
        InvalidCartItemError: unknown shape, unknown product type, bad
            price or a quantity other than 1
    """
    if not isinstance(raw, dict):
        raise InvalidCartItemError(f"Cart item must be an object, got {type(raw).__name__}")

    if "photo" in raw:
        return _from_product_card(raw)
    if "unitPrice" in raw or "unit_price" in raw:
        return _from_canonical(raw)
    if "photo_id" in raw and "price" in raw:
        return _from_gallery_store(raw)

    raise InvalidCartItemError(f"Unrecognized cart item shape: {sorted(raw)}")
