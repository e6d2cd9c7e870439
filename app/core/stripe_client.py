# app/core/stripe_client.py
import json
from typing import Any

import stripe

from app.core.config import get_settings


def configure_stripe() -> None:
    """
    Set the Stripe API key from settings.

    Raises:
        RuntimeError: if STRIPE_SECRET_KEY is not set.
    """
    settings = get_settings()
    if not settings.STRIPE_SECRET_KEY:
        raise RuntimeError("Missing STRIPE_SECRET_KEY in .env")
    stripe.api_key = settings.STRIPE_SECRET_KEY


def to_minor_units(amount: float) -> int:
    """Major currency units -> integer cents, as Stripe expects."""
    return int(round(amount * 100))


def construct_webhook_event(payload: bytes, signature: str | None) -> dict[str, Any]:
    """
    Verify a webhook payload against STRIPE_WEBHOOK_SECRET and return the
    event as plain JSON.

    Raises:
        RuntimeError: if the webhook secret is not configured.
        ValueError / stripe.SignatureVerificationError: on bad input.
    """
    settings = get_settings()
    if not settings.STRIPE_WEBHOOK_SECRET:
        raise RuntimeError("Missing STRIPE_WEBHOOK_SECRET in .env")
    stripe.Webhook.construct_event(payload, signature or "", settings.STRIPE_WEBHOOK_SECRET)
    return json.loads(payload)
