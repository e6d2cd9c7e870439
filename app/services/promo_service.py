# app/services/promo_service.py
import logging

from app.core.config import get_settings
from app.core.exceptions import PromoError
from app.schemas.checkout import PromoValidation

logger = logging.getLogger(__name__)


class PromoService:
    """
    Promo code validation.

    Codes map to a percentage off the pre-discount cart total. The cart
    only supplies that total; discounting is decided here and applied by
    checkout.
    """

    def __init__(self, codes: dict[str, int] | None = None):
        if codes is None:
            codes = get_settings().PROMO_CODES
        self.codes = {code.upper(): max(0, min(100, percent)) for code, percent in codes.items()}

    def validate(self, code: str, total_amount: float) -> PromoValidation:
        """
        Evaluate a code for a given total.

        Unknown codes are a normal outcome (valid=False). A missing code or
        a non-positive total is a caller error.

        Raises:
            PromoError: empty code or invalid total
        """
        if not code or not isinstance(code, str) or not code.strip():
            raise PromoError("Promo code is required")
        if isinstance(total_amount, bool) or not isinstance(total_amount, (int, float)):
            raise PromoError("Total amount is required")
        if total_amount <= 0:
            raise PromoError("Total amount must be positive")

        normalized = code.strip().upper()
        percent = self.codes.get(normalized)
        if percent is None:
            logger.info(f"Rejected promo code {normalized}")
            return PromoValidation(valid=False, error="Invalid promo code")

        discount_amount = round(total_amount * percent / 100, 2)
        final_amount = round(max(0.0, total_amount - discount_amount), 2)

        logger.info(f"Promo {normalized}: -{percent}% on {total_amount:.2f}")
        return PromoValidation(
            valid=True,
            is_free=final_amount == 0,
            discount_percent=percent,
            discount_amount=discount_amount,
            final_amount=final_amount,
            description="Free order" if percent == 100 else f"{percent}% off",
        )
