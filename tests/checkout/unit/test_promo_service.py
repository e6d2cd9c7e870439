"""
Unit Tests: PromoService.validate()
"""

import pytest

from app.core.exceptions import PromoError
from app.services.promo_service import PromoService


@pytest.fixture
def promos():
    return PromoService({"surf10": 10, "FREESESSION": 100, "WEIRD": 250})


class TestValidate:

    def test_percentage_code(self, promos):
        result = promos.validate("SURF10", 57.0)

        assert result.valid
        assert not result.is_free
        assert result.discount_percent == 10
        assert result.discount_amount == 5.7
        assert result.final_amount == 51.3

    def test_codes_are_case_insensitive(self, promos):
        assert promos.validate("  surf10 ", 20.0).valid

    def test_free_code(self, promos):
        result = promos.validate("FREESESSION", 22.0)

        assert result.is_free
        assert result.final_amount == 0.0
        assert result.discount_amount == 22.0

    def test_percent_is_clamped(self, promos):
        result = promos.validate("WEIRD", 10.0)
        assert result.discount_percent == 100
        assert result.is_free

    def test_unknown_code_is_not_an_error(self, promos):
        result = promos.validate("NOPE", 10.0)

        assert not result.valid
        assert result.error == "Invalid promo code"
        assert result.discount_amount == 0.0

    @pytest.mark.parametrize("code", ["", "   ", None])
    def test_missing_code(self, promos, code):
        with pytest.raises(PromoError):
            promos.validate(code, 10.0)

    @pytest.mark.parametrize("total", [0, -5, "10", None, True])
    def test_invalid_total(self, promos, total):
        with pytest.raises(PromoError):
            promos.validate("SURF10", total)
