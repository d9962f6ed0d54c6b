"""Settings and exception tests."""

import pytest
from django.test import override_settings

from radiant.conf import get_radiant_settings, radiant_settings
from radiant.exceptions import (
    CartFrozen,
    ClaimError,
    InvalidCheckoutState,
    NetworkError,
    ProbabilityExceeded,
    RadiantError,
)


class TestSettings:
    """RADIANT dict loaded lazily."""

    def test_defaults(self):
        assert radiant_settings.PROBABILITY_CEILING == 100
        assert radiant_settings.DEFAULT_ITEM_PROBABILITY == 10
        assert radiant_settings.CART_SESSION_KEY == "radiant_cart"

    def test_values_from_django_settings(self):
        assert radiant_settings.API_BASE_URL == "https://spa.test/api/"
        assert radiant_settings.API_TIMEOUT == 2.0

    @override_settings(RADIANT={"PROBABILITY_CEILING": 90})
    def test_lazy_proxy_follows_overrides(self):
        assert radiant_settings.PROBABILITY_CEILING == 90

    @override_settings(RADIANT={"PROBABILITY_CIELING": 90})
    def test_unknown_key_rejected(self):
        with pytest.raises(TypeError):
            get_radiant_settings()

    @override_settings(RADIANT={"PROBABILITY_CEILING": 90})
    def test_ceiling_override_applies_to_validation(self):
        from radiant.services.games import GameTableValidator

        items = [{"title": "A", "value": "1", "probability": 95}]
        assert not GameTableValidator.validate("scratch", items).valid


class TestErrors:
    """Structured errors."""

    def test_default_message_and_dict(self):
        error = RadiantError("QUOTA_EXCEEDED", reward_id="rw-1")
        assert error.message == "Monthly limit reached for this reward"
        assert error.as_dict() == {
            "code": "QUOTA_EXCEEDED",
            "message": "Monthly limit reached for this reward",
            "data": {"reward_id": "rw-1"},
        }

    def test_unknown_code_message_falls_back_to_code(self):
        assert RadiantError("SOMETHING_ELSE").message == "SOMETHING_ELSE"

    def test_subclass_codes(self):
        assert InvalidCheckoutState().code == "INVALID_CHECKOUT_STATE"
        assert CartFrozen().code == "CART_FROZEN"
        assert NetworkError().retryable is True

    def test_claim_error_unknown_code(self):
        assert ClaimError("NOT_A_CODE", "nope").code == "CLAIM_REJECTED"

    def test_probability_exceeded(self):
        error = ProbabilityExceeded(total=120)
        assert error.total == 120
        assert error.ceiling == 100
        assert "120" in error.message
        assert isinstance(error, RadiantError)
