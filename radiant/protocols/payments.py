"""Payment collaborator protocol."""

from dataclasses import dataclass
from decimal import Decimal
from typing import Protocol, runtime_checkable

from radiant.models.payment import CheckoutLine


@dataclass(frozen=True)
class CheckoutSessionInfo:
    """Hosted checkout session issued by the payment collaborator."""

    session_id: str
    session_url: str


@dataclass(frozen=True)
class PaymentIntent:
    """Single-service payment intent."""

    payment_intent_id: str
    client_secret: str
    amount: Decimal
    points_earned: int = 0


@runtime_checkable
class PaymentBackend(Protocol):
    """
    Protocol for the external payment collaborator.

    Calls are opaque, possibly slow and possibly failing. Transport failures
    must surface as radiant.exceptions.NetworkError.

    Configuration in settings.py:
        RADIANT = {
            "PAYMENT_BACKEND": "radiant.adapters.rest.RestPaymentBackend",
        }
    """

    async def create_checkout_session(
        self,
        lines: list[CheckoutLine],
        location_id: str,
        user_reward_id: str | None = None,
    ) -> CheckoutSessionInfo:
        """Create one hosted checkout session covering every line."""
        ...

    async def create_payment_intent(
        self,
        service_id: str,
        booking_id: str | None = None,
        discount_code: str | None = None,
    ) -> PaymentIntent:
        """Create a payment intent for a single service."""
        ...

    async def confirm_payment(self, payment_intent_id: str) -> bool:
        """Confirm a payment intent. Returns True when it succeeded."""
        ...
