"""Payment models: checkout snapshots and sessions."""

from dataclasses import dataclass
from datetime import datetime
from decimal import Decimal

from django.db import models
from django.utils.translation import gettext_lazy as _

from radiant.models.cart import AddOn, CartItem


class CheckoutStatus(models.TextChoices):
    IDLE = "idle", _("Idle")
    SUBMITTING = "submitting", _("Creating session")
    REDIRECTED = "redirected", _("Awaiting payment")
    CONFIRMED = "confirmed", _("Confirmed")
    FAILED = "failed", _("Failed")
    CANCELLED = "cancelled", _("Cancelled")


@dataclass(frozen=True)
class CheckoutLine:
    """One cart item in the shape the payment collaborator expects."""

    service_id: str
    service_name: str
    date: str
    time: str
    duration_minutes: int
    price: Decimal
    add_ons: tuple[AddOn, ...]
    notes: str
    location_id: str

    @classmethod
    def from_item(cls, item: CartItem, location_id: str) -> "CheckoutLine":
        return cls(
            service_id=item.service_id,
            service_name=item.service_name,
            date=item.date,
            time=item.time,
            duration_minutes=item.duration_minutes,
            price=item.unit_price,
            add_ons=item.add_ons,
            notes=item.notes,
            location_id=location_id,
        )

    def to_payload(self) -> dict:
        return {
            "serviceId": self.service_id,
            "serviceName": self.service_name,
            "date": self.date,
            "time": self.time,
            "duration": self.duration_minutes,
            "price": float(self.price),
            "addOns": [a.to_dict() for a in self.add_ons],
            "locationId": self.location_id,
            "notes": self.notes,
        }


@dataclass(frozen=True)
class PaymentSession:
    """
    External checkout session for one cart snapshot.

    ``lines`` is immutable once the session is requested.
    """

    session_id: str
    session_url: str
    lines: tuple[CheckoutLine, ...]
    location_id: str
    user_reward_id: str | None = None
    created_at: datetime | None = None

    @property
    def amount(self) -> Decimal:
        return sum((line.price for line in self.lines), Decimal("0"))
