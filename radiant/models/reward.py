"""Reward models: catalog definitions, claims and claimed rewards."""

from dataclasses import dataclass
from datetime import datetime
from decimal import Decimal

from django.db import models
from django.utils.translation import gettext_lazy as _

from radiant.models.cart import ZERO, to_money


class RewardType(models.TextChoices):
    """Reward catalog types."""

    CREDIT = "credit", _("Credit")
    DISCOUNT = "discount", _("Discount")
    SERVICE = "service", _("Free service")
    COMBO = "combo", _("Combo")
    REFERRAL = "referral", _("Referral")


@dataclass(frozen=True)
class RewardDefinition:
    """
    Catalog reward, issued by the server.

    ``point_cost`` and ``monthly_limit`` are server-issued and read-only here.
    """

    id: str
    point_cost: int
    monthly_limit: int = 1
    valid_days: int = 30
    type: str = RewardType.CREDIT
    value: Decimal = ZERO
    max_value: Decimal | None = None
    name: str = ""
    is_active: bool = True

    def __post_init__(self):
        if self.point_cost <= 0:
            raise ValueError("point_cost must be > 0")
        if self.monthly_limit < 1:
            raise ValueError("monthly_limit must be >= 1")
        if self.valid_days <= 0:
            raise ValueError("valid_days must be > 0")

    @classmethod
    def from_dict(cls, data: dict) -> "RewardDefinition":
        """Build from the catalog payload (``limit`` is the monthly limit)."""
        max_value = data.get("maxValue")
        return cls(
            id=str(data.get("_id") or data.get("id")),
            point_cost=int(data["pointCost"]),
            monthly_limit=int(data.get("limit") or data.get("monthlyLimit") or 1),
            valid_days=int(data.get("validDays") or 30),
            type=data.get("type", RewardType.CREDIT),
            value=to_money(data.get("value")),
            max_value=to_money(max_value) if max_value else None,
            name=data.get("name", ""),
            is_active=data.get("status", "active") == "active",
        )


@dataclass(frozen=True)
class RewardClaim:
    """Result of a successful redemption. Immutable."""

    reward_id: str
    user_id: str
    claimed_at: datetime
    resulting_balance: int


# Aliases used by claimed reward snapshots
_DISCOUNT_TYPES = {"discount", "service_discount", "combo"}
_FREE_SERVICE_TYPES = {"service", "free_service"}
_CREDIT_TYPES = {"credit", "referral"}


@dataclass(frozen=True)
class UserReward:
    """
    A reward the user already owns and may apply to a cart.

    Built from the ``rewardSnapshot`` stored with each claimed reward.
    """

    id: str
    type: str
    value: Decimal = ZERO
    max_value: Decimal | None = None
    service_ids: tuple[str, ...] = ()

    @property
    def is_credit(self) -> bool:
        return self.type in _CREDIT_TYPES

    @property
    def is_percentage(self) -> bool:
        return self.type in _DISCOUNT_TYPES

    @property
    def is_free_service(self) -> bool:
        return self.type in _FREE_SERVICE_TYPES

    @classmethod
    def from_dict(cls, data: dict) -> "UserReward":
        snapshot = data.get("rewardSnapshot") or {}
        service_ids = [str(s) for s in snapshot.get("serviceIds") or []]
        if snapshot.get("serviceId"):
            service_ids.insert(0, str(snapshot["serviceId"]))
        max_value = snapshot.get("maxValue")
        return cls(
            id=str(data.get("_id") or data.get("id")),
            type=snapshot.get("type", ""),
            value=to_money(snapshot.get("value")),
            max_value=to_money(max_value) if max_value else None,
            service_ids=tuple(service_ids),
        )
