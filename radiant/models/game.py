"""Game models: spin wheel and scratch card prize tables."""

from dataclasses import dataclass, field
from decimal import Decimal

from django.db import models
from django.utils.translation import gettext_lazy as _


class GameType(models.TextChoices):
    SPIN = "spin", _("Spin wheel")
    SCRATCH = "scratch", _("Scratch card")


class ValueType(models.TextChoices):
    """What a prize item awards."""

    POINTS = "points", _("Points")
    DISCOUNT = "discount", _("Discount")
    SERVICE = "service", _("Service")
    PRIZE = "prize", _("Prize")


class ResetPeriod(models.TextChoices):
    """Period after which per-user play counts reset."""

    DAILY = "daily", _("Daily")
    WEEKLY = "weekly", _("Weekly")
    MONTHLY = "monthly", _("Monthly")


@dataclass(frozen=True)
class GameItem:
    """
    One entry of a prize table.

    ``probability`` is only meaningful for scratch games (percent, 0-100) and
    is None for spin items. ``id`` is None for items not yet persisted.
    """

    title: str
    value: str
    value_type: str = ValueType.POINTS
    color: str = "#6366F1"
    probability: Decimal | None = None
    is_active: bool = True
    id: str | None = None

    def to_dict(self) -> dict:
        data = {
            "title": self.title,
            "value": self.value,
            "valueType": self.value_type,
            "color": self.color,
            "isActive": self.is_active,
        }
        if self.probability is not None:
            data["probability"] = float(self.probability)
        if self.id:
            data["_id"] = self.id
        return data


@dataclass(frozen=True)
class GameSettings:
    """Per-game play rules."""

    play_cost: int = 10
    max_plays: int = 1
    reset_period: str = ResetPeriod.DAILY
    spin_duration_ms: int = 3000

    def to_dict(self, game_type: str) -> dict:
        if game_type == GameType.SCRATCH:
            return {
                "scratchSettings": {
                    "maxPlaysPerUser": self.max_plays,
                    "resetPeriod": self.reset_period,
                    "requirePoints": self.play_cost,
                }
            }
        return {
            "spinSettings": {
                "maxSpinsPerUser": self.max_plays,
                "resetPeriod": self.reset_period,
                "requirePoints": self.play_cost,
                "spinDuration": self.spin_duration_ms,
            }
        }


@dataclass(frozen=True)
class GameDefinition:
    """A tenant-owned game and its prize table."""

    type: str
    items: tuple[GameItem, ...] = ()
    id: str | None = None
    title: str = ""
    location_id: str = ""
    is_active: bool = True
    settings: GameSettings = field(default_factory=GameSettings)

    @property
    def active_items(self) -> tuple[GameItem, ...]:
        return tuple(item for item in self.items if item.is_active)

    @property
    def is_publishable(self) -> bool:
        return bool(self.items)

    def to_dict(self) -> dict:
        data = {
            "title": self.title,
            "type": self.type,
            "items": [item.to_dict() for item in self.items],
            "settings": self.settings.to_dict(self.type),
            "isActive": self.is_active,
        }
        if self.location_id:
            data["locationId"] = self.location_id
        return data


@dataclass(frozen=True)
class GamePlay:
    """Outcome of a play, as reported by the server."""

    game_id: str
    winning_item: GameItem
    points_spent: int
    points_won: int
    new_balance: int
    user_reward_id: str | None = None
