"""Radiant models.

Plain dataclasses: the engine keeps session state in memory and leaves
persistence of money and points to the remote collaborators.
"""

from radiant.models.cart import AddOn, Cart, CartItem, cart_total, item_count
from radiant.models.points import (
    LedgerState,
    OptimisticPending,
    PointsAccount,
    Settled,
)
from radiant.models.reward import RewardClaim, RewardDefinition, RewardType, UserReward
from radiant.models.game import (
    GameDefinition,
    GameItem,
    GamePlay,
    GameSettings,
    GameType,
    ResetPeriod,
    ValueType,
)
from radiant.models.payment import CheckoutLine, CheckoutStatus, PaymentSession

__all__ = [
    # Cart
    "AddOn",
    "Cart",
    "CartItem",
    "cart_total",
    "item_count",
    # Points
    "LedgerState",
    "OptimisticPending",
    "PointsAccount",
    "Settled",
    # Rewards
    "RewardClaim",
    "RewardDefinition",
    "RewardType",
    "UserReward",
    # Games
    "GameDefinition",
    "GameItem",
    "GamePlay",
    "GameSettings",
    "GameType",
    "ResetPeriod",
    "ValueType",
    # Payments
    "CheckoutLine",
    "CheckoutStatus",
    "PaymentSession",
]
