"""Radiant services.

Each service owns one concern of a user session:
- radiant.services.cart: CartAggregator
- radiant.services.ledger: PointsLedger
- radiant.services.checkout: CheckoutOrchestrator
- radiant.services.rewards: RewardRedemptionEngine
- radiant.services.games: GameTableValidator
"""

from radiant.services import cart
from radiant.services import ledger
from radiant.services import checkout
from radiant.services import rewards
from radiant.services import games

__all__ = ["cart", "ledger", "checkout", "rewards", "games"]
