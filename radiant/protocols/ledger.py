"""Ledger/rewards collaborator protocol."""

from typing import Protocol, runtime_checkable

from radiant.models.game import GamePlay


@runtime_checkable
class LedgerBackend(Protocol):
    """
    Protocol for the remote points ledger (source of truth for balances).

    Rejections of a claim or play raise radiant.exceptions.ClaimError with the
    server's reason; transport failures raise NetworkError.
    """

    async def get_balance(self, user_id: str) -> int:
        """Return the authoritative point balance."""
        ...

    async def claim_reward(self, reward_id: str) -> int:
        """Claim a reward. Returns the new point balance."""
        ...

    async def get_monthly_claim_count(self, user_id: str, reward_id: str) -> int:
        """Return how many times the user claimed the reward this month."""
        ...

    async def play_game(self, game_id: str) -> GamePlay:
        """Play a game. The draw itself happens server-side."""
        ...
