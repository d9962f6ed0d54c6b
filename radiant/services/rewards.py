"""Reward redemption: claim and game-play eligibility and execution.

Client-side checks are advisory: the server re-checks balance and quotas.
A server rejection after a locally allowed claim is an expected outcome and
always rolls back the optimistic spend.
"""

import logging
from dataclasses import dataclass

from django.utils import timezone

from radiant.exceptions import ClaimError, LedgerStateError
from radiant.models.game import GameDefinition, GamePlay
from radiant.models.points import PointsAccount
from radiant.models.reward import RewardClaim, RewardDefinition
from radiant.protocols.ledger import LedgerBackend
from radiant.services.ledger import PointsLedger
from radiant.signals import game_played, reward_claim_rejected, reward_claimed

logger = logging.getLogger(__name__)


@dataclass
class Eligibility:
    """Whether a claim or play is permitted, and why not."""

    allowed: bool
    reason: str | None = None
    message: str | None = None
    points_needed: int = 0

    def raise_if_denied(self, **data) -> None:
        if not self.allowed:
            raise ClaimError(self.reason, self.message, points_needed=self.points_needed, **data)


class RewardRedemptionEngine:
    """
    Gates and performs reward claims and game plays against a PointsLedger.

    Usage:
        engine = RewardRedemptionEngine(ledger, ledger_backend)
        engine.can_claim(reward, ledger.account, claims_this_month=0)
        claim = await engine.claim(reward)
    """

    def __init__(self, ledger: PointsLedger, backend: LedgerBackend):
        self.ledger = ledger
        self.backend = backend

    # ======================================================================
    # Rewards
    # ======================================================================

    @staticmethod
    def can_claim(
        reward: RewardDefinition,
        account: PointsAccount | None,
        claims_this_month: int,
    ) -> Eligibility:
        """
        Allowed iff the balance covers the cost and the monthly quota is not used up.

        When both fail, affordability is reported.
        """
        if not reward.is_active:
            return Eligibility(False, "REWARD_UNAVAILABLE", "Reward not found or inactive")

        balance = account.balance if account else 0
        if balance < reward.point_cost:
            needed = reward.point_cost - balance
            return Eligibility(
                False,
                "INSUFFICIENT_POINTS",
                f"Insufficient points. Need {needed} more points.",
                points_needed=needed,
            )

        if claims_this_month >= reward.monthly_limit:
            return Eligibility(False, "QUOTA_EXCEEDED", "Monthly limit reached for this reward")

        return Eligibility(True)

    async def claim(
        self,
        reward: RewardDefinition,
        claims_this_month: int | None = None,
    ) -> RewardClaim:
        """
        Claim ``reward``: re-check, spend optimistically, reconcile with the server.

        Args:
            reward: Catalog reward
            claims_this_month: Known claim count; fetched from the ledger
                collaborator when None

        Returns:
            RewardClaim with the server-confirmed balance

        Raises:
            ClaimError: Refused locally, or rejected by the server (reason verbatim)
            NetworkError: Collaborator unreachable (ledger rolled back)
        """
        account = self.ledger.account
        if account is None:
            raise LedgerStateError(code="NO_ACCOUNT")

        if claims_this_month is None:
            claims_this_month = await self.backend.get_monthly_claim_count(
                account.user_id, reward.id
            )

        eligibility = self.can_claim(reward, self.ledger.account, claims_this_month)
        eligibility.raise_if_denied(reward_id=reward.id)

        try:
            new_balance = await self.ledger.spend(
                reward.point_cost,
                lambda: self.backend.claim_reward(reward.id),
            )
        except ClaimError as e:
            logger.warning("Claim of %s rejected for %s: %s", reward.id, account.user_id, e.message)
            reward_claim_rejected.send(sender=self.__class__, reward=reward, error=e)
            raise

        claim = RewardClaim(
            reward_id=reward.id,
            user_id=account.user_id,
            claimed_at=timezone.now(),
            resulting_balance=max(0, int(new_balance)),
        )
        logger.info("Reward %s claimed by %s, balance %d", reward.id, account.user_id, claim.resulting_balance)
        reward_claimed.send(sender=self.__class__, claim=claim)
        return claim

    # ======================================================================
    # Games
    # ======================================================================

    @staticmethod
    def can_play(
        game: GameDefinition,
        account: PointsAccount | None,
        plays_this_period: int = 0,
    ) -> Eligibility:
        """
        Allowed iff the game is live, the balance covers the play cost and the
        per-period play limit is not used up.
        """
        if not game.is_active or not game.active_items:
            return Eligibility(False, "GAME_UNAVAILABLE", "Game is not currently active")

        cost = game.settings.play_cost
        balance = account.balance if account else 0
        if balance < cost:
            return Eligibility(
                False,
                "INSUFFICIENT_POINTS",
                f"You need {cost} points to play this game",
                points_needed=cost - balance,
            )

        if plays_this_period >= game.settings.max_plays:
            return Eligibility(
                False,
                "QUOTA_EXCEEDED",
                f"Play limit reached ({game.settings.max_plays} per {game.settings.reset_period} period)",
            )

        return Eligibility(True)

    async def play(self, game: GameDefinition, plays_this_period: int = 0) -> GamePlay:
        """
        Play ``game``: spend the play cost optimistically and adopt the server's
        post-play balance (which already includes any points won).

        Raises:
            ClaimError: Refused locally or by the server
            NetworkError: Collaborator unreachable (ledger rolled back)
        """
        account = self.ledger.account
        if account is None:
            raise LedgerStateError(code="NO_ACCOUNT")
        if not game.id:
            raise ClaimError("GAME_UNAVAILABLE", "Game has not been saved")

        self.can_play(game, account, plays_this_period).raise_if_denied(game_id=game.id)

        try:
            play = await self.ledger.transact(
                -game.settings.play_cost,
                lambda: self.backend.play_game(game.id),
                balance_of=lambda result: result.new_balance,
            )
        except ClaimError as e:
            logger.warning("Play of %s rejected for %s: %s", game.id, account.user_id, e.message)
            raise

        logger.info(
            "Game %s played by %s: won %s (%s)",
            game.id,
            account.user_id,
            play.winning_item.title,
            play.winning_item.value_type,
        )
        game_played.send(sender=self.__class__, play=play)
        return play
