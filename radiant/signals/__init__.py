"""
Radiant signals: public event API.

Emitted signals:
- cart_cleared: Emitted by CartAggregator.clear()
- checkout_submitted: Emitted by CheckoutOrchestrator.submit()
- checkout_reconciled: Emitted by CheckoutOrchestrator.reconcile()
- points_confirmed: Emitted by PointsLedger.confirm()
- points_rolled_back: Emitted by PointsLedger.rollback()
- reward_claimed: Emitted by RewardRedemptionEngine.claim()
- reward_claim_rejected: Emitted by RewardRedemptionEngine.claim()
- game_played: Emitted by RewardRedemptionEngine.play()
- game_saved: Emitted by GameTableValidator.save()
"""

from django.dispatch import Signal

# Cart / checkout
cart_cleared = Signal()  # sender=CartAggregator, reason=str
checkout_submitted = Signal()  # sender=CheckoutOrchestrator, session=PaymentSession
checkout_reconciled = Signal()  # sender=CheckoutOrchestrator, session_id=str, balance=int

# Points
points_confirmed = Signal()  # sender=PointsLedger, account=PointsAccount
points_rolled_back = Signal()  # sender=PointsLedger, account=PointsAccount, delta=int

# Rewards / games
reward_claimed = Signal()  # sender=RewardRedemptionEngine, claim=RewardClaim
reward_claim_rejected = Signal()  # sender=RewardRedemptionEngine, reward=RewardDefinition, error=ClaimError
game_played = Signal()  # sender=RewardRedemptionEngine, play=GamePlay
game_saved = Signal()  # sender=GameTableValidator, game=GameDefinition
