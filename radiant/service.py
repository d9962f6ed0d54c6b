"""
Radiant public API.

CORE (essential):
    SpaSession.from_settings()       - Session wired to the RADIANT backends
    session.login(user_id)           - Open the points account
    session.logout()                 - Tear down cart, checkout and ledger

SERVICES (owned per session):
    session.cart                     - CartAggregator
    session.ledger                   - PointsLedger
    session.checkout                 - CheckoutOrchestrator
    session.rewards                  - RewardRedemptionEngine
    session.games                    - GameTableValidator

PERSISTENCE:
    session.persist(request.session) - Save the cart
    session.restore(request.session) - Load the cart
"""

import logging
from collections.abc import MutableMapping

from django.utils.module_loading import import_string

from radiant.conf import radiant_settings
from radiant.exceptions import CartFrozen
from radiant.models.points import PointsAccount
from radiant.protocols.games import GameConfigBackend
from radiant.protocols.ledger import LedgerBackend
from radiant.protocols.payments import PaymentBackend
from radiant.services.cart import CartAggregator
from radiant.services.checkout import CheckoutOrchestrator
from radiant.services.games import GameTableValidator
from radiant.services.ledger import PointsLedger
from radiant.services.rewards import RewardRedemptionEngine

logger = logging.getLogger(__name__)


class SpaSession:
    """
    Per-user state container.

    Nothing here is process-wide: every signed-in user gets a SpaSession
    of their own, and its services share one cart and one ledger.
    """

    def __init__(
        self,
        payments: PaymentBackend,
        ledger_backend: LedgerBackend,
        game_backend: GameConfigBackend | None = None,
        cart: CartAggregator | None = None,
    ):
        self.payments = payments
        self.ledger_backend = ledger_backend
        self.cart = cart if cart is not None else CartAggregator()
        self.ledger = PointsLedger()
        self.checkout = CheckoutOrchestrator(self.cart, self.ledger, payments, ledger_backend)
        self.rewards = RewardRedemptionEngine(self.ledger, ledger_backend)
        self.games = GameTableValidator(game_backend)

    @classmethod
    def from_settings(cls, **backend_kwargs) -> "SpaSession":
        """
        Build a session with the backends named in RADIANT settings.

        ``backend_kwargs`` (e.g. ``token=...``) are passed to every backend.
        """
        payments = import_string(radiant_settings.PAYMENT_BACKEND)(**backend_kwargs)
        ledger_backend = import_string(radiant_settings.LEDGER_BACKEND)(**backend_kwargs)
        game_backend = import_string(radiant_settings.GAME_BACKEND)(**backend_kwargs)
        return cls(payments, ledger_backend, game_backend)

    # ======================================================================
    # Authentication lifecycle
    # ======================================================================

    @property
    def user_id(self) -> str | None:
        account = self.ledger.account
        return account.user_id if account else None

    async def login(self, user_id: str) -> PointsAccount:
        """Open the points account with the authoritative balance."""
        balance = await self.ledger_backend.get_balance(user_id)
        account = self.ledger.open(user_id, balance)
        logger.info("Session opened for %s with %d points", account.user_id, account.balance)
        return account

    def logout(self) -> None:
        """
        Tear down the session synchronously.

        A checkout that already redirected stays with the payment collaborator.
        """
        user_id = self.user_id
        self.checkout.reset()
        self.cart.clear(reason="logout")
        self.ledger.close()
        logger.info("Session closed for %s", user_id)

    # ======================================================================
    # Persistence
    # ======================================================================

    def persist(self, store: MutableMapping) -> None:
        """Save the cart into ``store`` (a Django session or any mapping)."""
        store[radiant_settings.CART_SESSION_KEY] = self.cart.dump()

    def restore(self, store: MutableMapping) -> int:
        """
        Load the cart saved by persist().

        Returns:
            Number of items restored

        Raises:
            CartFrozen: If a checkout is in flight
        """
        if self.cart.is_frozen:
            raise CartFrozen()
        loaded = CartAggregator.load(store.get(radiant_settings.CART_SESSION_KEY))
        self.cart.cart = loaded.cart
        return self.cart.total_items
