"""Checkout orchestration: one cart, one external payment session.

Lifecycle:

    idle --submit()--> submitting --ok--> redirected --reconcile()--> confirmed
                           |
                           +--error--> failed (cart kept)
                           +--cancel()--> cancelled (cart kept)

After redirect the engine never times out or rolls the cart back: the user
may come back at any time and reconcile() picks up from there.
"""

import asyncio
import logging

from django.utils import timezone

from radiant.exceptions import (
    InvalidCheckoutState,
    NetworkError,
    RadiantError,
    SessionInFlight,
)
from radiant.models.payment import CheckoutLine, CheckoutStatus, PaymentSession
from radiant.protocols.ledger import LedgerBackend
from radiant.protocols.payments import PaymentBackend, PaymentIntent
from radiant.services.cart import CartAggregator
from radiant.services.ledger import PointsLedger
from radiant.signals import checkout_reconciled, checkout_submitted

logger = logging.getLogger(__name__)


class CheckoutOrchestrator:
    """
    Submits the whole cart as a single payment session and reconciles the return.

    Usage:
        checkout = CheckoutOrchestrator(cart, ledger, payments, ledger_backend)
        session = await checkout.submit("loc-1")
        redirect(session.session_url)

        # back from the payment page
        await checkout.reconcile(session.session_id)
    """

    def __init__(
        self,
        cart: CartAggregator,
        ledger: PointsLedger,
        payments: PaymentBackend,
        ledger_backend: LedgerBackend | None = None,
    ):
        self.cart = cart
        self.ledger = ledger
        self.payments = payments
        self.ledger_backend = ledger_backend
        self.status = CheckoutStatus.IDLE
        self.session: PaymentSession | None = None
        self._task: asyncio.Task | None = None
        self._reconciled: set[str] = set()

    @property
    def in_flight(self) -> bool:
        return self._task is not None and not self._task.done()

    # ======================================================================
    # Cart checkout
    # ======================================================================

    async def submit(
        self,
        location_id: str,
        user_reward_id: str | None = None,
        *,
        coalesce: bool = True,
    ) -> PaymentSession:
        """
        Request a checkout session for the current cart.

        A second call while the first is pending joins it instead of issuing
        another request. After redirect, submitting the same snapshot again
        returns the existing session; a changed cart gets a new one.

        Args:
            coalesce: Join a pending request (default) or refuse with
                SessionInFlight

        Raises:
            InvalidCheckoutState: Empty cart or no location (nothing sent)
            SessionInFlight: A request is pending and ``coalesce`` is False
            NetworkError: Collaborator unreachable (cart kept, retry allowed)
        """
        if self.in_flight:
            if not coalesce:
                raise SessionInFlight(location_id=location_id)
            logger.info("Checkout session already requested; joining the pending request")
            return await asyncio.shield(self._task)

        if self.cart.is_empty:
            raise InvalidCheckoutState("Cart is empty")
        if not location_id:
            raise InvalidCheckoutState("Please select a location")

        lines = tuple(CheckoutLine.from_item(item, location_id) for item in self.cart.items)
        if self._is_open_session(lines, location_id, user_reward_id):
            logger.info("Checkout session %s already open for this cart", self.session.session_id)
            return self.session

        self.cart.freeze()
        self.status = CheckoutStatus.SUBMITTING
        self._task = asyncio.ensure_future(
            self._create_session(lines, location_id, user_reward_id)
        )
        return await asyncio.shield(self._task)

    def _is_open_session(self, lines, location_id, user_reward_id) -> bool:
        session = self.session
        return (
            self.status == CheckoutStatus.REDIRECTED
            and session is not None
            and session.lines == lines
            and session.location_id == location_id
            and session.user_reward_id == user_reward_id
        )

    async def _create_session(
        self,
        lines: tuple[CheckoutLine, ...],
        location_id: str,
        user_reward_id: str | None,
    ) -> PaymentSession:
        task = asyncio.current_task()
        try:
            info = await self.payments.create_checkout_session(
                list(lines), location_id, user_reward_id
            )
        except asyncio.CancelledError:
            if self._task is task:
                self.status = CheckoutStatus.CANCELLED
            raise
        except RadiantError as e:
            self.status = CheckoutStatus.FAILED
            logger.warning("Checkout session failed (%s): %s", e.code, e.message)
            raise
        except (OSError, asyncio.TimeoutError) as e:
            self.status = CheckoutStatus.FAILED
            logger.warning("Checkout session failed: %s", e)
            raise NetworkError(str(e) or None) from e
        finally:
            # A cancelled request must not touch the state of its replacement
            if self._task is task:
                self.cart.unfreeze()

        self.session = PaymentSession(
            session_id=info.session_id,
            session_url=info.session_url,
            lines=lines,
            location_id=location_id,
            user_reward_id=user_reward_id,
            created_at=timezone.now(),
        )
        self.status = CheckoutStatus.REDIRECTED
        logger.info(
            "Checkout session %s created for %d items (%s)",
            info.session_id,
            len(lines),
            self.session.amount,
        )
        checkout_submitted.send(sender=self.__class__, session=self.session)
        return self.session

    def cancel(self) -> bool:
        """
        Cancel a pending session request.

        The request is detached immediately, so a new submit() may follow
        right away.

        Returns:
            True if a request was cancelled, False when there was nothing
            to cancel (including after redirect)
        """
        if not self.in_flight:
            return False

        self._task.cancel()
        self._task = None
        self.cart.unfreeze()
        self.status = CheckoutStatus.CANCELLED
        logger.info("Checkout cancelled before redirect")
        return True

    def reset(self) -> None:
        """Cancel any pending request and forget sessions (logout)."""
        self.cancel()
        self.session = None
        self.status = CheckoutStatus.IDLE
        self._reconciled.clear()

    async def reconcile(self, session_id: str) -> bool:
        """
        Handle the return from the payment page.

        Clears the cart and re-reads the authoritative balance. Repeated
        notifications for the same session are no-ops.

        Returns:
            True on the first notification for ``session_id``, False otherwise
        """
        if not session_id:
            raise InvalidCheckoutState("Missing checkout session id")
        if session_id in self._reconciled:
            logger.debug("Checkout session %s already reconciled", session_id)
            return False

        self._reconciled.add(session_id)
        self.cart.clear(reason="checkout")
        self.status = CheckoutStatus.CONFIRMED

        balance = None
        account = self.ledger.account
        if account is not None and self.ledger_backend is not None:
            user_id = account.user_id
            balance = await self.ledger.refresh(lambda: self.ledger_backend.get_balance(user_id))

        logger.info("Checkout session %s reconciled, balance %s", session_id, balance)
        checkout_reconciled.send(sender=self.__class__, session_id=session_id, balance=balance)
        return True

    # ======================================================================
    # Single-service payments
    # ======================================================================

    async def create_payment_intent(
        self,
        service_id: str,
        booking_id: str | None = None,
        discount_code: str | None = None,
    ) -> PaymentIntent:
        """Create a payment intent for one service (pay-now booking flow)."""
        intent = await self.payments.create_payment_intent(
            service_id, booking_id=booking_id, discount_code=discount_code
        )
        logger.info(
            "Payment intent %s created for service %s (%s, %d points)",
            intent.payment_intent_id,
            service_id,
            intent.amount,
            intent.points_earned,
        )
        return intent

    async def confirm_payment(self, intent: PaymentIntent) -> int | None:
        """
        Confirm ``intent`` and credit the points it earns.

        The points are shown immediately and replaced by the server balance
        once the payment is acknowledged; any failure rolls them back.

        Returns:
            The authoritative balance, or None without an open account
        """
        account = self.ledger.account

        async def _confirm() -> None:
            if not await self.payments.confirm_payment(intent.payment_intent_id):
                raise RadiantError("PAYMENT_NOT_CONFIRMED", payment_intent_id=intent.payment_intent_id)

        if account is None or self.ledger_backend is None:
            await _confirm()
            return None

        user_id = account.user_id

        async def _confirm_and_fetch() -> int:
            await _confirm()
            return await self.ledger_backend.get_balance(user_id)

        if intent.points_earned > 0:
            return await self.ledger.earn(intent.points_earned, _confirm_and_fetch)

        await _confirm()
        return await self.ledger.refresh(lambda: self.ledger_backend.get_balance(user_id))
