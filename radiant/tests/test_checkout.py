"""
Checkout tests.

Tests for:
- Preconditions (empty cart, missing location)
- Exactly one session request per cart snapshot (double submit)
- Cart freezing, failure and cancellation
- Idempotent reconciliation after redirect
- Single-service payment intents and earned points
"""

import asyncio
from decimal import Decimal

import pytest

from radiant.exceptions import (
    CartFrozen,
    InvalidCheckoutState,
    NetworkError,
    RadiantError,
    SessionInFlight,
)
from radiant.models import CheckoutStatus
from radiant.protocols import PaymentIntent
from radiant.services.cart import CartAggregator
from radiant.services.checkout import CheckoutOrchestrator
from radiant.signals import checkout_reconciled, checkout_submitted


@pytest.fixture
def checkout(cart, ledger, payments, ledger_backend):
    return CheckoutOrchestrator(cart, ledger, payments, ledger_backend)


def slow_session(payments, gate: asyncio.Event, seen: list, cart):
    """Make create_checkout_session block until ``gate`` is set."""
    info = payments.create_checkout_session.return_value

    async def create(lines, location_id, user_reward_id=None):
        seen.append(cart.is_frozen)
        await gate.wait()
        return info

    payments.create_checkout_session.side_effect = create


# ═══════════════════════════════════════════════════════════════════
# Preconditions
# ═══════════════════════════════════════════════════════════════════


class TestSubmitPreconditions:
    """Fail fast, no side effects."""

    @pytest.mark.asyncio
    async def test_empty_cart(self, ledger, payments):
        checkout = CheckoutOrchestrator(CartAggregator(), ledger, payments)

        with pytest.raises(InvalidCheckoutState):
            await checkout.submit("loc-1")

        payments.create_checkout_session.assert_not_awaited()
        assert checkout.status == CheckoutStatus.IDLE

    @pytest.mark.asyncio
    async def test_missing_location(self, checkout, cart, payments):
        with pytest.raises(InvalidCheckoutState, match="location"):
            await checkout.submit("")

        payments.create_checkout_session.assert_not_awaited()
        assert not cart.is_frozen


# ═══════════════════════════════════════════════════════════════════
# Submit
# ═══════════════════════════════════════════════════════════════════


class TestSubmit:
    """One cart, one session."""

    @pytest.mark.asyncio
    async def test_submit_snapshots_whole_cart(self, checkout, cart, payments, captured):
        events = captured(checkout_submitted)

        session = await checkout.submit("loc-1", user_reward_id="ur-1")

        payments.create_checkout_session.assert_awaited_once()
        lines, location_id, user_reward_id = payments.create_checkout_session.await_args.args
        assert [line.service_id for line in lines] == ["svc-facial", "svc-massage"]
        assert all(line.location_id == "loc-1" for line in lines)
        assert lines[1].add_ons[0].name == "Hot Stones"
        assert (location_id, user_reward_id) == ("loc-1", "ur-1")

        assert session.session_url == "https://checkout.test/cs_test_1"
        assert session.amount == Decimal("200.00")
        assert checkout.status == CheckoutStatus.REDIRECTED
        assert not cart.is_frozen
        assert cart.total_items == 2
        assert events[0]["session"] is session

    @pytest.mark.asyncio
    async def test_double_submit_sends_one_request(self, checkout, cart, payments):
        gate = asyncio.Event()
        seen = []
        slow_session(payments, gate, seen, cart)

        first = asyncio.ensure_future(checkout.submit("loc-1"))
        second = asyncio.ensure_future(checkout.submit("loc-1"))
        await asyncio.sleep(0)
        gate.set()

        results = await asyncio.gather(first, second)

        assert payments.create_checkout_session.await_count == 1
        assert results[0] is results[1]
        assert seen == [True]

    @pytest.mark.asyncio
    async def test_double_submit_without_coalescing_refused(self, checkout, cart, payments):
        gate = asyncio.Event()
        slow_session(payments, gate, [], cart)

        first = asyncio.ensure_future(checkout.submit("loc-1"))
        await asyncio.sleep(0)

        with pytest.raises(SessionInFlight) as exc:
            await checkout.submit("loc-1", coalesce=False)
        assert exc.value.code == "SESSION_IN_FLIGHT"
        assert checkout.in_flight

        gate.set()
        session = await first
        assert session.session_id == "cs_test_1"
        assert payments.create_checkout_session.await_count == 1

    @pytest.mark.asyncio
    async def test_resubmit_same_cart_returns_open_session(self, checkout, cart, payments):
        first = await checkout.submit("loc-1")
        second = await checkout.submit("loc-1")

        assert second is first
        assert payments.create_checkout_session.await_count == 1
        assert checkout.status == CheckoutStatus.REDIRECTED

    @pytest.mark.asyncio
    async def test_resubmit_changed_cart_opens_new_session(self, checkout, cart, payments):
        first = await checkout.submit("loc-1")
        cart.add("svc-extra", "15")

        second = await checkout.submit("loc-1")

        assert second is not first
        assert len(second.lines) == 3
        assert payments.create_checkout_session.await_count == 2

    @pytest.mark.asyncio
    async def test_resubmit_other_location_opens_new_session(self, checkout, payments):
        await checkout.submit("loc-1")
        session = await checkout.submit("loc-2")

        assert session.location_id == "loc-2"
        assert payments.create_checkout_session.await_count == 2

    @pytest.mark.asyncio
    async def test_cart_frozen_while_in_flight(self, checkout, cart, payments):
        gate = asyncio.Event()
        slow_session(payments, gate, [], cart)

        task = asyncio.ensure_future(checkout.submit("loc-1"))
        await asyncio.sleep(0)

        assert checkout.in_flight
        assert checkout.status == CheckoutStatus.SUBMITTING
        with pytest.raises(CartFrozen):
            cart.add("svc-late", "10")

        gate.set()
        await task
        assert not cart.is_frozen

    @pytest.mark.asyncio
    async def test_snapshot_ignores_later_changes(self, checkout, cart, payments):
        session = await checkout.submit("loc-1")
        cart.add("svc-extra", "999")

        assert len(session.lines) == 2
        assert session.amount == Decimal("200.00")

    @pytest.mark.asyncio
    async def test_transport_failure_keeps_cart(self, checkout, cart, payments):
        payments.create_checkout_session.side_effect = ConnectionError("reset by peer")

        with pytest.raises(NetworkError):
            await checkout.submit("loc-1")

        assert checkout.status == CheckoutStatus.FAILED
        assert cart.total_items == 2
        assert not cart.is_frozen

    @pytest.mark.asyncio
    async def test_collaborator_error_surfaces_and_retry_works(self, checkout, cart, payments):
        info = payments.create_checkout_session.return_value
        payments.create_checkout_session.side_effect = [
            RadiantError("REQUEST_REJECTED", "Service not available at this location"),
            info,
        ]

        with pytest.raises(RadiantError, match="not available"):
            await checkout.submit("loc-1")

        session = await checkout.submit("loc-1")
        assert session.session_id == "cs_test_1"
        assert payments.create_checkout_session.await_count == 2


# ═══════════════════════════════════════════════════════════════════
# Cancel
# ═══════════════════════════════════════════════════════════════════


class TestCancel:
    """Cancellation is only possible before redirect."""

    @pytest.mark.asyncio
    async def test_cancel_before_redirect(self, checkout, cart, payments):
        gate = asyncio.Event()
        slow_session(payments, gate, [], cart)

        task = asyncio.ensure_future(checkout.submit("loc-1"))
        await asyncio.sleep(0)

        assert checkout.cancel() is True
        with pytest.raises(asyncio.CancelledError):
            await task

        assert checkout.status == CheckoutStatus.CANCELLED
        assert not cart.is_frozen
        assert cart.total_items == 2

    @pytest.mark.asyncio
    async def test_resubmit_right_after_cancel(self, checkout, cart, payments):
        gate = asyncio.Event()
        seen = []
        slow_session(payments, gate, seen, cart)

        stale = asyncio.ensure_future(checkout.submit("loc-1"))
        while not seen:
            await asyncio.sleep(0)

        assert checkout.cancel() is True
        assert not checkout.in_flight
        gate.set()

        session = await checkout.submit("loc-1")

        assert session.session_id == "cs_test_1"
        assert payments.create_checkout_session.await_count == 2
        assert seen == [True, True]
        with pytest.raises(asyncio.CancelledError):
            await stale
        assert checkout.status == CheckoutStatus.REDIRECTED
        assert checkout.session is session
        assert not cart.is_frozen

    @pytest.mark.asyncio
    async def test_cancelled_request_leaves_replacement_frozen(self, checkout, cart, payments):
        gate = asyncio.Event()
        seen = []
        slow_session(payments, gate, seen, cart)

        stale = asyncio.ensure_future(checkout.submit("loc-1"))
        while not seen:
            await asyncio.sleep(0)
        checkout.cancel()

        replacement = asyncio.ensure_future(checkout.submit("loc-1"))
        with pytest.raises(asyncio.CancelledError):
            await stale

        assert checkout.in_flight
        assert checkout.status == CheckoutStatus.SUBMITTING
        assert cart.is_frozen

        gate.set()
        await replacement
        assert checkout.status == CheckoutStatus.REDIRECTED
        assert not cart.is_frozen

    @pytest.mark.asyncio
    async def test_cancel_after_redirect_is_noop(self, checkout, cart):
        await checkout.submit("loc-1")

        assert checkout.cancel() is False
        assert checkout.status == CheckoutStatus.REDIRECTED
        assert cart.total_items == 2

    def test_cancel_when_idle(self, checkout):
        assert checkout.cancel() is False


# ═══════════════════════════════════════════════════════════════════
# Reconcile
# ═══════════════════════════════════════════════════════════════════


class TestReconcile:
    """Return from the payment page."""

    @pytest.mark.asyncio
    async def test_reconcile_clears_cart_and_refreshes_points(
        self, checkout, cart, ledger, ledger_backend, captured
    ):
        events = captured(checkout_reconciled)
        ledger_backend.get_balance.return_value = 300
        session = await checkout.submit("loc-1")

        assert await checkout.reconcile(session.session_id) is True

        assert cart.is_empty
        assert ledger.balance == 300
        assert checkout.status == CheckoutStatus.CONFIRMED
        ledger_backend.get_balance.assert_awaited_once_with("user-1")
        assert events == [{"session_id": "cs_test_1", "balance": 300, "signal": checkout_reconciled}]

    @pytest.mark.asyncio
    async def test_duplicate_notification_is_noop(self, checkout, cart, ledger_backend):
        session = await checkout.submit("loc-1")
        await checkout.reconcile(session.session_id)
        cart.add("svc-next-visit", "40")

        assert await checkout.reconcile(session.session_id) is False

        assert cart.total_items == 1
        assert ledger_backend.get_balance.await_count == 1

    @pytest.mark.asyncio
    async def test_submit_after_reconcile_opens_new_session(self, checkout, cart, payments):
        session = await checkout.submit("loc-1")
        await checkout.reconcile(session.session_id)
        cart.add("svc-facial", "80")

        await checkout.submit("loc-1")

        assert payments.create_checkout_session.await_count == 2

    @pytest.mark.asyncio
    async def test_reset_forgets_sessions(self, checkout, ledger_backend):
        session = await checkout.submit("loc-1")
        await checkout.reconcile(session.session_id)

        checkout.reset()

        assert checkout.status == CheckoutStatus.IDLE
        assert checkout.session is None
        assert not checkout._reconciled

    @pytest.mark.asyncio
    async def test_reconcile_requires_session_id(self, checkout):
        with pytest.raises(InvalidCheckoutState):
            await checkout.reconcile("")


# ═══════════════════════════════════════════════════════════════════
# Single-service payments
# ═══════════════════════════════════════════════════════════════════


class TestPaymentIntent:
    """Pay-now bookings earn points."""

    @pytest.mark.asyncio
    async def test_confirm_earns_points(self, checkout, ledger, payments, ledger_backend):
        ledger_backend.get_balance.return_value = 180
        intent = await checkout.create_payment_intent("svc-facial", booking_id="bk-1")

        balance = await checkout.confirm_payment(intent)

        payments.create_payment_intent.assert_awaited_once_with(
            "svc-facial", booking_id="bk-1", discount_code=None
        )
        payments.confirm_payment.assert_awaited_once_with("pi_test_1")
        assert balance == 180
        assert ledger.balance == 180

    @pytest.mark.asyncio
    async def test_unconfirmed_payment_rolls_back(self, checkout, ledger, payments):
        payments.confirm_payment.return_value = False
        intent = await checkout.create_payment_intent("svc-facial")

        with pytest.raises(RadiantError) as exc:
            await checkout.confirm_payment(intent)

        assert exc.value.code == "PAYMENT_NOT_CONFIRMED"
        assert ledger.balance == 100
        assert not ledger.is_pending

    @pytest.mark.asyncio
    async def test_no_points_refreshes_balance(self, checkout, ledger, ledger_backend):
        ledger_backend.get_balance.return_value = 95
        intent = PaymentIntent("pi_2", "secret", Decimal("0"), points_earned=0)

        assert await checkout.confirm_payment(intent) == 95
        assert ledger.balance == 95
