"""Pytest fixtures for Radiant tests."""

from decimal import Decimal
from unittest.mock import AsyncMock

import pytest

from radiant.models import (
    GameDefinition,
    GameItem,
    GamePlay,
    GameSettings,
    RewardDefinition,
)
from radiant.protocols import CheckoutSessionInfo, PaymentIntent
from radiant.services.cart import CartAggregator
from radiant.services.ledger import PointsLedger


@pytest.fixture
def cart():
    """Cart with two services."""
    aggregator = CartAggregator()
    aggregator.add(
        "svc-facial",
        "80.00",
        service_name="Hydrating Facial",
        date="2026-11-02",
        time="10:00",
        duration_minutes=60,
    )
    aggregator.add(
        "svc-massage",
        "120.00",
        service_name="Deep Tissue Massage",
        date="2026-11-02",
        time="11:30",
        duration_minutes=90,
        add_ons=[{"name": "Hot Stones", "price": "25.00", "duration": 15}],
    )
    return aggregator


@pytest.fixture
def ledger():
    """Open ledger for user-1 with 100 points."""
    points = PointsLedger()
    points.open("user-1", balance=100)
    return points


@pytest.fixture
def payments():
    """Payment collaborator fake."""
    backend = AsyncMock()
    backend.create_checkout_session.return_value = CheckoutSessionInfo(
        session_id="cs_test_1",
        session_url="https://checkout.test/cs_test_1",
    )
    backend.create_payment_intent.return_value = PaymentIntent(
        payment_intent_id="pi_test_1",
        client_secret="pi_test_1_secret",
        amount=Decimal("80.00"),
        points_earned=80,
    )
    backend.confirm_payment.return_value = True
    return backend


@pytest.fixture
def ledger_backend():
    """Points ledger collaborator fake (server balance 100)."""
    backend = AsyncMock()
    backend.get_balance.return_value = 100
    backend.get_monthly_claim_count.return_value = 0
    backend.claim_reward.return_value = 60
    return backend


@pytest.fixture
def game_backend():
    """Game configuration collaborator fake."""
    backend = AsyncMock()
    backend.save_game.return_value = True
    return backend


@pytest.fixture
def reward():
    """40-point credit reward, twice a month."""
    return RewardDefinition(
        id="rw-credit-10",
        point_cost=40,
        monthly_limit=2,
        value=Decimal("10.00"),
        name="$10 Credit",
    )


@pytest.fixture
def spin_game():
    """Saved spin game costing 10 points, 3 plays a day."""
    return GameDefinition(
        type="spin",
        id="game-spin-1",
        title="Wheel of Wellness",
        items=(
            GameItem(title="50 Points", value="50", value_type="points", id="it-1"),
            GameItem(title="Try again", value="0", value_type="points", id="it-2"),
        ),
        settings=GameSettings(play_cost=10, max_plays=3),
    )


@pytest.fixture
def game_play():
    """Server response for a spin that won 50 points."""
    return GamePlay(
        game_id="game-spin-1",
        winning_item=GameItem(title="50 Points", value="50", value_type="points", id="it-1"),
        points_spent=10,
        points_won=50,
        new_balance=140,
        user_reward_id="ur-1",
    )


@pytest.fixture
def captured():
    """Connect receivers to signals and collect their kwargs."""
    connections = []

    def capture(signal):
        events = []

        def receiver(sender, **kwargs):
            events.append(kwargs)

        signal.connect(receiver, weak=False)
        connections.append((signal, receiver))
        return events

    yield capture

    for signal, receiver in connections:
        signal.disconnect(receiver)
