"""Radiant protocols."""

from radiant.protocols.payments import (
    PaymentBackend,
    CheckoutSessionInfo,
    PaymentIntent,
)
from radiant.protocols.ledger import LedgerBackend
from radiant.protocols.games import GameConfigBackend

__all__ = [
    # Payments
    "PaymentBackend",
    "CheckoutSessionInfo",
    "PaymentIntent",
    # Ledger
    "LedgerBackend",
    # Games
    "GameConfigBackend",
]
