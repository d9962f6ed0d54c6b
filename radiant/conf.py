"""
Radiant configuration.

Usage in settings.py:
    RADIANT = {
        "API_BASE_URL": "https://api.example.com/api/",
        "PROBABILITY_CEILING": 100,
    }
"""

from dataclasses import dataclass
from typing import Any

from django.conf import settings


@dataclass
class RadiantSettings:
    """Radiant configuration settings."""

    # Prize tables
    PROBABILITY_CEILING: int = 100
    DEFAULT_ITEM_PROBABILITY: int = 10
    DEFAULT_ITEM_COLOR: str = "#6366F1"
    DEFAULT_VALUE_TYPE: str = "points"

    # Game play defaults (games saved without settings)
    DEFAULT_PLAY_COST: int = 10
    DEFAULT_MAX_PLAYS: int = 1
    DEFAULT_RESET_PERIOD: str = "daily"

    # Cart persistence
    CART_SESSION_KEY: str = "radiant_cart"

    # REST collaborators
    API_BASE_URL: str = ""
    API_TIMEOUT: float = 10.0

    # Collaborator backends (dotted paths)
    PAYMENT_BACKEND: str = "radiant.adapters.rest.RestPaymentBackend"
    LEDGER_BACKEND: str = "radiant.adapters.rest.RestLedgerBackend"
    GAME_BACKEND: str = "radiant.adapters.rest.RestGameConfigBackend"


def get_radiant_settings() -> RadiantSettings:
    """Load settings from Django settings."""
    user_settings: dict[str, Any] = getattr(settings, "RADIANT", {})
    return RadiantSettings(**user_settings)


class _LazySettings:
    """Lazy proxy that re-reads settings on every attribute access."""

    def __getattr__(self, name):
        return getattr(get_radiant_settings(), name)


radiant_settings = _LazySettings()
