"""Points account and its ledger state.

The ledger state is a tagged variant:

    Settled                          balance matches the last known server value
    OptimisticPending(previous, ...) a local mutation is applied speculatively;
                                     ``previous`` is the restore point

``pending_previous`` is derived from the state, so it can only be non-null
while exactly one optimistic mutation is unconfirmed.
"""

from dataclasses import dataclass, field
from typing import Union


@dataclass(frozen=True)
class Settled:
    """No pending mutation."""

    name = "settled"


@dataclass(frozen=True)
class OptimisticPending:
    """One unconfirmed optimistic mutation."""

    previous: int
    delta: int
    token: int = 0

    name = "optimistic_pending"


LedgerState = Union[Settled, OptimisticPending]


@dataclass
class PointsAccount:
    """
    In-memory projection of a user's point balance.

    Created at login, dropped at logout. Only PointsLedger mutates it.
    """

    user_id: str
    balance: int = 0
    state: LedgerState = field(default_factory=Settled)

    def __post_init__(self):
        if self.balance < 0:
            raise ValueError("balance must be >= 0")

    @property
    def pending_previous(self) -> int | None:
        if isinstance(self.state, OptimisticPending):
            return self.state.previous
        return None

    @property
    def is_pending(self) -> bool:
        return isinstance(self.state, OptimisticPending)

    def __str__(self):
        return f"{self.user_id}: {self.balance}pts | {self.state.name}"
