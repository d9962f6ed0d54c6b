"""Points ledger: optimistic balance projection with rollback.

State machine:

    Settled --apply_optimistic(d)--> OptimisticPending(previous)
    OptimisticPending --confirm(x)--> Settled (balance = x)
    OptimisticPending --rollback()--> Settled (balance = previous)
    Settled --confirm(x)--> Settled (balance = x)

At most one optimistic mutation exists at a time. transact() queues callers
FIFO so every rollback restores the value its own mutation replaced.
"""

import asyncio
import itertools
import logging
from collections.abc import Awaitable, Callable
from typing import Any

from radiant.exceptions import LedgerStateError, RadiantError
from radiant.models.points import OptimisticPending, PointsAccount, Settled
from radiant.signals import points_confirmed, points_rolled_back

logger = logging.getLogger(__name__)


class PointsLedger:
    """
    Owns one session's PointsAccount.

    Usage:
        ledger = PointsLedger()
        ledger.open("user-1", balance=100)

        # Serialised optimistic spend reconciled with the server
        await ledger.spend(40, lambda: backend.claim_reward("rw-1"))
    """

    def __init__(self, account: PointsAccount | None = None):
        self.account = account
        self._serial = asyncio.Lock()
        self._tokens = itertools.count(1)

    # ======================================================================
    # Lifecycle
    # ======================================================================

    def open(self, user_id: str, balance: int = 0) -> PointsAccount:
        """Create the account at login."""
        self.account = PointsAccount(user_id=str(user_id), balance=max(0, int(balance)))
        logger.debug("Points account opened: %s", self.account)
        return self.account

    def close(self) -> None:
        """Drop the account at logout. Late continuations are ignored."""
        self.account = None

    # ======================================================================
    # Read
    # ======================================================================

    @property
    def balance(self) -> int | None:
        return self.account.balance if self.account else None

    @property
    def pending_previous(self) -> int | None:
        return self.account.pending_previous if self.account else None

    @property
    def is_pending(self) -> bool:
        return bool(self.account and self.account.is_pending)

    def _require_account(self) -> PointsAccount:
        if self.account is None:
            raise LedgerStateError(code="NO_ACCOUNT")
        return self.account

    # ======================================================================
    # Transitions
    # ======================================================================

    def apply_optimistic(self, delta: int) -> int:
        """
        Apply ``delta`` speculatively. Only legal from Settled.

        The balance is clamped at zero on decrement.

        Returns:
            Token identifying this pending mutation

        Raises:
            LedgerStateError: If a mutation is already pending or no account is open
        """
        account = self._require_account()
        if isinstance(account.state, OptimisticPending):
            raise LedgerStateError(
                "A points mutation is already pending; confirm or roll back first",
                pending_delta=account.state.delta,
                requested_delta=delta,
            )

        token = next(self._tokens)
        account.state = OptimisticPending(previous=account.balance, delta=delta, token=token)
        account.balance = max(0, account.balance + delta)
        logger.debug("Optimistic %+d applied: %s", delta, account)
        return token

    def confirm(self, authoritative_balance: int) -> None:
        """Adopt the server's balance. Legal from any state."""
        account = self._require_account()
        balance = int(authoritative_balance)
        if balance < 0:
            logger.warning(
                "Server reported negative balance %d for %s; showing 0",
                balance,
                account.user_id,
            )
            balance = 0

        account.balance = balance
        account.state = Settled()
        points_confirmed.send(sender=self.__class__, account=account)

    def rollback(self) -> None:
        """
        Restore the balance from before the pending mutation.

        Raises:
            LedgerStateError: If nothing is pending
        """
        account = self._require_account()
        state = account.state
        if not isinstance(state, OptimisticPending):
            raise LedgerStateError("No pending points mutation to roll back")

        account.balance = state.previous
        account.state = Settled()
        logger.warning("Rolled back %+d for %s", state.delta, account.user_id)
        points_rolled_back.send(sender=self.__class__, account=account, delta=state.delta)

    # ======================================================================
    # Serialised operations
    # ======================================================================

    def _is_current(self, account: PointsAccount, token: int) -> bool:
        """True while ``token`` is still the pending mutation of the open account."""
        state = account.state
        return (
            self.account is account
            and isinstance(state, OptimisticPending)
            and state.token == token
        )

    async def transact(
        self,
        delta: int,
        remote: Callable[[], Awaitable[Any]],
        balance_of: Callable[[Any], int] | None = None,
    ) -> Any:
        """
        Queue, apply ``delta`` optimistically, then reconcile with ``remote``.

        Args:
            delta: Points to add (negative to spend)
            remote: Coroutine factory performing the server call
            balance_of: Extracts the authoritative balance from the remote
                result (defaults to the result itself)

        Returns:
            The remote result

        Raises:
            Whatever ``remote`` raises, after rolling back
        """
        async with self._serial:
            account = self._require_account()
            token = self.apply_optimistic(delta)
            try:
                result = await remote()
            except BaseException:
                if self._is_current(account, token):
                    self.rollback()
                raise

            if self._is_current(account, token):
                self.confirm(balance_of(result) if balance_of else result)
            else:
                logger.info("Points mutation %d superseded before confirmation", token)
            return result

    async def earn(self, points: int, remote: Callable[[], Awaitable[Any]], **kwargs) -> Any:
        if points <= 0:
            raise RadiantError("INVALID_POINTS", message="Points must be positive")
        return await self.transact(points, remote, **kwargs)

    async def spend(self, points: int, remote: Callable[[], Awaitable[Any]], **kwargs) -> Any:
        if points <= 0:
            raise RadiantError("INVALID_POINTS", message="Points must be positive")
        return await self.transact(-points, remote, **kwargs)

    async def refresh(self, fetch: Callable[[], Awaitable[int]]) -> int | None:
        """Re-read the authoritative balance, queued behind pending mutations."""
        async with self._serial:
            account = self._require_account()
            balance = await fetch()
            if self.account is not account:
                return None
            self.confirm(balance)
            return account.balance
