"""Client-side cache of the transaction list.

The cache is an explicit object owned by its caller. It never patches the
cached list by hand: every successful mutation only invalidates it, and the
next read refetches the authoritative list from the backend.
"""

from __future__ import annotations

import logging
import time
from collections.abc import Callable
from dataclasses import dataclass, replace
from decimal import Decimal
from typing import Any, List, Optional, TypeVar

from splitbills.balance import format_money, split_amount

from .api import TransactionApi
from .models import Transaction
from .retry import RetryPolicy

logger = logging.getLogger(__name__)

T = TypeVar("T")

DEFAULT_STALE_AFTER = 5 * 60.0


@dataclass(frozen=True, slots=True)
class Notification:
    """User-facing message emitted after a mutation."""

    title: str
    description: str
    variant: str = "default"

    @property
    def is_error(self) -> bool:
        return self.variant == "destructive"


Notifier = Callable[[Notification], None]


def log_notification(notification: Notification) -> None:
    level = logging.WARNING if notification.is_error else logging.INFO
    logger.log(level, "%s: %s", notification.title, notification.description)


@dataclass(frozen=True, slots=True)
class CacheState:
    """Snapshot of what the cache currently knows."""

    data: Optional[tuple[Transaction, ...]] = None
    error: Optional[Exception] = None
    is_loading: bool = False
    updated_at: Optional[float] = None
    is_invalidated: bool = False


class TransactionCache:
    """Holds the last known transaction list and serialises mutations."""

    def __init__(
        self,
        api: TransactionApi,
        *,
        retry_policy: Optional[RetryPolicy] = None,
        stale_after: float = DEFAULT_STALE_AFTER,
        notifier: Optional[Notifier] = None,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self.api = api
        self.retry_policy = retry_policy or RetryPolicy()
        self.stale_after = stale_after
        self.notifier = notifier or log_notification
        self.clock = clock
        self._state = CacheState()

    @property
    def state(self) -> CacheState:
        return self._state

    @property
    def is_stale(self) -> bool:
        state = self._state
        if state.data is None or state.is_invalidated or state.updated_at is None:
            return True
        return self.clock() - state.updated_at >= self.stale_after

    # --- reads --------------------------------------------------------------
    def fetch_all(self) -> List[Transaction]:
        """Fetch the list from the backend, retrying transient failures."""

        self._state = replace(self._state, is_loading=True)
        try:
            transactions = self.retry_policy.call(self.api.get_transactions, "fetch transactions")
        except Exception as exc:
            self._state = replace(self._state, is_loading=False, error=exc)
            raise
        self._state = CacheState(
            data=tuple(transactions),
            error=None,
            is_loading=False,
            updated_at=self.clock(),
            is_invalidated=False,
        )
        logger.debug("Cached %d transactions", len(transactions))
        return list(transactions)

    def read(self) -> List[Transaction]:
        """Return the cached list, refetching it when missing or stale."""

        if self.is_stale:
            return self.fetch_all()
        return list(self._state.data or ())

    def invalidate(self) -> None:
        self._state = replace(self._state, is_invalidated=True)

    # --- mutations ----------------------------------------------------------
    def _mutate(
        self,
        operation: Callable[[], T],
        error_title: str,
        on_success: Optional[Callable[[T], Optional[Notification]]] = None,
    ) -> T:
        try:
            result = operation()
        except Exception as exc:
            self.notifier(Notification(error_title, str(exc), "destructive"))
            raise
        self.invalidate()
        if on_success is not None:
            notification = on_success(result)
            if notification is not None:
                self.notifier(notification)
        return result

    def create(
        self,
        payer: str,
        description: str,
        amount: Decimal | float | int | str,
        paid: bool = False,
    ) -> Transaction:
        def added(transaction: Transaction) -> Notification:
            share = format_money(split_amount(transaction.amount))
            return Notification(
                "Transaction added!",
                f"{transaction.payer} paid {format_money(transaction.amount)} - Split: {share} each",
            )

        return self._mutate(
            lambda: self.api.create_transaction(payer, description, amount, paid),
            "Error adding transaction",
            added,
        )

    def update(self, transaction_id: int, **fields: Any) -> Transaction:
        return self._mutate(
            lambda: self.api.update_transaction(transaction_id, **fields),
            "Error updating transaction",
        )

    def delete(self, transaction_id: int) -> None:
        self._mutate(
            lambda: self.api.delete_transaction(transaction_id),
            "Error deleting transaction",
            lambda _: Notification("Transaction deleted", "The transaction has been removed"),
        )

    def toggle_paid(self, transaction_id: int, paid: bool) -> Transaction:
        def toggled(transaction: Transaction) -> Notification:
            if transaction.paid:
                return Notification("Marked as paid!", "This expense has been settled")
            return Notification("Marked as unpaid", "This expense is now pending")

        return self._mutate(
            lambda: self.api.toggle_transaction_paid(transaction_id, paid),
            "Error updating payment status",
            toggled,
        )
