from __future__ import annotations

from datetime import UTC, datetime
from decimal import Decimal

import pytest

from splitbills.client.api import NetworkError, PersistenceError, ValidationError
from splitbills.client.cache import TransactionCache
from splitbills.client.models import Transaction
from splitbills.client.retry import RetryPolicy


def _transaction(id_: int, paid: bool = False) -> Transaction:
    return Transaction(
        id=id_,
        payer="Primary",
        description=f"Expense {id_}",
        amount=Decimal("10.00"),
        paid=paid,
        timestamp=datetime(2026, 10, 17, tzinfo=UTC),
    )


class FakeApi:
    """In-memory stand-in for :class:`TransactionApi`."""

    def __init__(self) -> None:
        self.rows: dict[int, Transaction] = {}
        self.list_calls = 0
        self.failures: list[Exception] = []
        self.next_id = 1

    def _maybe_fail(self) -> None:
        if self.failures:
            raise self.failures.pop(0)

    def get_transactions(self):
        self.list_calls += 1
        self._maybe_fail()
        return sorted(self.rows.values(), key=lambda t: t.id, reverse=True)

    def create_transaction(self, payer, description, amount, paid=False):
        self._maybe_fail()
        row = Transaction(self.next_id, payer, description, Decimal(str(amount)), paid, datetime.now(UTC))
        self.rows[row.id] = row
        self.next_id += 1
        return row

    def update_transaction(self, transaction_id, **fields):
        self._maybe_fail()
        row = self.rows[transaction_id]
        updated = Transaction(
            row.id,
            fields.get("payer", row.payer),
            fields.get("description", row.description),
            Decimal(str(fields.get("amount", row.amount))),
            fields.get("paid", row.paid),
            row.timestamp,
        )
        self.rows[row.id] = updated
        return updated

    def toggle_transaction_paid(self, transaction_id, paid):
        return self.update_transaction(transaction_id, paid=paid)

    def delete_transaction(self, transaction_id):
        self._maybe_fail()
        self.rows.pop(transaction_id, None)


@pytest.fixture()
def api() -> FakeApi:
    return FakeApi()


@pytest.fixture()
def notifications() -> list:
    return []


@pytest.fixture()
def cache(api, clock, notifications) -> TransactionCache:
    return TransactionCache(
        api,
        retry_policy=RetryPolicy(sleep=lambda _: None),
        stale_after=300,
        notifier=notifications.append,
        clock=clock,
    )


def test_read_fetches_once_while_fresh(cache, api, clock):
    api.rows[1] = _transaction(1)
    assert [t.id for t in cache.read()] == [1]
    clock.advance(299)
    cache.read()
    assert api.list_calls == 1
    assert not cache.is_stale


def test_read_refetches_after_freshness_window(cache, api, clock):
    cache.read()
    clock.advance(300)
    assert cache.is_stale
    cache.read()
    assert api.list_calls == 2


def test_fetch_all_retries_transient_failures(cache, api):
    api.failures = [NetworkError("down"), PersistenceError("db", 500)]
    api.rows[1] = _transaction(1)
    assert len(cache.fetch_all()) == 1
    assert api.list_calls == 3
    assert cache.state.error is None


def test_fetch_all_surfaces_last_error_after_retries(cache, api):
    api.failures = [NetworkError("one"), NetworkError("two"), NetworkError("three")]
    with pytest.raises(NetworkError, match="three"):
        cache.fetch_all()
    assert api.list_calls == 3
    assert isinstance(cache.state.error, NetworkError)
    assert cache.state.is_loading is False
    assert cache.state.data is None


def test_failed_refresh_keeps_previous_data(cache, api, clock):
    api.rows[1] = _transaction(1)
    cache.read()
    api.failures = [ValidationError("bad", 400)]
    with pytest.raises(ValidationError):
        cache.fetch_all()
    assert api.list_calls == 2
    assert [t.id for t in cache.state.data] == [1]


def test_create_invalidates_and_notifies(cache, api, notifications):
    cache.read()
    created = cache.create("Primary", "Dinner", Decimal("40.00"))
    assert cache.state.is_invalidated
    assert cache.state.data == ()
    assert notifications[-1].title == "Transaction added!"
    assert notifications[-1].description == "Primary paid $40.00 - Split: $20.00 each"
    assert [t.id for t in cache.read()] == [created.id]
    assert api.list_calls == 2


def test_mutation_failure_leaves_cache_untouched(cache, api, notifications):
    api.rows[1] = _transaction(1)
    cache.read()
    before = cache.state
    api.failures = [ValidationError("Amount must be a valid number", 400)]
    with pytest.raises(ValidationError):
        cache.create("Primary", "Dinner", "forty")
    assert cache.state == before
    assert notifications[-1].is_error
    assert notifications[-1].title == "Error adding transaction"


def test_mutations_are_not_retried(cache, api):
    api.failures = [NetworkError("down")]
    with pytest.raises(NetworkError):
        cache.delete(1)
    assert api.failures == []


def test_toggle_paid_notifications(cache, api, notifications):
    api.rows[1] = _transaction(1)
    assert cache.toggle_paid(1, True).paid is True
    assert notifications[-1].title == "Marked as paid!"
    assert cache.toggle_paid(1, False).paid is False
    assert notifications[-1].title == "Marked as unpaid"


def test_update_and_delete_invalidate(cache, api, notifications):
    api.rows[1] = _transaction(1)
    cache.read()
    cache.update(1, description="Lunch")
    assert cache.is_stale
    assert [t.description for t in cache.read()] == ["Lunch"]
    cache.delete(1)
    assert notifications[-1].title == "Transaction deleted"
    assert cache.read() == []
