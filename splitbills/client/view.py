"""Plain-text rendering of transactions and balances."""

from __future__ import annotations

from collections.abc import Sequence

from splitbills.balance import (
    DEFAULT_PARTICIPANTS,
    Participants,
    balance_message,
    format_money,
    per_transaction_statement,
)

from .api import ApiError, NetworkError
from .models import Transaction

EMPTY_MESSAGE = "No transactions yet. Add the first shared expense!"


def render_card(transaction: Transaction, participants: Participants = DEFAULT_PARTICIPANTS) -> str:
    status = "paid" if transaction.paid else "pending"
    when = transaction.timestamp.strftime("%Y-%m-%d %H:%M")
    return "\n".join(
        [
            f"#{transaction.id} {transaction.description} [{status}]",
            f"  {transaction.payer} paid {format_money(transaction.amount)} on {when}",
            f"  {per_transaction_statement(transaction, participants)}",
        ]
    )


def render_transactions(
    transactions: Sequence[Transaction],
    participants: Participants = DEFAULT_PARTICIPANTS,
) -> str:
    if not transactions:
        return EMPTY_MESSAGE
    return "\n\n".join(render_card(transaction, participants) for transaction in transactions)


def render_balance(
    transactions: Sequence[Transaction],
    participants: Participants = DEFAULT_PARTICIPANTS,
) -> str:
    return f"Balance: {balance_message(transactions, participants)}"


def render_error(error: Exception) -> str:
    """Turn a client failure into a message suitable for the terminal."""

    if isinstance(error, NetworkError):
        return f"Error: {error}\nStart the API with `split-bills-api` or pass --api-url."
    if isinstance(error, ApiError):
        return f"Error: {error}"
    return f"Unexpected error: {error}"
