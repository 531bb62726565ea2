"""Balance calculations between the two participants sharing expenses.

Every transaction is split 50/50. The payer is owed half of the amount by the
other participant until the transaction is marked as paid. Amounts are kept
as :class:`~decimal.Decimal` so halves of cent values stay exact; rounding is
applied only when formatting strings for display.
"""

from __future__ import annotations

from collections.abc import Iterable
from dataclasses import dataclass
from decimal import ROUND_HALF_UP, Decimal
from typing import Final, Protocol

SETTLED: Final[str] = "settled"
SETTLED_TOLERANCE: Final[Decimal] = Decimal("0.01")
_CENT: Final[Decimal] = Decimal("0.01")
_TWO: Final[Decimal] = Decimal(2)


class SplitTransaction(Protocol):
    """Anything carrying the fields needed to compute a split."""

    payer: str
    amount: Decimal | float | int
    paid: bool


@dataclass(frozen=True, slots=True)
class Participants:
    """The closed pair of people sharing expenses."""

    primary: str = "Primary"
    secondary: str = "Secondary"

    def __post_init__(self) -> None:
        if not self.primary or not self.secondary:
            raise ValueError("Participant names must be non-empty")
        if self.primary == self.secondary:
            raise ValueError("Participant names must differ")

    def __contains__(self, name: object) -> bool:
        return name in (self.primary, self.secondary)

    def __iter__(self):
        return iter((self.primary, self.secondary))

    def other(self, payer: str) -> str:
        """Return the participant owing ``payer``.

        Any name that is not the primary participant is treated as the
        secondary side, so the counterpart is the primary one.
        """

        return self.secondary if payer == self.primary else self.primary


DEFAULT_PARTICIPANTS: Final[Participants] = Participants()


def to_decimal(value: Decimal | float | int | str) -> Decimal:
    """Convert ``value`` to ``Decimal`` without binary float artefacts."""

    if isinstance(value, Decimal):
        return value
    return Decimal(str(value))


def split_amount(amount: Decimal | float | int | str) -> Decimal:
    """Return each participant's half of ``amount``."""

    return to_decimal(amount) / _TWO


def format_money(value: Decimal | float | int | str) -> str:
    """Format ``value`` as ``$X.YY`` rounding half-up to cents."""

    quantized = to_decimal(value).quantize(_CENT, rounding=ROUND_HALF_UP)
    return f"${quantized}"


def per_transaction_statement(
    transaction: SplitTransaction,
    participants: Participants = DEFAULT_PARTICIPANTS,
) -> str:
    """Describe who owes whom for a single transaction."""

    if transaction.paid:
        return SETTLED
    debtor = participants.other(transaction.payer)
    share = format_money(split_amount(transaction.amount))
    return f"{debtor} owes {transaction.payer} {share}"


def net_balance(
    transactions: Iterable[SplitTransaction],
    participants: Participants = DEFAULT_PARTICIPANTS,
) -> Decimal:
    """Signed amount the secondary participant owes the primary one.

    Only unpaid transactions contribute. A negative result means the primary
    participant owes the secondary one.
    """

    balance = Decimal(0)
    for transaction in transactions:
        if transaction.paid:
            continue
        share = split_amount(transaction.amount)
        if transaction.payer == participants.primary:
            balance += share
        else:
            balance -= share
    return balance


def is_settled(balance: Decimal) -> bool:
    return abs(balance) < SETTLED_TOLERANCE


def balance_message(
    transactions: Iterable[SplitTransaction],
    participants: Participants = DEFAULT_PARTICIPANTS,
) -> str:
    """Human readable summary of :func:`net_balance`."""

    balance = net_balance(transactions, participants)
    if is_settled(balance):
        return SETTLED
    if balance > 0:
        return f"{participants.secondary} owes {participants.primary} {format_money(balance)}"
    return f"{participants.primary} owes {participants.secondary} {format_money(-balance)}"


__all__ = [
    "DEFAULT_PARTICIPANTS",
    "SETTLED",
    "Participants",
    "SplitTransaction",
    "balance_message",
    "format_money",
    "is_settled",
    "net_balance",
    "per_transaction_statement",
    "split_amount",
    "to_decimal",
]
