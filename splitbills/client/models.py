"""Client-side representation of a transaction returned by the API."""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass
from datetime import datetime
from decimal import Decimal
from typing import Any

from splitbills.balance import to_decimal


@dataclass(frozen=True, slots=True)
class Transaction:
    """Immutable snapshot of a stored transaction."""

    id: int
    payer: str
    description: str
    amount: Decimal
    paid: bool
    timestamp: datetime

    @classmethod
    def from_payload(cls, payload: Mapping[str, Any]) -> "Transaction":
        """Build a transaction from the JSON body served by the backend."""

        try:
            return cls(
                id=int(payload["id"]),
                payer=str(payload["payer"]),
                description=str(payload["description"]),
                amount=to_decimal(payload["amount"]),
                paid=bool(payload.get("paid", False)),
                timestamp=datetime.fromisoformat(str(payload["timestamp"]).replace("Z", "+00:00")),
            )
        except (AttributeError, KeyError, TypeError, ValueError, ArithmeticError) as exc:
            raise ValueError(f"Malformed transaction payload: {payload!r}") from exc
