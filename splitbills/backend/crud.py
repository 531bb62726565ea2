"""Transaction repository for the Split Bills backend.

Incoming payloads are validated and normalised here before they reach the
database, so the HTTP layer only has to map the exceptions below to status
codes.
"""
from __future__ import annotations

import logging
from collections.abc import Collection, Mapping
from dataclasses import dataclass
from datetime import UTC, datetime
from decimal import Decimal, InvalidOperation
from typing import Any, List, Optional

from pydantic import ValidationError as SchemaValidationError
from sqlalchemy import delete, func, select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from . import models, schemas

logger = logging.getLogger(__name__)

UPDATABLE_FIELDS = ("payer", "description", "amount", "paid")
MISSING_FIELDS_MESSAGE = "Missing required fields: payer, description, and amount are required"
INVALID_AMOUNT_MESSAGE = "Amount must be a valid number"
AMOUNT_PRECISION_MESSAGE = "Amount must have at most two decimal places"
AMOUNT_RANGE_MESSAGE = "Amount must be smaller than 10,000,000,000"
NOT_FOUND_MESSAGE = "Transaction not found"

_CENT = Decimal("0.01")
_AMOUNT_LIMIT = Decimal(10) ** 10


class RepositoryError(RuntimeError):
    """Base class for errors raised by the transaction repository."""


class ValidationError(RepositoryError):
    """Raised when a client supplied payload is incomplete or malformed."""


class NotFoundError(RepositoryError):
    """Raised when a transaction cannot be located in the database."""


class PersistenceError(RepositoryError):
    """Raised when the database is unreachable or rejects an operation.

    The message is safe to return to callers; the driver error is chained.
    """


@dataclass(frozen=True, slots=True)
class ConnectivityReport:
    ok: bool
    message: str
    transaction_count: Optional[int] = None


def _is_blank(value: Any) -> bool:
    return value is None or (isinstance(value, str) and not value.strip())


def parse_amount(value: Any) -> Decimal:
    """Parse ``value`` into a cent-precision ``Decimal``.

    Accepts numbers and numeric strings. Booleans, non-finite values and
    amounts with sub-cent precision are rejected rather than rounded.
    """

    if isinstance(value, bool) or not isinstance(value, (int, float, str, Decimal)):
        raise ValidationError(INVALID_AMOUNT_MESSAGE)
    try:
        amount = Decimal(str(value).strip())
    except InvalidOperation as exc:
        raise ValidationError(INVALID_AMOUNT_MESSAGE) from exc
    if not amount.is_finite():
        raise ValidationError(INVALID_AMOUNT_MESSAGE)
    if abs(amount) >= _AMOUNT_LIMIT:
        raise ValidationError(AMOUNT_RANGE_MESSAGE)
    if amount.normalize().as_tuple().exponent < -2:
        raise ValidationError(AMOUNT_PRECISION_MESSAGE)
    return amount.quantize(_CENT)


def _clean_text(field: str, value: Any) -> str:
    if not isinstance(value, str) or not value.strip():
        raise ValidationError(f"{field.capitalize()} must be a non-empty string")
    return value.strip()


def _check_payer(payer: str, allowed_payers: Optional[Collection[str]]) -> None:
    if allowed_payers is not None and payer not in allowed_payers:
        raise ValidationError(f"Payer must be one of: {', '.join(allowed_payers)}")


def _to_schema(schema: type[schemas.BaseModel], data: dict[str, Any]):
    try:
        return schema.model_validate(data)
    except SchemaValidationError as exc:
        field = exc.errors()[0]["loc"][0] if exc.errors() else "payload"
        raise ValidationError(f"Invalid value for {field}") from exc


def validate_create(
    payload: Mapping[str, Any],
    allowed_payers: Optional[Collection[str]] = None,
) -> schemas.TransactionCreate:
    """Validate a creation payload and return the normalised schema."""

    if any(_is_blank(payload.get(field)) for field in ("payer", "description", "amount")):
        raise ValidationError(MISSING_FIELDS_MESSAGE)
    data = {
        "payer": _clean_text("payer", payload["payer"]),
        "description": _clean_text("description", payload["description"]),
        "amount": parse_amount(payload["amount"]),
    }
    # a zero amount counts as not supplied
    if data["amount"] == 0:
        raise ValidationError(MISSING_FIELDS_MESSAGE)
    _check_payer(data["payer"], allowed_payers)
    if payload.get("paid") is not None:
        data["paid"] = payload["paid"]
    return _to_schema(schemas.TransactionCreate, data)


def validate_update(
    payload: Mapping[str, Any],
    allowed_payers: Optional[Collection[str]] = None,
) -> schemas.TransactionUpdate:
    """Validate the supplied subset of fields; unknown keys are ignored."""

    data: dict[str, Any] = {}
    for field in UPDATABLE_FIELDS:
        if field not in payload or payload[field] is None:
            continue
        value = payload[field]
        if field == "amount":
            data[field] = parse_amount(value)
        elif field == "paid":
            data[field] = value
        else:
            data[field] = _clean_text(field, value)
    if "payer" in data:
        _check_payer(data["payer"], allowed_payers)
    return _to_schema(schemas.TransactionUpdate, data)


def list_transactions(session: Session) -> List[models.Transaction]:
    stmt = select(models.Transaction).order_by(
        models.Transaction.timestamp.desc(),
        models.Transaction.id.desc(),
    )
    try:
        return list(session.scalars(stmt))
    except SQLAlchemyError as exc:
        logger.exception("Error fetching transactions")
        raise PersistenceError("Failed to fetch transactions") from exc


def get_transaction(session: Session, transaction_id: int) -> models.Transaction:
    try:
        transaction = session.get(models.Transaction, transaction_id)
    except SQLAlchemyError as exc:
        logger.exception("Error loading transaction %s", transaction_id)
        raise PersistenceError("Failed to fetch transaction") from exc
    if transaction is None:
        raise NotFoundError(NOT_FOUND_MESSAGE)
    return transaction


def create_transaction(
    session: Session,
    payload: Mapping[str, Any],
    allowed_payers: Optional[Collection[str]] = None,
) -> models.Transaction:
    transaction_in = validate_create(payload, allowed_payers)
    transaction = models.Transaction(**transaction_in.model_dump(), timestamp=datetime.now(UTC))
    try:
        session.add(transaction)
        session.flush()
        session.refresh(transaction)
    except SQLAlchemyError as exc:
        logger.exception("Error creating transaction")
        raise PersistenceError("Failed to create transaction") from exc
    logger.info("Created transaction %s paid by %s", transaction.id, transaction.payer)
    return transaction


def update_transaction(
    session: Session,
    transaction_id: int,
    payload: Mapping[str, Any],
    allowed_payers: Optional[Collection[str]] = None,
) -> models.Transaction:
    update_in = validate_update(payload, allowed_payers)
    transaction = get_transaction(session, transaction_id)
    for field, value in update_in.model_dump(exclude_unset=True).items():
        setattr(transaction, field, value)
    try:
        session.flush()
        session.refresh(transaction)
    except SQLAlchemyError as exc:
        logger.exception("Error updating transaction %s", transaction_id)
        raise PersistenceError("Failed to update transaction") from exc
    return transaction


def delete_transaction(session: Session, transaction_id: int) -> None:
    stmt = delete(models.Transaction).where(models.Transaction.id == transaction_id)
    try:
        session.execute(stmt)
        session.flush()
    except SQLAlchemyError as exc:
        logger.exception("Error deleting transaction %s", transaction_id)
        raise PersistenceError("Failed to delete transaction") from exc


def connectivity_test(session: Session) -> ConnectivityReport:
    """Check that the transactions table can be queried."""

    stmt = select(func.count()).select_from(models.Transaction)
    try:
        count = session.scalar(stmt)
    except SQLAlchemyError:
        logger.exception("Database connectivity test failed")
        session.rollback()
        return ConnectivityReport(ok=False, message="Database connection failed")
    return ConnectivityReport(
        ok=True,
        message="Database connection successful",
        transaction_count=int(count or 0),
    )
