"""HTTP client for talking with the Split Bills backend."""

from __future__ import annotations

import logging
from collections.abc import Mapping
from decimal import Decimal
from typing import Any, List, Optional

import requests

from splitbills.config import get_settings

from .models import Transaction

logger = logging.getLogger(__name__)


class ApiError(RuntimeError):
    """Base class for failures reported while calling the backend."""

    def __init__(self, message: str, status_code: Optional[int] = None) -> None:
        super().__init__(message)
        self.status_code = status_code


class ValidationError(ApiError):
    """The backend rejected the payload (HTTP 400)."""


class NotFoundError(ApiError):
    """The requested transaction does not exist (HTTP 404)."""


class PersistenceError(ApiError):
    """The backend could not reach or use its database (HTTP 5xx)."""


class NetworkError(ApiError):
    """The backend could not be reached at all."""


def _error_for_status(status_code: int, message: str) -> ApiError:
    if status_code == 400:
        return ValidationError(message, status_code)
    if status_code == 404:
        return NotFoundError(message, status_code)
    if status_code >= 500:
        return PersistenceError(message, status_code)
    return ApiError(message, status_code)


def _json_amount(amount: Decimal | float | int | str) -> str | float | int:
    return str(amount) if isinstance(amount, Decimal) else amount


class TransactionApi:
    """Thin wrapper over the REST endpoints returning client models."""

    def __init__(
        self,
        base_url: Optional[str] = None,
        *,
        timeout: Optional[float] = None,
        session: Optional[requests.Session] = None,
    ) -> None:
        settings = get_settings()
        self.base_url = (base_url or settings.api_url).rstrip("/")
        self.timeout = settings.http_timeout if timeout is None else timeout
        self.session = session or requests.Session()

    def _request(self, method: str, endpoint: str, payload: Optional[Mapping[str, Any]] = None) -> Any:
        url = f"{self.base_url}{endpoint}"
        logger.debug("API request %s %s", method, url)
        try:
            response = self.session.request(method, url, json=payload, timeout=self.timeout)
        except (requests.ConnectionError, requests.Timeout) as exc:
            logger.error("Cannot reach backend at %s: %s", url, exc)
            raise NetworkError(
                f"Cannot connect to backend server at {self.base_url}. Please make sure it is running."
            ) from exc

        logger.debug("API response %s for %s %s", response.status_code, method, url)
        if not 200 <= response.status_code < 300:
            try:
                body = response.json()
            except ValueError:
                body = {}
            message = body.get("error") if isinstance(body, dict) else None
            error = _error_for_status(response.status_code, message or f"HTTP error! status: {response.status_code}")
            logger.warning("API error %s: %s", response.status_code, error)
            raise error
        if response.status_code == 204 or not response.content:
            return None
        try:
            return response.json()
        except ValueError as exc:
            raise ApiError("Backend returned an invalid JSON body", response.status_code) from exc

    def _transaction(self, body: Any) -> Transaction:
        try:
            return Transaction.from_payload(body)
        except ValueError as exc:
            raise ApiError("Backend returned a malformed transaction") from exc

    def get_transactions(self) -> List[Transaction]:
        body = self._request("GET", "/transactions") or []
        return [self._transaction(item) for item in body]

    def create_transaction(
        self,
        payer: str,
        description: str,
        amount: Decimal | float | int | str,
        paid: bool = False,
    ) -> Transaction:
        payload = {
            "payer": payer,
            "description": description,
            "amount": _json_amount(amount),
            "paid": paid,
        }
        return self._transaction(self._request("POST", "/transactions", payload))

    def update_transaction(self, transaction_id: int, **fields: Any) -> Transaction:
        payload = {key: _json_amount(value) if key == "amount" else value for key, value in fields.items()}
        return self._transaction(self._request("PUT", f"/transactions/{transaction_id}", payload))

    def delete_transaction(self, transaction_id: int) -> None:
        self._request("DELETE", f"/transactions/{transaction_id}")

    def toggle_transaction_paid(self, transaction_id: int, paid: bool) -> Transaction:
        return self.update_transaction(transaction_id, paid=paid)

    def health_check(self) -> dict:
        return self._request("GET", "/health")

    def connectivity_test(self) -> dict:
        return self._request("GET", "/test")
