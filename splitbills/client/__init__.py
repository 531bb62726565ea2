"""Client-side access to the Split Bills API: HTTP client, cache and CLI view."""

from .api import ApiError, NetworkError, NotFoundError, PersistenceError, TransactionApi, ValidationError
from .cache import CacheState, Notification, TransactionCache
from .models import Transaction
from .retry import RetryPolicy, is_transient

__all__ = [
    "ApiError",
    "CacheState",
    "NetworkError",
    "NotFoundError",
    "Notification",
    "PersistenceError",
    "RetryPolicy",
    "Transaction",
    "TransactionApi",
    "TransactionCache",
    "ValidationError",
    "is_transient",
]
