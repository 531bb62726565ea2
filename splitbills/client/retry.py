"""Retry policy applied by the client when reading from the backend."""

from __future__ import annotations

import logging
import time
from collections.abc import Callable
from dataclasses import dataclass, field
from typing import TypeVar

from .api import NetworkError, PersistenceError

logger = logging.getLogger(__name__)

T = TypeVar("T")


def is_transient(error: Exception) -> bool:
    """Only network and server-side failures are worth another attempt."""

    return isinstance(error, (NetworkError, PersistenceError))


@dataclass(frozen=True, slots=True)
class RetryPolicy:
    """Bounded retry with linear backoff.

    ``max_attempts`` counts the first call, so the default performs up to two
    retries. ``retry_on`` decides which errors are retried; anything else is
    raised immediately.
    """

    max_attempts: int = 3
    backoff_seconds: float = 0.5
    retry_on: Callable[[Exception], bool] = is_transient
    sleep: Callable[[float], None] = field(default=time.sleep, repr=False)

    def __post_init__(self) -> None:
        if self.max_attempts < 1:
            raise ValueError("max_attempts must be at least 1")
        if self.backoff_seconds < 0:
            raise ValueError("backoff_seconds must be non-negative")

    def call(self, operation: Callable[[], T], description: str = "request") -> T:
        """Run ``operation`` until it succeeds or the policy gives up."""

        for attempt in range(1, self.max_attempts + 1):
            try:
                return operation()
            except Exception as exc:
                if not self.retry_on(exc) or attempt == self.max_attempts:
                    logger.error("%s failed after %d attempt(s): %s", description, attempt, exc)
                    raise
                logger.warning("%s failed (attempt %d/%d): %s", description, attempt, self.max_attempts, exc)
                self.sleep(self.backoff_seconds * attempt)
        raise RuntimeError(f"Unable to complete {description}")  # pragma: no cover
