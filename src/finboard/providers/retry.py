"""Bounded retry with exponential backoff for upstream calls."""

import logging
import time
from typing import Callable, TypeVar

T = TypeVar("T")

logger = logging.getLogger(__name__)


def call_with_retry(
    fn: Callable[[], T],
    max_attempts: int = 3,
    initial_delay: float = 1.0,
    backoff: float = 2.0,
    description: str = "upstream call",
    sleep: Callable[[float], None] = time.sleep,
) -> T:
    """
    Call fn until it succeeds or max_attempts is reached.

    The delay before attempt n+1 is initial_delay * backoff**(n-1).
    The last exception is re-raised.
    """
    attempts = max(1, max_attempts)
    delay = initial_delay
    for attempt in range(1, attempts + 1):
        try:
            return fn()
        except Exception as exc:
            if attempt == attempts:
                raise
            logger.info(
                "%s failed (attempt %d/%d): %s; retrying in %.1fs",
                description, attempt, attempts, exc, delay,
            )
            if delay > 0:
                sleep(delay)
            delay *= backoff
    raise RuntimeError("unreachable")
