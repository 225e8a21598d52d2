"""Retry helper for short write transactions that contend on shared rows.

Serialization failures and deadlocks surface as `OperationalError`, and two
writers racing on a unique key surface as `IntegrityError`. Both are safe to
repeat when the wrapped function opens its own `transaction.atomic()` block and
is idempotent, which is the contract for every caller of `run_with_retry`.
"""
import logging
import threading
import time

from django.conf import settings
from django.db import IntegrityError, OperationalError, connection

from enrollment.services.errors import AllocationUnavailable

logger = logging.getLogger(__name__)

RETRYABLE_ERRORS = (OperationalError, IntegrityError)

_retries = threading.local()


def reset_retry_count() -> None:
    _retries.count = 0


def retry_count() -> int:
    """Conflict retries taken on this thread since the last reset."""
    return getattr(_retries, 'count', 0)


def note_retry() -> None:
    _retries.count = retry_count() + 1


def _max_attempts() -> int:
    return max(1, int(getattr(settings, 'ALLOCATION_MAX_ATTEMPTS', 5)))


def _backoff_seconds() -> float:
    return float(getattr(settings, 'ALLOCATION_RETRY_BACKOFF_SECONDS', 0.05))


def run_with_retry(func, *args, **kwargs):
    """Call `func(*args, **kwargs)`, retrying on transaction conflicts.

    When already inside an outer atomic block the conflict belongs to the
    caller's transaction, which cannot be replayed from here, so `func` runs
    exactly once and errors propagate unchanged.
    """
    if connection.in_atomic_block:
        return func(*args, **kwargs)

    attempts = _max_attempts()
    backoff = _backoff_seconds()
    for attempt in range(1, attempts + 1):
        try:
            return func(*args, **kwargs)
        except RETRYABLE_ERRORS as exc:
            if attempt >= attempts:
                logger.error('%s gave up after %d attempts: %s', getattr(func, '__name__', func), attempts, exc)
                raise AllocationUnavailable() from exc
            note_retry()
            logger.warning('%s conflict on attempt %d/%d, retrying: %s', getattr(func, '__name__', func), attempt, attempts, exc)
            if backoff > 0:
                time.sleep(backoff * attempt)
