"""
Transaction decorators for ledger-mutating services.
Bounded lock waits and retry of transient lock contention.
"""

import functools
import logging
import time
from collections.abc import Callable
from typing import Any

from django.conf import settings
from django.db import DEFAULT_DB_ALIAS, OperationalError, transaction

from apps.common.types import ConflictError, DomainError, Err

logger = logging.getLogger(__name__)


def apply_lock_timeout(using: str = DEFAULT_DB_ALIAS) -> None:
    """
    Bound row-lock waits for the current transaction.
    PostgreSQL only; other backends serialize writers themselves.
    """
    connection = transaction.get_connection(using)
    if connection.vendor != 'postgresql':
        return

    timeout_ms = int(getattr(settings, 'LEDGER_LOCK_TIMEOUT_MS', 2000))
    with connection.cursor() as cursor:
        cursor.execute("SELECT set_config('lock_timeout', %s, true)", [f"{timeout_ms}ms"])


def atomic_with_retry(
    operation: str,
    max_retries: int | None = None,
    delay: float | None = None,
) -> Callable[[Callable[..., Any]], Callable[..., Any]]:
    """
    Run a service call in its own transaction, retrying lock contention.

    Lock timeouts, deadlocks and serialization failures surface from the
    database as OperationalError; services may also raise ConflictError.
    Each attempt starts from scratch so PENDING guards are re-checked.
    After the last attempt the caller receives Err(RETRY_EXHAUSTED).
    """

    def decorator(func: Callable[..., Any]) -> Callable[..., Any]:
        @functools.wraps(func)
        def wrapper(*args: Any, **kwargs: Any) -> Any:
            attempts = max_retries or int(getattr(settings, 'LEDGER_CONFLICT_MAX_RETRIES', 3))
            backoff = delay if delay is not None else float(
                getattr(settings, 'LEDGER_CONFLICT_RETRY_DELAY', 0.05)
            )

            for attempt in range(attempts):
                try:
                    with transaction.atomic():
                        apply_lock_timeout()
                        return func(*args, **kwargs)

                except (ConflictError, OperationalError) as e:
                    if attempt < attempts - 1:
                        logger.warning(
                            f"🔄 [Ledger] Conflict in {operation}, retry {attempt + 1}/{attempts - 1}: {e}"
                        )
                        time.sleep(backoff * (attempt + 1))
                    else:
                        logger.error(f"🔥 [Ledger] All {attempts} attempts failed for {operation}: {e}")

            return Err(DomainError.retry_exhausted(operation, attempts))

        return wrapper

    return decorator
