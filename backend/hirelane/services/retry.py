import logging
import time
from typing import Callable, TypeVar

from sqlalchemy.exc import DBAPIError, DisconnectionError
from sqlalchemy.exc import TimeoutError as PoolTimeoutError

logger = logging.getLogger(__name__)

T = TypeVar("T")

# Postgres "query_canceled", raised when statement_timeout fires.
TRANSIENT_DB_CODES = {"57014"}


def _driver_code(exc: BaseException) -> str | None:
    orig = getattr(exc, "orig", None)
    for source in (orig, exc):
        code = getattr(source, "pgcode", None) or getattr(source, "sqlstate", None)
        if code:
            return str(code)
    return None


def is_transient_error(exc: BaseException) -> bool:
    """Timeouts and dropped connections are worth another attempt; everything else is not."""
    if isinstance(exc, (TimeoutError, ConnectionError, PoolTimeoutError, DisconnectionError)):
        return True
    if isinstance(exc, DBAPIError) and exc.connection_invalidated:
        return True
    if _driver_code(exc) in TRANSIENT_DB_CODES:
        return True
    message = str(exc).lower()
    return "timeout" in message or "connection" in message


def retry_with_backoff(
    operation: Callable[[], T],
    *,
    max_retries: int = 2,
    base_delay: float = 1.0,
    is_retryable: Callable[[BaseException], bool] = is_transient_error,
    sleep: Callable[[float], None] = time.sleep,
) -> T:
    """
    Run `operation` up to max_retries + 1 times.

    After failed attempt n (0-based) the wait is base_delay * 2**n, so the
    defaults give 1s then 2s. Non-retryable errors and the error from the last
    attempt are re-raised unchanged.
    """
    attempt = 0
    while True:
        try:
            return operation()
        except Exception as e:
            if not is_retryable(e) or attempt >= max_retries:
                raise
            delay = base_delay * (2**attempt)
            logger.warning(
                "Transient failure (%s) on attempt %d/%d; retrying in %.1fs",
                type(e).__name__,
                attempt + 1,
                max_retries + 1,
                delay,
            )
            sleep(delay)
            attempt += 1
