"""
Caller-side retries for the match pipeline.

The pipeline never retries internally. A store outage surfaces as
UpstreamUnavailable, and whoever invoked the run decides whether to try again.
"""

import functools
import time
from typing import Callable, Optional, Tuple, Type

from .errors import UpstreamUnavailable

RETRYABLE_ERRORS: Tuple[Type[Exception], ...] = (UpstreamUnavailable,)


class RetryError(Exception):
    """Every attempt failed; the last failure is chained as __cause__."""


def exponential_backoff(
    max_retries: int = 3,
    base_delay: float = 1.0,
    max_delay: float = 60.0,
    exponential_base: float = 2.0,
    exceptions: Tuple[Type[Exception], ...] = RETRYABLE_ERRORS,
    on_retry: Optional[Callable] = None,
    sleep: Callable[[float], None] = time.sleep,
):
    """
    Retry the decorated callable with exponentially growing pauses.

    Args:
        max_retries: Attempts after the first one (0 = no retries)
        base_delay: Seconds to wait before the first retry
        max_delay: Upper bound for any single wait
        exponential_base: Growth factor between waits
        exceptions: Exception types that trigger a retry; others propagate
        on_retry: Called as on_retry(attempt, exception, delay) before waiting
        sleep: Wait function, replaceable in tests

    Example:
        run = exponential_backoff(max_retries=2)(run_match_pipeline)
        result = run(resume_id, store, store, store)
    """
    def decorator(func: Callable) -> Callable:
        @functools.wraps(func)
        def wrapper(*args, **kwargs):
            attempt = 0
            while True:
                try:
                    return func(*args, **kwargs)
                except exceptions as e:
                    if attempt == max_retries:
                        raise RetryError(f"Gave up after {attempt + 1} attempts: {e}") from e
                    delay = min(base_delay * exponential_base ** attempt, max_delay)
                    attempt += 1
                    if on_retry:
                        on_retry(attempt, e, delay)
                    sleep(delay)

        return wrapper
    return decorator


def is_retryable(exception: Exception) -> bool:
    return isinstance(exception, RETRYABLE_ERRORS)
