# © 2025 Ice Calendar Sync authors. All Rights Reserved.
# Licensed for use by the ice rink session tracking service only.
# Unauthorized use, distribution, or modification is prohibited.

"""
Retry Utilities - Exponential backoff for flaky booking site fetches
"""
import logging
import time
from functools import wraps
from typing import Any, Callable, Optional, Tuple, Type, TypeVar

from icescraper import config

logger = logging.getLogger(__name__)

T = TypeVar('T')


def backoff_delay(attempt: int, base_delay: float, max_delay: float = 60.0,
                  exponential_base: float = 2.0) -> float:
    """Seconds to wait before retry number attempt + 1"""
    return min(base_delay * (exponential_base ** attempt), max_delay)


def retry_with_backoff(
    max_retries: Optional[int] = None,
    base_delay: Optional[float] = None,
    max_delay: float = 60.0,
    retry_on: Tuple[Type[BaseException], ...] = (Exception,),
) -> Callable[[Callable[..., T]], Callable[..., T]]:
    """
    Retry the decorated call on the given exceptions, backing off exponentially.

    max_retries and base_delay fall back to config.MAX_RETRIES and
    config.BASE_DELAY, read on every call. Exceptions outside retry_on are
    raised straight away; the last retryable one is re-raised once retries
    run out.
    """
    def decorator(func: Callable[..., T]) -> Callable[..., T]:
        @wraps(func)
        def wrapper(*args: Any, **kwargs: Any) -> T:
            retries = config.MAX_RETRIES if max_retries is None else max_retries
            delay_base = config.BASE_DELAY if base_delay is None else base_delay

            for attempt in range(retries + 1):
                try:
                    result = func(*args, **kwargs)
                except retry_on as e:
                    if attempt == retries:
                        logger.error(f"Giving up on {func.__name__} after {retries} retries: {e}")
                        raise

                    delay = backoff_delay(attempt, delay_base, max_delay)
                    logger.warning(
                        f"{func.__name__} failed (attempt {attempt + 1}/{retries + 1}): "
                        f"{type(e).__name__}: {e}. Retrying in {delay:.1f}s..."
                    )
                    time.sleep(delay)
                    continue

                if attempt > 0:
                    logger.info(f"{func.__name__} succeeded on retry {attempt}")
                return result

        return wrapper
    return decorator
