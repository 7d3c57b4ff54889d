"""
Backoff policy for model server calls.

Only failures that can clear up on their own are retried: timeouts, rate
limits and an unreachable server. Authentication failures, bad statuses and
cancellation surface immediately.
"""

import asyncio
import logging

from tenacity import (
    before_sleep_log,
    retry,
    retry_if_exception_type,
    stop_after_attempt,
    wait_exponential,
)

from vibey.exceptions.model import ModelRateLimitError, ModelTimeoutError
from vibey.exceptions.provider import ProviderConnectionError

logger = logging.getLogger("Retry")

TRANSIENT_ERRORS = (
    ModelTimeoutError,
    ModelRateLimitError,
    ProviderConnectionError,
    asyncio.TimeoutError,
)


def retry_on_transient_errors(max_attempts: int = 3, max_wait: float = 10):
    """
    Decorate an async provider call with exponential backoff.

    Args:
        max_attempts: Total attempts, the first one included.
        max_wait: Upper bound in seconds for a single backoff sleep.

    The last error is re-raised unchanged once attempts run out.
    """
    return retry(
        stop=stop_after_attempt(max_attempts),
        wait=wait_exponential(multiplier=1, min=1, max=max_wait),
        retry=retry_if_exception_type(TRANSIENT_ERRORS),
        before_sleep=before_sleep_log(logger, logging.WARNING),
        reraise=True,
    )
