"""Retry policy with exponential backoff and jitter for queued syncs."""

import logging

import structlog
from tenacity import (
    AsyncRetrying,
    before_sleep_log,
    retry_if_result,
    stop_after_attempt,
    wait_random_exponential,
)

logger = structlog.stdlib.get_logger(__name__)


def _failed(result) -> bool:
    return not getattr(result, "success", False)


def sync_retrying(
    max_attempts: int = 3,
    min_wait: float = 0.5,
    max_wait: float = 8.0,
) -> AsyncRetrying:
    """Retry a coroutine while it returns an unsuccessful result.

    Syncers report failure as a value rather than raising, so retries key off
    the result. When attempts run out the last failed result is returned.

    Args:
        max_attempts: Total attempts including the first
        min_wait: Backoff multiplier (seconds)
        max_wait: Cap on a single wait (seconds)
    """
    return AsyncRetrying(
        stop=stop_after_attempt(max(1, max_attempts)),
        wait=wait_random_exponential(multiplier=min_wait, max=max_wait),
        retry=retry_if_result(_failed),
        before_sleep=before_sleep_log(logger, logging.WARNING),
        retry_error_callback=lambda state: state.outcome.result(),
        reraise=True,
    )


def retry_from_config(config: dict) -> AsyncRetrying:
    """Build the retry policy from the ``retry`` section of a config dict."""
    retry_config = config.get("retry", {})
    return sync_retrying(
        max_attempts=retry_config.get("max_attempts", 3),
        min_wait=retry_config.get("min_wait", 0.5),
        max_wait=retry_config.get("max_wait", 8.0),
    )
