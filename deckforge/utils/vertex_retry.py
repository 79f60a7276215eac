"""
Vertex AI Retry Utility with Exponential Backoff

Retries rate-limited calls (429 / RESOURCE_EXHAUSTED) to Vertex AI models
with exponential backoff. Everything else is re-raised immediately.
"""

import asyncio
from typing import Any, Awaitable, Callable, Optional, TypeVar

from deckforge.utils.logger import setup_logger

logger = setup_logger(__name__)

T = TypeVar('T')


def is_rate_limit_error(error: BaseException) -> bool:
    """Detect a provider rate-limit error from its message."""
    error_str = str(error)
    return (
        "429" in error_str or
        "RESOURCE_EXHAUSTED" in error_str or
        "quota" in error_str.lower() or
        "rate limit" in error_str.lower()
    )


async def call_with_retry(
    func: Callable[[], Awaitable[T]],
    max_retries: int = 5,
    base_delay: float = 2.0,
    max_delay: float = 60.0,
    operation_name: str = "Vertex AI call",
    is_retryable: Optional[Callable[[BaseException], bool]] = None,
) -> T:
    """
    Call an async function with exponential backoff retry for rate limits.

    Args:
        func: Zero-argument callable returning an awaitable (usually a lambda)
        max_retries: Maximum number of attempts
        base_delay: Base delay in seconds, doubled per attempt
        max_delay: Upper bound for a single delay
        operation_name: Description of operation for logging
        is_retryable: Predicate deciding whether an error is retried,
            defaults to rate-limit detection

    Returns:
        Result from the first successful call

    Raises:
        Exception: The last error once retries are exhausted, or any
            non-retryable error straight away
    """
    should_retry = is_retryable or is_rate_limit_error
    attempts = max(1, max_retries)

    for attempt in range(attempts):
        try:
            result = await func()
            if attempt > 0:
                logger.info(f"✅ {operation_name} succeeded after {attempt} retries")
            return result

        except Exception as e:
            retryable = should_retry(e)

            if retryable and attempt < attempts - 1:
                delay = min(base_delay * (2 ** attempt), max_delay)
                logger.warning(
                    f"⚠️  {operation_name} hit rate limit (attempt {attempt + 1}/{attempts}). "
                    f"Retrying in {delay:.1f}s..."
                )
                await asyncio.sleep(delay)
                continue

            if retryable:
                logger.error(f"❌ {operation_name} failed after {attempts} attempts due to rate limiting")
            else:
                logger.error(f"❌ {operation_name} failed with non-retryable error: {e}")
            raise

    raise RuntimeError(f"{operation_name} failed after {attempts} attempts")
