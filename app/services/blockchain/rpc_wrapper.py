"""
RPC Wrapper with Timeout and Retry Logic.

Provides centralized timeout and retry functionality for all blockchain RPC
calls. Every failure surfaces as UpstreamDataError so callers fail closed.
"""

import asyncio
from collections.abc import Awaitable, Callable
from typing import Any

from loguru import logger

from app.config.constants import (
    BLOCKCHAIN_TIMEOUT,
    RPC_MAX_RETRIES,
    RPC_RETRY_BASE_DELAY,
)
from app.utils.exceptions import UpstreamDataError


class BlockchainTimeoutError(UpstreamDataError):
    """Raised when blockchain RPC call times out."""

    code = "upstream_timeout"


async def with_timeout(
    coro: Awaitable[Any],
    timeout: float = BLOCKCHAIN_TIMEOUT,
    operation_name: str = "RPC call",
) -> Any:
    """
    Execute async coroutine with timeout.

    Args:
        coro: Coroutine to execute
        timeout: Timeout in seconds (default: BLOCKCHAIN_TIMEOUT)
        operation_name: Operation name for logging

    Returns:
        Result of the coroutine

    Raises:
        BlockchainTimeoutError: If operation times out
    """
    try:
        return await asyncio.wait_for(coro, timeout=timeout)
    except TimeoutError as e:
        error_msg = f"{operation_name} timed out after {timeout}s"
        logger.error(error_msg)
        raise BlockchainTimeoutError(error_msg) from e


async def rpc_call_with_retry(
    coro_factory: Callable[[], Awaitable[Any]],
    max_retries: int = RPC_MAX_RETRIES,
    timeout: float = BLOCKCHAIN_TIMEOUT,
    operation_name: str = "RPC call",
    base_delay: float = RPC_RETRY_BASE_DELAY,
) -> Any:
    """
    Execute RPC call with retry logic and timeout.

    Delays grow exponentially from base_delay (0.5s, 1s, 2s...).

    Args:
        coro_factory: Factory function that returns a coroutine
        max_retries: Maximum number of attempts
        timeout: Timeout per attempt in seconds
        operation_name: Operation name for logging
        base_delay: Delay before the second attempt

    Returns:
        Result of the RPC call

    Raises:
        BlockchainTimeoutError: If the last attempt timed out
        UpstreamDataError: If all attempts fail with errors
    """
    attempts = max(1, max_retries)
    last_error: Exception | None = None

    for attempt in range(attempts):
        try:
            result = await with_timeout(
                coro_factory(),
                timeout=timeout,
                operation_name=f"{operation_name} (attempt {attempt + 1}/{attempts})",
            )

            if attempt > 0:
                logger.success(
                    f"{operation_name} succeeded on attempt {attempt + 1}"
                )

            return result

        except Exception as e:
            last_error = e

            if attempt < attempts - 1:
                delay = base_delay * (2 ** attempt)
                logger.warning(
                    f"{operation_name} failed on attempt {attempt + 1}/{attempts}: {e}. "
                    f"Retrying in {delay}s..."
                )
                await asyncio.sleep(delay)
            else:
                logger.error(
                    f"{operation_name} failed after {attempts} attempts: {e}"
                )

    if isinstance(last_error, BlockchainTimeoutError):
        raise last_error
    raise UpstreamDataError(
        f"{operation_name} failed after {attempts} attempts",
        reason=type(last_error).__name__,
    ) from last_error
