"""Retry wrapper around one chunk attempt."""

from __future__ import annotations

import asyncio
import logging
from typing import Awaitable, Callable, Optional, TypeVar

from listbatch.config import RetryPolicy
from listbatch.errors import ChunkTransportError

T = TypeVar("T")

logger = logging.getLogger(__name__)


async def run_with_retry(
    attempt: Callable[[], Awaitable[T]],
    policy: Optional[RetryPolicy],
    *,
    sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
) -> T:
    """
    Run `attempt`, retrying on retryable ChunkTransportError.

    Only chunk-level transport failures are retried. Each call of `attempt`
    must open a fresh batch context. Per-operation failures are returned by
    `attempt`, never raised, so they are never retried here.

    Raises:
        ChunkTransportError: the last transport failure, when retries are
            exhausted or the error is not retryable.
    """
    if policy is None or not policy.enabled:
        return await attempt()

    delay_sec = policy.retry_delay_ms / 1000.0
    for attempt_no in range(policy.max_retries + 1):
        try:
            return await attempt()
        except ChunkTransportError as exc:
            if attempt_no >= policy.max_retries or not policy.should_retry(exc):
                raise
            logger.warning(
                "Chunk transport failed (attempt %d/%d), retrying in %.3fs: %s",
                attempt_no + 1,
                policy.max_retries + 1,
                delay_sec,
                exc,
            )
            await sleep(delay_sec)
            delay_sec *= 2

    raise ChunkTransportError("Unexpected retry loop termination")
