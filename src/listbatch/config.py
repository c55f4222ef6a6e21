"""Engine configuration for listbatch."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Optional

from listbatch.errors import InvalidArgumentError

DEFAULT_MAX_OPERATIONS_PER_CHUNK: int = 100

DEFAULT_RETRYABLE_ERROR_SUBSTRINGS: tuple[str, ...] = (
    "timeout",
    "network",
    "503",
    "502",
    "429",
    "throttled",
)


@dataclass(slots=True, frozen=True)
class RetryPolicy:
    """
    Retry policy for chunk-level transport failures.

    Attributes:
        enabled: Master switch. A disabled policy never retries.
        max_retries: Extra attempts after the first one.
        retry_delay_ms: Delay before the first retry; doubled per retry.
        retryable_error_substrings: Case-insensitive substrings; an error is
            retryable when its message (or its cause's) contains one of them.
    """

    enabled: bool = True
    max_retries: int = 3
    retry_delay_ms: int = 1000
    retryable_error_substrings: tuple[str, ...] = field(
        default=DEFAULT_RETRYABLE_ERROR_SUBSTRINGS
    )

    def __post_init__(self) -> None:
        if not isinstance(self.max_retries, int) or self.max_retries < 0:
            raise InvalidArgumentError("RetryPolicy.max_retries must be a non-negative int")
        if not isinstance(self.retry_delay_ms, int) or self.retry_delay_ms < 0:
            raise InvalidArgumentError("RetryPolicy.retry_delay_ms must be a non-negative int")
        if isinstance(self.retryable_error_substrings, str):
            raise InvalidArgumentError(
                "RetryPolicy.retryable_error_substrings must be a sequence of strings"
            )
        # Normalize lists to tuples so the policy stays hashable.
        object.__setattr__(
            self,
            "retryable_error_substrings",
            tuple(self.retryable_error_substrings),
        )

    def should_retry(self, error: BaseException) -> bool:
        """Classify an error as retryable by substring match."""
        if not self.enabled:
            return False

        texts = [str(error).lower()]
        cause = getattr(error, "cause", None) or error.__cause__
        if cause is not None:
            texts.append(str(cause).lower())

        return any(
            needle.lower() in text
            for needle in self.retryable_error_substrings
            for text in texts
        )


@dataclass(slots=True, frozen=True)
class EngineConfig:
    """
    Configuration for BatchOrchestrator.

    Notes:
        - retry_policy=None means every chunk gets exactly one attempt.
        - concurrent_chunks=True dispatches all chunks at once; remote side
          effects may then land out of submission order.
    """

    max_operations_per_chunk: int = DEFAULT_MAX_OPERATIONS_PER_CHUNK
    concurrent_chunks: bool = False
    retry_policy: Optional[RetryPolicy] = None

    def __post_init__(self) -> None:
        size = self.max_operations_per_chunk
        if isinstance(size, bool) or not isinstance(size, int) or size <= 0:
            raise InvalidArgumentError(
                "EngineConfig.max_operations_per_chunk must be a positive int",
                details={"max_operations_per_chunk": size},
            )
        if not isinstance(self.concurrent_chunks, bool):
            raise InvalidArgumentError("EngineConfig.concurrent_chunks must be a bool")
        if self.retry_policy is not None and not isinstance(self.retry_policy, RetryPolicy):
            raise InvalidArgumentError("EngineConfig.retry_policy must be a RetryPolicy")
