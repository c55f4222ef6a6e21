"""Exception hierarchy and HTTP error mapping for listbatch."""

from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING, Any, Optional

if TYPE_CHECKING:
    from listbatch.models import OperationOutcome


class ListBatchError(Exception):
    """
    Base exception for listbatch.

    Attributes:
        details: Optional structured information (e.g., HTTP status, reason).
        cause: Optional original exception that triggered this error.
    """

    def __init__(
        self,
        message: str,
        *,
        details: Optional[dict[str, Any]] = None,
        cause: Optional[BaseException] = None,
    ) -> None:
        super().__init__(message)
        self.details = details or {}
        self.cause = cause


class LocalValidationError(ListBatchError):
    """Raised when an operation is missing a field required by its kind."""


class ConfigurationError(LocalValidationError):
    """Raised when an operation kind is not supported (by the engine or the backend)."""


class OperationError(ListBatchError):
    """Raised when the backend resolves a single operation with a failure."""


class ChunkTransportError(ListBatchError):
    """
    Raised when the network call backing a whole chunk fails.

    Attributes:
        local_failures: Outcomes of operations that had already failed during
            registration, keyed by position in the chunk. They keep their
            own message.
    """

    def __init__(
        self,
        message: str,
        *,
        local_failures: Optional[dict[int, "OperationOutcome"]] = None,
        details: Optional[dict[str, Any]] = None,
        cause: Optional[BaseException] = None,
    ) -> None:
        super().__init__(message, details=details, cause=cause)
        self.local_failures = dict(local_failures or {})


class InvalidStateError(ListBatchError):
    """Raised when the library is used in an invalid state (e.g., re-entrant execute)."""


class InvalidArgumentError(ListBatchError):
    """Raised when arguments or configuration values are invalid (HTTP 400, etc.)."""


class AuthError(ListBatchError):
    """Raised when OAuth authentication/refresh fails."""


class PermissionError(ListBatchError):
    """Raised when access is denied (HTTP 403 non-quota)."""


class NotFoundError(ListBatchError):
    """Raised when a collection or record is not found (HTTP 404)."""


class ConflictError(ListBatchError):
    """Raised when a concurrency token does not match (HTTP 409/412)."""


class RateLimitError(ListBatchError):
    """Raised when rate-limited (HTTP 429)."""


class QuotaExceededError(ListBatchError):
    """Raised when quota is exceeded (HTTP 403 with quota-related reason)."""


class NetworkError(ListBatchError):
    """Raised when network/timeout issues prevent the request."""


class ApiError(ListBatchError):
    """Raised for unclassified API errors (5xx, unknown 4xx, etc.)."""


@dataclass(frozen=True)
class HttpErrorInfo:
    """Lightweight HTTP error information for mapping to listbatch exceptions."""

    status_code: int
    reason: str | None = None
    message: str | None = None
    details: dict[str, Any] | None = None


_QUOTA_REASON_KEYWORDS: tuple[str, ...] = (
    "quota",
    "rateLimitExceeded",
    "userRateLimitExceeded",
    "dailyLimitExceeded",
    "usageLimits",
)


def _is_quota_reason(reason: str | None) -> bool:
    if not reason:
        return False
    return any(key.lower() in reason.lower() for key in _QUOTA_REASON_KEYWORDS)


def map_http_error(
    info: HttpErrorInfo,
    *,
    cause: Optional[BaseException] = None,
) -> ListBatchError:
    """
    Map an HTTP error to a listbatch exception.

    Policy:
        - 401 -> AuthError
        - 403 -> PermissionError (default), but QuotaExceededError if quota-related
        - 404 -> NotFoundError
        - 409/412 -> ConflictError
        - 429 -> RateLimitError
        - 400 -> InvalidArgumentError
        - otherwise -> ApiError

    The message always carries the status code so that retry classification
    by substring (e.g. "503", "429") works on the mapped error.
    """
    details: dict[str, Any] = {
        "status_code": info.status_code,
        "reason": info.reason,
    }
    if info.details:
        details.update(info.details)

    message = f"HTTP {info.status_code}"
    if info.message:
        message = f"{message}: {info.message}"

    if info.status_code == 400:
        return InvalidArgumentError(message, details=details, cause=cause)
    if info.status_code == 401:
        return AuthError(message, details=details, cause=cause)
    if info.status_code == 403:
        if _is_quota_reason(info.reason):
            return QuotaExceededError(message, details=details, cause=cause)
        return PermissionError(message, details=details, cause=cause)
    if info.status_code == 404:
        return NotFoundError(message, details=details, cause=cause)
    if info.status_code in (409, 412):
        return ConflictError(message, details=details, cause=cause)
    if info.status_code == 429:
        return RateLimitError(message, details=details, cause=cause)

    return ApiError(message, details=details, cause=cause)
