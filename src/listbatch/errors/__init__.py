"""Public error exports for listbatch."""

from __future__ import annotations

from .exceptions import (
    ApiError,
    AuthError,
    ChunkTransportError,
    ConfigurationError,
    ConflictError,
    HttpErrorInfo,
    InvalidArgumentError,
    InvalidStateError,
    ListBatchError,
    LocalValidationError,
    NetworkError,
    NotFoundError,
    OperationError,
    PermissionError,
    QuotaExceededError,
    RateLimitError,
    map_http_error,
)

__all__ = [
    "ListBatchError",
    "LocalValidationError",
    "ConfigurationError",
    "OperationError",
    "ChunkTransportError",
    "InvalidStateError",
    "InvalidArgumentError",
    "AuthError",
    "PermissionError",
    "NotFoundError",
    "ConflictError",
    "RateLimitError",
    "QuotaExceededError",
    "NetworkError",
    "ApiError",
    "HttpErrorInfo",
    "map_http_error",
]
