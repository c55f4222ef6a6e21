"""listbatch public API."""

from __future__ import annotations

from listbatch.auth import AuthInfo, OAuthClient
from listbatch.backends import BackendAdapter, BatchContext, GoogleTasksBackend
from listbatch.batch import (
    AddOperation,
    DeleteOperation,
    FieldValue,
    Operation,
    OperationKind,
    OperationQueue,
    UpdateOperation,
    ValidateAddByPathOperation,
    ValidateUpdateByIdOperation,
)
from listbatch.config import EngineConfig, RetryPolicy
from listbatch.errors import (
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
from listbatch.models import BatchSummary, OperationOutcome
from listbatch.orchestrator import BatchOrchestrator, create_orchestrator

__all__ = [
    # High-level
    "BatchOrchestrator",
    "create_orchestrator",
    "OperationQueue",
    # Config
    "EngineConfig",
    "RetryPolicy",
    # Backends / Auth
    "BackendAdapter",
    "BatchContext",
    "GoogleTasksBackend",
    "AuthInfo",
    "OAuthClient",
    # Operations / Models
    "OperationKind",
    "Operation",
    "AddOperation",
    "UpdateOperation",
    "DeleteOperation",
    "ValidateAddByPathOperation",
    "ValidateUpdateByIdOperation",
    "FieldValue",
    "OperationOutcome",
    "BatchSummary",
    # Errors
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
