"""Public batch-building exports for listbatch."""

from __future__ import annotations

from .aggregate import aggregate
from .chunk_executor import ChunkAttempt, ChunkExecutor, ChunkState
from .kinds import OperationKind
from .operation import (
    AddOperation,
    DeleteOperation,
    FieldValue,
    Operation,
    UpdateOperation,
    ValidateAddByPathOperation,
    ValidateUpdateByIdOperation,
    validate_operation,
)
from .partition import partition
from .queue import BuildSession, OperationQueue
from .retry import run_with_retry

__all__ = [
    "OperationKind",
    "Operation",
    "AddOperation",
    "UpdateOperation",
    "DeleteOperation",
    "ValidateAddByPathOperation",
    "ValidateUpdateByIdOperation",
    "FieldValue",
    "validate_operation",
    "BuildSession",
    "OperationQueue",
    "partition",
    "ChunkExecutor",
    "ChunkState",
    "ChunkAttempt",
    "run_with_retry",
    "aggregate",
]
