"""Backend adapter exports for listbatch."""

from __future__ import annotations

from .base import BackendAdapter, BatchContext
from .google_tasks import GoogleTasksBackend, TasksBatchContext

__all__ = [
    "BackendAdapter",
    "BatchContext",
    "GoogleTasksBackend",
    "TasksBatchContext",
]
